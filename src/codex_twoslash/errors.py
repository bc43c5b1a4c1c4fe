class TwoSlashError(ValueError):
    """Base class for every failure raised while rendering a sample."""


class UnknownCompilerOptionError(TwoSlashError):
    def __init__(self, name: str) -> None:
        super().__init__(f"No compiler setting named '{name}' exists!")
        self.name = name


class InvalidOptionValueError(TwoSlashError):
    pass


class MissingEmitFileError(TwoSlashError):
    def __init__(self, file_name: str, available: list[str]) -> None:
        super().__init__(f"Cannot find the file {file_name} - in {', '.join(available)}")
        self.file_name = file_name
        self.available = available


class InputValidationError(TwoSlashError):
    pass


class UnexpectedErrorsError(TwoSlashError):
    def __init__(self, message: str, codes: list[int]) -> None:
        super().__init__(message)
        self.codes = codes
