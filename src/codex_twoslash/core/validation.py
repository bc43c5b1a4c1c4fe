from collections.abc import Sequence

from codex_twoslash.core.directives import split_lines
from codex_twoslash.core.ports.engine import Diagnostic
from codex_twoslash.core.utils import flatten_diagnostic_message_text
from codex_twoslash.errors import InputValidationError, UnexpectedErrorsError
from codex_twoslash.models import ExampleOptions

_DIRECTIVE_PREFIXES = ("// ^", "//^")


def validate_input(code: str) -> None:
    """Reject samples whose directives cannot point at anything."""
    lines = [line for line in split_lines(code) if line.strip()]
    if lines and lines[0].lstrip().startswith(_DIRECTIVE_PREFIXES):
        raise InputValidationError(
            f"The sample starts with the directive '{lines[0].strip()}', but there is no code above it to annotate."
        )


def validate_code_for_errors(
    relevant_errors: Sequence[Diagnostic],
    handbook_options: ExampleOptions,
    extension: str,
    original_code: str,
) -> None:
    """Fail when the sample raises diagnostics it does not declare with ``// @errors:``."""
    unexpected = [e for e in relevant_errors if e.code not in handbook_options.errors]
    if not unexpected:
        return

    found = " ".join(str(e.code) for e in unexpected)
    codes_to_add = " ".join(str(code) for code in dict.fromkeys(e.code for e in relevant_errors))
    directive = f"// @errors: {codes_to_add}"
    if handbook_options.errors:
        missing = "\nThe existing annotation specified " + " ".join(str(c) for c in handbook_options.errors)
    else:
        missing = "\nExpected: " + directive

    details = "\n".join(
        f"{e.file_name}\n  [{e.code}] {e.start} - {flatten_diagnostic_message_text(e.message_text, ' ')}"
        for e in relevant_errors
    )
    message = (
        f"Errors were thrown in the sample, but not included in an errors tag: {found}{missing}\n\n"
        f"Compiler Errors:\n\n{details}\n\n"
        f"## Code\n\n```{extension}\n{original_code}\n```"
    )
    raise UnexpectedErrorsError(message, [e.code for e in unexpected])
