import logging
import re
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

from codex_twoslash.core.ports.engine import (
    BooleanOption,
    CompilerOptions,
    EnumOption,
    ListOption,
    NumberOption,
    OptionDeclaration,
    StringOption,
)
from codex_twoslash.core.utils import parse_primitive
from codex_twoslash.errors import InvalidOptionValueError, UnknownCompilerOptionError
from codex_twoslash.models import ExampleOptions

logger = logging.getLogger(__name__)

BOOLEAN_CONFIG_RE = re.compile(r"^//\s?@(\w+)$")
VALUED_CONFIG_RE = re.compile(r"^//\s?@(\w+):\s?(.+)$")

FILENAME_OPTION = "filename"

_DEFAULT_HANDBOOK_OPTIONS: Mapping[str, Any] = MappingProxyType(
    ExampleOptions().model_dump(by_alias=True)
)


def _coerce_handbook_value(name: str, value: str) -> Any:
    default = _DEFAULT_HANDBOOK_OPTIONS[name]
    if isinstance(default, bool):
        return parse_primitive(value, "boolean")
    if isinstance(default, list):
        try:
            return [int(code) for code in value.split(" ") if code]
        except ValueError:
            raise InvalidOptionValueError(f"Invalid value {value} for {name}. Expected space separated numbers") from None
    return value


def filter_handbook_options(code_lines: Sequence[str]) -> tuple[list[str], ExampleOptions]:
    """Pull the inline flags which are not compiler flags out of the sample.

    Unknown names stay in the returned lines so that the compiler option pass
    gets a chance to claim them.
    """
    values: dict[str, Any] = dict(_DEFAULT_HANDBOOK_OPTIONS)
    kept: list[str] = []

    for line in code_lines:
        boolean = BOOLEAN_CONFIG_RE.match(line)
        if boolean and boolean.group(1) in values:
            name = boolean.group(1)
            if not isinstance(_DEFAULT_HANDBOOK_OPTIONS[name], bool):
                raise InvalidOptionValueError(f"The option '{name}' needs a value, e.g. // @{name}: <value>")
            values[name] = True
            logger.debug("Setting options.%s to true", name)
            continue

        valued = VALUED_CONFIG_RE.match(line)
        if valued and valued.group(1) in values:
            name, value = valued.group(1), valued.group(2)
            values[name] = _coerce_handbook_value(name, value)
            logger.debug("Setting options.%s to %s", name, values[name])
            continue

        kept.append(line)

    return kept, ExampleOptions.model_validate(values)


def coerce_option(declaration: OptionDeclaration, value: str) -> Any:
    if isinstance(declaration, BooleanOption):
        return parse_primitive(value, "boolean")
    if isinstance(declaration, NumberOption):
        return parse_primitive(value, "number")
    if isinstance(declaration, StringOption):
        return parse_primitive(value, "string")
    if isinstance(declaration, ListOption):
        return [coerce_option(declaration.element, item) for item in value.split(",")]

    resolved = declaration.values.get(value.lower())
    if resolved is None:
        allowed = ",".join(declaration.values)
        raise InvalidOptionValueError(f"Invalid value {value} for {declaration.name}. Allowed values: {allowed}")
    return resolved


def set_option(
    name: str,
    value: str,
    options: CompilerOptions,
    declarations: Mapping[str, OptionDeclaration],
) -> CompilerOptions:
    """Return a copy of ``options`` with ``name`` set from its raw directive text."""
    declaration = declarations.get(name.lower())
    if declaration is None:
        raise UnknownCompilerOptionError(name)

    logger.debug("Setting %s to %s", declaration.name, value)
    updated = dict(options)
    updated[declaration.name] = coerce_option(declaration, value)
    return MappingProxyType(updated)


def filter_compiler_options(
    code_lines: Sequence[str],
    default_compiler_options: CompilerOptions,
    declarations: Mapping[str, OptionDeclaration],
) -> tuple[list[str], CompilerOptions]:
    options: CompilerOptions = MappingProxyType(dict(default_compiler_options))
    kept: list[str] = []

    for line in code_lines:
        boolean = BOOLEAN_CONFIG_RE.match(line)
        if boolean:
            options = set_option(boolean.group(1), "true", options, declarations)
            continue

        valued = VALUED_CONFIG_RE.match(line)
        if valued and valued.group(1) != FILENAME_OPTION:
            options = set_option(valued.group(1), valued.group(2), options, declarations)
            continue

        kept.append(line)

    return kept, options
