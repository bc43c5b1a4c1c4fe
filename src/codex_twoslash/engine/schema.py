from collections.abc import Mapping
from types import MappingProxyType

from codex_twoslash.core.ports.engine import (
    BooleanOption,
    EnumOption,
    ListOption,
    NumberOption,
    OptionDeclaration,
    StringOption,
)

# Numeric values follow the TypeScript compiler so playground links stay meaningful.
SCRIPT_TARGETS: Mapping[str, int] = MappingProxyType(
    {
        "es3": 0,
        "es5": 1,
        "es6": 2,
        "es2015": 2,
        "es2016": 3,
        "es2017": 4,
        "es2018": 5,
        "es2019": 6,
        "es2020": 7,
        "es2021": 8,
        "es2022": 9,
        "es2023": 10,
        "esnext": 99,
    }
)

MODULE_KINDS: Mapping[str, int] = MappingProxyType(
    {
        "none": 0,
        "commonjs": 1,
        "amd": 2,
        "umd": 3,
        "system": 4,
        "es6": 5,
        "es2015": 5,
        "es2020": 6,
        "es2022": 7,
        "esnext": 99,
        "node16": 100,
        "nodenext": 199,
        "preserve": 200,
    }
)

MODULE_RESOLUTION_KINDS: Mapping[str, int] = MappingProxyType(
    {
        "classic": 1,
        "node": 2,
        "node10": 2,
        "node16": 3,
        "nodenext": 99,
        "bundler": 100,
    }
)

JSX_EMIT: Mapping[str, int] = MappingProxyType(
    {
        "preserve": 1,
        "react": 2,
        "react-native": 3,
        "react-jsx": 4,
        "react-jsxdev": 5,
    }
)

_DECLARATIONS: tuple[OptionDeclaration, ...] = (
    BooleanOption("allowJs", "Allow JavaScript files to be part of the program."),
    BooleanOption("allowUnreachableCode"),
    BooleanOption("allowUnusedLabels"),
    BooleanOption("alwaysStrict"),
    StringOption("baseUrl"),
    BooleanOption("checkJs"),
    BooleanOption("declaration", "Generate .d.ts files from the sources."),
    BooleanOption("esModuleInterop"),
    BooleanOption("exactOptionalPropertyTypes"),
    BooleanOption("experimentalDecorators"),
    BooleanOption("isolatedModules"),
    EnumOption("jsx", JSX_EMIT, "How JSX is emitted."),
    StringOption("jsxFactory"),
    StringOption("jsxImportSource"),
    ListOption("lib", StringOption("lib"), "Bundled library declaration files."),
    EnumOption("module", MODULE_KINDS),
    EnumOption("moduleResolution", MODULE_RESOLUTION_KINDS),
    NumberOption("maxNodeModuleJsDepth"),
    BooleanOption("noEmit"),
    BooleanOption("noFallthroughCasesInSwitch"),
    BooleanOption("noImplicitAny"),
    BooleanOption("noImplicitReturns"),
    BooleanOption("noImplicitThis"),
    BooleanOption("noUnusedLocals"),
    BooleanOption("noUnusedParameters"),
    StringOption("outDir"),
    BooleanOption("preserveConstEnums"),
    BooleanOption("removeComments", "Do not emit comments."),
    ListOption("rootDirs", StringOption("rootDirs")),
    BooleanOption("skipLibCheck"),
    BooleanOption("strict"),
    BooleanOption("strictNullChecks"),
    BooleanOption("strictFunctionTypes"),
    BooleanOption("strictPropertyInitialization"),
    EnumOption("target", SCRIPT_TARGETS, "The language version of the emitted code."),
    ListOption("types", StringOption("types")),
    BooleanOption("useDefineForClassFields"),
    BooleanOption("verbatimModuleSyntax"),
)

OPTION_DECLARATIONS: Mapping[str, OptionDeclaration] = MappingProxyType(
    {declaration.name.lower(): declaration for declaration in _DECLARATIONS}
)
