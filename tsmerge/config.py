"""
# Compiler Options & `tsconfig.json` Loading
"""

# Std-Lib Imports
import os
import re
import json
import logging
from dataclasses import field, fields
from typing import Any, Dict, List, Optional, Tuple

# PyPi Imports
from pydantic.dataclasses import dataclass

# Local Imports
from .data import *
from .lex import strip_comments

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "tsconfig.json"

# Options passed through to the engine, which `tsmerge` itself does not interpret,
# by the JSON type they accept
_boolean_options = """
    allowArbitraryExtensions allowImportingTsExtensions allowJs allowSyntheticDefaultImports
    allowUmdGlobalAccess allowUnreachableCode allowUnusedLabels alwaysStrict
    assumeChangesOnlyAffectDirectDependencies checkJs composite disableReferencedProjectLoad
    disableSizeLimit disableSolutionSearching disableSourceOfProjectReferenceRedirect
    downlevelIteration emitBOM emitDeclarationOnly emitDecoratorMetadata erasableSyntaxOnly
    esModuleInterop exactOptionalPropertyTypes experimentalDecorators explainFiles
    extendedDiagnostics forceConsistentCasingInFileNames importHelpers incremental
    isolatedDeclarations isolatedModules keyofStringsOnly libReplacement listEmittedFiles
    listFiles noCheck noEmit noEmitHelpers noEmitOnError noErrorTruncation noImplicitOverride
    noImplicitUseStrict noLib noPropertyAccessFromIndexSignature noResolve noStrictGenericChecks
    noUncheckedIndexedAccess noUncheckedSideEffectImports preserveConstEnums preserveSymlinks
    preserveValueImports preserveWatchOutput pretty removeComments resolveJsonModule
    resolvePackageJsonExports resolvePackageJsonImports rewriteRelativeImportExtensions
    skipDefaultLibCheck skipLibCheck strictBindCallApply strictBuiltinIteratorReturn
    strictFunctionTypes strictNullChecks strictPropertyInitialization stripInternal
    suppressExcessPropertyErrors suppressImplicitAnyIndexErrors traceResolution
    useDefineForClassFields useUnknownInCatchVariables verbatimModuleSyntax
""".split()
_string_options = """
    baseUrl charset declarationDir generateCpuProfile generateTrace ignoreDeprecations
    importsNotUsedAsValues jsx jsxFactory jsxFragmentFactory jsxImportSource mapRoot module
    moduleDetection moduleResolution newLine out outFile reactNamespace rootDir sourceRoot
    target tsBuildInfoFile
""".split()
_list_options = "customConditions lib moduleSuffixes plugins rootDirs typeRoots types".split()

PASSTHROUGH_OPTIONS = {name: bool for name in _boolean_options}
PASSTHROUGH_OPTIONS.update({name: str for name in _string_options})
PASSTHROUGH_OPTIONS.update({name: list for name in _list_options})
PASSTHROUGH_OPTIONS.update(paths=dict, maxNodeModuleJsDepth=int)

# Options holding paths, which are relative to the configuration file setting them
PATH_OPTIONS = ("outDir", "rootDir", "baseUrl", "declarationDir", "outFile", "tsBuildInfoFile")


def camel_to_snake(name: str) -> str:
    """E.g. `noImplicitAny` => `no_implicit_any`"""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def snake_to_camel(name: str) -> str:
    """E.g. `no_implicit_any` => `noImplicitAny`"""
    first, *rest = name.split("_")
    return first + "".join(r.capitalize() for r in rest)


@dataclass
class CompilerOptions:
    """# Compiler Options

    Boolean options are `None` until configured, by `tsconfig.json` or the command line,
    so that configured-but-disabled options can be told apart from those never mentioned."""

    out_dir: Optional[str] = None
    declaration: Optional[bool] = None
    declaration_map: Optional[bool] = None
    source_map: Optional[bool] = None
    inline_source_map: Optional[bool] = None
    inline_sources: Optional[bool] = None
    strict: Optional[bool] = None
    no_implicit_any: Optional[bool] = None
    no_implicit_returns: Optional[bool] = None
    no_implicit_this: Optional[bool] = None
    no_fallthrough_cases_in_switch: Optional[bool] = None
    no_unused_locals: Optional[bool] = None
    no_unused_parameters: Optional[bool] = None
    # Import path map, `{from: to}`. Set from the command line only.
    path_map: Dict[str, str] = field(default_factory=dict)
    # Pass-through options, keyed by their `tsconfig.json` names
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def known(cls) -> Dict[str, type]:
        """Map of each `tsconfig.json` option name to its accepted JSON type"""
        rv = dict()
        for f in fields(cls):
            if f.name in ("path_map", "extra"):
                continue
            rv[snake_to_camel(f.name)] = str if f.name == "out_dir" else bool
        rv.update(PASSTHROUGH_OPTIONS)
        return rv

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> "CompilerOptions":
        """Create from the `compilerOptions` object of a `tsconfig.json`.
        Raises a `ConfigError` listing every unknown or mistyped option."""
        known = cls.known()
        diagnostics = []
        rv = cls()
        for name, val in obj.items():
            tp = known.get(name)
            if tp is None:
                diagnostics.append(
                    Diagnostic(
                        category=DiagnosticCategory.ERROR,
                        code=5023,
                        message=f"Unknown compiler option '{name}'.",
                    )
                )
            elif not isinstance(val, tp) or (tp is not bool and isinstance(val, bool)):
                diagnostics.append(
                    Diagnostic(
                        category=DiagnosticCategory.ERROR,
                        code=5024,
                        message=f"Compiler option '{name}' requires a value of type {_type_names[tp]}.",
                    )
                )
            else:
                rv.set_option(name, val)
        if diagnostics:
            raise ConfigError("Invalid compiler options", diagnostics)
        return rv

    def set_option(self, name: str, val: Any) -> None:
        """Set option `name`, in its `tsconfig.json` camel-case form"""
        attr = camel_to_snake(name)
        if name in PASSTHROUGH_OPTIONS or attr in ("path_map", "extra"):
            self.extra[name] = val
        elif hasattr(self, attr):
            setattr(self, attr, val)
        else:
            self.extra[name] = val

    def configured_options(self) -> List[str]:
        """Camel-case names of all options which have been set, whether enabled or not"""
        rv = []
        for f in fields(self):
            if f.name in ("path_map", "extra", "out_dir"):
                continue
            if getattr(self, f.name) is not None:
                rv.append(snake_to_camel(f.name))
        return rv + list(self.extra.keys())


_type_names = {str: "string", bool: "boolean", int: "number", list: "list", dict: "object"}


def config_error(msg: str, code: int, message: str, **kwargs) -> ConfigError:
    """Create a `ConfigError` carrying a single error `Diagnostic`"""
    diagnostic = Diagnostic(
        category=DiagnosticCategory.ERROR, code=code, message=message, **kwargs
    )
    return ConfigError(msg, [diagnostic])


def options_object(obj: Any, path: str) -> Dict[str, Any]:
    """Check that the `compilerOptions` value `obj` of configuration `path` is an object"""
    if obj is None or not isinstance(obj, dict):
        raise config_error(
            f"Invalid configuration file '{path}'",
            5024,
            "Compiler option 'compilerOptions' requires a value of type object.",
        )
    return obj


def load_compiler_options(
    path: str = CONFIG_FILENAME, compiler_options: Optional[Dict[str, Any]] = None
) -> CompilerOptions:
    """
    Load `CompilerOptions`.
    If `compiler_options` are provided, they are used directly in place of reading `path`.
    A missing configuration file produces the default options.
    Options inherited through `extends` are merged beneath those of `path`.
    Unreadable or invalid files raise a `ConfigError`.
    """
    if compiler_options is not None:
        return CompilerOptions.from_json(options_object(compiler_options, path))

    try:
        obj = read_compiler_options(path)
    except FileNotFoundError:
        logger.debug("No %s found; using default options", path)
        return CompilerOptions()

    logger.debug("Loaded %s", path)
    return CompilerOptions.from_json(obj)


def read_config(path: str) -> Dict[str, Any]:
    """Read and decode the configuration file at `path`.
    Raises `FileNotFoundError` if it does not exist, and `ConfigError` for all other failures."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            txt = f.read()
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        raise config_error(f"Cannot read file '{path}'", 5083, str(e))

    try:
        config = json.loads(strip_comments(txt))
    except (TsmergeParseError, ValueError) as e:
        raise config_error(
            f"Invalid configuration file '{path}'",
            1005,
            str(e),
            file=path,
            line=getattr(e, "line", getattr(e, "lineno", 1) - 1),
            column=getattr(e, "column", getattr(e, "colno", 1) - 1),
        )
    if not isinstance(config, dict):
        raise ConfigError(f"Invalid configuration file '{path}': expected an object")
    return config


def read_compiler_options(path: str, seen: Tuple[str, ...] = ()) -> Dict[str, Any]:
    """Read the `compilerOptions` object of configuration `path`, merged over those of any it `extends`.
    `seen` holds the configurations already being read, further down the `extends` chain."""
    config = read_config(path)
    seen = seen + (os.path.abspath(path),)
    config_dir = os.path.dirname(os.path.abspath(path))

    bases = config.get("extends", [])
    if isinstance(bases, str):
        bases = [bases]
    if not isinstance(bases, list) or not all(isinstance(b, str) for b in bases):
        raise config_error(
            f"Invalid configuration file '{path}'",
            5024,
            "Compiler option 'extends' requires a value of type string or list.",
        )

    rv = dict()
    for base in bases:
        base_path = resolve_extends(base, config_dir)
        if base_path in seen:
            raise config_error(
                f"Invalid configuration file '{path}'",
                18000,
                f"Circularity detected while resolving configuration: {' -> '.join(seen + (base_path,))}",
            )
        try:
            inherited = read_compiler_options(base_path, seen)
        except FileNotFoundError:
            raise config_error(
                f"Invalid configuration file '{path}'", 6053, f"File '{base}' not found."
            )
        logger.debug("%s extends %s", path, base_path)
        rv.update(rebase_paths(inherited, os.path.dirname(base_path), config_dir))

    rv.update(options_object(config.get("compilerOptions", {}), path))
    return rv


def resolve_extends(base: str, config_dir: str) -> str:
    """Locate the configuration named by `extends` value `base`.
    Relative and absolute names are files, with an optional `.json` extension.
    Anything else names a file within a `node_modules` package, or the package's own `tsconfig.json`.
    Returns the first candidate which exists, or the first candidate if none do."""
    if base.startswith(".") or os.path.isabs(base):
        p = os.path.normpath(os.path.join(config_dir, base))
        candidates = [p, p + ".json"]
    else:
        candidates = []
        d = config_dir
        while True:
            p = os.path.join(d, "node_modules", base)
            candidates += [p, p + ".json", os.path.join(p, CONFIG_FILENAME)]
            parent = os.path.dirname(d)
            if parent == d:
                break
            d = parent
    for p in candidates:
        if os.path.isfile(p):
            return p
    return candidates[0]


def rebase_paths(options: Dict[str, Any], base_dir: str, config_dir: str) -> Dict[str, Any]:
    """Re-express the relative path-valued `options` set in `base_dir` relative to `config_dir`"""
    rv = dict(options)
    for name in PATH_OPTIONS:
        val = rv.get(name)
        if isinstance(val, str) and not os.path.isabs(val):
            rv[name] = os.path.relpath(os.path.join(base_dir, val), config_dir)
    return rv
