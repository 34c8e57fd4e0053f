"""
# Diagnostics & Warning Options

Classifies engine diagnostics as errors or warnings per the `-W` options,
and reports them in `file:line:col: error: message` form.
"""

# Std-Lib Imports
import os
import re
import sys
from typing import Dict, IO, Iterable, List, Optional, Tuple, Union

# Local Imports
from .data import *
from .config import CompilerOptions

# Map of warning names to the compiler options which enable them
WARNING_TO_OPTION = {
    "strict": "strict",
    "implicit-any": "noImplicitAny",
    "implicit-returns": "noImplicitReturns",
    "implicit-this": "noImplicitThis",
    "implicit-fallthrough": "noFallthroughCasesInSwitch",
    "unused-locals": "noUnusedLocals",
    "unused-parameters": "noUnusedParameters",
}
OPTION_TO_WARNING = {option: warning for warning, option in WARNING_TO_OPTION.items()}

# Warnings implied by `strict`
STRICT_WARNINGS = ("implicit-any", "implicit-this")

# Code of the "not all code paths return a value" diagnostic
IMPLICIT_RETURNS_CODE = 7030


class Colors:
    FAIL = "\033[91m"
    MAGENTA = "\033[95m"
    ENDC = "\033[0m"
    BOLD = "\033[1m"


def get_warning(diagnostic: Diagnostic) -> Union[None, str, List[str]]:
    """Get the warning name(s) an error `diagnostic` belongs to.

    Returns `None` for diagnostics which are not errors, and an empty string
    for errors which no warning option covers. "Never read" diagnostics
    may belong to either of the unused-variable warnings, and produce a list of both."""

    if diagnostic.category != DiagnosticCategory.ERROR:
        return None

    message = diagnostic.message
    if "implicitly" in message and "'any'" in message:
        return "implicit-this" if "'this'" in message else "implicit-any"
    if re.search(r"fallthrough", message, re.IGNORECASE):
        return "implicit-fallthrough"
    if re.search(r"never used|unused", message, re.IGNORECASE):
        if re.search(r"parameter", message, re.IGNORECASE):
            return "unused-parameters"
        return "unused-locals"
    if "never read" in message:
        if re.search(r"property", message, re.IGNORECASE):
            return "unused-locals"
        return ["unused-locals", "unused-parameters"]
    if diagnostic.code == IMPLICIT_RETURNS_CODE:
        return "implicit-returns"
    return ""


def parse_warning_options(
    args: Optional[Iterable[str]], options: CompilerOptions
) -> Tuple[Dict[str, bool], bool]:
    """
    Parse the `-W` command-line arguments `args`, e.g. `error`, `unused-locals` or `error=implicit-any`.
    Returns a tuple of:
    * The warning table, mapping each active warning name to whether it is promoted to an error
    * Whether `-Werror` promotes all warnings to errors

    Warnings start out as those whose compiler options are configured in `options`.
    Each named warning enables its compiler option in `options`.
    Raises a `ConfigError` for malformed or unknown warning names.
    """
    args = list(args or [])
    werror = "error" in args

    warnings = dict()
    for option in options.configured_options():
        warning = OPTION_TO_WARNING.get(option)
        if warning:
            warnings[warning] = False

    for arg in args:
        if arg == "error":
            continue
        parts = arg.split("=")
        if len(parts) > 2 or (len(parts) == 2 and parts[0] != "error"):
            raise ConfigError(f'Invalid warning option "{arg}"')

        name = parts[-1]
        option = WARNING_TO_OPTION.get(name)
        if option is None:
            raise ConfigError(f'Unknown warning option "{arg}"')

        options.set_option(option, True)
        warnings[name] = len(parts) == 2

    if "strict" in warnings:
        for warning in STRICT_WARNINGS:
            warnings.setdefault(warning, warnings["strict"])

    return warnings, werror


def style(txt: str, *codes: str, stream: Optional[IO] = None) -> str:
    """Wrap `txt` in ANSI `codes`, if `stream` is a terminal"""
    isatty = getattr(stream, "isatty", None)
    if not codes or isatty is None or not isatty():
        return txt
    return "".join(codes) + txt + Colors.ENDC


def format_diagnostic(
    diagnostic: Diagnostic,
    error: bool,
    warning_options: List[str],
    stream: Optional[IO] = None,
    prog: str = "tsmerge",
) -> str:
    """Format a single diagnostic for printing to `stream`"""
    label = (
        style("error:", Colors.FAIL, stream=stream)
        if error
        else style("warning:", Colors.MAGENTA, stream=stream)
    )
    if diagnostic.file is None:
        return style(f"{prog}: {label} {diagnostic.message}", Colors.BOLD, stream=stream)

    filename = os.path.relpath(diagnostic.file)
    line = (diagnostic.line or 0) + 1
    column = (diagnostic.column or 0) + 1
    suffix = f" [{','.join(warning_options)}]" if warning_options else ""
    msg = f"{filename}:{line}:{column}: {label} {diagnostic.message}{suffix}"
    return style(msg, Colors.BOLD, stream=stream)


def process_diagnostics(
    diagnostics: Iterable[Diagnostic],
    warnings: Optional[Dict[str, bool]],
    werror: bool,
    stream: Optional[IO] = None,
    prog: str = "tsmerge",
) -> Count:
    """
    Classify, print and count `diagnostics`.

    A diagnostic is an error if `werror` is set, if it belongs to no warning,
    or if every warning it belongs to is promoted to an error in `warnings`.
    Diagnostics which the engine does not categorize as errors are warnings unless `werror` is set.
    `warnings` may be `None`, in which case diagnostics are never annotated with their warning options.
    """
    stream = stream if stream is not None else sys.stderr
    count = Count()

    for diagnostic in diagnostics:
        diag_warning = get_warning(diagnostic)
        names = diag_warning if isinstance(diag_warning, list) else [diag_warning]

        if diag_warning is None:
            error = werror
        else:
            error = werror or not diag_warning

        warning_options = []
        if warnings is not None and diag_warning:
            if not error:
                error = all(warnings.get(w, False) for w in names)
            if error:
                warning_options.append("-Werror")
            warning_options += [f"-W{w}" for w in names if w in warnings]

        print(
            format_diagnostic(diagnostic, error, warning_options, stream, prog),
            file=stream,
        )
        if error:
            count.errors += 1
        else:
            count.warnings += 1

    return count


def summary(count: Count) -> Optional[str]:
    """Summary line for `count`, e.g. "1 warning and 2 errors generated.", or `None` if both are zero"""
    parts = []
    if count.warnings:
        parts.append(f"{count.warnings} {'warning' if count.warnings == 1 else 'warnings'}")
    if count.errors:
        parts.append(f"{count.errors} {'error' if count.errors == 1 else 'errors'}")
    if not parts:
        return None
    return " and ".join(parts) + " generated."
