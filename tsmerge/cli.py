"""
# tsmerge Command-Line Interface

Compiles files and directories into a single output tree:
```
tsmerge -o lib src1 src2
```
With no files, compiles standard input to standard output.
"""

# Std-Lib Imports
import sys
import logging
import argparse
from typing import List, Optional

# Local Imports
from . import __version__
from .data import *
from .config import CompilerOptions, load_compiler_options
from .diagnostics import parse_warning_options, process_diagnostics, summary
from .paths import parse_path_map
from .engine import ModuleEngine
from .compile import compile

logger = logging.getLogger(__name__)

PROG = "tsmerge"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog=PROG, description="TypeScript compiler")

    p.add_argument("-v", "--version", action="version", version=__version__)
    p.add_argument("-o", dest="output", help="Output directory")
    p.add_argument(
        "-d", dest="declaration", action="store_true", help="Generate declarations"
    )
    p.add_argument("-m", dest="map", action="store_true", help="Generate source maps")
    p.add_argument(
        "-p", dest="path", action="append", help="Import path map, as `from[:to]`"
    )
    p.add_argument(
        "-W",
        dest="warning",
        action="append",
        help="Warning, e.g. `-Wunused-locals`, `-Werror=implicit-any` or `-Werror`",
    )
    p.add_argument(
        "--strict-imports",
        action="store_true",
        help="Fail on relative imports which cannot be re-targeted",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("files", nargs="*", help="Source files and directories")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point. Returns the process exit status."""
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        return run(args)
    except TsmergeError as e:
        if isinstance(e, ConfigError) and e.diagnostics:
            process_diagnostics(e.diagnostics, None, True, prog=PROG)
        elif str(e):
            print(f"{PROG}: {e}", file=sys.stderr)
        return 1


def run(args: argparse.Namespace) -> int:
    options = load_compiler_options()
    warnings, werror = parse_warning_options(args.warning, options)

    files = args.files
    if files and not args.output:
        raise ConfigError("Output directory is required for files")
    if args.output:
        options.out_dir = args.output

    if args.declaration:
        options.declaration = True
        if args.map:
            options.declaration_map = True
    if args.map:
        if files:
            options.source_map = True
        else:
            options.inline_source_map = True
            options.inline_sources = True

    if args.path:
        options.path_map = parse_path_map(args.path)

    if not files:
        return transpile_stdin(options)

    count = compile(
        files,
        options,
        warnings,
        werror,
        engine_cls=ModuleEngine,
        strict_imports=args.strict_imports,
    )
    msg = summary(count)
    if msg:
        print(msg, file=sys.stderr)
    return 1 if count.errors else 0


def transpile_stdin(options: CompilerOptions) -> int:
    """Compile standard input to standard output"""
    logger.debug("Transpiling standard input")
    txt = sys.stdin.read()
    sys.stdout.write(ModuleEngine.transpile(txt, options))
    return 0
