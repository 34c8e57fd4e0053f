"""
# Compilation

Compiles a set of input files and directories into a single output tree.
Occurs in four primary steps:

1. Planning lays every input file out onto the output directory, checking for duplicates and collisions
2. The engine builds the whole program, and its diagnostics are reported
3. Output directories are created
4. Each file is emitted, with its relative imports rewritten for its new location
"""

# Std-Lib Imports
import os
import copy
import logging
from typing import IO, Dict, Optional, Sequence

# Local Imports
from .data import *
from .config import CompilerOptions
from .engine import Engine, ModuleEngine
from .paths import PathMap, to_posix
from .plan import resolve_inputs
from .dirs import materialize
from .transform import ImportRewriter
from .diagnostics import process_diagnostics
from . import sourcemap

logger = logging.getLogger(__name__)

# Output suffixes captured from the engine, in the order they are matched
OUTPUT_SUFFIXES = (".js", ".js.map", ".d.ts", ".d.ts.map")


def compile(
    paths: Sequence[str],
    options: CompilerOptions,
    warnings: Optional[Dict[str, bool]] = None,
    werror: bool = False,
    *,
    engine_cls: type = ModuleEngine,
    strict_imports: bool = False,
    stream: Optional[IO] = None,
) -> Count:
    """
    Compile `paths` into `options.out_dir`.
    Returns the `Count` of warnings and errors reported. Nothing is written if any errors occur.

    Raises a `ConfigError` if no output directory is set,
    and a `PlanningError` on duplicate inputs or output collisions, before anything is written.
    """
    if not options.out_dir:
        raise ConfigError("Output directory is required for files")

    options = copy.deepcopy(options)
    options.out_dir = os.path.abspath(options.out_dir)

    path_map = PathMap.from_mapping(options.path_map)
    ctx = resolve_inputs(paths, options.out_dir, path_map)
    logger.debug("Planned %d files into %s", len(ctx.files), ctx.out_dir)

    engine: Engine = engine_cls(list(ctx.files), options)
    count = process_diagnostics(engine.diagnostics(), warnings, werror, stream)
    if count.errors:
        return count

    materialize(ctx.out_dirs)

    rewriter = ImportRewriter(ctx, strict=strict_imports)
    for path, f in ctx.files.items():
        if f.is_declaration:
            continue

        base = os.path.join(f.out_dir, f.out_base)
        outputs = dict()

        def capture(filename: str, txt: str) -> None:
            for suffix in OUTPUT_SUFFIXES:
                if filename.endswith(suffix):
                    outputs[suffix] = txt
                    break

        # Outputs are placed by suffix, wherever the engine would have put them
        engine.emit(path, capture, [rewriter])

        source = to_posix(os.path.relpath(path, f.out_dir))
        write_file(base + ".js", outputs.get(".js", ""))
        if outputs.get(".js.map"):
            write_file(base + ".js.map", sourcemap.relocate(outputs[".js.map"], source))
        if outputs.get(".d.ts"):
            write_file(base + ".d.ts", outputs[".d.ts"])
        if outputs.get(".d.ts.map"):
            write_file(base + ".d.ts.map", sourcemap.relocate(outputs[".d.ts.map"], source))

    return count


def write_file(path: str, txt: str) -> None:
    logger.debug("Writing %s", path)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(txt)
