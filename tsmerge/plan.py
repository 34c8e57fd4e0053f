"""
# Build Planning

Lays a list of input roots out onto a single output directory.
Every discovered source file is assigned an output directory, and checked for duplicates
and output collisions as it is inserted. Planning performs no filesystem writes.
"""

# Std-Lib Imports
import os
import logging
from pathlib import Path
from dataclasses import field
from typing import Dict, List, Optional, Sequence

# PyPi Imports
from pydantic.dataclasses import dataclass

# Local Imports
from .data import *
from .paths import PathMap

logger = logging.getLogger(__name__)

# Recognized source-file extensions. Note `.d.ts` declaration files are included, as `.ts`.
SOURCE_EXTENSIONS = (".ts", ".tsx")


@dataclass
class BuildContext:
    """# Build Context

    The per-invocation state threaded through planning, rewriting and emission.
    Built once by `resolve_inputs`, and read-only thereafter."""

    out_dir: str  # Absolute global output directory
    # Map of input files to their `CompilationFile`s, in insertion order
    files: Dict[str, CompilationFile] = field(default_factory=dict)
    # Map of input directories to their output directories. Directory-roots only.
    directories: Dict[str, str] = field(default_factory=dict)
    # Map of output directories to the base names claimed within them
    out_dirs: Dict[str, OutputDirectory] = field(default_factory=dict)
    # External prefix rewrites
    path_map: PathMap = field(default_factory=PathMap)

    def out_dir_for(self, path: str, root: InputRoot) -> str:
        """Output directory for source file `path`: its directory, re-rooted from `root` to `self.out_dir`"""
        rel = os.path.relpath(os.path.dirname(path), root.base_dir)
        return os.path.normpath(os.path.join(self.out_dir, rel))

    def add_file(self, path: str, root: InputRoot) -> CompilationFile:
        """Insert source file `path`, found via `root`.
        Raises a `PlanningError` on duplicate inputs or output collisions."""

        if path in self.files:
            raise DuplicateInputError(f'Duplicate file "{path}"')

        f = CompilationFile(path=path, root=root, out_dir=self.out_dir_for(path, root))
        out_dir = self.out_dirs.get(f.out_dir)
        if out_dir is None:
            out_dir = self.out_dirs[f.out_dir] = OutputDirectory(path=f.out_dir)
        if f.out_base in out_dir.basenames:
            raise CollisionError(f'File "{path}" will overwrite another file')

        out_dir.basenames.add(f.out_base)
        self.files[path] = f
        if root.kind == RootKind.DIRECTORY:
            self.directories[os.path.dirname(path)] = f.out_dir
        logger.debug("Planned %s -> %s", path, f.out_dir)
        return f

    def destination(self, importee: str) -> Optional[str]:
        """Find the new location of the module at absolute, extension-less path `importee`.
        Tries, in order:
        * Input directories, for imports of a directory's implicit index module
        * Compiled files, for imports of a specific file
        * The path map, for everything outside the compiled set
        Returns `None` if none applies."""

        if importee in self.directories:
            return self.directories[importee]

        for candidate in source_candidates(importee):
            f = self.files.get(candidate)
            if f is not None:
                return os.path.join(f.out_dir, os.path.basename(importee))

        return self.path_map.lookup(importee)


def source_candidates(importee: str) -> List[str]:
    """Source files which extension-less import path `importee` may refer to.
    ESM-style specifiers name the emitted `.js` file, e.g. `./a.js` for `a.ts`."""
    rv = [importee + ext for ext in SOURCE_EXTENSIONS]
    stem, ext = os.path.splitext(importee)
    if ext == ".js":
        rv += [stem + ".ts", stem + ".tsx"]
    elif ext == ".jsx":
        rv.append(stem + ".tsx")
    return rv


def root_kind(path: str) -> RootKind:
    """Classify input path `path` by its extension"""
    if os.path.splitext(path)[1] in SOURCE_EXTENSIONS:
        return RootKind.FILE
    return RootKind.DIRECTORY


def find_sources(root: str) -> List[str]:
    """Find all source files beneath directory `root`, recursively.
    Hidden files and directories are skipped. Results are sorted for a deterministic build order."""
    rv = []
    base = Path(root)
    for p in base.rglob("*"):
        if p.suffix not in SOURCE_EXTENSIONS or not p.is_file():
            continue
        if any(part.startswith(".") for part in p.relative_to(base).parts):
            continue
        rv.append(os.path.normpath(str(p)))
    return sorted(rv)


def resolve_inputs(
    paths: Sequence[str], out_dir: str, path_map: Optional[PathMap] = None
) -> BuildContext:
    """
    Primary planning entry point.
    Expand each of `paths` into its source files, and assign each an output directory beneath `out_dir`.
    Fails with a `PlanningError` on the first duplicate input or output collision.
    """
    ctx = BuildContext(
        out_dir=os.path.abspath(out_dir), path_map=path_map or PathMap()
    )
    for p in paths:
        root = InputRoot(path=os.path.abspath(p), kind=root_kind(p))
        if root.kind == RootKind.FILE:
            sources = [root.path]
        else:
            sources = find_sources(root.path)
            if not sources:
                logger.warning("No source files found in %s", root.path)
        for f in sources:
            ctx.add_file(f, root)
    return ctx
