"""
# Module Engine

The bundled `Engine`. Parses each source file into its module-syntax tree,
reports syntax errors and unresolvable relative imports,
and emits the printed (and transformed) tree as JavaScript.

Module syntax is all it understands: no type-checking or type-stripping is performed,
and declaration outputs hold only each file's module-reference statements.
"""

# Std-Lib Imports
import os
import logging
from typing import Dict, List, Optional, Sequence

# Local Imports
from ..data import *
from ..config import CompilerOptions
from ..parse import parse_file, parse_str, module_references, specifier
from ..write import to_str
from ..paths import to_posix
from ..transform import Transform
from .. import sourcemap
from .base import Engine, WriteFile

logger = logging.getLogger(__name__)

# Extensions tried, in order, when resolving an extension-less import on disk
RESOLVE_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".js", ".jsx")

# Name given to modules compiled by `transpile`
TRANSPILE_FILENAME = "module.ts"


def resolve_candidates(importee: str) -> List[str]:
    """Files which import path `importee` may resolve to, in order"""
    rv = [importee + ext for ext in RESOLVE_EXTENSIONS]
    stem, ext = os.path.splitext(importee)
    if ext in (".js", ".jsx", ".mjs", ".cjs"):
        # ESM-style specifiers name the compiled output of a `.ts` source
        rv += [stem + ".ts", stem + ".tsx", stem + ".d.ts"]
    if ext:
        rv.append(importee)
    rv += [os.path.join(importee, "index" + ext) for ext in RESOLVE_EXTENSIONS]
    return rv


def resolves(importee: str) -> bool:
    """Boolean indication of whether import path `importee` names a module on disk"""
    return any(os.path.isfile(p) for p in resolve_candidates(importee))


class ModuleEngine(Engine):
    def __init__(self, files: Sequence[str], options: CompilerOptions) -> None:
        super().__init__([os.path.normpath(f) for f in files], options)
        self.sources: Dict[str, SourceFile] = dict()
        self.errors: List[Diagnostic] = list()  # Diagnostics from loading
        for f in self.files:
            self.load(f)

    def load(self, path: str) -> None:
        """Parse source file `path`, recording any failure as a `Diagnostic`"""
        try:
            self.sources[path] = parse_file(path)
        except FileNotFoundError:
            self.errors.append(
                Diagnostic(
                    category=DiagnosticCategory.ERROR,
                    code=6053,
                    message=f"File '{path}' not found.",
                )
            )
        except TsmergeParseError as e:
            self.errors.append(
                Diagnostic(
                    category=DiagnosticCategory.ERROR,
                    code=e.code,
                    message=e.msg,
                    file=path,
                    line=e.line,
                    column=e.column,
                )
            )
        except UnicodeDecodeError as e:
            # Position of the first undecodable byte
            data = e.object
            self.errors.append(
                Diagnostic(
                    category=DiagnosticCategory.ERROR,
                    code=1490,
                    message="File appears to be binary.",
                    file=path,
                    line=data.count(b"\n", 0, e.start),
                    column=e.start - data.rfind(b"\n", 0, e.start) - 1,
                )
            )

    def diagnostics(self) -> List[Diagnostic]:
        rv = list(self.errors)
        for path, src in self.sources.items():
            rv.extend(self.import_diagnostics(path, src))
        return rv

    def import_diagnostics(self, path: str, src: SourceFile) -> List[Diagnostic]:
        """Diagnose the relative imports of `src` which do not resolve on disk"""
        rv = []
        for node in module_references(src):
            lit = specifier(node)
            if lit is None or not lit.val.startswith("."):
                continue
            importee = os.path.normpath(os.path.join(os.path.dirname(path), lit.val))
            if resolves(importee):
                continue
            info = lit.source_info or node.source_info
            rv.append(
                Diagnostic(
                    category=DiagnosticCategory.ERROR,
                    code=2307,
                    message=f"Cannot find module '{lit.val}' or its corresponding type declarations.",
                    file=path,
                    line=info.line if info else None,
                    column=info.column if info else None,
                )
            )
        return rv

    def emit(
        self, path: str, write: WriteFile, transforms: Sequence[Transform] = ()
    ) -> None:
        path = os.path.normpath(path)
        original = self.sources[path]
        src = original
        for transform in transforms:
            src = transform(src)

        out_dir = self.options.out_dir or os.path.dirname(path)
        stem = os.path.splitext(os.path.basename(path))[0]
        base = os.path.join(out_dir, stem)
        source = to_posix(os.path.relpath(path, out_dir))

        js = self.with_map(
            to_str(src),
            filename=stem + ".js",
            source=source,
            original=original,
            write=write,
            map_path=base + ".js.map",
            external=bool(self.options.source_map),
        )
        logger.debug("Emitting %s.js", base)
        write(base + ".js", js)

        if self.options.declaration:
            txt, lines = self.declaration(src)
            if self.options.declaration_map:
                smap = sourcemap.line_map(stem + ".d.ts", source, lines)
                write(base + ".d.ts.map", sourcemap.dumps(smap))
                txt += f"//# sourceMappingURL={stem}.d.ts.map\n"
            write(base + ".d.ts", txt)

    def with_map(
        self,
        txt: str,
        *,
        filename: str,
        source: str,
        original: SourceFile,
        write: Optional[WriteFile] = None,
        map_path: Optional[str] = None,
        external: bool = False,
    ) -> str:
        """Add the source-mapping comment, if any, to JavaScript output `txt`.
        External maps are written to `map_path`; inline maps are embedded in the comment."""
        if external:
            smap = sourcemap.identity_map(filename, source, txt)
            write(map_path, sourcemap.dumps(smap))
            comment = f"//# sourceMappingURL={filename}.map"
        elif self.options.inline_source_map:
            content = to_str(original) if self.options.inline_sources else None
            smap = sourcemap.identity_map(filename, source, txt, content)
            comment = sourcemap.inline_comment(smap)
        else:
            return txt
        if txt and not txt.endswith("\n"):
            txt += "\n"
        return txt + comment

    def declaration(self, src: SourceFile):
        """Declaration text for `src`, and the source line of each of its lines.
        Holds the static module references of `src`, each as its own statement, and an empty export
        which keeps the declaration a module even when there are none."""
        stmts = []
        lines = []
        for node in module_references(src):
            if isinstance(node, ImportCall):
                continue
            txt = to_str(node).strip()
            start = node.source_info.line if node.source_info else 0
            stmts.append(txt + ";\n")
            lines.extend(range(start, start + txt.count("\n") + 1))
        stmts.append("export {};\n")
        lines.append(lines[-1] if lines else 0)
        return "".join(stmts), lines

    @classmethod
    def transpile(cls, txt: str, options: CompilerOptions) -> str:
        src = parse_str(txt, path=TRANSPILE_FILENAME)
        engine = cls([], options)
        return engine.with_map(
            to_str(src),
            filename=os.path.splitext(TRANSPILE_FILENAME)[0] + ".js",
            source=TRANSPILE_FILENAME,
            original=src,
        )
