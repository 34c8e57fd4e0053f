"""
# Import Specifier Rewriting

Pre-emit tree transform which keeps relative module specifiers valid
once their importing file is moved to its output directory.
"""

# Std-Lib Imports
import os
import logging
from typing import Callable, Optional

# Local Imports
from .data import *
from .plan import BuildContext
from .paths import to_posix, is_relative

logger = logging.getLogger(__name__)

# Pre-emit transforms map a `SourceFile` tree to its replacement
Transform = Callable[[SourceFile], SourceFile]


def rewrite_specifier(ctx: BuildContext, importer: str, spec: str) -> Optional[str]:
    """Rewrite relative specifier `spec`, as written in source file `importer`,
    for `importer`'s new location in `ctx`.

    Returns `None` when `spec` is to be left unchanged: non-relative specifiers,
    which ordinary module resolution handles, and those whose target is unknown to `ctx`."""

    if not spec.startswith("."):
        return None

    importee = os.path.normpath(os.path.join(os.path.dirname(importer), spec))
    dest = ctx.destination(importee)
    if dest is None:
        return None

    p = to_posix(os.path.relpath(dest, ctx.files[importer].out_dir))
    if not is_relative(p):
        # Keep it syntactically relative, rather than a bare package name
        p = "./" + p
    return p


class ImportRewriter:
    """# Import Rewriter

    Rewrites the string-literal specifier of every module reference in a `SourceFile`.
    Instances are `Transform`s, called once per emitted file.

    Specifiers whose targets cannot be located are left unchanged,
    unless `strict` is set, in which case they raise an `UnresolvedImportError`."""

    def __init__(self, ctx: BuildContext, *, strict: bool = False):
        self.ctx = ctx
        self.strict = strict
        self.filename: Optional[str] = None  # Path of the file being transformed

    def __call__(self, src: SourceFile) -> SourceFile:
        self.filename = os.path.normpath(src.path)
        nodes = [self.visit(node) for node in src.nodes]
        return SourceFile(path=src.path, nodes=nodes)

    def visit(self, node: Node) -> Node:
        """Rewrite `node` if it is a module reference. All else is returned unchanged."""
        if isinstance(node, MODULE_REFERENCES):
            children = [self.visit_specifier(child) for child in node.children]
            return type(node)(children=children, source_info=node.source_info)
        return node

    def visit_specifier(self, node: Node) -> Node:
        """Visit a child of a module reference"""
        if isinstance(node, StringLiteral):
            return self.update_import(node)
        if isinstance(node, MODULE_REFERENCES):
            return self.visit(node)
        return node

    def update_import(self, token: StringLiteral) -> StringLiteral:
        """Produce the rewritten version of specifier `token`, or `token` itself if unchanged"""
        p = rewrite_specifier(self.ctx, self.filename, token.val)
        if p is None:
            if self.strict and token.val.startswith("."):
                raise UnresolvedImportError(
                    f'Cannot locate "{token.val}" imported by "{self.filename}"'
                )
            return token
        if p != token.val:
            logger.debug("%s: rewrote %r to %r", self.filename, token.val, p)
        return StringLiteral(val=p, quote=token.quote, source_info=token.source_info)
