"""
# Source Writing

Prints a `SourceFile` tree, or any node within one, back to source text.
Untransformed trees print exactly as they were parsed.
"""

# Std-Lib Imports
from io import StringIO
from typing import IO, Union

# Local Imports
from .data import *
from .parse import quote


class SourceWriter:
    """# Source Writer

    Writes all content of `src` to destination `dest`, which may be anything supporting `typing.IO`,
    commonly an open file-handle or a `StringIO`.
    * `write_*` methods write to `self.dest`.
    * `format_*` methods return strings, but *do not* write to `dest`.
    """

    def __init__(self, src: Union[SourceFile, Node], dest: IO) -> None:
        self.src = src
        self.dest = dest

    def write(self) -> None:
        """Primary API method. Write all of `self.src`."""
        if isinstance(self.src, SourceFile):
            for node in self.src.nodes:
                self.write_node(node)
        else:
            self.write_node(self.src)
        self.dest.flush()

    def write_node(self, node: Node) -> None:
        if isinstance(node, Text):
            self.dest.write(node.txt)
        elif isinstance(node, StringLiteral):
            self.dest.write(self.format_string_literal(node))
        elif isinstance(node, MODULE_REFERENCES):
            for child in node.children:
                self.write_node(child)
        else:
            raise TypeError(f"Invalid node {node}")

    def format_string_literal(self, lit: StringLiteral) -> str:
        """Literals retain their original text unless rewritten"""
        if lit.raw is not None:
            return lit.raw
        return quote(lit.val, lit.quote)


def write_source(src: Union[SourceFile, Node], dest: IO) -> None:
    """Write `src` to destination `dest`.

    Example usages:
    ```python
    write_source(src, dest=open("mymodule.js", "w"))
    ```
    ```python
    import sys
    write_source(src, dest=sys.stdout)
    ```
    """
    SourceWriter(src=src, dest=dest).write()


def to_str(src: Union[SourceFile, Node]) -> str:
    """Print `src` to a string"""
    s = StringIO()
    write_source(src, dest=s)
    return s.getvalue()


__all__ = ["SourceWriter", "write_source", "to_str"]
