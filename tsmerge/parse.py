"""
# Module-Syntax Parsing

Converts a token stream into a `SourceFile` tree.
Module references - import declarations, import-equals declarations,
dynamic-import calls and re-export declarations - become dedicated nodes
whose specifier is a `StringLiteral` child. Everything else is kept as verbatim `Text`.
"""

# Std-Lib Imports
import re
from typing import Iterable, List, Optional, Tuple, Iterator

# Local Imports
from .lex import Lexer, Token, Tokens, TRIVIA
from .data import *


def parse_str(txt: str, *, path: str = "") -> SourceFile:
    """Parse module source `txt`. `path` is recorded on the result, and selects JSX lexing for `.tsx`."""
    return Parser.from_str(txt, path=path).parse()


def parse_file(path: str) -> SourceFile:
    """Parse the module source file at `path`.
    Raises `UnicodeDecodeError` if it is not valid UTF-8."""
    with open(path, "rb") as f:
        data = f.read()
    return parse_str(data.decode("utf-8"), path=path)


class Parser:
    """# Module-Reference Parser

    Scans the token stream once. At each `import` or `export` keyword it attempts to parse
    a module reference; statements which turn out not to be one (e.g. `import.meta`,
    `export const`) are carried along as text."""

    def __init__(self, tokens: Iterable[Token], *, path: str = ""):
        self.toks: List[Token] = list(tokens)
        self.path = path
        self.idx = 0
        self.prev: Optional[Token] = None  # Most recent non-trivia token

    @classmethod
    def from_str(cls, txt: str, *, path: str = "") -> "Parser":
        """Create from a source string"""
        lexer = Lexer(txt, jsx=path.endswith((".tsx", ".jsx")))
        return cls(lexer.lex(), path=path)

    def peek(self, idx: int) -> Optional[int]:
        """Index of the first non-trivia token at or after `idx`, or `None` if exhausted"""
        while idx < len(self.toks) and self.toks[idx].tp in TRIVIA:
            idx += 1
        return idx if idx < len(self.toks) else None

    def tp(self, idx: Optional[int]) -> Optional[str]:
        """Token-type at `idx`, or `None` past the end"""
        return self.toks[idx].tp if idx is not None else None

    def parse(self) -> SourceFile:
        """Parse all tokens into a `SourceFile`"""
        nodes = []
        text = []  # Pending verbatim text

        while self.idx < len(self.toks):
            tok = self.toks[self.idx]

            rv = None
            # Keywords after a member access, e.g. `foo.import`, are property names
            if self.prev is None or self.prev.val not in (".", "?."):
                if tok.tp == Tokens.IMPORT:
                    rv = self.parse_import(self.idx)
                elif tok.tp == Tokens.EXPORT:
                    rv = self.parse_export(self.idx)

            if rv is None:  # Not a module reference. Copy it along.
                text.append(tok.val)
                if tok.tp not in TRIVIA:
                    self.prev = tok
                self.idx += 1
                continue

            node, end = rv
            if text:
                nodes.append(Text("".join(text)))
                text = []
            nodes.append(node)
            self.prev = self.toks[end - 1]
            self.idx = end

        if text:
            nodes.append(Text("".join(text)))
        return SourceFile(path=self.path, nodes=nodes)

    def parse_import(self, start: int) -> Optional[Tuple[Node, int]]:
        """Parse any of the `import` forms:
        * `import "./a"`
        * `import a, { b } from "./a"`, `import * as a from "./a"`, `import type { A } from "./a"`
        * `import a = require("./a")`
        * `import("./a")`"""

        i = self.peek(start + 1)
        tp = self.tp(i)
        if tp == Tokens.LPAREN:
            return self.parse_import_call(start, i)
        if tp == Tokens.STRING:  # Side-effect import
            return self.node(ImportDeclaration, start, i, literal=i)
        if tp not in (Tokens.IDENT, Tokens.LBRACE, Tokens.STAR, Tokens.FROM, Tokens.REQUIRE):
            return None  # `import.meta`, or `import` as an object key

        # Scan the import clause for either `from "..."` or `= require(...)`
        while i is not None:
            tp = self.tp(i)
            if tp == Tokens.FROM:
                j = self.peek(i + 1)
                if self.tp(j) == Tokens.STRING:
                    return self.node(ImportDeclaration, start, j, literal=j)
            elif tp == Tokens.EQUALS:
                return self.parse_import_equals(start, i)
            elif tp in (Tokens.SEMICOLON, Tokens.IMPORT, Tokens.EXPORT):
                return None
            i = self.peek(i + 1)
        return None

    def parse_import_equals(self, start: int, eq: int) -> Optional[Tuple[Node, int]]:
        """import a = require("./a")
        Import-equals of an entity name, e.g. `import a = B.c`, is not a module reference."""
        i = self.peek(eq + 1)
        if self.tp(i) != Tokens.REQUIRE:
            return None
        i = self.peek(i + 1)
        if self.tp(i) != Tokens.LPAREN:
            return None
        i = self.peek(i + 1)
        if self.tp(i) != Tokens.STRING:
            return None
        j = self.peek(i + 1)
        if self.tp(j) != Tokens.RPAREN:
            return None
        return self.node(ImportEquals, start, j, literal=i)

    def parse_import_call(self, start: int, lparen: int) -> Tuple[Node, int]:
        """import("./a")
        Only a lone string-literal argument is a specifier.
        Computed forms, e.g. `import("./" + name)`, produce a node holding just the `import(`."""
        i = self.peek(lparen + 1)
        if self.tp(i) == Tokens.STRING:
            if self.tp(self.peek(i + 1)) in (Tokens.RPAREN, Tokens.COMMA):
                return self.node(ImportCall, start, i, literal=i)
        return self.node(ImportCall, start, lparen, literal=None)

    def parse_export(self, start: int) -> Optional[Tuple[Node, int]]:
        """Parse re-exports: `export * from "./a"`, `export * as a from "./a"`, `export { a } from "./a"`.
        All other exports are declarations, and are carried along as text."""
        i = self.peek(start + 1)
        if self.tp(i) == Tokens.IDENT and self.toks[i].val == "type":
            i = self.peek(i + 1)
        if self.tp(i) not in (Tokens.STAR, Tokens.LBRACE):
            return None

        while i is not None:
            tp = self.tp(i)
            if tp == Tokens.FROM:
                j = self.peek(i + 1)
                if self.tp(j) == Tokens.STRING:
                    return self.node(ExportDeclaration, start, j, literal=j)
            elif tp in (
                Tokens.SEMICOLON,
                Tokens.IMPORT,
                Tokens.EXPORT,
                Tokens.LPAREN,
                Tokens.EQUALS,
            ):
                return None
            i = self.peek(i + 1)
        return None

    def node(
        self, cls: type, start: int, last: int, literal: Optional[int]
    ) -> Tuple[Node, int]:
        """Create a `cls` node from tokens `start` through `last`, inclusive.
        The token at index `literal`, if any, becomes its `StringLiteral` specifier."""
        children = []
        text = []
        for i in range(start, last + 1):
            tok = self.toks[i]
            if i == literal:
                if text:
                    children.append(Text("".join(text)))
                    text = []
                children.append(string_literal(tok))
            else:
                text.append(tok.val)
        if text:
            children.append(Text("".join(text)))
        first = self.toks[start]
        info = SourceInfo(line=first.line, column=first.col)
        return cls(children=children, source_info=info), last + 1


def string_literal(tok: Token) -> StringLiteral:
    """Create a `StringLiteral` from a `STRING` token"""
    return StringLiteral(
        val=unquote(tok.val),
        quote=tok.val[0],
        raw=tok.val,
        source_info=SourceInfo(line=tok.line, column=tok.col),
    )


# Escape sequences within string literals
_escape_pat = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])"
)
_escapes = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


def _unescape(m: re.Match) -> str:
    s = m.group(1)
    if len(s) > 1 and s[0] == "u":
        return chr(int(s[2:-1] if s[1] == "{" else s[1:], 16))
    if len(s) > 1 and s[0] == "x":
        return chr(int(s[1:], 16))
    if s in ("\n", "\r\n", "\r", "\u2028", "\u2029"):
        return ""  # Line continuation
    return _escapes.get(s, s)


def unquote(raw: str) -> str:
    """Decode the quoted source text of a string literal"""
    return _escape_pat.sub(_unescape, raw[1:-1])


def quote(val: str, q: str = '"') -> str:
    """Encode `val` as a string literal, quoted by `q`"""
    val = val.replace("\\", "\\\\").replace(q, "\\" + q)
    val = val.replace("\n", "\\n").replace("\r", "\\r")
    return q + val + q


def module_references(src: SourceFile) -> Iterator[ModuleReference]:
    """Iterate over all module-reference nodes in `src`"""
    for node in src.nodes:
        if isinstance(node, MODULE_REFERENCES):
            yield node


def specifier(node: ModuleReference) -> Optional[StringLiteral]:
    """Get the string-literal specifier of `node`, or `None` for computed dynamic imports"""
    for child in node.children:
        if isinstance(child, StringLiteral):
            return child
    return None
