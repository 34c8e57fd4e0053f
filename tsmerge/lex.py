"""
# Module-Syntax Lexing

Splits TypeScript / JavaScript source into tokens, *including* whitespace and comments,
such that concatenating every token's text reproduces the input exactly.
Only as much of the language is recognized as module-reference parsing requires:
strings, comments, template literals, regular-expression literals, and punctuation.
"""

# Std-Lib Imports
import re
from typing import Iterator, List, Optional

# PyPi Imports
from pydantic.dataclasses import dataclass

# Local Imports
from .data import TsmergeParseError


# Pattern for an identifier
# An initial letter, underscore or dollar-sign, followed by any number of word-chars and dollar-signs.
ident_pattern = r"(?:[^\W\d]|\$)[\w$]*"

# Master mapping of tokens <=> patterns
_patterns1 = dict(
    NEWLINE=r"\r?\n",
    WHITE=r"[^\S\n]+",
    LINE_COMMENT=r"//[^\n]*",
    BLOCK_COMMENT=r"/\*[\s\S]*?\*/",
    OPEN_COMMENT=r"/\*",  # Unterminated block comment. Always an error.
    STRING=r""""(?:[^"\\\n]|\\[\s\S])*"|'(?:[^'\\\n]|\\[\s\S])*'""",
    OPEN_STRING=r"[\"']",  # Unterminated string. An error, outside of JSX.
    BACKTICK=r"`",  # Template literals are scanned by the `Lexer` itself
    NUMBER=r"(?:\d|\.\d)[\w.]*",
    OPERATOR=r"===|!==|\*\*=|\.\.\.|>>>=|>>>|<<=|>>=|\?\?=|&&=|\|\|=|=>|==|!=|<=|>=|\+\+|--|\+=|-=|\*=|%=|&=|\|=|\^=|/=|&&|\|\||\?\?|\?\.(?!\d)|\*\*|<<|>>",
    LPAREN=r"\(",
    RPAREN=r"\)",
    LBRACE=r"\{",
    RBRACE=r"\}",
    LBRACKET=r"\[",
    RBRACKET=r"\]",
    SEMICOLON=r"\;",
    COMMA=r"\,",
    EQUALS=r"\=",
    DOT=r"\.",
    STAR=r"\*",
    SLASH=r"\/",
)
_keywords = dict(IMPORT=r"import", EXPORT=r"export", FROM=r"from", REQUIRE=r"require",)
_patterns2 = dict(IDENT=ident_pattern, PUNCT=r"[\s\S]",)
# Given each token its name as a key in the overall regex
tokens = {key: rf"(?P<{key}>{val})" for key, val in _patterns1.items()}
for key, val in _keywords.items():
    # Keywords must not be part of a longer identifier
    tokens[key] = rf"(?P<{key}>(?<![\w$]){val}(?![\w$]))"
for key, val in _patterns2.items():
    # Add the lower-priority patterns last
    tokens[key] = rf"(?P<{key}>{val})"
# Build our overall regex pattern, a union of all
pat = re.compile("|".join(tokens.values()))
# Create an enum-ish class of these token-types, plus those produced outside `pat`
Tokens = type(
    "Tokens",
    (object,),
    {
        k: k
        for k in list(tokens.keys())
        + ["TEMPLATE", "TEMPLATE_HEAD", "TEMPLATE_MIDDLE", "TEMPLATE_TAIL", "REGEX"]
    },
)

# Template-literal content, up to (not including) its closing backtick or next `${`
template_pat = re.compile(r"(?:[^`\\$]|\\[\s\S]|\$(?!\{))*")
# Regular-expression literal, including character classes and flags
regex_pat = re.compile(r"/(?![*/])(?:[^\\/\n\[]|\\.|\[(?:[^\]\\\n]|\\.)*\])+/[\w$]*")

# Tokens which carry no meaning for parsing
TRIVIA = (Tokens.WHITE, Tokens.NEWLINE, Tokens.LINE_COMMENT, Tokens.BLOCK_COMMENT)

# Keywords after which a slash starts a regular expression, rather than a division
_regex_keywords = {
    "return",
    "typeof",
    "instanceof",
    "in",
    "of",
    "new",
    "delete",
    "void",
    "throw",
    "case",
    "do",
    "else",
    "yield",
    "await",
}
# Keywords whose parenthesized header may be followed by a statement, and hence a regular expression
_control_keywords = {"if", "while", "for", "with"}
# Tokens after which a slash is a division
_operand_tokens = (
    Tokens.IDENT,
    Tokens.NUMBER,
    Tokens.STRING,
    Tokens.TEMPLATE,
    Tokens.TEMPLATE_TAIL,
    Tokens.REGEX,
    Tokens.RPAREN,
    Tokens.RBRACKET,
    Tokens.IMPORT,
    Tokens.EXPORT,
    Tokens.FROM,
    Tokens.REQUIRE,
)


@dataclass
class Token:
    """Lexer Token
    Includes type-annotation (as a string), the token's text value, and its (zero-based) position."""

    tp: str  # Type Annotation. A value from `Tokens`.
    val: str  # Text Content Value
    line: int = 0
    col: int = 0


class Lexer:
    """# Module-Syntax Lexer"""

    def __init__(self, txt: str, *, jsx: bool = False):
        self.txt = txt
        # JSX text may hold unpaired quotes, e.g. `<p>Don't</p>`. Lex those as punctuation.
        self.jsx = jsx
        self.pos = 0
        self.line_num = 0
        self.line_start = 0
        # Brace depth of each open template substitution, innermost last
        self.templates: List[int] = []
        # Most recent non-trivia token
        self.prev: Optional[Token] = None
        # Whether each open paren follows a control keyword, innermost last
        self.parens: List[bool] = []
        # Whether the most recent close paren ended a control-statement header
        self.control_paren = False

    def fail(self, msg: str, code: int) -> None:
        TsmergeParseError.throw(
            msg, code=code, line=self.line_num, column=self.pos - self.line_start
        )

    def regex_allowed(self) -> bool:
        """Boolean indication of whether a slash here starts a regular-expression literal"""
        prev = self.prev
        if prev is None:
            return True
        if prev.tp == Tokens.RPAREN:
            return self.control_paren
        if prev.tp in _operand_tokens:
            return prev.tp == Tokens.IDENT and prev.val in _regex_keywords
        return prev.val not in ("++", "--")

    def nxt(self) -> Optional[Token]:
        """Get our next Token, or `None` at end of input"""
        if self.pos >= len(self.txt):
            if self.templates:
                self.fail("Unterminated template literal.", 1160)
            return None

        c = self.txt[self.pos]
        tp = val = None
        if c == "}" and self.templates and self.templates[-1] == 0:
            # Close of a template substitution `${ ... }`
            self.templates.pop()
            tp, val = self.scan_template(self.pos + 1, head=False)
        elif c == "/" and self.regex_allowed():
            m = regex_pat.match(self.txt, self.pos)
            if m is not None:
                tp, val = Tokens.REGEX, m.group()

        if tp is None:
            m = pat.match(self.txt, self.pos)
            tp, val = m.lastgroup, m.group()
            if tp == Tokens.OPEN_STRING and self.jsx:
                tp = Tokens.PUNCT
            elif tp == Tokens.OPEN_STRING:
                self.fail("Unterminated string literal.", 1002)
            elif tp == Tokens.OPEN_COMMENT:
                self.fail("'*/' expected.", 1010)
            elif tp == Tokens.BACKTICK:
                tp, val = self.scan_template(self.pos + 1, head=True)
            elif tp == Tokens.LBRACE and self.templates:
                self.templates[-1] += 1
            elif tp == Tokens.RBRACE and self.templates:
                self.templates[-1] -= 1
            elif tp == Tokens.LPAREN:
                prev = self.prev
                self.parens.append(
                    prev is not None and prev.tp == Tokens.IDENT and prev.val in _control_keywords
                )
            elif tp == Tokens.RPAREN:
                self.control_paren = self.parens.pop() if self.parens else False

        token = Token(tp, val, self.line_num, self.pos - self.line_start)
        if tp not in TRIVIA:
            self.prev = token

        # Advance, updating our line-tracking
        self.pos += len(val)
        newlines = val.count("\n")
        if newlines:
            self.line_num += newlines
            self.line_start = self.pos - (len(val) - val.rindex("\n") - 1)
        return token

    def scan_template(self, start: int, *, head: bool):
        """Scan a template-literal chunk beginning at `start`.
        The chunk either closes the literal, or opens a `${` substitution."""
        end = template_pat.match(self.txt, start).end()
        if self.txt.startswith("`", end):
            tp = Tokens.TEMPLATE if head else Tokens.TEMPLATE_TAIL
            return tp, self.txt[self.pos : end + 1]
        if self.txt.startswith("${", end):
            self.templates.append(0)
            tp = Tokens.TEMPLATE_HEAD if head else Tokens.TEMPLATE_MIDDLE
            return tp, self.txt[self.pos : end + 2]
        self.fail("Unterminated template literal.", 1160)

    def lex(self) -> Iterator[Token]:
        """Create an iterator over all tokens, trivia included"""
        while True:
            token = self.nxt()
            if token is None:
                return
            yield token


def strip_comments(txt: str) -> str:
    """Remove comments and trailing commas, as permitted in `tsconfig.json`-style JSON."""
    toks = [t for t in Lexer(txt).lex() if t.tp not in (Tokens.LINE_COMMENT, Tokens.BLOCK_COMMENT)]
    rv = []
    for i, tok in enumerate(toks):
        if tok.tp == Tokens.COMMA:
            # Drop commas which directly precede a closing bracket
            nxt = next((t for t in toks[i + 1 :] if t.tp not in TRIVIA), None)
            if nxt is not None and nxt.tp in (Tokens.RBRACE, Tokens.RBRACKET):
                continue
        rv.append(tok.val)
    return "".join(rv)
