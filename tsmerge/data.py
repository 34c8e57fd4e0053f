"""

# tsmerge Data Model

All elements of the build plan, the module-syntax tree,
and compiler diagnostics, primarily in the form of dataclasses.

"""

# Std-Lib Imports
import os
from enum import Enum
from dataclasses import field
from typing import Optional, Union, List, Set

# PyPi Imports
from pydantic import TypeAdapter
from pydantic.dataclasses import dataclass, rebuild_dataclass


class TsmergeError(Exception):
    """Base class for all `tsmerge` errors"""


class ConfigError(TsmergeError):
    """Invalid configuration: option syntax, warning names, or `tsconfig.json` content.
    Optionally carries the `Diagnostic`s which produced it."""

    def __init__(self, msg: str = "", diagnostics: Optional[List["Diagnostic"]] = None):
        super().__init__(msg)
        self.diagnostics = list(diagnostics or [])


class PlanningError(TsmergeError):
    """Error laying out input files onto the output tree"""


class DuplicateInputError(PlanningError):
    """The same source file was reached through more than one input root"""


class CollisionError(PlanningError):
    """Two source files would be emitted to the same output file"""


class UnresolvedImportError(TsmergeError):
    """A relative module specifier could not be mapped to its new location.
    Only raised in strict-import mode."""


class TsmergeParseError(TsmergeError):
    """Module-Syntax Parse Error"""

    def __init__(self, msg: str, code: int = 1005, line: int = 0, column: int = 0):
        super().__init__(msg)
        self.msg = msg
        self.code = code
        self.line = line
        self.column = column

    @staticmethod
    def throw(*args, **kwargs):
        """Exception-raising debug wrapper. Breakpoint to catch `TsmergeParseError`s."""
        raise TsmergeParseError(*args, **kwargs)


class RootKind(Enum):
    """Enumerated Input-Root Kinds"""

    FILE = "file"  # A single source file
    DIRECTORY = "directory"  # A tree of source files, expanded recursively


class DiagnosticCategory(Enum):
    """Enumerated Diagnostic Categories, as reported by the engine"""

    ERROR = "error"
    WARNING = "warning"
    SUGGESTION = "suggestion"
    MESSAGE = "message"


def to_json(arg) -> str:
    """Dump any `pydantic.dataclass` to a JSON string."""
    return TypeAdapter(type(arg)).dump_json(arg, indent=2).decode("utf-8")


# Keep a list of datatypes defined here,
# primarily so that we can resolve their forward-references at the end of this module.
datatypes = []


def datatype(cls: type) -> type:
    """Register a class as a datatype, converting it to a `pydantic.dataclasses.dataclass`."""
    cls = dataclass(cls)
    datatypes.append(cls)
    return cls


@datatype
class SourceInfo:
    """Source Position. Both fields are zero-based."""

    line: int
    column: int = 0


@datatype
class InputRoot:
    """# Input Root
    A user-specified file or directory to compile."""

    path: str  # Absolute path
    kind: RootKind

    @property
    def base_dir(self) -> str:
        """The directory which output paths are computed relative to.
        A `FILE` root's owning directory is its effective root."""
        if self.kind == RootKind.FILE:
            return os.path.dirname(self.path)
        return self.path


@datatype
class CompilationFile:
    """A single compilable source file, and the output directory it is emitted to."""

    path: str  # Absolute source path
    root: InputRoot  # Originating input root
    out_dir: str  # Absolute output directory

    @property
    def basename(self) -> str:
        return os.path.basename(self.path)

    @property
    def out_base(self) -> str:
        """Output base name, i.e. the basename stripped of its source extension.
        `foo.ts` and `foo.tsx` share the base name `foo`, as both emit `foo.js`."""
        return os.path.splitext(self.basename)[0]

    @property
    def is_declaration(self) -> bool:
        """Boolean indication of a declaration-only (`.d.ts`) input"""
        return self.path.endswith(".d.ts")


@datatype
class OutputDirectory:
    """Output Directory, and the base names already claimed within it"""

    path: str
    basenames: Set[str] = field(default_factory=set)


@datatype
class PathMapEntry:
    """External prefix rewrite, e.g. from the `-p from:to` option"""

    from_prefix: str  # Absolute, normalized
    to_prefix: str  # Absolute, normalized


@datatype
class Diagnostic:
    """Compiler Diagnostic"""

    category: DiagnosticCategory
    code: int  # Numeric diagnostic code, e.g. 2307
    message: str
    file: Optional[str] = None  # Source file, if the diagnostic has a position
    line: Optional[int] = None  # Zero-based
    column: Optional[int] = None  # Zero-based


@datatype
class Count:
    """Aggregate warning & error counts"""

    warnings: int = 0
    errors: int = 0


@datatype
class Text:
    """Verbatim source text, carried through emission unchanged"""

    txt: str


@datatype
class StringLiteral:
    """Quoted String Literal, e.g. a module specifier"""

    val: str  # Decoded value
    quote: str = '"'  # Quote character, either `"` or `'`
    raw: Optional[str] = None  # Original source text, quotes included. `None` for new literals.
    source_info: Optional[SourceInfo] = None


@datatype
class ImportDeclaration:
    """Import Declaration, e.g. `import { a } from "./a"` or `import "./a"`"""

    children: List["Node"]
    source_info: Optional[SourceInfo] = None


@datatype
class ImportEquals:
    """Import-Equals Declaration, e.g. `import a = require("./a")`"""

    children: List["Node"]
    source_info: Optional[SourceInfo] = None


@datatype
class ImportCall:
    """Dynamic Import Call, e.g. `import("./a")`.
    Computed arguments are not part of the node; it then holds only `import(`."""

    children: List["Node"]
    source_info: Optional[SourceInfo] = None


@datatype
class ExportDeclaration:
    """Re-Export Declaration, e.g. `export * from "./a"`"""

    children: List["Node"]
    source_info: Optional[SourceInfo] = None


# Nodes which refer to another module, by way of a specifier in their `children`
ModuleReference = Union[ImportDeclaration, ImportEquals, ImportCall, ExportDeclaration]
MODULE_REFERENCES = (ImportDeclaration, ImportEquals, ImportCall, ExportDeclaration)

# Node Union
# Everything which can appear in a `SourceFile`, or as a child of a `ModuleReference`.
Node = Union[
    Text, StringLiteral, ImportDeclaration, ImportEquals, ImportCall, ExportDeclaration
]


@datatype
class SourceFile:
    path: str  # Source File Path
    nodes: List[Node]  # Top-level nodes, in source order


# Update all the forward type-references
for tp in datatypes:
    rebuild_dataclass(tp)

# And solely export the defined datatypes
__all__ = [tp.__name__ for tp in datatypes] + [
    "TsmergeError",
    "ConfigError",
    "PlanningError",
    "DuplicateInputError",
    "CollisionError",
    "UnresolvedImportError",
    "TsmergeParseError",
    "RootKind",
    "DiagnosticCategory",
    "ModuleReference",
    "MODULE_REFERENCES",
    "Node",
    "to_json",
]
