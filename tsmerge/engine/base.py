"""
# Compilation Engine Base Class
"""

# Std-Lib Imports
from typing import Callable, List, Sequence

# Local Imports
from ..data import *
from ..config import CompilerOptions
from ..transform import Transform

# Output sink, called with `(filename, text)` for each file the engine produces
WriteFile = Callable[[str, str], None]


class Engine:
    """
    # Compilation Engine

    Builds a program over a set of source files, reports its diagnostics,
    and emits each file through caller-provided pre-emit transforms.
    Engines never write to disk themselves; all output flows through the `write` callback to `emit`.
    """

    def __init__(self, files: Sequence[str], options: CompilerOptions) -> None:
        self.files = list(files)
        self.options = options

    def diagnostics(self) -> List[Diagnostic]:
        """All whole-program diagnostics, collected before any emission"""
        raise NotImplementedError

    def emit(
        self, path: str, write: WriteFile, transforms: Sequence[Transform] = ()
    ) -> None:
        """Emit the outputs of source file `path`, after applying `transforms` to its tree"""
        raise NotImplementedError

    @classmethod
    def transpile(cls, txt: str, options: CompilerOptions) -> str:
        """Compile a single module's source text, outside of any program"""
        raise NotImplementedError
