"""
tsmerge

Compiles TypeScript files and directories into a single output tree,
rewriting relative imports so they keep resolving from their new locations.
"""

__version__ = "0.1.0"


from .data import *
from .config import CompilerOptions, load_compiler_options
from .paths import PathMap, parse_path_map
from .plan import BuildContext, resolve_inputs
from .dirs import minimal_directories, materialize
from .transform import ImportRewriter, rewrite_specifier
from .parse import parse_str, parse_file
from .write import write_source, to_str
from .engine import Engine, ModuleEngine
from .diagnostics import process_diagnostics, parse_warning_options, summary
from .compile import compile
