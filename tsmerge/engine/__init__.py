"""
# Compilation Engines

Engines parse, diagnose and emit the files of a build.
`compile` drives them through the `Engine` interface; `ModuleEngine` is the bundled implementation.
"""

from .base import Engine, WriteFile
from .module import ModuleEngine, resolves, resolve_candidates

__all__ = ["Engine", "WriteFile", "ModuleEngine", "resolves", "resolve_candidates"]
