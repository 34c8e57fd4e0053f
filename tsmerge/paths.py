"""
# Path Maps & Path Helpers

The path map is the fallback used to re-target relative imports which point outside the compiled set,
e.g. `-p ../shared:../dist/shared`.
"""

# Std-Lib Imports
import os
from dataclasses import field
from typing import Dict, Iterable, List, Mapping, Optional

# PyPi Imports
from pydantic.dataclasses import dataclass

# Local Imports
from .data import PathMapEntry, ConfigError


def parse_path_map(options: Iterable[str]) -> Dict[str, str]:
    """Parse `from[:to]` path-map options into a `{from: to}` dictionary.
    `to` defaults to `from`. Paths are not yet resolved."""
    rv = dict()
    for option in options:
        parts = option.split(":")
        if len(parts) > 2:
            raise ConfigError(f'Invalid path map option "{option}"')
        frm = parts[0]
        to = parts[1] if len(parts) == 2 and parts[1] else frm
        rv[frm] = to
    return rv


@dataclass
class PathMap:
    """# Path Map Table

    Ordered table of prefix rewrites, sorted by descending `from_prefix`.
    Where more than one prefix applies, the longest, most specific sorts first,
    and the first match wins."""

    entries: List[PathMapEntry] = field(default_factory=list)

    @classmethod
    def from_mapping(
        cls, mapping: Optional[Mapping[str, str]] = None, *, cwd: Optional[str] = None
    ) -> "PathMap":
        """Create from a `{from: to}` mapping, resolving both sides to absolute paths"""
        resolved = dict()
        for frm, to in (mapping or {}).items():
            resolved[abspath(frm, cwd)] = abspath(to, cwd)
        entries = [
            PathMapEntry(from_prefix=frm, to_prefix=resolved[frm])
            for frm in sorted(resolved, reverse=True)
        ]
        return cls(entries=entries)

    def lookup(self, path: str) -> Optional[str]:
        """Map absolute `path` through the first entry whose `from_prefix` contains it.
        Prefixes match on whole path segments: `/a/b` applies to `/a/b/c`, but not to `/a/bc`.
        Returns `None` if no entry applies."""
        for entry in self.entries:
            if is_within(path, entry.from_prefix):
                rel = os.path.relpath(path, entry.from_prefix)
                return os.path.normpath(os.path.join(entry.to_prefix, rel))
        return None

    def __len__(self) -> int:
        return len(self.entries)


def abspath(path: str, cwd: Optional[str] = None) -> str:
    """Absolute, normalized version of `path`, relative to `cwd` if provided"""
    if cwd is not None and not os.path.isabs(path):
        path = os.path.join(cwd, path)
    return os.path.abspath(path)


def is_within(path: str, prefix: str) -> bool:
    """Boolean indication of whether `prefix` is `path` or one of its parent directories"""
    return (path + os.sep).startswith(prefix.rstrip(os.sep) + os.sep)


def to_posix(path: str) -> str:
    """Convert native separators to the forward slashes of module specifiers and source maps"""
    return path.replace(os.sep, "/")


def is_relative(specifier: str) -> bool:
    """Boolean indication of whether `specifier` is syntactically relative, e.g. `./a` or `..`"""
    return specifier in (".", "..") or specifier.startswith(("./", "../"))
