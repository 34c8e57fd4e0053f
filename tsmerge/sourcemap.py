"""
# Source Maps

Version-3 source-map helpers: VLQ-encoded line mappings,
relocation of a map's `sources`, and inline data-URL comments.
"""

# Std-Lib Imports
import json
import base64
from typing import Any, Dict, Iterable, Optional

BASE64_DIGITS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"


def vlq(value: int) -> str:
    """Base64-VLQ encode a single signed integer"""
    v = ((-value) << 1) | 1 if value < 0 else value << 1
    rv = ""
    while True:
        digit = v & 31
        v >>= 5
        if v:
            digit |= 32  # Continuation bit
        rv += BASE64_DIGITS[digit]
        if not v:
            return rv


def encode_mappings(lines: Iterable[int]) -> str:
    """Encode the `mappings` field for a file whose n-th generated line
    begins at column zero of (zero-based) source line `lines[n]`."""
    rv = []
    prev = 0
    for line in lines:
        # [generated column, source index, source line delta, source column]
        rv.append(vlq(0) + vlq(0) + vlq(line - prev) + vlq(0))
        prev = line
    return ";".join(rv)


def line_map(
    file: str,
    source: str,
    lines: Iterable[int],
    sources_content: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a source map for generated `file` from `source`, with line-level `lines` mappings"""
    rv = dict(
        version=3,
        file=file,
        sourceRoot="",
        sources=[source],
        names=[],
        mappings=encode_mappings(lines),
    )
    if sources_content is not None:
        rv["sourcesContent"] = [sources_content]
    return rv


def identity_map(
    file: str, source: str, txt: str, sources_content: Optional[str] = None
) -> Dict[str, Any]:
    """Create a source map for generated text `txt`, each line of which came from the same line of `source`"""
    return line_map(file, source, range(txt.count("\n") + 1), sources_content)


def dumps(smap: Dict[str, Any]) -> str:
    """Serialize compactly, as source maps conventionally are"""
    return json.dumps(smap, separators=(",", ":"))


def relocate(map_txt: str, source: str) -> str:
    """Rewrite serialized source map `map_txt` so its `sources` contain exactly `source`"""
    smap = json.loads(map_txt)
    smap["sources"] = [source]
    return dumps(smap)


def inline_comment(smap: Dict[str, Any]) -> str:
    """Source-mapping comment embedding `smap` as a base64 data URL"""
    data = base64.b64encode(dumps(smap).encode("utf-8")).decode("ascii")
    return f"//# sourceMappingURL=data:application/json;base64,{data}"
