"""
# Output Directory Creation
"""

# Std-Lib Imports
import os
import logging
from typing import Callable, Iterable, List

logger = logging.getLogger(__name__)


def minimal_directories(dirs: Iterable[str]) -> List[str]:
    """Reduce `dirs` to the smallest set which, created recursively, creates all of them.

    Directories are sorted with a trailing separator appended, so that siblings sharing a
    name-prefix (`out/a` and `out/ab`) are not mistaken for ancestors. Any directory directly
    followed by one of its descendants is then implied by that descendant's creation."""
    sorted_dirs = sorted(set(d.rstrip(os.sep) + os.sep for d in dirs))
    rv = []
    for i, d in enumerate(sorted_dirs):
        if i < len(sorted_dirs) - 1 and sorted_dirs[i + 1].startswith(d):
            continue
        rv.append(d.rstrip(os.sep) or os.sep)
    return rv


def materialize(
    dirs: Iterable[str], makedirs: Callable[..., None] = os.makedirs
) -> List[str]:
    """Create every directory in `dirs`, issuing one recursive creation call per `minimal_directories` entry.
    Returns the list of directories passed to `makedirs`."""
    rv = minimal_directories(dirs)
    for d in rv:
        logger.debug("Creating directory %s", d)
        makedirs(d, exist_ok=True)
    return rv
