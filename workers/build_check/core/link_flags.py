"""
Link flags — parse ``-L`` / ``-l`` tokens out of a linker flag string.

Responsibilities:
  - Keep ``-L`` search paths that exist, canonicalized.
  - Keep ``-l`` library names verbatim.
  - Deduplicate and sort both, so token order never changes the result.

Example (from a gcc link line captured by the OpenBLAS make system)::

    >>> flags = LinkFlags.parse("-L/usr/lib/gcc/x86_64-pc-linux-gnu/10.2.0/../../.. -lc")
    >>> flags.libs
    ('c',)
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from build_check.core.errors import InvalidPathError

logger = logging.getLogger(__name__)


def _trim_prefix(entry: str, prefix: str) -> str:
    """Strip every leading repetition of *prefix* (``-l-lfoo`` -> ``foo``)."""
    while entry.startswith(prefix):
        entry = entry[len(prefix):]
    return entry


@dataclass(frozen=True)
class LinkFlags:
    """Parsed linker flags."""

    search_paths: Tuple[Path, ...] = ()   # existing -L paths, canonical
    libs: Tuple[str, ...] = ()            # -l names, no lib prefix / suffix

    @classmethod
    def empty(cls) -> "LinkFlags":
        return cls()

    @classmethod
    def parse(cls, flags: str) -> "LinkFlags":
        """
        Parse a space-separated flag string.

        Search paths that do not exist are dropped; stale paths are common
        in captured build output.

        Raises
        ------
        InvalidPathError
            If an existing ``-L`` path cannot be resolved.
        """
        search_paths = set()
        libs = set()

        for entry in flags.split(" "):
            if entry.startswith("-L"):
                raw = _trim_prefix(entry, "-L")
                path = Path(raw)
                # Path("") would mean the cwd
                if not raw or not path.exists():
                    logger.debug("Dropping missing search path %r", raw)
                else:
                    try:
                        search_paths.add(path.resolve(strict=True))
                    except (OSError, RuntimeError) as e:
                        raise InvalidPathError(path, str(e)) from e
            if entry.startswith("-l"):
                libs.add(_trim_prefix(entry, "-l"))

        return cls(
            search_paths=tuple(sorted(search_paths)),
            libs=tuple(sorted(libs)),
        )

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "search_paths": [str(p) for p in self.search_paths],
            "libs": list(self.libs),
        }
