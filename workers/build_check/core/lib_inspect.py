"""
Library inspection — exported symbols and linked shared libraries.

Responsibilities:
  - Fail fast when the library file does not exist.
  - Collect global symbols of type ``T`` (defined in the text section).
  - Collect ``NEEDED`` entries of the dynamic section.
  - Answer feature questions from representative symbols.

Output lines that do not have the expected shape are skipped; the
inspection tools are a best-effort text contract.
"""
import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Tuple, Union

from build_check.core.errors import ArtifactNotFoundError
from build_check.core.tools import InspectionTools

logger = logging.getLogger(__name__)

NEEDED_MARKER = "NEEDED"


def compute_sha256(path: Union[str, Path]) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def parse_symbols(lines: Iterable[str]) -> Tuple[str, ...]:
    """
    Keep names of ``T`` entries from symbol-listing lines.

    Assumes lines like::

        0000000000909b30 T zupmtr_
    """
    symbols = set()
    for line in lines:
        entry = line.strip().split(" ")
        if len(entry) == 3 and entry[1] == "T":
            symbols.add(entry[2])
    return tuple(sorted(symbols))


def parse_dependencies(lines: Iterable[str]) -> Tuple[str, ...]:
    """Keep the library names of ``NEEDED`` lines."""
    libs = set()
    for line in lines:
        line = line.strip()
        if line.startswith(NEEDED_MARKER):
            libs.add(line[len(NEEDED_MARKER):].strip())
    return tuple(sorted(libs))


@dataclass(frozen=True)
class LibInspect:
    """Facts about one built library."""

    path: Path
    sha256: str
    symbols: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()

    @classmethod
    def inspect(cls, path: Union[str, Path], tools: InspectionTools) -> "LibInspect":
        """
        Inspect the library at *path* with *tools*.

        Raises
        ------
        ArtifactNotFoundError
            If *path* does not exist. No tool is run in that case.
        ExternalToolError
            If either listing fails.
        """
        p = Path(path)
        if not p.exists():
            raise ArtifactNotFoundError(p)

        symbols = parse_symbols(tools.list_global_symbols(p))
        dependencies = parse_dependencies(tools.list_dependencies(p))
        logger.debug(
            "%s: %d text symbols, %d dependencies (%s)",
            p, len(symbols), len(dependencies), tools.name,
        )

        return cls(
            path=p,
            sha256=compute_sha256(p),
            symbols=symbols,
            dependencies=dependencies,
        )

    def has_cblas(self) -> bool:
        return any(sym.startswith("cblas_") for sym in self.symbols)

    def has_lapack(self) -> bool:
        return "dsyev_" in self.symbols

    def has_lapacke(self) -> bool:
        return any(sym.startswith("LAPACKE_") for sym in self.symbols)

    def has_dependency(self, name: str) -> bool:
        """True if some NEEDED entry is ``lib<name>`` before its first dot."""
        stem = f"lib{name}"
        return any(lib.split(".")[0] == stem for lib in self.dependencies)

    def features(self) -> Dict[str, bool]:
        return {
            "cblas": self.has_cblas(),
            "lapack": self.has_lapack(),
            "lapacke": self.has_lapacke(),
        }
