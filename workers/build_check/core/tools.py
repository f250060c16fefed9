"""
Inspection tools — where symbol and dependency lines come from.

LibInspect only consumes lines of text in two shapes:

    0000000000909b30 T zupmtr_          (symbol listing, ``nm -g``)
      NEEDED               libm.so.6     (dependency listing, ``objdump -p``)

Two backends produce them:
  - BinutilsTools runs ``nm`` and ``objdump`` as external commands.
  - ElfTools reads the ELF tables directly with pyelftools and renders
    the same line shapes, for hosts without binutils.
"""
import logging
import subprocess
from pathlib import Path
from typing import List, Protocol, Union

from elftools.common.exceptions import ELFError
from elftools.elf.constants import SH_FLAGS
from elftools.elf.dynamic import DynamicSection
from elftools.elf.elffile import ELFFile
from elftools.elf.sections import SymbolTableSection

from build_check.core.errors import ExternalToolError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class InspectionTools(Protocol):
    name: str

    def list_global_symbols(self, path: PathLike) -> List[str]:
        """Return symbol-listing lines for globally visible symbols."""

    def list_dependencies(self, path: PathLike) -> List[str]:
        """Return header-dump lines including the ``NEEDED`` entries."""


# ═══════════════════════════════════════════════════════════════════════════════
# binutils
# ═══════════════════════════════════════════════════════════════════════════════

class BinutilsTools:
    """``nm -g`` and ``objdump -p`` as blocking subprocess calls."""

    name = "binutils"

    def __init__(self, nm: str = "nm", objdump: str = "objdump", timeout: int = 60):
        self.nm = nm
        self.objdump = objdump
        self.timeout = timeout

    def _run(self, cmd: List[str], path: PathLike) -> List[str]:
        """Run *cmd* and return its stdout lines. Any failure is fatal."""
        cmd_str = " ".join(cmd)
        logger.debug("Running %s", cmd_str)

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise ExternalToolError(path, cmd_str, f"timed out after {self.timeout}s")
        except OSError as e:
            raise ExternalToolError(path, cmd_str, f"cannot launch: {e}") from e

        # empty output on failure must not read as "no symbols"
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise ExternalToolError(
                path, cmd_str, stderr or "non-zero exit status", result.returncode
            )

        try:
            stdout = result.stdout.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ExternalToolError(path, cmd_str, f"non-UTF-8 output: {e}") from e

        return stdout.splitlines()

    def list_global_symbols(self, path: PathLike) -> List[str]:
        return self._run([self.nm, "-g", str(path)], path)

    def list_dependencies(self, path: PathLike) -> List[str]:
        return self._run([self.objdump, "-p", str(path)], path)


# ═══════════════════════════════════════════════════════════════════════════════
# pyelftools
# ═══════════════════════════════════════════════════════════════════════════════

def _symbol_type(elffile: ELFFile, symbol) -> str:
    """nm-style type letter for a GLOBAL or WEAK symbol."""
    shndx = symbol["st_shndx"]
    if shndx == "SHN_UNDEF":
        return "U"
    if not isinstance(shndx, int):
        # SHN_ABS, SHN_COMMON, ...
        return "A"

    section = elffile.get_section(shndx)
    flags = section["sh_flags"]
    weak = symbol["st_info"]["bind"] == "STB_WEAK"

    if symbol["st_info"]["type"] == "STT_GNU_IFUNC":
        return "i"
    if flags & SH_FLAGS.SHF_EXECINSTR:
        return "W" if weak else "T"
    if weak:
        return "V"
    if section["sh_type"] == "SHT_NOBITS":
        return "B"
    if flags & SH_FLAGS.SHF_WRITE:
        return "D"
    return "R"


class ElfTools:
    """Render nm / objdump shaped lines from the ELF file itself."""

    name = "elftools"

    def _open(self, f, path: PathLike, what: str) -> ELFFile:
        try:
            return ELFFile(f)
        except ELFError as e:
            raise ExternalToolError(path, f"elftools {what}", f"not an ELF file: {e}") from e

    def list_global_symbols(self, path: PathLike) -> List[str]:
        lines: List[str] = []
        with open(path, "rb") as f:
            elffile = self._open(f, path, "symbols")

            # Like plain nm: only .symtab, so a stripped object lists nothing
            table = elffile.get_section_by_name(".symtab")
            if not isinstance(table, SymbolTableSection):
                logger.debug("No .symtab in %s", path)
                return lines

            for symbol in table.iter_symbols():
                if not symbol.name:
                    continue
                if symbol["st_info"]["bind"] not in ("STB_GLOBAL", "STB_WEAK"):
                    continue
                kind = _symbol_type(elffile, symbol)
                if kind == "U":
                    lines.append(f"U {symbol.name}")
                else:
                    lines.append(f"{symbol['st_value']:016x} {kind} {symbol.name}")
        return lines

    def list_dependencies(self, path: PathLike) -> List[str]:
        lines: List[str] = []
        with open(path, "rb") as f:
            elffile = self._open(f, path, "dependencies")
            for section in elffile.iter_sections():
                if not isinstance(section, DynamicSection):
                    continue
                for tag in section.iter_tags():
                    if tag.entry.d_tag == "DT_NEEDED":
                        lines.append(f"  NEEDED               {tag.needed}")
        return lines

