"""
Makefile.conf — the key=value file the OpenBLAS make system generates.

Only a handful of keys matter to a consumer linking against the build:

    OSNAME      target OS label
    NOFORTRAN   present when the Fortran interface was disabled
    CEXTRALIB   extra link flags of the C compiler
    FEXTRALIB   extra link flags of the Fortran compiler

Everything else, including lines that are not a single ``KEY=VALUE``
pair (``MAKE += -j 8``, ``A=B=C``), is ignored.
"""
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Union

from build_check.core.errors import ConfigNotFoundError
from build_check.core.link_flags import LinkFlags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MakeConf:
    """Semantically relevant contents of Makefile.conf."""

    os_name: str = ""
    fortran_disabled: bool = False
    c_link_flags: LinkFlags = field(default_factory=LinkFlags)
    fortran_link_flags: LinkFlags = field(default_factory=LinkFlags)

    @property
    def fortran_enabled(self) -> bool:
        return not self.fortran_disabled

    @classmethod
    def parse(cls, path: Union[str, Path]) -> "MakeConf":
        """
        Read *path* and return the parsed configuration.

        Raises
        ------
        ConfigNotFoundError
            If the file cannot be opened.
        InvalidPathError
            Propagated from ``LinkFlags.parse``.
        UnicodeDecodeError
            If the file is not UTF-8 text.
        """
        try:
            f = open(path, encoding="utf-8", newline="")
        except OSError as e:
            raise ConfigNotFoundError(path, str(e)) from e

        conf = cls()
        skipped = 0
        with f:
            text = f.read()

        # only \n ends a line; a lone \r stays part of it
        for line in text.split("\n"):
            if line.endswith("\r"):
                line = line[:-1]
            if not line:
                continue
            entry = line.split("=")
            if len(entry) != 2:
                skipped += 1
                continue
            key, value = entry
            if key == "OSNAME":
                conf = replace(conf, os_name=value)
            elif key == "NOFORTRAN":
                conf = replace(conf, fortran_disabled=True)
            elif key == "CEXTRALIB":
                conf = replace(conf, c_link_flags=LinkFlags.parse(value))
            elif key == "FEXTRALIB":
                conf = replace(conf, fortran_link_flags=LinkFlags.parse(value))

        if skipped:
            logger.debug("Skipped %d malformed line(s) in %s", skipped, path)
        return conf
