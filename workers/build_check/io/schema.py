"""
Schema — Pydantic models for checker JSON outputs.

Two outputs per build directory:
  1. check_report.json — verdicts, parsed Makefile.conf, per-library facts.
  2. lib_symbols.json  — full sorted symbol lists per library.

Runtime contract fields (present in every output):
  package_name, checker_version, profile_id, schema_version.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from build_check import CHECKER_VERSION, PACKAGE_NAME, SCHEMA_VERSION


# ── Makefile.conf ────────────────────────────────────────────────────────────

class LinkFlagsModel(BaseModel):
    search_paths: List[str] = Field(default_factory=list)
    libs: List[str] = Field(default_factory=list)


class MakeConfModel(BaseModel):
    os_name: str = ""
    fortran_disabled: bool = False
    c_link_flags: LinkFlagsModel = Field(default_factory=LinkFlagsModel)
    fortran_link_flags: LinkFlagsModel = Field(default_factory=LinkFlagsModel)


# ── Per-library entry ────────────────────────────────────────────────────────

class LibraryEntry(BaseModel):
    """One inspected library (static archive or shared object)."""

    kind: str                 # static | shared
    path: str
    sha256: str

    symbol_count: int = 0
    dependencies: List[str] = Field(default_factory=list)
    features: Dict[str, bool] = Field(default_factory=dict)

    verdict: str              # ACCEPT | WARN
    reasons: List[str] = Field(default_factory=list)


# ── Symbols output wrapper ───────────────────────────────────────────────────

class LibrarySymbols(BaseModel):
    kind: str
    path: str
    symbols: List[str] = Field(default_factory=list)


class SymbolsOutput(BaseModel):
    """Wrapper for lib_symbols.json."""

    package_name: str = PACKAGE_NAME
    checker_version: str = CHECKER_VERSION
    schema_version: str = SCHEMA_VERSION
    profile_id: str

    out_dir: str
    libraries: List[LibrarySymbols] = Field(default_factory=list)


# ── Build-level report ───────────────────────────────────────────────────────

class CheckReport(BaseModel):
    """Build-level summary — check_report.json."""

    package_name: str = PACKAGE_NAME
    checker_version: str = CHECKER_VERSION
    schema_version: str = SCHEMA_VERSION
    profile_id: str

    out_dir: str
    make_conf: Optional[MakeConfModel] = None
    libraries: List[LibraryEntry] = Field(default_factory=list)

    verdict: str              # ACCEPT | WARN | REJECT
    reasons: List[str] = Field(default_factory=list)
    error: Optional[Dict[str, Any]] = None

    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
