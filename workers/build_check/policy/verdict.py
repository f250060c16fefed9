"""
Verdict — structured ACCEPT / WARN / REJECT decisions with reason enums.

Two layers:
  1. Deliverables gate (gate_deliverables) — is there anything to check?
  2. Library judge (judge_library) — does one library carry the features?

Policy rules reference the Profile for expectations; the facts come
from core/ and are never recomputed here.
"""
from enum import Enum, unique
from typing import List, Optional, Tuple

from build_check.core.lib_inspect import LibInspect
from build_check.core.make_conf import MakeConf
from build_check.policy.profile import Profile


# ── Verdict enum ──────────────────────────────────────────────────────────────

@unique
class Verdict(str, Enum):
    ACCEPT = "ACCEPT"
    WARN = "WARN"
    REJECT = "REJECT"


# ── Build-level reject reasons ───────────────────────────────────────────────

@unique
class BuildRejectReason(str, Enum):
    MAKE_CONF_MISSING = "MAKE_CONF_MISSING"
    NO_LIBRARY = "NO_LIBRARY"
    INSPECTION_FAILED = "INSPECTION_FAILED"


# ── Library-level warn reasons ───────────────────────────────────────────────

@unique
class LibraryWarnReason(str, Enum):
    MISSING_CBLAS = "MISSING_CBLAS"
    MISSING_LAPACK = "MISSING_LAPACK"
    MISSING_LAPACKE = "MISSING_LAPACKE"
    FORTRAN_RUNTIME_NOT_LINKED = "FORTRAN_RUNTIME_NOT_LINKED"


_MISSING_FEATURE = {
    "cblas": LibraryWarnReason.MISSING_CBLAS,
    "lapack": LibraryWarnReason.MISSING_LAPACK,
    "lapacke": LibraryWarnReason.MISSING_LAPACKE,
}


# ── Deliverables gate ────────────────────────────────────────────────────────

def gate_deliverables(
    has_make_conf: bool,
    n_libraries: int,
) -> Tuple[Verdict, List[str]]:
    """
    Returns (Verdict, list_of_reason_strings).
    Any single reject reason → REJECT.
    """
    reasons: List[str] = []

    if not has_make_conf:
        reasons.append(BuildRejectReason.MAKE_CONF_MISSING.value)

    if n_libraries == 0:
        reasons.append(BuildRejectReason.NO_LIBRARY.value)

    if reasons:
        return Verdict.REJECT, reasons
    return Verdict.ACCEPT, []


# ── Library judge ────────────────────────────────────────────────────────────

def judge_library(
    lib: LibInspect,
    make_conf: Optional[MakeConf],
    profile: Profile,
    shared: bool,
) -> Tuple[Verdict, List[str]]:
    """
    Evaluate one inspected library against the profile.

    Returns (Verdict, list_of_reason_strings).
    """
    warns: List[str] = []

    features = lib.features()
    for feature in sorted(profile.expected_features):
        if not features.get(feature, False):
            warns.append(_MISSING_FEATURE[feature].value)

    # Only a shared object records what it needs at load time, and only
    # a build that asked for the Fortran runtime is expected to need it.
    if (
        shared
        and make_conf is not None
        and make_conf.fortran_enabled
        and profile.fortran_runtime in make_conf.fortran_link_flags.libs
        and not lib.has_dependency(profile.fortran_runtime)
    ):
        warns.append(LibraryWarnReason.FORTRAN_RUNTIME_NOT_LINKED.value)

    if warns:
        return Verdict.WARN, warns
    return Verdict.ACCEPT, []


def combine(verdicts: List[Verdict]) -> Verdict:
    """Worst verdict wins; an empty list is ACCEPT."""
    if Verdict.REJECT in verdicts:
        return Verdict.REJECT
    if Verdict.WARN in verdicts:
        return Verdict.WARN
    return Verdict.ACCEPT
