"""
Profile — what a build is expected to deliver and how to inspect it.

The profile encapsulates all policy knobs so that core parsing
logic contains no opinions.  Expecting a different feature set or
switching the inspection backend is a profile change, not a code change.
"""
from dataclasses import dataclass
from typing import FrozenSet, Tuple

from build_check.config import Settings


@dataclass(frozen=True)
class Profile:
    """Describes the expected deliverables and the inspection backend."""

    # Identity
    profile_id: str

    # Inspection backend ("binutils" or "elftools")
    backend: str = "binutils"
    nm: str = "nm"
    objdump: str = "objdump"
    tool_timeout: int = 60  # seconds per command

    # Deliverable file names: <lib_stem><suffix>
    lib_stem: str = "libopenblas"
    static_suffix: str = ".a"
    shared_suffixes: Tuple[str, ...] = (".so", ".dylib")
    make_conf_name: str = "Makefile.conf"

    # Features every library must export (subset of cblas, lapack, lapacke)
    expected_features: FrozenSet[str] = frozenset({"cblas", "lapack", "lapacke"})

    # Runtime a shared library should need when Fortran is enabled
    fortran_runtime: str = "gfortran"

    @classmethod
    def v0(cls) -> "Profile":
        """The default profile: full OpenBLAS build inspected with binutils."""
        return cls(profile_id="openblas-make-binutils")

    @classmethod
    def from_settings(cls, settings: Settings) -> "Profile":
        return cls(
            profile_id=f"openblas-make-{settings.BACKEND}",
            backend=settings.BACKEND,
            nm=settings.NM,
            objdump=settings.OBJDUMP,
            tool_timeout=settings.TOOL_TIMEOUT,
            lib_stem=settings.LIB_STEM,
        )
