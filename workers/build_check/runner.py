"""
Check runner — top-level orchestration: build directory → report + symbols.

This module ties core parsing, policy verdicts, and IO together into a
single ``run_check`` function that a build orchestrator can call once
``make`` has finished in *out_dir*.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from build_check.core.errors import BuildCheckError
from build_check.core.lib_inspect import LibInspect
from build_check.core.make_conf import MakeConf
from build_check.core.tools import BinutilsTools, ElfTools, InspectionTools
from build_check.io.schema import (
    CheckReport,
    LibraryEntry,
    LibrarySymbols,
    LinkFlagsModel,
    MakeConfModel,
    SymbolsOutput,
)
from build_check.io.writer import write_outputs
from build_check.policy.profile import Profile
from build_check.policy.verdict import (
    BuildRejectReason,
    Verdict,
    combine,
    gate_deliverables,
    judge_library,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Deliverables:
    """Files a make build left in its output directory (None if absent)."""

    out_dir: Path
    make_conf: Optional[Path] = None
    static_lib: Optional[Path] = None
    shared_lib: Optional[Path] = None

    def libraries(self) -> List[Tuple[str, Path]]:
        libs = []
        if self.static_lib is not None:
            libs.append(("static", self.static_lib))
        if self.shared_lib is not None:
            libs.append(("shared", self.shared_lib))
        return libs


def make_tools(profile: Profile) -> InspectionTools:
    """Build the inspection backend named by *profile*."""
    if profile.backend == "binutils":
        return BinutilsTools(
            nm=profile.nm,
            objdump=profile.objdump,
            timeout=profile.tool_timeout,
        )
    if profile.backend == "elftools":
        return ElfTools()
    raise ValueError(f"Unknown inspection backend: {profile.backend!r}")


def find_deliverables(out_dir: Path, profile: Profile) -> Deliverables:
    """Locate Makefile.conf and the static / shared library in *out_dir*."""
    make_conf = out_dir / profile.make_conf_name
    static_lib = out_dir / f"{profile.lib_stem}{profile.static_suffix}"

    shared_lib = None
    for suffix in profile.shared_suffixes:
        candidate = out_dir / f"{profile.lib_stem}{suffix}"
        if candidate.exists():
            shared_lib = candidate
            break

    return Deliverables(
        out_dir=out_dir,
        make_conf=make_conf if make_conf.exists() else None,
        static_lib=static_lib if static_lib.exists() else None,
        shared_lib=shared_lib,
    )


def _make_conf_model(conf: MakeConf) -> MakeConfModel:
    return MakeConfModel(
        os_name=conf.os_name,
        fortran_disabled=conf.fortran_disabled,
        c_link_flags=LinkFlagsModel(**conf.c_link_flags.to_dict()),
        fortran_link_flags=LinkFlagsModel(**conf.fortran_link_flags.to_dict()),
    )


def run_check(
    out_dir: str,
    profile: Profile | None = None,
    output_dir: Path | None = None,
    tools: InspectionTools | None = None,
) -> Tuple[CheckReport, SymbolsOutput]:
    """
    Check the OpenBLAS build results in *out_dir*.

    Parameters
    ----------
    out_dir : str
        Directory ``make`` ran in (holds Makefile.conf and libopenblas.*).
    profile : Profile, optional
        Expectations and backend.  Defaults to Profile.v0().
    output_dir : Path, optional
        Directory to write JSON outputs.  If None, outputs are not
        written to disk.
    tools : InspectionTools, optional
        Inspection backend.  Defaults to the one the profile names.

    Returns
    -------
    (CheckReport, SymbolsOutput)
    """
    if profile is None:
        profile = Profile.v0()
    if tools is None:
        tools = make_tools(profile)

    symbols = SymbolsOutput(profile_id=profile.profile_id, out_dir=out_dir)

    # ── Step 1: locate deliverables ──────────────────────────────────
    deliverables = find_deliverables(Path(out_dir), profile)
    gate_verdict, gate_reasons = gate_deliverables(
        deliverables.make_conf is not None,
        len(deliverables.libraries()),
    )

    if gate_verdict == Verdict.REJECT:
        logger.info("%s rejected: %s", out_dir, ", ".join(gate_reasons))
        report = CheckReport(
            profile_id=profile.profile_id,
            out_dir=out_dir,
            verdict=gate_verdict.value,
            reasons=gate_reasons,
        )
        if output_dir:
            write_outputs(report, symbols, output_dir)
        return report, symbols

    # ── Step 2: parse Makefile.conf + inspect libraries ──────────────
    entries: List[LibraryEntry] = []
    verdicts: List[Verdict] = [gate_verdict]

    try:
        make_conf = MakeConf.parse(deliverables.make_conf)

        for kind, path in deliverables.libraries():
            lib = LibInspect.inspect(path, tools)
            lv, lreasons = judge_library(
                lib, make_conf, profile, shared=(kind == "shared")
            )
            if lv != Verdict.ACCEPT:
                logger.warning("%s library %s: %s", kind, path, ", ".join(lreasons))

            entries.append(
                LibraryEntry(
                    kind=kind,
                    path=str(lib.path),
                    sha256=lib.sha256,
                    symbol_count=len(lib.symbols),
                    dependencies=list(lib.dependencies),
                    features=lib.features(),
                    verdict=lv.value,
                    reasons=lreasons,
                )
            )
            symbols.libraries.append(
                LibrarySymbols(kind=kind, path=str(lib.path), symbols=list(lib.symbols))
            )
            verdicts.append(lv)

    except BuildCheckError as e:
        logger.error("Build check failed on %s: %s", out_dir, e, exc_info=True)
        report = CheckReport(
            profile_id=profile.profile_id,
            out_dir=out_dir,
            verdict=Verdict.REJECT.value,
            reasons=[BuildRejectReason.INSPECTION_FAILED.value],
            error=e.to_dict(),
        )
        symbols = SymbolsOutput(profile_id=profile.profile_id, out_dir=out_dir)
        if output_dir:
            write_outputs(report, symbols, output_dir)
        return report, symbols

    # ── Step 3: assemble outputs ─────────────────────────────────────
    # Library warnings are per-library; the build verdict is the worst one.
    verdict = combine(verdicts)
    report = CheckReport(
        profile_id=profile.profile_id,
        out_dir=out_dir,
        make_conf=_make_conf_model(make_conf),
        libraries=entries,
        verdict=verdict.value,
        reasons=sorted({r for e in entries for r in e.reasons}),
    )
    logger.info(
        "%s: %s (%d libraries, backend=%s)",
        out_dir, verdict.value, len(entries), tools.name,
    )

    if output_dir:
        write_outputs(report, symbols, output_dir)

    return report, symbols
