"""
Writer — serialize checker outputs to JSON files.

Filesystem layout per build directory:
    <output_dir>/check_report.json
    <output_dir>/lib_symbols.json
"""
import json
from pathlib import Path

from build_check.io.schema import CheckReport, SymbolsOutput


def write_outputs(
    report: CheckReport,
    symbols: SymbolsOutput,
    output_dir: Path,
) -> Path:
    """
    Write check_report.json and lib_symbols.json into *output_dir*.

    Creates *output_dir* if it does not exist.
    Returns the output directory path.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    for name, model in (
        ("check_report.json", report),
        ("lib_symbols.json", symbols),
    ):
        (output_dir / name).write_text(
            json.dumps(
                model.model_dump(mode="json"),
                indent=2,
                sort_keys=True,
            )
            + "\n"
        )

    return output_dir
