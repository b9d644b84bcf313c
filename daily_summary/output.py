"""Write summary results to numbered JSON and Markdown files."""
from __future__ import annotations

import json
from pathlib import Path

from daily_summary.models import SummaryResult


def next_output_paths(output_dir: Path, label: str) -> tuple[Path, Path]:
    """Return the first `<label>.<n>.json`/`.md` pair where neither file exists."""
    counter = 1
    while True:
        json_path = output_dir / f"{label}.{counter}.json"
        md_path = output_dir / f"{label}.{counter}.md"
        if not json_path.exists() and not md_path.exists():
            return json_path, md_path
        counter += 1


def write_summary_files(
    result: SummaryResult,
    output_dir: Path,
    label: str,
) -> tuple[Path, Path]:
    """Write the result as JSON and the narrative as Markdown."""
    output_dir.mkdir(parents=True, exist_ok=True)
    json_path, md_path = next_output_paths(output_dir, label)
    json_path.write_text(json.dumps(result.to_payload(), indent=2), encoding="utf-8")
    md_path.write_text(result.response.strip(), encoding="utf-8")
    return json_path, md_path
