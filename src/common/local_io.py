"""Local file I/O utilities."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def save_jsonl_local(
    records: list[dict[str, Any]],
    prefix: str,
    timestamp: datetime | None = None,
    output_dir: str = "output",
) -> Path:
    """Save already-serialized records to a local JSONL file.

    Args:
        records: List of dictionaries to save.
        prefix: Filename prefix (e.g., "process_runs").
        timestamp: Timestamp to include in filename (default: now, UTC).
        output_dir: Directory to save to (default: "output").

    Returns:
        Path to the created file.
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    filename = f"{prefix}_{timestamp.strftime('%Y_%m_%d_%H_%M')}.jsonl"
    filepath = output_path / filename

    with filepath.open("w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record, default=str, ensure_ascii=False) + "\n")

    logger.info("Saved %d records to %s", len(records), filepath)
    return filepath
