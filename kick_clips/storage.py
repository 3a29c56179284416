"""File output: page snapshots and fetched clips."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

LAST_RESPONSE_FILE = "last_response.html"
ERROR_RESPONSE_FILE = "error_response.html"


def write_snapshot(directory: str, filename: str, text: str) -> Path:
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / filename
    out_path.write_text(text, encoding="utf-8")
    return out_path


def write_json(path: str, payload: dict[str, Any]) -> Path:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return out_path
