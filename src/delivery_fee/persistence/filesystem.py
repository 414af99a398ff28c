"""File-based persistence for the fee calculation audit trail."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..config import settings

AUDIT_LOG_NAME = "fee_calculations.jsonl"


class FileStorage:
    """Thin wrapper around the data root for storing JSON outputs."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.output_root = self.root / "outputs"
        self.output_root.mkdir(parents=True, exist_ok=True)

    @property
    def audit_log_path(self) -> Path:
        return self.output_root / AUDIT_LOG_NAME

    def append_jsonl(self, path: Path, record: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False, default=str))
            handle.write("\n")

    def read_jsonl(self, path: Path) -> list[Any]:
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as handle:
            return [json.loads(line) for line in handle if line.strip()]
