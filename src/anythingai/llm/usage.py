"""
Token usage log.

Append-only JSONL file with one record per completed chat request, used for
cost monitoring.  Records are never rewritten or deleted.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UsageRecord:
    timestamp: str
    model: str
    inputTokens: int
    outputTokens: int
    totalTokens: int
    durationMs: int


class UsageLogger:
    """Writes UsageRecords to ``<data_dir>/logs/usage.jsonl``."""

    def __init__(self, log_path: Path):
        self.log_path = log_path

    def log(self, record: UsageRecord) -> None:
        """Append *record*. Failures are logged, never raised."""
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(asdict(record)) + "\n")
        except OSError as e:
            logger.error("Failed to write usage log: %s | %s", e, record)

    def read_recent(self, limit: int = 100) -> list[UsageRecord]:
        """Return up to *limit* most recent records, newest first."""
        if limit <= 0 or not self.log_path.exists():
            return []
        try:
            lines = self.log_path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            logger.error("Failed to read usage log: %s", e)
            return []

        records: list[UsageRecord] = []
        for line in reversed(lines):
            if not line.strip():
                continue
            try:
                records.append(UsageRecord(**json.loads(line)))
            except (json.JSONDecodeError, TypeError):
                logger.debug("Skipping malformed usage line: %r", line)
                continue
            if len(records) >= limit:
                break
        return records
