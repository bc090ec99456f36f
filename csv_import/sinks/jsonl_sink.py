from __future__ import annotations

import asyncio
import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from ..services.progress import ProgressTracker

"""JSON Lines commit sink.

Hands the final record set to disk, one projected record per line. Used by
the CLI as the commit handler of an ImportSession: the coroutine resolves
to True once every record is written. Write failures raise CommitSinkError,
which the session reports as a failed commit.
"""

__all__ = [
    "CommitSinkError",
    "JsonLinesCommitSink",
]

logger = logging.getLogger(__name__)

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class CommitSinkError(Exception):
    pass


class JsonLinesCommitSink:
    def __init__(self, directory: Path, *, file_name: str | None = None) -> None:
        self.directory = directory
        self.file_name = file_name
        self.last_path: Path | None = None

    def _target_path(self) -> Path:
        name = self.file_name
        if name is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            name = f"records-{stamp}.jsonl"
        return self.directory / name

    def write(self, records: list[dict[str, str]]) -> Path:
        path = self._target_path()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as f, ProgressTracker(len(records)) as progress:
                for record in records:
                    f.write(json.dumps(record, ensure_ascii=False) + "\n")
                    progress.advance()
        except OSError as e:
            raise CommitSinkError(f"cannot write {path}: {e}") from e
        self.last_path = path
        logger.info(f"records written: {path} ({len(records)} rows)")
        return path

    async def __call__(self, records: list[dict[str, str]]) -> bool:
        await asyncio.to_thread(self.write, records)
        return True
