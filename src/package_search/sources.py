"""Document sources feeding the store from outside the process."""

from __future__ import annotations

from collections.abc import Iterator
import logging
from pathlib import Path
from typing import Any

import orjson


logger = logging.getLogger(__name__)


class JsonLinesDocumentSource:
    """Read package documents from a JSON-lines file, one object per line.

    Blank lines are ignored; lines that are not JSON objects are logged and
    skipped so one bad record never blocks a refresh. A missing file yields
    nothing.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __call__(self) -> list[dict[str, Any]]:
        return list(self.iter_documents())

    def iter_documents(self) -> Iterator[dict[str, Any]]:
        if not self.path.exists():
            logger.warning("Document source %s does not exist", self.path)
            return

        with self.path.open("rb") as handle:
            for line_number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                try:
                    record = orjson.loads(line)
                except orjson.JSONDecodeError as exc:
                    logger.warning("Skipping %s:%d: invalid JSON (%s)", self.path, line_number, exc)
                    continue
                if not isinstance(record, dict):
                    logger.warning("Skipping %s:%d: expected an object", self.path, line_number)
                    continue
                yield record
