"""Crash-safe JSON documents on local disk."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from raiffcli.exceptions import QueueCorrupt

logger = logging.getLogger(__name__)


def read_json_document(path: Path) -> dict[str, Any]:
    """Return the JSON object stored at *path*, or ``{}`` if there is none.

    Raises:
        QueueCorrupt: If the file exists but is not a JSON object.
    """
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise QueueCorrupt(path, f"invalid JSON: {exc}") from exc
    except OSError as exc:
        raise QueueCorrupt(path, f"cannot be read: {exc}") from exc
    if not isinstance(data, dict):
        raise QueueCorrupt(path, f"expected a JSON object, found {type(data).__name__}")
    return data


def write_json_document(path: Path, data: dict[str, Any]) -> None:
    """Replace *path* with *data* atomically.

    The document is written to a temporary file in the same directory,
    flushed to disk and renamed over the target, so a reader sees either
    the old or the new document and never a partial one.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.debug("Wrote %s", path)
