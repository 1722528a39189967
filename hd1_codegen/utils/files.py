"""Artifact file writing."""

import os
import tempfile
from pathlib import Path


def write_atomic(path: Path, content: str) -> bool:
    """
    Write ``content`` to ``path`` through a temporary sibling file.

    The final file is replaced in one ``os.replace`` call, so readers never
    observe a half-written artifact. When the file already holds exactly
    this content it is left untouched (mtime preserved) and False is returned.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode("utf-8")

    if path.is_file() and path.read_bytes() == data:
        return False

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return True
