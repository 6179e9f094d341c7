"""
Filesystem boundary: read a config file into a File tree and write it back.

Line endings and the presence of a final newline are detected on read and
reproduced on write.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .config import get_config
from .nodes.file import File
from .parser import load

logger = logging.getLogger(__name__)


def loads(text: str, filename: str = "") -> File:
    """Parse file content held in memory."""
    newline = "\r\n" if "\r\n" in text else "\n"
    final_newline = text.endswith(("\n", "\r"))
    body = text[: -len(newline)] if text.endswith(newline) else text

    file = load(body.split(newline), filename)
    file.newline = newline
    file.final_newline = final_newline
    return file


def dumps(file: File) -> str:
    text = file.newline.join(file.output())
    if file.final_newline:
        text += file.newline
    return text


def read(path: str | os.PathLike) -> File:
    """Load a config file. Filesystem errors propagate."""
    location = Path(path)
    with open(location, encoding=get_config().io.encoding, newline="") as f:
        text = f.read()

    file = loads(text, location.name)
    file.location = location
    logger.info("Read %s (%d lines)", location, len(text.splitlines()))
    return file


def write(file: File, path: str | os.PathLike | None = None) -> Path:
    """Write the rendered file to `path`, or back to where it was read from."""
    if path is not None:
        location = Path(path)
    elif file.location is not None:
        location = file.location
    else:
        raise ValueError(f"No location to write '{file.filename}' to")

    text = dumps(file)
    with open(location, "w", encoding=get_config().io.encoding, newline="") as f:
        f.write(text)

    file.location = location
    logger.info("Wrote %s", location)
    return location
