from __future__ import annotations

from typing import TYPE_CHECKING

from git_ingest.config import BINARY_PLACEHOLDER
from git_ingest.exceptions import FileRenderError
from git_ingest.logging import logger

if TYPE_CHECKING:
    from pathlib import Path
    from typing import TextIO

BINARY_SNIFF_BYTES = 8000


def format_block(relative_path: str, content: str) -> str:
    """Format one output block: header line, content, blank line.

    Args:
        relative_path (str): the repository-relative path shown in the header
        content (str): the file content (or the binary placeholder), written verbatim

    Returns:
        str: the block text
    """
    return f"=== {relative_path} ===\n{content}\n\n"


def decode_text(data: bytes) -> str | None:
    """Decode file bytes as UTF-8 text.

    Content holding a NUL byte near the start, or that is not valid UTF-8, is
    treated as binary. The NUL check is deliberately stricter than a plain
    UTF-8 decode: valid UTF-8 with an early NUL also gets the placeholder.

    Args:
        data (bytes): the raw file content

    Returns:
        str | None: the decoded text, or None for binary content
    """
    if b"\0" in data[:BINARY_SNIFF_BYTES]:
        return None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def render_file(full_path: Path, relative_path: str, sink: TextIO, max_size: int) -> bool:
    """Write the block of one selected file to the sink.

    Files larger than `max_size` are skipped without error, binary files are
    rendered as the placeholder text.

    Args:
        full_path (Path): location of the file on disk
        relative_path (str): repository-relative path used in the header
        sink (TextIO): the output stream
        max_size (int): size ceiling in bytes

    Raises:
        FileRenderError: if the file cannot be stat'ed or read

    Returns:
        bool: True if a block was written, False if the file was too large
    """
    try:
        size = full_path.stat().st_size
        if size > max_size:
            logger.debug("file_too_large", path=relative_path, size=size, max_size=max_size)
            return False
        data = full_path.read_bytes()
    except OSError as e:
        raise FileRenderError(path=full_path, reason=e.strerror or str(e)) from e

    content = decode_text(data)
    if content is None:
        logger.debug("binary_file", path=relative_path, size=size)
        content = BINARY_PLACEHOLDER
    sink.write(format_block(relative_path, content))
    return True
