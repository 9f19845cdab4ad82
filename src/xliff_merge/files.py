"""
Reading and writing XLIFF files.

Files are read and written as UTF-8 without newline translation so that a
merge leaves untouched regions byte-identical (a BOM is kept as part of the
prolog, and CRLF line endings are restored when the merged text is
serialized).
"""

from pathlib import Path
from typing import Optional, Union

from .constants import ALLOWED_EXTENSIONS, MAX_FILE_SIZE

PathLike = Union[str, Path]


def validate_file_extension(file_path: PathLike) -> None:
    """
    Validate that the file has an allowed extension.

    Args:
        file_path: The file path to validate

    Raises:
        ValueError: If the file extension is not allowed
    """
    suffix = Path(file_path).suffix.lower()
    if suffix not in ALLOWED_EXTENSIONS:
        raise ValueError(
            f"Invalid file type: '{suffix}'. "
            f"This tool only supports XLIFF files ({', '.join(sorted(ALLOWED_EXTENSIONS))})"
        )


def read_xliff(file_path: PathLike, missing_ok: bool = False) -> str:
    """
    Read a document as text.

    Args:
        file_path: Path of the file
        missing_ok: Return an empty string for a missing file instead of
            raising (a missing destination is merged into from scratch)

    Raises:
        FileNotFoundError: If the file does not exist and missing_ok is False
        ValueError: If the file exceeds MAX_FILE_SIZE
    """
    path = Path(file_path)
    if not path.exists():
        if missing_ok:
            return ''
        raise FileNotFoundError(f"File not found: {path}")

    # Check file size to prevent memory exhaustion
    file_size = path.stat().st_size
    if file_size > MAX_FILE_SIZE:
        raise ValueError(
            f"File too large: {file_size / (1024*1024):.1f}MB "
            f"(max: {MAX_FILE_SIZE / (1024*1024):.0f}MB)"
        )

    with open(path, 'r', encoding='utf-8', newline='') as f:
        return f.read()


def write_xliff(file_path: PathLike, content: str, output_path: Optional[PathLike] = None) -> Path:
    """
    Write merged text to ``output_path``, or over ``file_path`` if not given.

    Returns:
        The path written to
    """
    path = Path(output_path) if output_path else Path(file_path)
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(content)
    return path
