"""Local file attachments."""

from ..core import LocalFile
from ..errors import FileReadError


def read_local_file(file: LocalFile) -> str:
    """Decode an attached file's bytes as UTF-8 text."""
    try:
        return file.data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FileReadError(file.name, str(e)) from e
