"""
Single-entry zip decoding for provider archives.

A provider archive must carry exactly one file: the plugin binary.
Directory entries are ignored; any other count is ambiguous.
"""

import io
import logging
import zipfile
from pathlib import PurePosixPath

from tfbin.core.artifact import Artifact
from tfbin.core.exceptions import (
    AmbiguousArtifactError,
    ArchiveError,
    InsecureArchiveError,
)

logger = logging.getLogger(__name__)


def _entry_filename(member: str) -> str:
    """
    Return the plain filename for an archive member.

    Raises:
        InsecureArchiveError: If the member path is absolute or traverses upward
    """
    path = PurePosixPath(member.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts or not path.name:
        raise InsecureArchiveError(
            f"Archive member '{member}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )
    return path.name


def open_single_entry(data: bytes, source: str = "archive") -> Artifact:
    """
    Open the only file inside a zip archive.

    Args:
        data: Raw zip bytes
        source: Where the bytes came from, for error messages

    Returns:
        Artifact with an in-memory stream of the entry and its filename

    Raises:
        ArchiveError: If the bytes are not a readable zip
        AmbiguousArtifactError: If the archive holds zero or several files
        InsecureArchiveError: If the entry name is not a safe filename
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            members = [info for info in zf.infolist() if not info.is_dir()]
            if len(members) != 1:
                names = ", ".join(info.filename for info in members) or "<none>"
                raise AmbiguousArtifactError(
                    f"Expected exactly one file in {source}, "
                    f"found {len(members)}: {names}"
                )
            info = members[0]
            filename = _entry_filename(info.filename)
            content = zf.read(info)
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"Failed to read zip from {source}: {e}") from e

    logger.debug(f"Unpacked {filename} ({len(content)} bytes) from {source}")
    return Artifact(io.BytesIO(content), filename)
