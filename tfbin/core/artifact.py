"""Readable provider artifact handle."""

from typing import BinaryIO, NamedTuple


class Artifact(NamedTuple):
    """
    An open provider binary and its filename.

    Unpacks as ``(stream, filename)``. The caller owns ``stream`` and must
    close it; using the artifact as a context manager does that.

    Example:
        >>> with cache.reader(meta) as artifact:
        ...     data = artifact.stream.read()
    """

    stream: BinaryIO
    filename: str

    def read(self) -> bytes:
        return self.stream.read()

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> "Artifact":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
