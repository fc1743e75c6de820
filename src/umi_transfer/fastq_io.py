import gzip
import io
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, Iterator, TextIO

from Bio.SeqIO.QualityIO import FastqGeneralIterator

from .errors import RecordDecodeError

GZIP_MAGIC = b"\x1f\x8b"
# Non-text bytes survive decoding and are rejected later by the read editing step.
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


@dataclass(frozen=True)
class FastqRecord:
    """
    One FASTQ entry.

    `id` is the title line up to the first space (without the
    leading '@'), `description` is the rest of the title line or None.
    """

    id: str
    description: str | None
    sequence: str
    quality: str

    @classmethod
    def from_title(cls, title: str, sequence: str, quality: str) -> "FastqRecord":
        id_, *rest = title.split(" ", 1)
        return cls(id_, rest[0] if rest else None, sequence, quality)

    @property
    def title(self) -> str:
        if self.description is None:
            return self.id
        return f"{self.id} {self.description}"

    def to_fastq(self) -> str:
        return f"@{self.title}\n{self.sequence}\n+\n{self.quality}\n"


def is_gzipped(handle: io.BufferedReader) -> bool:
    """Check the magic bytes without consuming them."""
    return handle.peek(2)[:2] == GZIP_MAGIC


@contextmanager
def open_fastq(path: str) -> Iterator[TextIO]:
    """
    Open a plain or gzipped FASTQ file for reading as text.

    The format is detected from the magic bytes, not the file name, so a
    gzipped file without a `.gz` suffix is still read correctly. The path is
    opened only once, which makes named pipes work as input.
    """
    with open(path, "rb") as raw:
        binary = gzip.GzipFile(fileobj=raw, mode="rb") if is_gzipped(raw) else raw
        with io.TextIOWrapper(binary, encoding=ENCODING, errors=ENCODING_ERRORS) as handle:
            yield handle


def read_fastq(
    handle: TextIO, stream: str = "reads", path: str | None = None
) -> Generator[FastqRecord, None, None]:
    """
    Lazily decode FASTQ records from an open text handle.

    Args:
        handle: Text stream positioned at the start of a FASTQ file.
        stream: Name of the stream, used in error messages ("read1", "umi", ...).
        path: Optional file path, used in error messages.

    Raises:
        RecordDecodeError: If a record is malformed or the compressed stream is corrupt.
    """
    try:
        for title, seq, qual in FastqGeneralIterator(handle):
            yield FastqRecord.from_title(title, seq, qual)
    except (ValueError, EOFError, OSError) as e:
        # gzip.BadGzipFile is an OSError, a truncated member raises EOFError
        raise RecordDecodeError(stream, path, str(e) or type(e).__name__) from e


def write_fastq(records, handle: TextIO) -> int:
    count = 0
    for record in records:
        handle.write(record.to_fastq())
        count += 1
    return count
