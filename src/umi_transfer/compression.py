import gzip
import logging
import os
import zlib
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import BinaryIO

from .errors import SinkError
from .fastq_io import ENCODING, ENCODING_ERRORS, FastqRecord

logger = logging.getLogger(__name__)

BLOCK_SIZE = 128 * 1024  # same block size as pigz
DEFAULT_COMPRESSION_LEVEL = 6  # zlib's default


def available_threads() -> int:
    """Number of CPUs this process may run on."""
    if hasattr(os, "sched_getaffinity"):
        return len(os.sched_getaffinity(0))
    return os.cpu_count() or 1


def threads_per_task(available: int, tasks: int) -> int:
    """
    Split `available` threads across `tasks` background tasks.

    One thread is kept for the main loop. With too few threads every task still
    gets one, even if that oversubscribes the machine.

    >>> threads_per_task(8, 3)
    2
    >>> threads_per_task(1, 3)
    1
    """
    if available <= 1 or available <= tasks:
        return 1
    return max(1, (available - 1) // tasks)


def clamp_compression_level(level: int | None) -> int:
    if level is None:
        return DEFAULT_COMPRESSION_LEVEL
    return min(max(level, 1), 9)


class BlockGzipWriter:
    """
    Write-only file object that gzips data in parallel, block by block.

    Incoming bytes are cut into blocks of `block_size`. Each block is compressed
    into a standalone gzip member on a thread pool and members are written to
    `fileobj` in the order the blocks were cut, so the result is a regular
    multi-member gzip stream. Members carry mtime 0, which makes the output
    independent of the number of threads.

    At most `2 * threads` blocks are in flight; `write` blocks until the oldest
    one is done when that limit is reached.

    Args:
        fileobj: Binary stream receiving the compressed data. Not closed by `close`.
        threads: Number of compression workers.
        compresslevel: zlib level, clamped to 1..9. None selects the default (6).
        block_size: Uncompressed size of one block in bytes.
    """

    def __init__(
        self,
        fileobj: BinaryIO,
        threads: int = 1,
        compresslevel: int | None = None,
        block_size: int = BLOCK_SIZE,
    ) -> None:
        if block_size < 1:
            raise ValueError("block_size must be positive")
        threads = max(1, threads)
        self._fileobj = fileobj
        self._level = clamp_compression_level(compresslevel)
        self._block_size = block_size
        self._buffer = bytearray()
        self._pending: deque[Future] = deque()
        self._max_pending = 2 * threads
        self._members_written = 0
        self._executor = ThreadPoolExecutor(
            max_workers=threads, thread_name_prefix="gzip-block"
        )
        self.threads = threads
        self.closed = False

    @property
    def compresslevel(self) -> int:
        return self._level

    def write(self, data: bytes) -> int:
        if self.closed:
            raise ValueError("write to closed BlockGzipWriter")
        self._buffer += data
        while len(self._buffer) >= self._block_size:
            block = bytes(self._buffer[: self._block_size])
            del self._buffer[: self._block_size]
            self._submit(block)
        return len(data)

    def _submit(self, block: bytes) -> None:
        if len(self._pending) >= self._max_pending:
            self._write_member(self._pending.popleft())
        self._pending.append(
            self._executor.submit(gzip.compress, block, self._level, mtime=0)
        )

    def _write_member(self, future: Future) -> None:
        self._fileobj.write(future.result())
        self._members_written += 1

    def close(self) -> None:
        """Compress what is left, write all outstanding members and stop the workers."""
        if self.closed:
            return
        self.closed = True
        try:
            # an empty output still needs one member to be a valid gzip file
            if self._buffer or (not self._pending and not self._members_written):
                self._submit(bytes(self._buffer))
                self._buffer.clear()
            while self._pending:
                self._write_member(self._pending.popleft())
            self._fileobj.flush()
        finally:
            for future in self._pending:
                future.cancel()
            self._pending.clear()
            self._executor.shutdown(wait=True)

    def __enter__(self) -> "BlockGzipWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class FastqSink:
    """
    Destination for FASTQ records, either plain or block-gzip compressed.

    Use `open_sink` to create one. The sink must be closed (or used as a context
    manager) so the last compressed blocks reach the file.
    """

    def __init__(
        self,
        handle: BinaryIO,
        name: str,
        compress: bool = False,
        threads: int = 1,
        compression_level: int | None = None,
        owns_handle: bool = False,
    ) -> None:
        self.name = name
        self.compressed = compress
        self.records_written = 0
        self._handle = handle
        self._owns_handle = owns_handle
        self._closed = False
        self._writer: BinaryIO | BlockGzipWriter
        if compress:
            self._writer = BlockGzipWriter(handle, threads, compression_level)
        else:
            self._writer = handle

    def write_record(self, record: FastqRecord) -> None:
        data = record.to_fastq().encode(ENCODING, ENCODING_ERRORS)
        try:
            self._writer.write(data)
        except (OSError, zlib.error) as e:
            raise SinkError(self.name, str(e)) from e
        self.records_written += 1

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            try:
                if isinstance(self._writer, BlockGzipWriter):
                    self._writer.close()
                else:
                    self._handle.flush()
            finally:
                if self._owns_handle:
                    self._handle.close()
        except (OSError, zlib.error) as e:
            raise SinkError(self.name, str(e)) from e
        logger.debug("Closed %s after %d records", self.name, self.records_written)

    def __enter__(self) -> "FastqSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
            return
        # keep the error that stopped the run, a failing flush is only logged
        try:
            self.close()
        except SinkError as e:
            logger.error("%s could not be finalized: %s", self.name, e.reason)


def open_sink(
    destination: str | os.PathLike | BinaryIO,
    compress: bool = False,
    threads: int = 1,
    compression_level: int | None = None,
) -> FastqSink:
    """
    Create a FASTQ sink writing to a path or an open binary stream.

    Args:
        destination: Output path, or a binary stream the caller keeps ownership of.
        compress: Gzip the output with `threads` parallel workers.
        threads: Thread budget for compression; ignored for plain output.
        compression_level: gzip level, clamped to 1..9. None selects the default.

    Raises:
        SinkError: If the output path cannot be opened for writing.
    """
    if isinstance(destination, (str, os.PathLike)):
        name = os.fspath(destination)
        try:
            handle = open(name, "wb")
        except OSError as e:
            raise SinkError(name, e.strerror or str(e)) from e
        owns_handle = True
    else:
        handle = destination
        name = getattr(destination, "name", "<stream>")
        owns_handle = False
    if compress:
        logger.debug(
            "Writing %s with %d compression thread(s), level %d",
            name,
            threads,
            clamp_compression_level(compression_level),
        )
    return FastqSink(
        handle,
        str(name),
        compress=compress,
        threads=threads,
        compression_level=compression_level,
        owns_handle=owns_handle,
    )
