import logging
import os
import stat
import sys
import time
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generator

from .compression import available_threads, open_sink, threads_per_task
from .errors import (
    InputFileNotFoundError,
    OutputFileExistsError,
    OutputPathError,
)
from .fastq_io import open_fastq, read_fastq
from .pipeline import RewriteConfig, transfer_umis
from .read_editing import UMIDestination

logger = logging.getLogger(__name__)

FASTQ_EXTENSIONS = [".fq", ".fastq"]
OUTPUT_SUFFIX = "_with_UMIs"


@dataclass
class ExternalOptions:
    """Options of `umi-transfer external`, as given on the command line."""

    r1_in: Path
    r2_in: Path
    ru_in: Path
    r1_out: Path | None = None
    r2_out: Path | None = None
    gzip: bool = False
    compression_level: int | None = None
    num_threads: int | None = None
    edit_read_number: bool = False
    delimiter: str = ":"
    destination: UMIDestination = UMIDestination.HEADER
    force: bool = False
    strict: bool = False
    progress: bool = False
    rewrite: RewriteConfig = field(init=False)

    def __post_init__(self) -> None:
        self.rewrite = RewriteConfig(
            delimiter=self.delimiter,
            edit_read_number=self.edit_read_number,
            destination=self.destination,
            strict=self.strict,
        )


@contextmanager
def timedrun(message: str) -> Generator[None, None, None]:
    """Log `message` with the elapsed time once the block is left, also on errors."""
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.info("%s after %.1f seconds", message, time.perf_counter() - start)


def is_fifo(path: Path) -> bool:
    try:
        return stat.S_ISFIFO(path.stat().st_mode)
    except OSError:
        return False


def default_output_path(input_path: Path) -> Path:
    """
    `reads/read1.fq.gz` -> `reads/read1_with_UMIs.fq`.

    The extension is rectified later according to the compression setting.
    """
    name = input_path.name
    if name.endswith(".gz"):
        name = name[: -len(".gz")]
    stem, ext = os.path.splitext(name)
    if ext.lower() not in FASTQ_EXTENSIONS:
        stem, ext = name, ".fq"
    return input_path.with_name(f"{stem}{OUTPUT_SUFFIX}{ext}")


def rectify_extension(path: Path, compress: bool) -> Path:
    """Append `.gz` to compressed outputs and strip it from plain ones. FIFOs are kept."""
    if is_fifo(path):
        return path
    if compress and path.suffix != ".gz":
        return path.with_name(path.name + ".gz")
    if not compress and path.suffix == ".gz":
        return path.with_name(path.name[: -len(".gz")])
    return path


def _confirm_overwrite(path: Path) -> bool:
    if not sys.stdin.isatty():
        logger.error("%s exists and stdin is not a terminal, cannot ask to overwrite", path)
        return False
    answer = input(f"{path} exists. Overwrite? [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def check_output_path(path: Path, force: bool) -> Path:
    """
    Make sure `path` can be written.

    Raises:
        OutputPathError: If the parent directory is missing or not writable.
        OutputFileExistsError: If the file exists and must not be overwritten.
    """
    if is_fifo(path):
        return path
    parent = path.parent
    if not parent.is_dir() or not os.access(parent, os.W_OK):
        raise OutputPathError(str(path))
    if path.exists():
        if force:
            logger.warning("%s exists and will be overwritten", path)
        elif _confirm_overwrite(path):
            logger.info("File will be overwritten.")
        else:
            raise OutputFileExistsError(str(path))
    return path


def resolve_output_paths(opts: ExternalOptions) -> tuple[Path, Path]:
    out1 = opts.r1_out or default_output_path(opts.r1_in)
    out2 = opts.r2_out or default_output_path(opts.r2_in)
    out1 = check_output_path(rectify_extension(out1, opts.gzip), opts.force)
    out2 = check_output_path(rectify_extension(out2, opts.gzip), opts.force)
    if out1 == out2:
        raise OutputPathError(f"{out1} (both reads would be written to it)")
    return out1, out2


def run_external(opts: ExternalOptions) -> int:
    """
    Transfer UMIs from `opts.ru_in` into the ids of `opts.r1_in` and `opts.r2_in`.

    Validates all paths before any output is created, splits the thread budget
    between the two outputs and runs the pipeline. Both outputs are finalized
    even if the pipeline fails.

    Returns:
        The number of processed record triples.
    """
    for path in (opts.r1_in, opts.r2_in, opts.ru_in):
        if not path.is_file() and not is_fifo(path):
            raise InputFileNotFoundError(str(path))

    out1, out2 = resolve_output_paths(opts)

    threads = 1
    if opts.gzip:
        available = opts.num_threads if opts.num_threads is not None else available_threads()
        threads = threads_per_task(available, 2)
        logger.info("Using %d compression thread(s) per output file", threads)

    with ExitStack() as stack:
        streams = {}
        for name, path in (("read1", opts.r1_in), ("read2", opts.r2_in), ("umi", opts.ru_in)):
            handle = stack.enter_context(open_fastq(str(path)))
            streams[name] = read_fastq(handle, stream=name, path=str(path))

        sink1 = stack.enter_context(
            open_sink(out1, opts.gzip, threads, opts.compression_level)
        )
        sink2 = stack.enter_context(
            open_sink(out2, opts.gzip, threads, opts.compression_level)
        )
        count = transfer_umis(
            streams["read1"],
            streams["read2"],
            streams["umi"],
            sink1,
            sink2,
            opts.rewrite,
            progress=opts.progress,
        )

    logger.info("Wrote %s and %s", out1, out2)
    return count
