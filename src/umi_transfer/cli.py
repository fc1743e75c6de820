import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated, Literal

from cyclopts import App, Parameter

from .errors import UmiTransferError
from .external import ExternalOptions, run_external, timedrun
from .read_editing import UMIDestination

logger = logging.getLogger("umi_transfer")


def _version() -> str:
    try:
        return version("umi-transfer")
    except PackageNotFoundError:
        return "0+local"


app = App(
    name="umi-transfer",
    version=_version(),
    help=(
        "A tool for transferring Unique Molecular Identifiers (UMIs).\n\n"
        "Most tools capable of using UMIs to increase the accuracy of quantitative "
        "DNA sequencing experiments expect the respective UMI sequence to be embedded "
        "into the reads' IDs. Use `umi-transfer external` to retrieve UMIs from a "
        "separate FastQ file and embed them to the IDs of your paired FastQ files."
    ),
)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    logger.handlers[0].setLevel(level)  # Need both logger level and handler level to work
    logger.propagate = False


@app.command(help="Integrate UMIs from a separate FastQ file.")
def external(
    *,
    r1_in: Annotated[
        Path, Parameter(name="--in", help="Input FastQ file with read 1.")
    ],
    r2_in: Annotated[
        Path, Parameter(name="--in2", help="Input FastQ file with read 2.")
    ],
    ru_in: Annotated[
        Path, Parameter(name="--umi", help="Input FastQ file with the UMIs.")
    ],
    r1_out: Annotated[
        Path | None,
        Parameter(
            name="--out",
            help="Output FastQ for read 1. Default: <in>_with_UMIs.fq next to the input.",
        ),
    ] = None,
    r2_out: Annotated[
        Path | None,
        Parameter(
            name="--out2",
            help="Output FastQ for read 2. Default: <in2>_with_UMIs.fq next to the input.",
        ),
    ] = None,
    gzip: Annotated[
        bool,
        Parameter(
            name=["--gzip", "-z"],
            help="Compress the output files. A .gz suffix is added when missing.",
        ),
    ] = False,
    compression_level: Annotated[
        int | None,
        Parameter(
            name="--compression-level",
            help="gzip compression level, clamped to 1-9 (default 6).",
        ),
    ] = None,
    threads: Annotated[
        int | None,
        Parameter(
            name=["--threads", "-t"],
            help="Total number of threads. Default: all CPUs available to the process.",
        ),
    ] = None,
    correct_numbers: Annotated[
        bool,
        Parameter(
            name=["--correct-numbers", "-c"],
            help="Set the read number in the description of read 2 to 2.",
        ),
    ] = False,
    delim: Annotated[
        str, Parameter(name="--delim", help="Delimiter between read ID and UMI.")
    ] = ":",
    umi_destination: Annotated[
        Literal["header", "inline"],
        Parameter(
            name="--umi-destination",
            help="Embed the UMI into the read header, or prepend it to the sequence.",
        ),
    ] = "header",
    force: Annotated[
        bool,
        Parameter(name=["--force", "-f"], help="Overwrite existing output files."),
    ] = False,
    strict: Annotated[
        bool,
        Parameter(
            name="--strict",
            help="Fail if the input files contain different numbers of records.",
        ),
    ] = False,
    progress: Annotated[
        bool, Parameter(name="--progress", help="Show a progress counter.")
    ] = False,
    verbose: Annotated[
        bool, Parameter(name=["--verbose", "-v"], help="Log debug messages.")
    ] = False,
) -> int:
    """
    Embed the UMI of each record in --umi into the read IDs of --in and --in2.

    All three files must list the same reads in the same order.
    """
    setup_logging(verbose)
    opts = ExternalOptions(
        r1_in=r1_in,
        r2_in=r2_in,
        ru_in=ru_in,
        r1_out=r1_out,
        r2_out=r2_out,
        gzip=gzip,
        compression_level=compression_level,
        num_threads=threads,
        edit_read_number=correct_numbers,
        delimiter=delim,
        destination=UMIDestination(umi_destination),
        force=force,
        strict=strict,
        progress=progress,
    )
    try:
        with timedrun("umi-transfer finished"):
            run_external(opts)
    except (UmiTransferError, OSError) as e:
        logger.error("Failed to include the UMIs: %s", e)
        return 1
    return 0


def main() -> None:
    sys.exit(app())


if __name__ == "__main__":
    main()
