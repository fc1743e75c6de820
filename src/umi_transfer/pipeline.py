import logging
from dataclasses import dataclass
from itertools import zip_longest
from typing import Iterable, Protocol

from tqdm.auto import tqdm

from .errors import ReadIDMismatchError, RecordCountMismatchError
from .fastq_io import FastqRecord
from .read_editing import UMIDestination, umi_to_record_header, umi_to_record_seq

logger = logging.getLogger(__name__)

# Read number written into read 2's description when read numbers are corrected
READ2_NUMBER = 2


class RecordSink(Protocol):
    def write_record(self, record: FastqRecord) -> None: ...


@dataclass(frozen=True)
class RewriteConfig:
    """
    How UMIs are merged into the reads.

    Attributes:
        delimiter: Separator between read id and UMI in header mode.
        edit_read_number: Set the read number in read 2's description to 2.
        destination: Put the UMI into the header or in front of the sequence.
        strict: Fail if the inputs have different numbers of records instead of
            stopping at the end of the shortest one.
    """

    delimiter: str = ":"
    edit_read_number: bool = False
    destination: UMIDestination = UMIDestination.HEADER
    strict: bool = False


def _rewrite(
    record: FastqRecord,
    umi: FastqRecord,
    config: RewriteConfig,
    read_number: int | None,
) -> FastqRecord:
    if config.destination is UMIDestination.INLINE:
        return umi_to_record_seq(record, umi.sequence, umi.quality, read_number)
    return umi_to_record_header(record, umi.sequence, config.delimiter, read_number)


def transfer_umis(
    read1: Iterable[FastqRecord],
    read2: Iterable[FastqRecord],
    umis: Iterable[FastqRecord],
    sink1: RecordSink,
    sink2: RecordSink,
    config: RewriteConfig = RewriteConfig(),
    *,
    progress: bool = False,
) -> int:
    """
    Merge the UMI of each record triple into read 1 and read 2 and write them out.

    The three inputs are consumed in lock-step. Processing stops at the end of
    the shortest input (or fails, with `config.strict`). Read 1's read number is
    never changed; read 2's is set to 2 if `config.edit_read_number`.

    Args:
        read1: Records of the first read file.
        read2: Records of the second read file.
        umis: Records of the UMI file, in the same order as the reads.
        sink1: Receives rewritten read 1 records.
        sink2: Receives rewritten read 2 records.
        config: Rewrite options.
        progress: Show a progress counter on stderr.

    Returns:
        The number of record triples processed.

    Raises:
        ReadIDMismatchError: If a read id differs from the UMI id at the same
            position. Nothing from that position is written.
        RecordCountMismatchError: In strict mode, if the inputs differ in length.
        RecordDecodeError, RecordEncodingError, MissingDescriptionError, SinkError:
            Propagated from decoding, editing and writing.
    """
    read2_number = READ2_NUMBER if config.edit_read_number else None
    if config.strict:
        triples = zip_longest(read1, read2, umis)
    else:
        triples = zip(read1, read2, umis)

    logger.info("Transferring UMIs to records...")
    count = 0
    for r1, r2, umi in tqdm(
        triples, disable=not progress, unit=" records", desc="Transferring UMIs"
    ):
        if r1 is None or r2 is None or umi is None:
            raise RecordCountMismatchError(
                f"Input files have different numbers of records "
                f"(all three had {count}, then at least one ran out)"
            )
        if r1.id != umi.id:
            raise ReadIDMismatchError("read1", r1.id, umi.id)
        if r2.id != umi.id:
            raise ReadIDMismatchError("read2", r2.id, umi.id)

        new_r1 = _rewrite(r1, umi, config, None)
        new_r2 = _rewrite(r2, umi, config, read2_number)

        sink1.write_record(new_r1)
        sink2.write_record(new_r2)
        count += 1

    logger.info("Processed %d records", count)
    return count
