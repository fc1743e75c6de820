from dataclasses import replace
from enum import Enum

from .errors import InvalidReadNumberError, MissingDescriptionError, RecordEncodingError
from .fastq_io import FastqRecord


class UMIDestination(str, Enum):
    HEADER = "header"
    INLINE = "inline"


def _check_ascii(value: str, field: str, record: FastqRecord) -> str:
    if not value.isascii():
        raise RecordEncodingError(field, record.id)
    return value


def _edit_read_number(record: FastqRecord, read_number: int | None) -> str | None:
    """Replace the first character of the description (the read number) with `read_number`."""
    if read_number is None:
        return record.description
    if not 0 <= read_number <= 9:
        raise InvalidReadNumberError(read_number)
    if not record.description:
        raise MissingDescriptionError(record.id)
    return f"{read_number}{record.description[1:]}"


def umi_to_record_header(
    record: FastqRecord,
    umi: str,
    delimiter: str = ":",
    read_number: int | None = None,
) -> FastqRecord:
    """
    Append the UMI to the record id.

    The new id is `<id><delimiter><umi>`. If `read_number` is given, the first
    character of the description is replaced with it, e.g. "3:N:0:XYZ" becomes
    "2:N:0:XYZ" for `read_number=2`. Sequence and quality are kept.

    Raises:
        RecordEncodingError: If the UMI is not ASCII.
        MissingDescriptionError: If a read number is requested but the record
            has no description.
    """
    _check_ascii(umi, "UMI sequence", record)
    return replace(
        record,
        id=f"{record.id}{delimiter}{umi}",
        description=_edit_read_number(record, read_number),
    )


def umi_to_record_seq(
    record: FastqRecord,
    umi: str,
    umi_quality: str,
    read_number: int | None = None,
) -> FastqRecord:
    """
    Prepend the UMI and its qualities to the read sequence and qualities.

    The id is kept; the description follows the same read number rule as
    `umi_to_record_header`.
    """
    _check_ascii(umi, "UMI sequence", record)
    _check_ascii(umi_quality, "UMI quality", record)
    _check_ascii(record.sequence, "sequence", record)
    _check_ascii(record.quality, "quality", record)
    return replace(
        record,
        description=_edit_read_number(record, read_number),
        sequence=umi + record.sequence,
        quality=umi_quality + record.quality,
    )
