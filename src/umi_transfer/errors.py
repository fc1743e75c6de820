class UmiTransferError(Exception):
    """Base class for every error raised while transferring UMIs."""


class RecordDecodeError(UmiTransferError):
    """A FASTQ record in one of the input streams could not be parsed."""

    def __init__(self, stream: str, path: str | None, reason: str) -> None:
        self.stream = stream
        self.path = path
        self.reason = reason
        where = f" ({path})" if path else ""
        super().__init__(f"Failed to read records from {stream}{where}: {reason}")


class ReadIDMismatchError(UmiTransferError):
    def __init__(self, stream: str, read_id: str, umi_id: str) -> None:
        self.stream = stream
        self.read_id = read_id
        self.umi_id = umi_id
        super().__init__(
            "IDs of UMI and read records mismatch. Please provide sorted files as input! "
            f"({stream} id {read_id!r} vs UMI id {umi_id!r})"
        )


class RecordCountMismatchError(UmiTransferError):
    """Raised in strict mode when the input streams have different lengths."""


class RecordEncodingError(UmiTransferError):
    def __init__(self, field: str, record_id: str) -> None:
        self.field = field
        self.record_id = record_id
        super().__init__(f"The {field} of record {record_id!r} is not valid ASCII text")


class MissingDescriptionError(UmiTransferError):
    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(
            f"Record {record_id!r} has no description, so its read number cannot be edited"
        )


class SinkError(UmiTransferError):
    """Writing to an output FASTQ failed (disk full, broken pipe, ...)."""

    def __init__(self, destination: str, reason: str) -> None:
        self.destination = destination
        self.reason = reason
        super().__init__(f"Failed to write to {destination}: {reason}")


class InputFileNotFoundError(UmiTransferError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Input file {path} does not exist or is not readable!")


class OutputPathError(UmiTransferError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Output file {path} is missing or not writeable!")


class OutputFileExistsError(UmiTransferError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Output file {path} exists, but must not be overwritten.")


class InvalidReadNumberError(UmiTransferError, ValueError):
    def __init__(self, read_number: int) -> None:
        self.read_number = read_number
        super().__init__(f"Read number must be a single digit, got {read_number}")
