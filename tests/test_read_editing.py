import pytest

from umi_transfer.errors import (
    InvalidReadNumberError,
    MissingDescriptionError,
    RecordEncodingError,
)
from umi_transfer.fastq_io import FastqRecord
from umi_transfer.read_editing import umi_to_record_header, umi_to_record_seq


@pytest.fixture
def record():
    return FastqRecord(
        "@SCILIFELAB:500:NGISTLM:1:1101:2446:1031",
        "1:N:0:GCTTCAGGGT+AAGGTAGCGT",
        "TCGTTTTCCGC",
        "FFFFFFFFFFF",
    )


class TestUmiToRecordHeader:
    def test_plain(self, record):
        result = umi_to_record_header(record, "ACCAGCTA", ":")
        assert result.id == "@SCILIFELAB:500:NGISTLM:1:1101:2446:1031:ACCAGCTA"
        assert result.description == "1:N:0:GCTTCAGGGT+AAGGTAGCGT"
        assert result.sequence == "TCGTTTTCCGC"
        assert result.quality == "FFFFFFFFFFF"

    def test_with_read_number_and_delimiter(self, record):
        result = umi_to_record_header(record, "ACCAGCTA", "_", read_number=5)
        assert result.id == "@SCILIFELAB:500:NGISTLM:1:1101:2446:1031_ACCAGCTA"
        assert result.description == "5:N:0:GCTTCAGGGT+AAGGTAGCGT"
        assert result.sequence == record.sequence
        assert result.quality == record.quality

    def test_default_delimiter(self, record):
        assert umi_to_record_header(record, "ACGT").id.endswith(":ACGT")

    def test_original_record_untouched(self, record):
        umi_to_record_header(record, "ACCAGCTA", read_number=2)
        assert record.id == "@SCILIFELAB:500:NGISTLM:1:1101:2446:1031"
        assert record.description.startswith("1")

    def test_rewriting_twice_appends_second_umi(self, record):
        once = umi_to_record_header(record, "ACCAGCTA", ":")
        twice = umi_to_record_header(once, "GGGTTTAA", ":")
        assert twice.id == once.id + ":GGGTTTAA"
        assert twice.id.count(":") == once.id.count(":") + 1

    def test_missing_description(self, record):
        no_desc = FastqRecord(record.id, None, record.sequence, record.quality)
        with pytest.raises(MissingDescriptionError):
            umi_to_record_header(no_desc, "ACGT", read_number=2)
        # without a read number, a missing description is fine
        assert umi_to_record_header(no_desc, "ACGT").description is None

    def test_empty_description(self, record):
        empty = FastqRecord(record.id, "", record.sequence, record.quality)
        with pytest.raises(MissingDescriptionError):
            umi_to_record_header(empty, "ACGT", read_number=2)

    def test_non_ascii_umi(self, record):
        with pytest.raises(RecordEncodingError):
            umi_to_record_header(record, "ACG\udcff", ":")

    def test_read_number_must_be_a_digit(self, record):
        with pytest.raises(InvalidReadNumberError) as excinfo:
            umi_to_record_header(record, "ACGT", read_number=12)
        assert isinstance(excinfo.value, ValueError)
        assert excinfo.value.read_number == 12


class TestUmiToRecordSeq:
    def test_with_read_number(self, record):
        result = umi_to_record_seq(record, "ACCAGCTA", "########", read_number=5)
        assert result.id == "@SCILIFELAB:500:NGISTLM:1:1101:2446:1031"
        assert result.description == "5:N:0:GCTTCAGGGT+AAGGTAGCGT"
        assert result.sequence == "ACCAGCTATCGTTTTCCGC"
        assert result.quality == "########FFFFFFFFFFF"

    def test_without_read_number(self, record):
        result = umi_to_record_seq(record, "ACCAGCTA", "########")
        assert result.id == record.id
        assert result.description == "1:N:0:GCTTCAGGGT+AAGGTAGCGT"
        assert result.sequence == "ACCAGCTATCGTTTTCCGC"
        assert result.quality == "########FFFFFFFFFFF"
        assert len(result.sequence) == len(result.quality)

    def test_non_ascii_quality(self, record):
        with pytest.raises(RecordEncodingError) as excinfo:
            umi_to_record_seq(record, "ACCAGCTA", "####\udc80###")
        assert excinfo.value.field == "UMI quality"

    def test_missing_description(self, record):
        no_desc = FastqRecord(record.id, None, record.sequence, record.quality)
        with pytest.raises(MissingDescriptionError):
            umi_to_record_seq(no_desc, "AC", "##", read_number=2)
