"""Shared test fixtures for umi_transfer tests."""

import gzip
import random
from dataclasses import dataclass
from pathlib import Path

import pytest

from umi_transfer.fastq_io import FastqRecord, write_fastq

N_RECORDS = 10
READ_ID = "SCILIFELAB:500:NGISTLM:1:1101:{}:1031"


def make_records(n: int = N_RECORDS, seed: int = 0) -> dict[str, list[FastqRecord]]:
    """Build matching read1 / read2 / UMI records with deterministic content."""
    rng = random.Random(seed)

    def seq(length):
        return "".join(rng.choice("ACGTN") for _ in range(length))

    def qual(length):
        return "".join(rng.choice("#,:FF") for _ in range(length))

    records = {"read1": [], "read2": [], "umi": []}
    for i in range(n):
        read_id = READ_ID.format(2446 + i)
        records["read1"].append(
            FastqRecord(read_id, "1:N:0:GCTTCAGGGT+AAGGTAGCGT", seq(30), qual(30))
        )
        records["read2"].append(
            FastqRecord(read_id, "3:N:0:GCTTCAGGGT+AAGGTAGCGT", seq(30), qual(30))
        )
        records["umi"].append(
            FastqRecord(read_id, "2:N:0:GCTTCAGGGT+AAGGTAGCGT", seq(8), qual(8))
        )
    return records


def write_records(path: Path, records: list[FastqRecord]) -> Path:
    opener = gzip.open if path.suffix == ".gz" else open
    with opener(path, "wt") as fh:
        write_fastq(records, fh)
    return path


@dataclass
class SeqData:
    read1: Path
    read1_gz: Path
    read2: Path
    read2_gz: Path
    umi: Path
    umi_gz: Path
    umi_shuffle: Path
    umi_shuffle_gz: Path
    records: dict[str, list[FastqRecord]]


@pytest.fixture
def records() -> dict[str, list[FastqRecord]]:
    return make_records()


@pytest.fixture
def seqdata(tmp_path: Path, records) -> SeqData:
    """Write the standard test records to plain and gzipped FASTQ files."""
    shuffled = list(records["umi"])
    shuffled[2], shuffled[5] = shuffled[5], shuffled[2]
    files = {}
    for name, recs in [
        ("read1", records["read1"]),
        ("read2", records["read2"]),
        ("umi", records["umi"]),
        ("umi_shuffle", shuffled),
    ]:
        files[name] = write_records(tmp_path / f"{name}.fq", recs)
        files[f"{name}_gz"] = write_records(tmp_path / f"{name}.fq.gz", recs)
    return SeqData(records=records, **files)


class ListSink:
    """In-memory sink collecting records."""

    def __init__(self):
        self.records = []

    def write_record(self, record):
        self.records.append(record)


@pytest.fixture
def sinks() -> tuple[ListSink, ListSink]:
    return ListSink(), ListSink()
