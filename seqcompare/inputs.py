from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

_WHITESPACE_RE = re.compile(r"\s+")
_DNA_RE = re.compile(r"^[ACGT-]+$")

UNKNOWN_HEADER = "Unknown"


@dataclass(frozen=True)
class FastaRecord:
    header: str
    sequence: str


def parse_fasta(text: str) -> FastaRecord:
    """Parse the first header and every sequence line of a FASTA text.

    Text without a header line is accepted as a bare sequence.
    """

    header: Optional[str] = None
    chunks: List[str] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith(">"):
            if header is None:
                header = line[1:].strip()
            continue
        chunks.append(line)

    sequence = "".join(chunks).strip()
    if not sequence:
        raise ValueError("No sequence data found in FASTA")
    return FastaRecord(header=header or UNKNOWN_HEADER, sequence=sequence)


def read_fasta(path: Path) -> FastaRecord:
    with path.open("r", encoding="utf-8") as handle:
        text = handle.read()
    try:
        return parse_fasta(text)
    except ValueError as exc:
        raise ValueError(f"{path.name}: {exc}") from exc


def normalize_sequence(sequence: str) -> str:
    return _WHITESPACE_RE.sub("", sequence.upper())


def validate_dna(sequence: str) -> None:
    if not _DNA_RE.match(sequence):
        preview = sequence if len(sequence) <= 60 else f"{sequence[:57]}..."
        raise ValueError(
            f'Invalid DNA sequence: "{preview}". Only exact bases (A, C, G, T) and gaps (-) allowed.'
        )


def prepare_sequence(sequence: str) -> str:
    normalized = normalize_sequence(sequence)
    validate_dna(normalized)
    return normalized


def load_sequence(path: Path) -> FastaRecord:
    record = read_fasta(path)
    try:
        sequence = prepare_sequence(record.sequence)
    except ValueError as exc:
        raise ValueError(f"{path.name}: {exc}") from exc
    return FastaRecord(header=record.header, sequence=sequence)


def sequence_from_text(text: str) -> FastaRecord:
    """Accept either FASTA text or a bare sequence string."""

    record = parse_fasta(text)
    return FastaRecord(header=record.header, sequence=prepare_sequence(record.sequence))
