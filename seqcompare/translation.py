from __future__ import annotations

from typing import Dict, FrozenSet, Optional

from Bio.Data.CodonTable import unambiguous_dna_by_id

from .params import CODON_SIZE

STANDARD_GENETIC_CODE_ID = 1
STOP_SYMBOL = "*"
UNKNOWN_SYMBOL = "X"
START_CODON = "ATG"


def _build_codon_lookup(genetic_code_id: int) -> Dict[str, str]:
    table = unambiguous_dna_by_id[genetic_code_id]
    stop_codons: FrozenSet[str] = frozenset(table.stop_codons)
    lookup = dict(table.forward_table)
    for codon in stop_codons:
        lookup[codon] = STOP_SYMBOL
    return lookup


CODON_TABLE: Dict[str, str] = _build_codon_lookup(STANDARD_GENETIC_CODE_ID)


def translate_codon(codon: str) -> str:
    return CODON_TABLE.get(codon, UNKNOWN_SYMBOL)


def translate_dna(sequence: str) -> str:
    """Translate ``sequence`` codon by codon from its first position.

    Stop codons become ``*``; any codon holding a symbol outside A/C/G/T
    becomes ``X``. A trailing partial codon is dropped.
    """

    codon_count = len(sequence) // CODON_SIZE
    return "".join(
        translate_codon(sequence[idx * CODON_SIZE : (idx + 1) * CODON_SIZE])
        for idx in range(codon_count)
    )


def find_start_codon(sequence: str) -> Optional[int]:
    index = sequence.find(START_CODON)
    return index if index >= 0 else None
