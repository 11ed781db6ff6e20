"""Codon phase selection for protein-level comparison.

Transcripts carry untranslated sequence ahead of the coding region, so a
nucleotide alignment offset says nothing about codon boundaries in either
sequence. The phase pair is therefore chosen by translating every one of the
nine combinations and keeping the one with the highest amino-acid identity.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from .comparison import compare_regions
from .models import AlignmentResult
from .params import AA_SEGMENT_WINDOW_LENGTH, CODON_SIZE
from .translation import find_start_codon, translate_dna

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadingFrameResult:
    frame1: int
    frame2: int
    identity: float
    aa1: str
    aa2: str
    adjusted_offset1: int
    adjusted_offset2: int


def find_best_reading_frame(
    seq1: str,
    seq2: str,
    offset1: int,
    offset2: int,
    length: int,
    aa_window_length: int = AA_SEGMENT_WINDOW_LENGTH,
) -> ReadingFrameResult:
    best_frame1 = 0
    best_frame2 = 0
    best_identity = 0.0
    best_aa1 = ""
    best_aa2 = ""

    for frame1 in range(CODON_SIZE):
        for frame2 in range(CODON_SIZE):
            adjusted_len = min(length - frame1, length - frame2)
            if adjusted_len < aa_window_length:
                continue

            start1 = offset1 + frame1
            start2 = offset2 + frame2
            aa1 = translate_dna(seq1[start1 : start1 + adjusted_len])
            aa2 = translate_dna(seq2[start2 : start2 + adjusted_len])

            identity = compare_regions(aa1, aa2, min(len(aa1), len(aa2))).identity
            if identity > best_identity:
                best_identity = identity
                best_frame1 = frame1
                best_frame2 = frame2
                best_aa1 = aa1
                best_aa2 = aa2

    return ReadingFrameResult(
        frame1=best_frame1,
        frame2=best_frame2,
        identity=best_identity,
        aa1=best_aa1,
        aa2=best_aa2,
        adjusted_offset1=offset1 + best_frame1,
        adjusted_offset2=offset2 + best_frame2,
    )


def _log_start_codon_phases(seq1: str, seq2: str, offset1: int, offset2: int) -> None:
    start1 = find_start_codon(seq1)
    start2 = find_start_codon(seq2)
    if start1 is None or start2 is None:
        logger.debug("Start codon not found in one or both sequences; trying all 9 frame combinations")
        return

    phase1 = (offset1 - start1) % CODON_SIZE
    phase2 = (offset2 - start2) % CODON_SIZE
    logger.debug(
        "Start codons at seq1[%d], seq2[%d]; alignment at seq1[%d], seq2[%d]; phases relative to CDS +%d/+%d",
        start1,
        start2,
        offset1,
        offset2,
        phase1,
        phase2,
    )
    if phase1 != phase2:
        logger.info("Nucleotide alignment breaks the reading frame; searching all 9 frame combinations")


def adjust_for_reading_frame(
    seq1: str,
    seq2: str,
    nucleotide_result: AlignmentResult,
    aa_window_length: int = AA_SEGMENT_WINDOW_LENGTH,
) -> ReadingFrameResult:
    # The start-codon phases are reported only; the exhaustive search decides.
    _log_start_codon_phases(seq1, seq2, nucleotide_result.offset1, nucleotide_result.offset2)
    best = find_best_reading_frame(
        seq1,
        seq2,
        nucleotide_result.offset1,
        nucleotide_result.offset2,
        nucleotide_result.length,
        aa_window_length,
    )
    logger.debug("Best protein alignment: seq1 +%d, seq2 +%d", best.frame1, best.frame2)
    return best
