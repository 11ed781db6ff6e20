from __future__ import annotations

from typing import Optional

from .comparison import compare_regions, find_conserved_blocks
from .models import AlignmentResult, ProteinAlignmentResult
from .params import (
    AA_SEGMENT_WINDOW_LENGTH,
    CODON_SIZE,
    MIN_IDENTITY,
    MIN_SIGNIFICANT_LENGTH_GROUP,
    CompareParams,
)
from .reading_frame import ReadingFrameResult, adjust_for_reading_frame, find_best_reading_frame


def _protein_result(
    frame: ReadingFrameResult,
    aa_window_length: int,
    min_identity: float,
    min_block_ratio: float,
) -> ProteinAlignmentResult:
    length = min(len(frame.aa1), len(frame.aa2))
    region = compare_regions(frame.aa1, frame.aa2, length)
    blocks = find_conserved_blocks(region.mask, aa_window_length, min_identity, min_block_ratio)
    return ProteinAlignmentResult(
        mask=region.mask,
        mismatches=region.mismatches,
        length=length,
        identity=region.identity,
        truncated=len(frame.aa1) != len(frame.aa2),
        offset1=frame.adjusted_offset1 // CODON_SIZE,
        offset2=frame.adjusted_offset2 // CODON_SIZE,
        conserved_blocks=blocks,
        frame1=frame.frame1,
        frame2=frame.frame2,
        aa1=frame.aa1,
        aa2=frame.aa2,
    )


def align_proteins(
    seq1: str,
    seq2: str,
    offset1: int,
    offset2: int,
    length: int,
    aa_window_length: int = AA_SEGMENT_WINDOW_LENGTH,
    min_identity: float = MIN_IDENTITY,
    min_block_ratio: float = MIN_SIGNIFICANT_LENGTH_GROUP,
) -> ProteinAlignmentResult:
    """Re-align a nucleotide overlap at the amino-acid level.

    Offsets and length describe the nucleotide alignment. The best codon
    phase pair is chosen first; offsets in the result are in amino-acid
    units.
    """

    frame = find_best_reading_frame(seq1, seq2, offset1, offset2, length, aa_window_length)
    return _protein_result(frame, aa_window_length, min_identity, min_block_ratio)


def compare_proteins(
    seq1: str,
    seq2: str,
    nucleotide_result: AlignmentResult,
    params: Optional[CompareParams] = None,
) -> ProteinAlignmentResult:
    if params is None:
        params = CompareParams()
    frame = adjust_for_reading_frame(seq1, seq2, nucleotide_result, params.aa_window_length)
    return _protein_result(frame, params.aa_window_length, params.min_identity, params.min_block_ratio)
