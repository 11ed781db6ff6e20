"""Ungapped nucleotide comparison: region diff, offset search and conserved blocks."""
from __future__ import annotations

import logging
import math
from typing import List, Sequence, Tuple

import numpy as np

from .models import AlignmentResult, ConservedBlock, RegionComparison
from .params import (
    IDENTITY_TIE_TOLERANCE,
    MIN_IDENTITY,
    MIN_SEQUENCE_OVERLAP_PCT,
    MIN_SIGNIFICANT_LENGTH_GROUP,
    MISMATCH_SYMBOL,
    SEGMENT_WINDOW_LENGTH,
)

logger = logging.getLogger(__name__)


def compare_regions(seq1: str, seq2: str, length: int) -> RegionComparison:
    """Positional, case-sensitive diff of the first ``length`` symbols."""

    mask_chars: List[str] = []
    mismatches = 0
    for char1, char2 in zip(seq1[:length], seq2[:length]):
        if char1 == char2:
            mask_chars.append(char1)
        else:
            mask_chars.append(MISMATCH_SYMBOL)
            mismatches += 1

    compared = len(mask_chars)
    identity = 1.0 - mismatches / compared if compared > 0 else 0.0
    return RegionComparison(
        mask="".join(mask_chars),
        matches=compared - mismatches,
        mismatches=mismatches,
        identity=identity,
    )


def find_conserved_blocks(
    mask: str,
    window_size: int = SEGMENT_WINDOW_LENGTH,
    min_identity: float = MIN_IDENTITY,
    min_block_ratio: float = MIN_SIGNIFICANT_LENGTH_GROUP,
) -> Tuple[ConservedBlock, ...]:
    if window_size <= 0:
        raise ValueError("window_size must be positive")

    blocks: List[ConservedBlock] = []
    block_start = None
    n = len(mask)

    for window_start in range(0, n, window_size):
        window = mask[window_start : window_start + window_size]
        identity = 1.0 - window.count(MISMATCH_SYMBOL) / len(window)
        if identity >= min_identity:
            if block_start is None:
                block_start = window_start
            continue
        if block_start is not None:
            blocks.append(ConservedBlock(block_start, window_start, mask[block_start:window_start]))
            block_start = None

    if block_start is not None:
        blocks.append(ConservedBlock(block_start, n, mask[block_start:]))

    return tuple(drop_insignificant_blocks(blocks, min_block_ratio))


def drop_insignificant_blocks(
    blocks: Sequence[ConservedBlock],
    min_block_ratio: float,
) -> List[ConservedBlock]:
    """Drop blocks dwarfed by the largest one, never emptying the list."""

    if len(blocks) <= 1:
        return list(blocks)

    max_length = max(block.length for block in blocks)
    min_significant = max_length * min_block_ratio
    significant = [block for block in blocks if block.length >= min_significant]
    if not significant:
        return list(blocks)
    return significant


def _as_codes(sequence: str) -> np.ndarray:
    return np.fromiter(map(ord, sequence), dtype=np.uint32, count=len(sequence))


def align_sequences(
    seq1: str,
    seq2: str,
    window_length: int = SEGMENT_WINDOW_LENGTH,
    min_identity: float = MIN_IDENTITY,
    min_block_ratio: float = MIN_SIGNIFICANT_LENGTH_GROUP,
    min_overlap_fraction: float = MIN_SEQUENCE_OVERLAP_PCT,
) -> AlignmentResult:
    """Find the best ungapped placement of ``seq2`` against ``seq1``.

    Every relative offset whose overlap covers at least
    ``min_overlap_fraction`` of the shorter sequence is scored by identity.
    A candidate replaces the current best when its identity is higher by more
    than ``IDENTITY_TIE_TOLERANCE``, or when it is within that tolerance and
    overlaps more symbols. The scan stops at the first offset without
    mismatches. Conserved blocks are then extracted from the winning mask.
    """

    len1 = len(seq1)
    len2 = len(seq2)
    if len1 == 0 or len2 == 0:
        return AlignmentResult(
            mask="",
            mismatches=0,
            length=0,
            identity=0.0,
            truncated=True,
            offset1=0,
            offset2=0,
            conserved_blocks=(),
        )

    min_overlap = math.ceil(min(len1, len2) * min_overlap_fraction)
    codes1 = _as_codes(seq1)
    codes2 = _as_codes(seq2)

    best_offset1 = 0
    best_offset2 = 0
    best_identity = 0.0
    best_length = 0
    best_mismatches = 0

    for offset in range(-len2 + min_overlap, len1 - min_overlap + 1):
        start1 = max(0, offset)
        start2 = max(0, -offset)
        overlap_len = min(len1 - start1, len2 - start2)
        if overlap_len < min_overlap or overlap_len <= 0:
            continue

        mismatches = int(
            np.count_nonzero(
                codes1[start1 : start1 + overlap_len] != codes2[start2 : start2 + overlap_len]
            )
        )
        identity = 1.0 - mismatches / overlap_len

        is_better = identity > best_identity + IDENTITY_TIE_TOLERANCE or (
            abs(identity - best_identity) < IDENTITY_TIE_TOLERANCE and overlap_len > best_length
        )
        if is_better:
            best_identity = identity
            best_offset1 = start1
            best_offset2 = start2
            best_length = overlap_len
            best_mismatches = mismatches

        if mismatches == 0:
            break

    region = compare_regions(
        seq1[best_offset1 : best_offset1 + best_length],
        seq2[best_offset2 : best_offset2 + best_length],
        best_length,
    )
    blocks = find_conserved_blocks(region.mask, window_length, min_identity, min_block_ratio)
    truncated = len1 != len2 or best_offset1 != 0 or best_offset2 != 0

    logger.debug(
        "Best nucleotide alignment: seq1[%d], seq2[%d], %d bp, %.3f identity, %d conserved blocks",
        best_offset1,
        best_offset2,
        best_length,
        best_identity,
        len(blocks),
    )

    return AlignmentResult(
        mask=region.mask,
        mismatches=best_mismatches,
        length=best_length,
        identity=best_identity,
        truncated=truncated,
        offset1=best_offset1,
        offset2=best_offset2,
        conserved_blocks=blocks,
    )
