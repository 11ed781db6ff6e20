"""Ungapped pairwise comparison of transcripts and their translations."""

from .comparison import align_sequences, compare_regions, find_conserved_blocks
from .models import AlignmentResult, ConservedBlock, ProteinAlignmentResult, RegionComparison
from .params import CompareParams
from .protein import align_proteins, compare_proteins
from .reading_frame import ReadingFrameResult, find_best_reading_frame
from .service import PairComparison, compare_batch, compare_files, compare_pair
from .translation import translate_dna

__all__ = [
    "AlignmentResult",
    "CompareParams",
    "ConservedBlock",
    "PairComparison",
    "ProteinAlignmentResult",
    "ReadingFrameResult",
    "RegionComparison",
    "align_proteins",
    "align_sequences",
    "compare_batch",
    "compare_files",
    "compare_pair",
    "compare_proteins",
    "compare_regions",
    "find_best_reading_frame",
    "find_conserved_blocks",
    "translate_dna",
]
