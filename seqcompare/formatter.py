from __future__ import annotations

from typing import List, Union

from .models import AlignmentResult, ProteinAlignmentResult, block_identity
from .params import CODON_SIZE, CODONS_PER_LINE, MAX_LINE_LENGTH, MISMATCH_SYMBOL

REVERSE_VIDEO = "\x1b[7m"
RESET = "\x1b[0m"


def format_sequence(
    sequence: str,
    group_size: int = CODON_SIZE,
    groups_per_line: int = CODONS_PER_LINE,
    highlight: bool = True,
) -> str:
    """Split into space separated groups, wrapping every ``groups_per_line``."""

    groups: List[str] = []
    for start in range(0, len(sequence), group_size):
        group = sequence[start : start + group_size]
        if highlight:
            group = group.replace(MISMATCH_SYMBOL, f"{REVERSE_VIDEO}{MISMATCH_SYMBOL}{RESET}")
        groups.append(group)

    lines = [
        " ".join(groups[start : start + groups_per_line])
        for start in range(0, len(groups), groups_per_line)
    ]
    return "\n".join(lines)


def format_comparison(
    label: str,
    result: Union[AlignmentResult, ProteinAlignmentResult],
    highlight: bool = True,
) -> str:
    lines = [f"=== {label} comparison ==="]

    is_protein = isinstance(result, ProteinAlignmentResult)
    if is_protein:
        lines.append(f"Reading frames: seq1 +{result.frame1}, seq2 +{result.frame2}")

    unit = "AA" if is_protein else "bp"
    if result.conserved_blocks:
        for idx, block in enumerate(result.conserved_blocks, start=1):
            lines.append("")
            lines.append(
                f"Block {idx} [{block.start}:{block.end}] - {block.length} {unit}, "
                f"{100 * block.identity:.1f}% identity:"
            )
            lines.append(format_sequence(block.sequence, highlight=highlight))
    else:
        lines.append("")
        lines.append("No well-conserved blocks found (sequences may be too divergent).")
        lines.append("")
        lines.append(f"Full alignment mask (matches shown, {MISMATCH_SYMBOL} for mismatches):")
        lines.append(format_sequence(result.mask, highlight=highlight))

    return "\n".join(lines)


def format_summary(
    label: str,
    nucleotide: AlignmentResult,
    protein: ProteinAlignmentResult,
) -> str:
    nucleotide_identity = 100 * block_identity(nucleotide.conserved_blocks)
    protein_identity = 100 * block_identity(protein.conserved_blocks)
    return f"{label}: {nucleotide_identity:.1f}% nt, {protein_identity:.1f}% aa (conserved blocks)"


def rule(char: str = "=", width: int = MAX_LINE_LENGTH) -> str:
    return char * width
