"""Result records produced by the comparison engine.

All records are immutable and built fresh for every engine call. ``to_dict``
emits the serialised shape consumed by the report, batch and HTTP layers.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Sequence, Tuple

from .params import MISMATCH_SYMBOL


@dataclass(frozen=True)
class RegionComparison:
    mask: str
    matches: int
    mismatches: int
    identity: float


@dataclass(frozen=True)
class ConservedBlock:
    start: int
    end: int
    sequence: str

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def mismatches(self) -> int:
        return self.sequence.count(MISMATCH_SYMBOL)

    @property
    def identity(self) -> float:
        if self.length <= 0:
            return 0.0
        return 1.0 - self.mismatches / self.length

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "sequence": self.sequence,
            "length": self.length,
        }


@dataclass(frozen=True)
class AlignmentResult:
    mask: str
    mismatches: int
    length: int
    identity: float
    truncated: bool
    offset1: int
    offset2: int
    conserved_blocks: Tuple[ConservedBlock, ...] = field(default_factory=tuple)

    @property
    def matches(self) -> int:
        return self.length - self.mismatches

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mask": self.mask,
            "mismatches": self.mismatches,
            "length": self.length,
            "identity": self.identity,
            "truncated": self.truncated,
            "offset1": self.offset1,
            "offset2": self.offset2,
            "conservedBlocks": [block.to_dict() for block in self.conserved_blocks],
        }


@dataclass(frozen=True)
class ProteinAlignmentResult(AlignmentResult):
    frame1: int = 0
    frame2: int = 0
    aa1: str = ""
    aa2: str = ""

    def to_dict(self, include_translations: bool = False) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["frame1"] = self.frame1
        payload["frame2"] = self.frame2
        if include_translations:
            payload["aa1"] = self.aa1
            payload["aa2"] = self.aa2
        return payload


def conserved_length(blocks: Sequence[ConservedBlock]) -> int:
    return sum(block.length for block in blocks)


def block_identity(blocks: Sequence[ConservedBlock]) -> float:
    """Identity over the conserved blocks only; 0.0 when there are none."""

    total_length = conserved_length(blocks)
    if total_length <= 0:
        return 0.0
    total_mismatches = sum(block.mismatches for block in blocks)
    return 1.0 - total_mismatches / total_length
