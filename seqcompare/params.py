from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

SEGMENT_WINDOW_LENGTH = 66
MIN_IDENTITY = 0.67
MIN_SIGNIFICANT_LENGTH_GROUP = 0.15
MIN_SEQUENCE_OVERLAP_PCT = 0.5
CODON_SIZE = 3
AA_SEGMENT_WINDOW_LENGTH = SEGMENT_WINDOW_LENGTH // CODON_SIZE

MISMATCH_SYMBOL = "?"

MAX_LINE_LENGTH = 120
CODONS_PER_LINE = MAX_LINE_LENGTH // (CODON_SIZE + 1)

# Overlaps scoring within this identity band are ranked by overlap length.
# Empirical value kept for output compatibility.
IDENTITY_TIE_TOLERANCE = 0.01

DEFAULT_FIGURE_WIDTH = 12.0
DEFAULT_FIGURE_HEIGHT = 3.5
DEFAULT_FIGURE_DPI = 150


@dataclass(frozen=True)
class CompareParams:
    window_length: int = SEGMENT_WINDOW_LENGTH
    min_identity: float = MIN_IDENTITY
    min_block_ratio: float = MIN_SIGNIFICANT_LENGTH_GROUP
    min_overlap_fraction: float = MIN_SEQUENCE_OVERLAP_PCT
    width: float = DEFAULT_FIGURE_WIDTH
    height: float = DEFAULT_FIGURE_HEIGHT
    dpi: int = DEFAULT_FIGURE_DPI

    @property
    def aa_window_length(self) -> int:
        return self.window_length // CODON_SIZE

    @classmethod
    def from_cli_args(cls, args: Any) -> "CompareParams":
        return cls(
            window_length=parse_window_length(args.window_length),
            min_identity=to_float(args.min_identity, min_value=0.0, max_value=1.0, name="min_identity"),
            min_block_ratio=to_float(args.min_block_ratio, min_value=0.0, max_value=1.0, name="min_block_ratio"),
            min_overlap_fraction=to_float(
                args.min_overlap_fraction, min_value=0.0, max_value=1.0, name="min_overlap_fraction"
            ),
            width=to_float(getattr(args, "width", DEFAULT_FIGURE_WIDTH), positive=True, name="width"),
            height=to_float(getattr(args, "height", DEFAULT_FIGURE_HEIGHT), positive=True, name="height"),
            dpi=to_int(getattr(args, "dpi", DEFAULT_FIGURE_DPI), positive=True, name="dpi"),
        )

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> "CompareParams":
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ValueError("params must be an object")

        def require(name: str, default: Any) -> Any:
            return payload.get(name, default)

        return cls(
            window_length=parse_window_length(require("window_length", SEGMENT_WINDOW_LENGTH)),
            min_identity=to_float(require("min_identity", MIN_IDENTITY), min_value=0.0, max_value=1.0, name="min_identity"),
            min_block_ratio=to_float(
                require("min_block_ratio", MIN_SIGNIFICANT_LENGTH_GROUP), min_value=0.0, max_value=1.0, name="min_block_ratio"
            ),
            min_overlap_fraction=to_float(
                require("min_overlap_fraction", MIN_SEQUENCE_OVERLAP_PCT),
                min_value=0.0,
                max_value=1.0,
                name="min_overlap_fraction",
            ),
            width=to_float(require("width", DEFAULT_FIGURE_WIDTH), positive=True, name="width"),
            height=to_float(require("height", DEFAULT_FIGURE_HEIGHT), positive=True, name="height"),
            dpi=to_int(require("dpi", DEFAULT_FIGURE_DPI), positive=True, name="dpi"),
        )


def to_float(
    value: Any,
    *,
    name: str,
    positive: bool = False,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a floating-point number") from exc
    if positive and parsed <= 0:
        raise ValueError(f"{name} must be positive")
    if min_value is not None and parsed < min_value:
        raise ValueError(f"{name} must be >= {min_value}")
    if max_value is not None and parsed > max_value:
        raise ValueError(f"{name} must be <= {max_value}")
    return parsed


def to_int(
    value: Any,
    *,
    name: str,
    positive: bool = False,
    min_value: Optional[int] = None,
) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer")
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if positive and parsed <= 0:
        raise ValueError(f"{name} must be positive")
    if min_value is not None and parsed < min_value:
        raise ValueError(f"{name} must be >= {min_value}")
    return parsed


def parse_window_length(value: Any) -> int:
    parsed = to_int(value, positive=True, name="window_length")
    if parsed < CODON_SIZE:
        raise ValueError(f"window_length must be >= {CODON_SIZE}")
    return parsed
