from __future__ import annotations

from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Tuple

import numpy as np

from .models import AlignmentResult
from .mpl_backend import headless_pyplot
from .params import CODON_SIZE, MISMATCH_SYMBOL
from .service import PairComparison

CONSERVED_COLOR = "#4daf4a"
MISMATCH_COLOR = "#e41a1c"
IDENTITY_COLOR = "#222222"
THRESHOLD_COLOR = "#888888"


def window_identity_profile(mask: str, window_size: int) -> Tuple[np.ndarray, np.ndarray]:
    """Per-window identity as step coordinates (window starts, identities)."""

    n = len(mask)
    if n == 0 or window_size <= 0:
        return np.zeros(0), np.zeros(0)

    matches = np.fromiter((char != MISMATCH_SYMBOL for char in mask), dtype=np.int64, count=n)
    cumulative = np.concatenate(([0], np.cumsum(matches)))
    starts = np.arange(0, n, window_size)
    ends = np.minimum(starts + window_size, n)
    identities = (cumulative[ends] - cumulative[starts]) / (ends - starts)
    return starts.astype(float), identities.astype(float)


def _draw_track(ax, result: AlignmentResult, window_size: int, min_identity: float, unit: str, title: str) -> None:
    length = max(result.length, 1)

    for block in result.conserved_blocks:
        ax.axvspan(block.start, block.end, color=CONSERVED_COLOR, alpha=0.25, zorder=0)

    mismatch_positions = [idx for idx, char in enumerate(result.mask) if char == MISMATCH_SYMBOL]
    if mismatch_positions:
        ax.vlines(mismatch_positions, -0.08, -0.02, color=MISMATCH_COLOR, linewidth=0.4)

    starts, identities = window_identity_profile(result.mask, window_size)
    if starts.size:
        ax.step(
            np.append(starts, float(result.length)),
            np.append(identities, identities[-1]),
            where="post",
            color=IDENTITY_COLOR,
            linewidth=1.2,
        )
    ax.axhline(min_identity, color=THRESHOLD_COLOR, linestyle="--", linewidth=0.8)

    ax.set_xlim(0, length)
    ax.set_ylim(-0.1, 1.05)
    ax.set_ylabel("identity")
    ax.set_xlabel(f"alignment position ({unit})")
    ax.set_title(
        f"{title}: {result.length} {unit}, {100 * result.identity:.1f}% identity, "
        f"{len(result.conserved_blocks)} conserved block(s)",
        fontsize=9,
    )


def plot_comparison(
    comparison: PairComparison,
    width: float,
    height: float,
    dpi: int,
    output: Path,
    window_length: int,
    min_identity: float,
) -> None:
    plt = headless_pyplot()

    fig, (nt_ax, aa_ax) = plt.subplots(2, 1, figsize=(width, height), dpi=dpi)
    try:
        _draw_track(nt_ax, comparison.nucleotide, window_length, min_identity, "bp", "Nucleotide")
        protein = comparison.protein
        _draw_track(
            aa_ax,
            protein,
            max(window_length // CODON_SIZE, 1),
            min_identity,
            "AA",
            f"Amino acid (frames +{protein.frame1}/+{protein.frame2})",
        )
        fig.suptitle(f"{comparison.name1} vs {comparison.name2}", fontsize=10)
        fig.tight_layout()
        fig.savefig(output, bbox_inches="tight")
    finally:
        plt.close(fig)


def render_bytes(
    comparison: PairComparison,
    *,
    fmt: str,
    width: float,
    height: float,
    dpi: int,
    window_length: int,
    min_identity: float,
) -> bytes:
    if fmt not in {"svg", "png"}:
        raise ValueError("Export format must be 'svg' or 'png'")
    suffix = ".svg" if fmt == "svg" else ".png"
    with NamedTemporaryFile(suffix=suffix, delete=True) as handle:
        plot_comparison(
            comparison,
            width,
            height,
            dpi,
            Path(handle.name),
            window_length,
            min_identity,
        )
        handle.seek(0)
        return handle.read()
