from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .comparison import align_sequences
from .inputs import load_sequence
from .models import AlignmentResult, ProteinAlignmentResult, block_identity, conserved_length
from .params import CompareParams
from .protein import compare_proteins

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PairComparison:
    name1: str
    name2: str
    seq1_length: int
    seq2_length: int
    nucleotide: AlignmentResult
    protein: ProteinAlignmentResult

    @property
    def seq1_coverage(self) -> float:
        return self.nucleotide.length / self.seq1_length if self.seq1_length else 0.0

    @property
    def seq2_coverage(self) -> float:
        return self.nucleotide.length / self.seq2_length if self.seq2_length else 0.0

    @property
    def nucleotide_block_identity(self) -> float:
        return block_identity(self.nucleotide.conserved_blocks)

    @property
    def protein_block_identity(self) -> float:
        return block_identity(self.protein.conserved_blocks)

    @property
    def has_conserved_blocks(self) -> bool:
        return bool(self.nucleotide.conserved_blocks) and bool(self.protein.conserved_blocks)

    def metrics(self) -> Dict[str, object]:
        return {
            "seq1Length": self.seq1_length,
            "seq2Length": self.seq2_length,
            "alignmentLength": self.nucleotide.length,
            "alignmentOffset1": self.nucleotide.offset1,
            "alignmentOffset2": self.nucleotide.offset2,
            "seq1Coverage": self.seq1_coverage,
            "seq2Coverage": self.seq2_coverage,
            "overallNucIdentity": self.nucleotide.identity,
            "overallAAIdentity": self.protein.identity,
            "nucleotideIdentity": self.nucleotide_block_identity,
            "aminoAcidIdentity": self.protein_block_identity,
            "nucConservedLength": conserved_length(self.nucleotide.conserved_blocks),
            "aaConservedLength": conserved_length(self.protein.conserved_blocks),
            "numNucBlocks": len(self.nucleotide.conserved_blocks),
            "numAABlocks": len(self.protein.conserved_blocks),
        }

    def to_dict(self) -> Dict[str, object]:
        return {
            "name1": self.name1,
            "name2": self.name2,
            "nucleotide": self.nucleotide.to_dict(),
            "protein": self.protein.to_dict(include_translations=True),
            "metrics": self.metrics(),
        }


@dataclass(frozen=True)
class BatchEntry:
    label: str
    path1: Path
    path2: Path


@dataclass(frozen=True)
class BatchResult:
    label: str
    comparison: Optional[PairComparison] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"label": self.label}
        if self.comparison is not None:
            payload.update(self.comparison.metrics())
            payload["name1"] = self.comparison.name1
            payload["name2"] = self.comparison.name2
        if self.error is not None:
            payload["error"] = self.error
        return payload


def compare_pair(
    seq1: str,
    seq2: str,
    params: Optional[CompareParams] = None,
    name1: str = "Sequence 1",
    name2: str = "Sequence 2",
) -> PairComparison:
    """Run the nucleotide and protein comparison for two prepared sequences."""

    if params is None:
        params = CompareParams()
    nucleotide = align_sequences(
        seq1,
        seq2,
        params.window_length,
        params.min_identity,
        params.min_block_ratio,
        params.min_overlap_fraction,
    )
    protein = compare_proteins(seq1, seq2, nucleotide, params)
    logger.info(
        "%s vs %s: %d bp overlap, %.1f%% nt / %.1f%% aa identity",
        name1,
        name2,
        nucleotide.length,
        100 * nucleotide.identity,
        100 * protein.identity,
    )
    return PairComparison(
        name1=name1,
        name2=name2,
        seq1_length=len(seq1),
        seq2_length=len(seq2),
        nucleotide=nucleotide,
        protein=protein,
    )


def compare_files(path1: Path, path2: Path, params: Optional[CompareParams] = None) -> PairComparison:
    record1 = load_sequence(path1)
    record2 = load_sequence(path2)
    return compare_pair(record1.sequence, record2.sequence, params, record1.header, record2.header)


def read_manifest(path: Path) -> List[BatchEntry]:
    """Read ``label<TAB>fasta1<TAB>fasta2`` lines; relative paths follow the manifest."""

    base_dir = path.resolve().parent
    entries: List[BatchEntry] = []
    with path.open("r", encoding="utf-8") as handle:
        for line_no, raw_line in enumerate(handle, start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            parts = [part.strip() for part in line.split("\t")]
            if len(parts) != 3 or not all(parts):
                raise ValueError(
                    f"{path.name}:{line_no}: expected 'label<TAB>fasta1<TAB>fasta2', got '{line}'"
                )
            label, first, second = parts
            entries.append(
                BatchEntry(
                    label=label,
                    path1=_resolve(base_dir, first),
                    path2=_resolve(base_dir, second),
                )
            )

    if not entries:
        raise ValueError(f"{path.name}: manifest does not list any comparisons")
    return entries


def _resolve(base_dir: Path, path_text: str) -> Path:
    candidate = Path(path_text).expanduser()
    return candidate if candidate.is_absolute() else base_dir / candidate


def _run_batch_entry(entry: BatchEntry, params: CompareParams) -> BatchResult:
    try:
        comparison = compare_files(entry.path1, entry.path2, params)
    except (OSError, ValueError) as exc:
        return BatchResult(label=entry.label, error=str(exc))
    return BatchResult(label=entry.label, comparison=comparison)


def compare_batch(
    entries: Sequence[BatchEntry],
    params: Optional[CompareParams] = None,
    workers: int = 1,
) -> List[BatchResult]:
    """Compare every manifest entry; results keep manifest order."""

    if params is None:
        params = CompareParams()

    if workers <= 1 or len(entries) <= 1:
        results = [_run_batch_entry(entry, params) for entry in entries]
    else:
        slots: List[Optional[BatchResult]] = [None] * len(entries)
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(_run_batch_entry, entry, params): idx
                for idx, entry in enumerate(entries)
            }
            for future in as_completed(futures):
                slots[futures[future]] = future.result()
        results = [result for result in slots if result is not None]

    for result in results:
        if result.error is not None:
            logger.warning("Comparison %s failed: %s", result.label, result.error)
    return results


def summarize_batch(results: Sequence[BatchResult]) -> Dict[str, object]:
    """Average conserved-block identity over pairs with blocks at both levels."""

    usable = [
        result.comparison
        for result in results
        if result.comparison is not None and result.comparison.has_conserved_blocks
    ]
    failed = sum(1 for result in results if result.error is not None)
    count = len(usable)
    if count == 0:
        average_nucleotide = 0.0
        average_protein = 0.0
    else:
        average_nucleotide = sum(item.nucleotide_block_identity for item in usable) / count
        average_protein = sum(item.protein_block_identity for item in usable) / count

    return {
        "total": len(results),
        "compared": count,
        "failed": failed,
        "averageNucleotideIdentity": average_nucleotide,
        "averageAminoAcidIdentity": average_protein,
    }
