#!/usr/bin/env python3
"""Command line front end for ungapped transcript comparison.

``compare`` aligns two FASTA files at the nucleotide level, re-aligns the
overlap at the amino-acid level and prints the conserved blocks of both.
``batch`` runs every pair listed in a tab separated manifest and reports the
average conserved-block identity.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from seqcompare.formatter import format_comparison, format_summary, rule
from seqcompare.params import (
    DEFAULT_FIGURE_DPI,
    DEFAULT_FIGURE_HEIGHT,
    DEFAULT_FIGURE_WIDTH,
    MIN_IDENTITY,
    MIN_SEQUENCE_OVERLAP_PCT,
    MIN_SIGNIFICANT_LENGTH_GROUP,
    SEGMENT_WINDOW_LENGTH,
    CompareParams,
)
from seqcompare.render import plot_comparison
from seqcompare.service import compare_batch, compare_files, read_manifest, summarize_batch


def _add_engine_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--window-length",
        type=int,
        default=SEGMENT_WINDOW_LENGTH,
        help="Nucleotide window used to detect conserved blocks (amino-acid window is a third of it)",
    )
    parser.add_argument(
        "--min-identity",
        type=float,
        default=MIN_IDENTITY,
        help="Minimum window identity for a window to join a conserved block",
    )
    parser.add_argument(
        "--min-block-ratio",
        type=float,
        default=MIN_SIGNIFICANT_LENGTH_GROUP,
        help="Blocks shorter than this fraction of the largest block are dropped",
    )
    parser.add_argument(
        "--min-overlap-fraction",
        type=float,
        default=MIN_SEQUENCE_OVERLAP_PCT,
        help="Minimum overlap, as a fraction of the shorter sequence, for a candidate offset",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log engine diagnostics")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log errors")


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compare transcripts without gaps and report their conserved blocks."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    compare = subparsers.add_parser("compare", help="Compare two FASTA files")
    compare.add_argument("fasta1", type=Path, help="First FASTA file")
    compare.add_argument("fasta2", type=Path, help="Second FASTA file")
    compare.add_argument("--json", type=Path, default=None, help="Write the comparison record as JSON")
    compare.add_argument("--figure", type=Path, default=None, help="Write an identity figure (.svg, .png, ...)")
    compare.add_argument("--width", type=float, default=DEFAULT_FIGURE_WIDTH, help="Figure width (inches)")
    compare.add_argument("--height", type=float, default=DEFAULT_FIGURE_HEIGHT, help="Figure height (inches)")
    compare.add_argument("--dpi", type=int, default=DEFAULT_FIGURE_DPI, help="Figure resolution")
    compare.add_argument("--no-color", action="store_true", help="Do not highlight mismatches")
    _add_engine_options(compare)

    batch = subparsers.add_parser("batch", help="Compare every pair listed in a manifest")
    batch.add_argument("manifest", type=Path, help="Tab separated 'label, fasta1, fasta2' lines")
    batch.add_argument("--workers", type=int, default=1, help="Worker processes")
    batch.add_argument("--json", type=Path, default=None, help="Write per-pair records and the summary as JSON")
    _add_engine_options(batch)

    return parser.parse_args(argv)


def configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _write_json(path: Path, payload: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)
        handle.write("\n")


def run_compare(args: argparse.Namespace, params: CompareParams) -> int:
    comparison = compare_files(args.fasta1, args.fasta2, params)
    highlight = not args.no_color

    print(rule())
    print(f"Sequence 1: {comparison.name1}")
    print(f"Sequence 2: {comparison.name2}")
    print(rule())
    print()
    print(format_comparison("Nucleotide", comparison.nucleotide, highlight=highlight))
    print()
    print(format_comparison("Amino acid", comparison.protein, highlight=highlight))
    print()
    print(rule())
    print(format_summary(f"{comparison.name1} vs {comparison.name2}", comparison.nucleotide, comparison.protein))
    print(rule())

    if args.json is not None:
        _write_json(args.json, comparison.to_dict())
    if args.figure is not None:
        args.figure.parent.mkdir(parents=True, exist_ok=True)
        plot_comparison(
            comparison,
            params.width,
            params.height,
            params.dpi,
            args.figure,
            params.window_length,
            params.min_identity,
        )
    return 0


def run_batch(args: argparse.Namespace, params: CompareParams) -> int:
    entries = read_manifest(args.manifest)
    results = compare_batch(entries, params, workers=max(1, args.workers))

    for result in results:
        if result.comparison is None:
            print(f"  {result.label:<20}: failed - {result.error}")
            continue
        comparison = result.comparison
        metrics = comparison.metrics()
        print(
            f"  {result.label:<20}: {100 * comparison.nucleotide_block_identity:.1f}% nt, "
            f"{100 * comparison.protein_block_identity:.1f}% aa | "
            f"{metrics['nucConservedLength']}bp conserved ({metrics['numNucBlocks']} blocks)"
        )

    summary = summarize_batch(results)
    print(rule())
    if summary["compared"] == 0:
        print(
            f"No pairs with conserved blocks at both levels (0 of {summary['total']}). "
            "Cannot calculate averages.",
            file=sys.stderr,
        )
    else:
        print(
            f"Average identity over conserved blocks: "
            f"{100 * summary['averageNucleotideIdentity']:.1f}% nucleotide, "
            f"{100 * summary['averageAminoAcidIdentity']:.1f}% amino acid "
            f"(n={summary['compared']} of {summary['total']})"
        )
    print(rule())

    if args.json is not None:
        _write_json(
            args.json,
            {"results": [result.to_dict() for result in results], "summary": summary},
        )
    return 0 if summary["compared"] > 0 else 1


def main(argv: Sequence[str]) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    try:
        params = CompareParams.from_cli_args(args)
    except ValueError as exc:
        print(f"Error in parameters: {exc}", file=sys.stderr)
        return 1

    try:
        if args.command == "batch":
            return run_batch(args, params)
        return run_compare(args, params)
    except (OSError, ValueError) as exc:
        print(f"Error while comparing sequences: {exc}", file=sys.stderr)
        return 1


def cli() -> None:
    raise SystemExit(main(sys.argv[1:]))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    cli()
