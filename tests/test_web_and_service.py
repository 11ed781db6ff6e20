from __future__ import annotations

import argparse
import os
import random
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

import matplotlib

from seqcompare.comparison import align_sequences
from seqcompare.formatter import format_comparison, format_sequence, format_summary, rule
from seqcompare.inputs import load_sequence, parse_fasta, prepare_sequence, sequence_from_text
from seqcompare.models import AlignmentResult
from seqcompare.mpl_backend import configure_headless_matplotlib, headless_pyplot
from seqcompare.params import CompareParams
from seqcompare.render import render_bytes, window_identity_profile
from seqcompare.service import (
    BatchEntry,
    compare_batch,
    compare_files,
    compare_pair,
    read_manifest,
    summarize_batch,
)
from webapp.app import app


def random_dna(seed: int, length: int) -> str:
    rng = random.Random(seed)
    return "".join(rng.choice("ACGT") for _ in range(length))


def mutate(sequence: str, every: int) -> str:
    swap = {"A": "C", "C": "G", "G": "T", "T": "A"}
    return "".join(
        swap[base] if idx % every == every - 1 else base for idx, base in enumerate(sequence)
    )


TRANSCRIPT = random_dna(11, 150)


def write_fasta(path: Path, header: str, sequence: str) -> Path:
    lines = [f">{header}"]
    lines.extend(sequence[start : start + 60] for start in range(0, len(sequence), 60))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


class ParamsTests(unittest.TestCase):
    def test_payload_parsing(self):
        params = CompareParams.from_payload({"window_length": "33", "min_identity": "0.8", "dpi": "96"})
        self.assertEqual(params.window_length, 33)
        self.assertEqual(params.aa_window_length, 11)
        self.assertEqual(params.min_identity, 0.8)
        self.assertEqual(params.dpi, 96)
        self.assertEqual(params.min_block_ratio, CompareParams().min_block_ratio)

    def test_missing_payload_uses_defaults(self):
        self.assertEqual(CompareParams.from_payload(None), CompareParams())

    def test_invalid_payload_values(self):
        for payload in (
            {"window_length": 2},
            {"window_length": "wide"},
            {"min_identity": 1.5},
            {"min_overlap_fraction": -0.1},
            {"dpi": True},
            {"width": 0},
        ):
            with self.assertRaises(ValueError, msg=str(payload)):
                CompareParams.from_payload(payload)

    def test_payload_must_be_object(self):
        with self.assertRaisesRegex(ValueError, "params must be an object"):
            CompareParams.from_payload([1, 2])

    def test_cli_args_without_figure_options(self):
        args = argparse.Namespace(
            window_length=66,
            min_identity=0.67,
            min_block_ratio=0.15,
            min_overlap_fraction=0.5,
        )
        params = CompareParams.from_cli_args(args)
        self.assertEqual(params, CompareParams())


class InputTests(unittest.TestCase):
    def test_parse_fasta_uses_first_header(self):
        record = parse_fasta(">seq one\nATG\nAAA\n>second\nCCC\n")
        self.assertEqual(record.header, "seq one")
        self.assertEqual(record.sequence, "ATGAAACCC")

    def test_bare_sequence_gets_unknown_header(self):
        record = sequence_from_text("atg aaa\nccc")
        self.assertEqual(record.header, "Unknown")
        self.assertEqual(record.sequence, "ATGAAACCC")

    def test_header_without_sequence_rejected(self):
        with self.assertRaisesRegex(ValueError, "No sequence data found in FASTA"):
            parse_fasta(">only header\n")

    def test_ambiguous_bases_rejected(self):
        with self.assertRaisesRegex(ValueError, "Invalid DNA sequence"):
            prepare_sequence("ATGN")
        self.assertEqual(prepare_sequence("at-g"), "AT-G")

    def test_load_sequence_reports_file_name(self):
        with TemporaryDirectory() as tmp:
            path = write_fasta(Path(tmp) / "bad.fa", "bad", "ATGRYK")
            with self.assertRaisesRegex(ValueError, "bad.fa"):
                load_sequence(path)

            good = write_fasta(Path(tmp) / "good.fa", "good", TRANSCRIPT.lower())
            record = load_sequence(good)
            self.assertEqual(record.header, "good")
            self.assertEqual(record.sequence, TRANSCRIPT)


class FormatterTests(unittest.TestCase):
    def test_codon_grouping_and_wrapping(self):
        self.assertEqual(format_sequence("ATGAAA?CC", highlight=False), "ATG AAA ?CC")
        self.assertEqual(format_sequence("ATGAAACCC", groups_per_line=2, highlight=False), "ATG AAA\nCCC")
        self.assertEqual(format_sequence("MKPG", group_size=2, highlight=False), "MK PG")

    def test_mismatches_highlighted(self):
        self.assertIn("\x1b[7m?\x1b[0m", format_sequence("A?G"))

    def test_block_report(self):
        result = align_sequences(TRANSCRIPT, TRANSCRIPT)
        text = format_comparison("Nucleotide", result, highlight=False)
        self.assertTrue(text.startswith("=== Nucleotide comparison ==="))
        self.assertIn("Block 1 [0:150] - 150 bp, 100.0% identity:", text)

    def test_report_without_blocks_prints_mask(self):
        result = AlignmentResult(
            mask="AC??????",
            mismatches=6,
            length=8,
            identity=0.25,
            truncated=False,
            offset1=0,
            offset2=0,
        )
        text = format_comparison("Nucleotide", result, highlight=False)
        self.assertIn("No well-conserved blocks found (sequences may be too divergent).", text)
        self.assertIn("AC? ??? ??", text)

    def test_protein_report_and_summary(self):
        comparison = compare_pair(TRANSCRIPT, TRANSCRIPT)
        text = format_comparison("Amino acid", comparison.protein, highlight=False)
        self.assertIn("Reading frames: seq1 +0, seq2 +0", text)
        self.assertIn("- 50 AA, 100.0% identity:", text)
        self.assertEqual(
            format_summary("a vs b", comparison.nucleotide, comparison.protein),
            "a vs b: 100.0% nt, 100.0% aa (conserved blocks)",
        )
        self.assertEqual(rule("-", 5), "-----")


class ServiceTests(unittest.TestCase):
    def test_identical_transcripts(self):
        comparison = compare_pair(TRANSCRIPT, TRANSCRIPT, name1="a", name2="b")
        metrics = comparison.metrics()
        self.assertEqual(metrics["alignmentLength"], 150)
        self.assertEqual(metrics["seq1Coverage"], 1.0)
        self.assertEqual(metrics["nucleotideIdentity"], 1.0)
        self.assertEqual(metrics["aminoAcidIdentity"], 1.0)
        self.assertEqual(metrics["numNucBlocks"], 1)
        self.assertEqual(metrics["aaConservedLength"], 50)
        self.assertFalse(comparison.nucleotide.truncated)

        payload = comparison.to_dict()
        self.assertEqual(payload["name1"], "a")
        self.assertEqual(len(payload["protein"]["aa1"]), 50)

    def test_untranslated_prefix_is_skipped(self):
        comparison = compare_pair(random_dna(5, 40) + TRANSCRIPT, TRANSCRIPT)
        self.assertEqual(comparison.nucleotide.offset1, 40)
        self.assertEqual(comparison.nucleotide.offset2, 0)
        self.assertEqual(comparison.nucleotide.identity, 1.0)
        self.assertEqual(comparison.protein.identity, 1.0)
        self.assertTrue(comparison.nucleotide.truncated)

    def test_diverged_transcripts(self):
        comparison = compare_pair(TRANSCRIPT, mutate(TRANSCRIPT, 10))
        self.assertEqual(comparison.nucleotide.length, 150)
        self.assertAlmostEqual(comparison.nucleotide.identity, 0.9)
        self.assertLess(comparison.protein.identity, 1.0)
        self.assertTrue(comparison.has_conserved_blocks)

    def test_compare_files_uses_headers(self):
        with TemporaryDirectory() as tmp:
            first = write_fasta(Path(tmp) / "a.fa", "tx-a", TRANSCRIPT)
            second = write_fasta(Path(tmp) / "b.fa", "tx-b", TRANSCRIPT)
            comparison = compare_files(first, second)
        self.assertEqual((comparison.name1, comparison.name2), ("tx-a", "tx-b"))


class BatchTests(unittest.TestCase):
    def setUp(self):
        self._tmp = TemporaryDirectory()
        self.root = Path(self._tmp.name)
        write_fasta(self.root / "a.fa", "a", TRANSCRIPT)
        write_fasta(self.root / "b.fa", "b", mutate(TRANSCRIPT, 10))

    def tearDown(self):
        self._tmp.cleanup()

    def _manifest(self, text: str) -> Path:
        path = self.root / "pairs.tsv"
        path.write_text(text, encoding="utf-8")
        return path

    def test_manifest_paths_resolve_against_manifest(self):
        entries = read_manifest(self._manifest("# label\tfirst\tsecond\n\nsame\ta.fa\ta.fa\ndiverged\ta.fa\tb.fa\n"))
        self.assertEqual([entry.label for entry in entries], ["same", "diverged"])
        self.assertEqual(entries[1].path2, self.root.resolve() / "b.fa")

    def test_malformed_manifest_line(self):
        with self.assertRaisesRegex(ValueError, "pairs.tsv:1"):
            read_manifest(self._manifest("only\ttwo\n"))

    def test_empty_manifest(self):
        with self.assertRaises(ValueError):
            read_manifest(self._manifest("# nothing here\n"))

    def test_failures_are_recorded_per_pair(self):
        entries = [
            BatchEntry("same", self.root / "a.fa", self.root / "a.fa"),
            BatchEntry("missing", self.root / "a.fa", self.root / "nope.fa"),
        ]
        with self.assertLogs("seqcompare.service", level="WARNING"):
            results = compare_batch(entries)
        self.assertIsNotNone(results[0].comparison)
        self.assertIsNone(results[1].comparison)
        self.assertIn("nope.fa", results[1].error)
        self.assertEqual(results[1].to_dict(), {"label": "missing", "error": results[1].error})

        summary = summarize_batch(results)
        self.assertEqual(summary["total"], 2)
        self.assertEqual(summary["compared"], 1)
        self.assertEqual(summary["failed"], 1)
        self.assertEqual(summary["averageNucleotideIdentity"], 1.0)

    def test_worker_pool_keeps_manifest_order(self):
        entries = [
            BatchEntry("same", self.root / "a.fa", self.root / "a.fa"),
            BatchEntry("diverged", self.root / "a.fa", self.root / "b.fa"),
            BatchEntry("reverse", self.root / "b.fa", self.root / "a.fa"),
        ]
        serial = compare_batch(entries, workers=1)
        pooled = compare_batch(entries, workers=2)
        self.assertEqual([result.label for result in pooled], ["same", "diverged", "reverse"])
        self.assertEqual(
            [result.comparison.metrics() for result in pooled],
            [result.comparison.metrics() for result in serial],
        )

    def test_summary_of_nothing(self):
        summary = summarize_batch([])
        self.assertEqual(summary["compared"], 0)
        self.assertEqual(summary["averageAminoAcidIdentity"], 0.0)


class RenderTests(unittest.TestCase):
    def test_backend_configuration_is_agg_and_idempotent(self):
        configure_headless_matplotlib()
        configure_headless_matplotlib()
        self.assertIn("agg", str(matplotlib.get_backend()).lower())

    def test_headless_pyplot_uses_agg(self):
        plt = headless_pyplot()
        self.assertIn("agg", plt.get_backend().lower())
        self.assertTrue(os.environ.get("MPLCONFIGDIR"))

    def test_window_identity_profile(self):
        starts, identities = window_identity_profile("AAA?A?", 3)
        self.assertEqual(starts.tolist(), [0.0, 3.0])
        self.assertEqual(identities.tolist(), [1.0, 1 / 3])
        starts, identities = window_identity_profile("", 3)
        self.assertEqual(starts.size, 0)

    def test_render_svg_and_png(self):
        comparison = compare_pair(TRANSCRIPT, mutate(TRANSCRIPT, 10))
        params = CompareParams()
        options = dict(
            width=params.width,
            height=params.height,
            dpi=72,
            window_length=params.window_length,
            min_identity=params.min_identity,
        )
        self.assertIn(b"<svg", render_bytes(comparison, fmt="svg", **options))
        self.assertTrue(render_bytes(comparison, fmt="png", **options).startswith(b"\x89PNG"))
        with self.assertRaises(ValueError):
            render_bytes(comparison, fmt="pdf", **options)


class ApiTests(unittest.TestCase):
    def setUp(self):
        self.client = app.test_client()

    def test_compare_endpoint(self):
        response = self.client.post(
            "/api/compare",
            json={"seq1": TRANSCRIPT, "seq2": f">second\n{TRANSCRIPT}", "name1": "first"},
        )
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data["name1"], "first")
        self.assertEqual(data["name2"], "second")
        self.assertEqual(data["metrics"]["nucleotideIdentity"], 1.0)
        self.assertEqual(data["nucleotide"]["conservedBlocks"][0]["length"], 150)
        self.assertEqual(data["protein"]["frame1"], 0)
        self.assertEqual(data["protein"]["aa1"], data["protein"]["aa2"])

    def test_compare_endpoint_reads_paths(self):
        with TemporaryDirectory() as tmp:
            first = write_fasta(Path(tmp) / "a.fa", "tx-a", TRANSCRIPT)
            response = self.client.post(
                "/api/compare",
                json={"input_path1": str(first), "seq2": TRANSCRIPT},
            )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["name1"], "tx-a")

    def test_compare_endpoint_errors(self):
        cases = (
            ({"seq1": TRANSCRIPT}, "seq2 or input_path2 is required"),
            ({"seq1": TRANSCRIPT, "seq2": "ATGNNN"}, "Invalid DNA sequence"),
            ({"seq1": TRANSCRIPT, "seq2": TRANSCRIPT, "params": {"min_identity": 4}}, "min_identity"),
            ({"seq1": TRANSCRIPT, "input_path2": "/nonexistent/tx.fa"}, "tx.fa"),
        )
        for payload, message in cases:
            response = self.client.post("/api/compare", json=payload)
            self.assertEqual(response.status_code, 400, payload)
            self.assertIn(message, response.get_json()["error"])

    def test_non_object_body_rejected(self):
        for route in ("/api/compare", "/api/render", "/api/translate"):
            response = self.client.post(route, json=["ATG"])
            self.assertEqual(response.status_code, 400, route)
            self.assertEqual(response.get_json()["error"], "request body must be a JSON object")

    def test_render_endpoint(self):
        response = self.client.post(
            "/api/render",
            json={"seq1": TRANSCRIPT, "seq2": mutate(TRANSCRIPT, 10), "format": "svg", "params": {"dpi": 72}},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.mimetype, "image/svg+xml")
        self.assertIn("comparison.svg", response.headers["Content-Disposition"])
        self.assertIn(b"<svg", response.data)

    def test_render_endpoint_rejects_unknown_format(self):
        response = self.client.post(
            "/api/render",
            json={"seq1": TRANSCRIPT, "seq2": TRANSCRIPT, "format": "gif"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "format must be 'svg' or 'png'")

    def test_translate_endpoint(self):
        response = self.client.post("/api/translate", json={"sequence": "atgaaa ccc gg"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {"sequence": "ATGAAACCCGG", "protein": "MKP"})

        response = self.client.post("/api/translate", json={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "sequence is required")


if __name__ == "__main__":
    unittest.main()
