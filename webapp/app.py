from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Tuple

from flask import Flask, jsonify, make_response, request

from seqcompare.inputs import FastaRecord, load_sequence, normalize_sequence, sequence_from_text
from seqcompare.mpl_backend import configure_headless_matplotlib
from seqcompare.params import CompareParams
from seqcompare.render import render_bytes
from seqcompare.service import PairComparison, compare_pair
from seqcompare.translation import translate_dna

configure_headless_matplotlib()

app = Flask(__name__)


def _request_payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError("request body must be a JSON object")
    return payload


def _record_from_payload(payload: Dict[str, Any], index: int) -> FastaRecord:
    text = payload.get(f"seq{index}")
    path_text = str(payload.get(f"input_path{index}", "") or "").strip()

    if isinstance(text, str) and text.strip():
        return sequence_from_text(text)
    if path_text:
        return load_sequence(Path(path_text))
    raise ValueError(f"seq{index} or input_path{index} is required")


def _comparison_from_payload(payload: Dict[str, Any]) -> Tuple[PairComparison, CompareParams]:
    params = CompareParams.from_payload(payload.get("params"))
    record1 = _record_from_payload(payload, 1)
    record2 = _record_from_payload(payload, 2)
    comparison = compare_pair(
        record1.sequence,
        record2.sequence,
        params,
        name1=str(payload.get("name1") or record1.header),
        name2=str(payload.get("name2") or record2.header),
    )
    return comparison, params


@app.post("/api/compare")
def api_compare():
    try:
        payload = _request_payload()
        comparison, _ = _comparison_from_payload(payload)
    except (OSError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify(comparison.to_dict())


@app.post("/api/render")
def api_render():
    try:
        payload = _request_payload()
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    fmt = str(payload.get("format", "svg")).strip().lower()
    if fmt not in {"svg", "png"}:
        return jsonify({"error": "format must be 'svg' or 'png'"}), 400

    try:
        comparison, params = _comparison_from_payload(payload)
        blob = render_bytes(
            comparison,
            fmt=fmt,
            width=params.width,
            height=params.height,
            dpi=params.dpi,
            window_length=params.window_length,
            min_identity=params.min_identity,
        )
    except (OSError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400

    response = make_response(blob)
    response.headers["Content-Type"] = "image/svg+xml" if fmt == "svg" else "image/png"
    response.headers["Content-Disposition"] = f"attachment; filename=comparison.{fmt}"
    return response


@app.post("/api/translate")
def api_translate():
    try:
        payload = _request_payload()
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    sequence = payload.get("sequence")
    if not isinstance(sequence, str) or not sequence.strip():
        return jsonify({"error": "sequence is required"}), 400

    normalized = normalize_sequence(sequence)
    return jsonify({"sequence": normalized, "protein": translate_dna(normalized)})


if __name__ == "__main__":
    app.run(host="127.0.0.1", port=5000, debug=True, threaded=False)
