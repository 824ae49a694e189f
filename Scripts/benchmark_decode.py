from __future__ import annotations

import argparse
import statistics
import time
from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from infer_kit import DetectionPostConfig, DetectionPostprocessor


@dataclass(frozen=True)
class TimingSummary:
    n: int
    mean_ms: float
    p50_ms: float
    p90_ms: float
    p95_ms: float


def _percentile(sorted_values: List[float], q: float) -> float:
    if not sorted_values:
        raise ValueError("No values provided.")
    if q < 0.0 or q > 100.0:
        raise ValueError("q must be in [0, 100].")
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    # Linear interpolation between closest ranks.
    pos = (q / 100.0) * (len(sorted_values) - 1)
    lo = int(np.floor(pos))
    hi = int(np.ceil(pos))
    if lo == hi:
        return float(sorted_values[lo])
    t = pos - lo
    return float(sorted_values[lo] * (1.0 - t) + sorted_values[hi] * t)


def _summarize_ms(values_s: List[float]) -> TimingSummary:
    ms_sorted = sorted(v * 1000.0 for v in values_s)
    return TimingSummary(
        n=len(ms_sorted),
        mean_ms=float(statistics.fmean(ms_sorted)) if ms_sorted else 0.0,
        p50_ms=_percentile(ms_sorted, 50.0) if ms_sorted else 0.0,
        p90_ms=_percentile(ms_sorted, 90.0) if ms_sorted else 0.0,
        p95_ms=_percentile(ms_sorted, 95.0) if ms_sorted else 0.0,
    )


def _format_summary(name: str, values_s: List[float]) -> str:
    s = _summarize_ms(values_s)
    return f"{name}: n={s.n} mean={s.mean_ms:.3f}ms p50={s.p50_ms:.3f}ms p90={s.p90_ms:.3f}ms p95={s.p95_ms:.3f}ms"


def _synthetic_outputs(rng: np.random.Generator, candidates: int, classes: int) -> Dict[str, np.ndarray]:
    logits = rng.normal(0.0, 3.0, size=(1, candidates, classes)).astype(np.float32)
    centers = rng.uniform(0.1, 0.9, size=(1, candidates, 2))
    sizes = rng.uniform(0.02, 0.3, size=(1, candidates, 2))
    boxes = np.concatenate([centers, sizes], axis=2).astype(np.float32)
    return {"logits": logits, "pred_boxes": boxes}


def main() -> int:
    parser = argparse.ArgumentParser(description="Time detection decoding + NMS on synthetic model outputs.")
    parser.add_argument("--candidates", type=int, default=100, help="Candidate boxes per image (DETR/YOLOS: 100).")
    parser.add_argument("--classes", type=int, default=92, help="Class-score block width per candidate.")
    parser.add_argument("--conf", type=float, default=0.1, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.45, help="IoU threshold for NMS.")
    parser.add_argument("--agnostic", action="store_true", help="Suppress across classes.")
    parser.add_argument("--repeats", type=int, default=200, help="Timed iterations.")
    parser.add_argument("--warmup", type=int, default=10, help="Untimed iterations before measuring.")
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    if args.candidates < 1 or args.classes < 1:
        raise ValueError("--candidates and --classes must be >= 1")
    if args.repeats < 1 or args.warmup < 0:
        raise ValueError("--repeats must be >= 1 and --warmup >= 0")

    rng = np.random.default_rng(args.seed)
    labels = {i: f"class_{i}" for i in range(args.classes)}
    post = DetectionPostprocessor(
        labels,
        DetectionPostConfig(conf_threshold=args.conf, iou_threshold=args.iou, class_agnostic_nms=args.agnostic),
    )

    timings: List[float] = []
    kept: List[int] = []
    for i in range(args.warmup + args.repeats):
        outputs = _synthetic_outputs(rng, args.candidates, args.classes)
        t0 = time.perf_counter()
        dets = post.process(outputs["logits"], outputs["pred_boxes"], orig_size=(1280, 720))
        dt = time.perf_counter() - t0
        if i >= args.warmup:
            timings.append(dt)
            kept.append(len(dets))

    print(_format_summary("decode_with_nms", timings))
    print(f"mean_kept={statistics.fmean(kept):.1f} samples_recorded={len(timings)} warmup={args.warmup}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
