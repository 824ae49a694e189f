"""
Small numeric helpers shared by the tokenizer and the decoders.

Every function accepts plain Python sequences or NumPy arrays and computes in
float64. Degenerate inputs raise `ValueError` instead of producing NaN/Inf.
"""

from __future__ import annotations

from typing import Sequence, Tuple, Union

import numpy as np


ArrayLike = Union[Sequence[float], np.ndarray]
BoxLike = Union[Sequence[float], np.ndarray, Tuple[float, float, float, float]]


def softmax(scores: ArrayLike) -> np.ndarray:
    """
    Numerically stable softmax over the last axis.

    The maximum is subtracted before exponentiating so large logits do not
    overflow. 2-D input is normalized row by row.
    """

    x = np.asarray(scores, dtype=np.float64)
    if x.size == 0:
        raise ValueError("softmax() requires a non-empty input")

    shifted = x - np.max(x, axis=-1, keepdims=True)
    exp = np.exp(shifted)
    return exp / np.sum(exp, axis=-1, keepdims=True)


def sigmoid(x: Union[float, ArrayLike]) -> Union[float, np.ndarray]:
    arr = np.asarray(x, dtype=np.float64)
    out = 1.0 / (1.0 + np.exp(-arr))
    if out.ndim == 0:
        return float(out)
    return out


def l2_normalize(vec: ArrayLike) -> np.ndarray:
    v = np.asarray(vec, dtype=np.float64)
    norm = float(np.sqrt(np.sum(v * v)))
    if norm == 0.0:
        raise ValueError("l2_normalize() got a zero-norm vector")
    return v / norm


def top_k(values: ArrayLike, k: int) -> np.ndarray:
    """
    Indices of the `k` largest values, largest first.

    `k` is clamped to `len(values)`. Equal values keep their original index
    order (lower index first).
    """

    v = np.asarray(values, dtype=np.float64).reshape(-1)
    k = min(int(k), v.shape[0])
    if k <= 0:
        return np.empty((0,), dtype=np.int64)

    order = np.argsort(-v, kind="stable")
    return order[:k].astype(np.int64)


def iou(box_a: BoxLike, box_b: BoxLike) -> float:
    """
    Intersection-over-union of two xyxy boxes. Returns 0.0 when the union is empty.
    """

    ax1, ay1, ax2, ay2 = (float(c) for c in box_a)
    bx1, by1, bx2, by2 = (float(c) for c in box_b)

    inter_w = max(0.0, min(ax2, bx2) - max(ax1, bx1))
    inter_h = max(0.0, min(ay2, by2) - max(ay1, by1))
    inter = inter_w * inter_h

    area_a = (ax2 - ax1) * (ay2 - ay1)
    area_b = (bx2 - bx1) * (by2 - by1)
    union = area_a + area_b - inter
    if union <= 0.0:
        return 0.0
    return inter / union


def cxcywh_to_xyxy(boxes: np.ndarray, width: float = 1.0, height: float = 1.0) -> np.ndarray:
    """
    Convert (N, 4) center-form boxes to corner form, scaled by width/height.
    """

    b = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    cx, cy, w_box, h_box = b.T
    x1 = (cx - w_box / 2) * width
    y1 = (cy - h_box / 2) * height
    x2 = (cx + w_box / 2) * width
    y2 = (cy + h_box / 2) * height
    return np.stack([x1, y1, x2, y2], axis=1)
