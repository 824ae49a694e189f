from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .types import Detection


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.45
    # <= 0 disables the cap.
    max_detections: int = 300
    # If True, boxes of different classes also suppress each other.
    class_agnostic: bool = False


def nms(
    boxes: np.ndarray,
    scores: np.ndarray,
    class_ids: Optional[np.ndarray] = None,
    cfg: NMSConfig = NMSConfig(),
) -> np.ndarray:
    """
    Greedy class-aware NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of kept boxes, highest score first.

    Candidates are visited in descending score order (ties keep input order).
    Each kept box suppresses later boxes of the same class whose IoU with it
    is above `cfg.iou_threshold`. `max_detections` truncates the kept list.
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    if boxes.shape[0] != scores.shape[0]:
        raise ValueError(f"boxes/scores length mismatch: {boxes.shape[0]} vs {scores.shape[0]}")
    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    if class_ids is None or cfg.class_agnostic:
        classes = np.zeros(scores.shape[0], dtype=np.int64)
    else:
        classes = np.asarray(class_ids, dtype=np.int64).reshape(-1)

    x1 = boxes[:, 0]
    y1 = boxes[:, 1]
    x2 = boxes[:, 2]
    y2 = boxes[:, 3]
    areas = (x2 - x1) * (y2 - y1)

    order = np.argsort(-scores, kind="stable")
    keep: List[int] = []

    while order.size > 0:
        i = order[0]
        keep.append(int(i))
        rest = order[1:]

        xx1 = np.maximum(x1[i], x1[rest])
        yy1 = np.maximum(y1[i], y1[rest])
        xx2 = np.minimum(x2[i], x2[rest])
        yy2 = np.minimum(y2[i], y2[rest])

        w = np.maximum(0.0, xx2 - xx1)
        h = np.maximum(0.0, yy2 - yy1)
        inter = w * h
        union = areas[i] + areas[rest] - inter
        with np.errstate(divide="ignore", invalid="ignore"):
            iou = np.where(union > 0, inter / union, 0.0)

        suppressed = (iou > cfg.iou_threshold) & (classes[rest] == classes[i])
        order = rest[~suppressed]

    if cfg.max_detections > 0:
        keep = keep[: cfg.max_detections]
    return np.array(keep, dtype=np.int64)


def non_max_suppression(detections: Sequence[Detection], cfg: NMSConfig = NMSConfig()) -> List[Detection]:
    """
    Run `nms` over a list of `Detection` and return the survivors, highest score first.
    """

    if not detections:
        return []

    boxes = np.array([d.as_xyxy() for d in detections], dtype=np.float64)
    scores = np.array([d.score for d in detections], dtype=np.float64)
    class_ids = np.array([d.class_id for d in detections], dtype=np.int64)
    keep = nms(boxes, scores, class_ids, cfg)
    return [detections[i] for i in keep]
