from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Tuple

import numpy as np

from .errors import ShapeMismatchError
from .nms import NMSConfig, nms
from .ops import cxcywh_to_xyxy, softmax, top_k
from .types import Box, Classification, Detection


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationConfig:
    """
    Settings for turning a single score vector into ranked labels.
    """

    # 0 is allowed and yields no predictions.
    top_k: int = 5
    min_score: float = 0.0
    # If False, scores are reported as raw logits.
    apply_softmax: bool = True

    def __post_init__(self) -> None:
        if self.top_k < 0:
            raise ValueError("top_k must be >= 0")


@dataclass(frozen=True)
class DetectionPostConfig:
    conf_threshold: float = 0.0
    iou_threshold: float = 0.45
    # Cap applied after NMS; <= 0 keeps everything.
    max_detections: int = 100
    class_agnostic_nms: bool = False

    def __post_init__(self) -> None:
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be in [0, 1]")

    @property
    def nms(self) -> NMSConfig:
        return NMSConfig(
            iou_threshold=self.iou_threshold,
            max_detections=self.max_detections,
            class_agnostic=self.class_agnostic_nms,
        )


class ClassificationPostprocessor:
    """
    Rank one score vector (ImageNet logits, masked-token logits, ...) into labeled predictions.

    Indices without an entry in `labels` are dropped silently, as are scores
    below `min_score`. The result is sorted by score, highest first, and may be empty.
    """

    def __init__(self, labels: Mapping[int, str], cfg: ClassificationConfig = ClassificationConfig()):
        self.labels = labels
        self.cfg = cfg

    def process(self, scores: np.ndarray) -> List[Classification]:
        values = np.asarray(scores, dtype=np.float64).reshape(-1)
        if values.size == 0:
            return []
        if self.cfg.apply_softmax:
            values = softmax(values)

        results: List[Classification] = []
        for idx in top_k(values, self.cfg.top_k):
            score = float(values[idx])
            if score < self.cfg.min_score:
                continue
            label = self.labels.get(int(idx))
            if label is None:
                continue
            results.append(Classification(label=label, class_id=int(idx), score=score))
        return results

    __call__ = process


class DetectionPostprocessor:
    """
    Decode DETR/YOLOS-style outputs into labeled boxes.

    Layout (per image):
    - logits: (N, C) class scores, one block of C per candidate (flat buffers accepted)
    - boxes: (N, 4) normalized [cx, cy, w, h] in [0, 1]

    Each candidate's block is soft-maxed; the arg-max class and its probability
    become the detection. Candidates below `conf_threshold` or without a label
    are dropped, the rest are scaled to the original image and passed through
    class-aware NMS.
    """

    def __init__(self, labels: Mapping[int, str], cfg: DetectionPostConfig = DetectionPostConfig()):
        self.labels = labels
        self.cfg = cfg

    def process(self, logits: np.ndarray, boxes: np.ndarray, orig_size: Tuple[int, int]) -> List[Detection]:
        """
        Args:
            logits: class logits for every candidate
            boxes: normalized center-form boxes for every candidate
            orig_size: (width, height) of the image before resizing
        """

        boxes_xyxy, scores, class_ids = self._decode(logits, boxes, orig_size)
        if scores.size == 0:
            return []

        keep = nms(boxes_xyxy, scores, class_ids, self.cfg.nms)
        logger.debug("Detection decode: %d candidates above threshold, %d kept after NMS", scores.size, keep.size)

        return [
            Detection(
                label=self.labels[int(class_ids[i])],
                class_id=int(class_ids[i]),
                score=float(scores[i]),
                box=Box(*(float(c) for c in boxes_xyxy[i])),
            )
            for i in keep
        ]

    __call__ = process

    # ------------------------------------------------------------------ #
    # Helper internal
    # ------------------------------------------------------------------ #
    def _decode(
        self, logits: np.ndarray, boxes: np.ndarray, orig_size: Tuple[int, int]
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Return pixel xyxy boxes, scores and class ids of the candidates that pass
        the confidence and label filters, in input order.
        """

        flat_logits = np.asarray(logits, dtype=np.float64).reshape(-1)
        flat_boxes = np.asarray(boxes, dtype=np.float64).reshape(-1)

        if flat_boxes.shape[0] % 4 != 0:
            raise ShapeMismatchError(f"boxes length ({flat_boxes.shape[0]}) is not a multiple of 4")
        num_boxes = flat_boxes.shape[0] // 4
        if num_boxes == 0:
            empty = np.empty((0,), dtype=np.float64)
            return np.empty((0, 4), dtype=np.float64), empty, empty.astype(np.int64)
        if flat_logits.shape[0] == 0 or flat_logits.shape[0] % num_boxes != 0:
            raise ShapeMismatchError(
                f"logits length ({flat_logits.shape[0]}) is not a multiple of the box count ({num_boxes})"
            )

        num_classes = flat_logits.shape[0] // num_boxes
        probs = softmax(flat_logits.reshape(num_boxes, num_classes))
        class_ids = np.argmax(probs, axis=1)
        scores = probs[np.arange(num_boxes), class_ids]

        labeled = np.array([int(c) in self.labels for c in class_ids], dtype=bool)
        mask = (scores >= self.cfg.conf_threshold) & labeled

        orig_w, orig_h = orig_size
        boxes_xyxy = cxcywh_to_xyxy(flat_boxes.reshape(num_boxes, 4)[mask], orig_w, orig_h)
        return boxes_xyxy, scores[mask], class_ids[mask].astype(np.int64)
