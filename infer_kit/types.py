from dataclasses import dataclass
from typing import List, Tuple

import numpy as np


@dataclass(frozen=True)
class Box:
    """
    Axis-aligned box in pixel coordinates (x1, y1, x2, y2).
    """

    x1: float
    y1: float
    x2: float
    y2: float

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x1, self.y1, self.x2, self.y2

    @property
    def area(self) -> float:
        return max(0.0, self.x2 - self.x1) * max(0.0, self.y2 - self.y1)


@dataclass
class Classification:
    label: str
    class_id: int
    score: float


@dataclass
class Detection:
    """
    Labeled detection in original image coordinates.
    """

    label: str
    class_id: int
    score: float
    box: Box

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.box.as_xyxy()

    @property
    def classification(self) -> Classification:
        return Classification(label=self.label, class_id=self.class_id, score=self.score)


@dataclass
class TokenSequence:
    """
    Fixed-length tokenizer output. The three lists always have the same length.
    """

    input_ids: List[int]
    attention_mask: List[int]
    tokens: List[str]

    def __len__(self) -> int:
        return len(self.input_ids)

    def as_model_inputs(self) -> dict:
        # Batch of one, int64 as BERT-style ONNX exports expect.
        return {
            "input_ids": np.asarray([self.input_ids], dtype=np.int64),
            "attention_mask": np.asarray([self.attention_mask], dtype=np.int64),
        }


@dataclass
class MaskLogits:
    position: int
    logits: np.ndarray
