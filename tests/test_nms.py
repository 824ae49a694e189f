import unittest

import numpy as np

from infer_kit.nms import NMSConfig, nms, non_max_suppression
from infer_kit.types import Box, Detection


def _det(score: float, class_id: int, box, label: str = "obj") -> Detection:
    return Detection(label=label, class_id=class_id, score=score, box=Box(*box))


class TestNonMaxSuppression(unittest.TestCase):
    def test_same_class_overlap_keeps_highest(self) -> None:
        dets = [_det(0.8, 0, (1, 1, 11, 11)), _det(0.9, 0, (0, 0, 10, 10))]
        kept = non_max_suppression(dets, NMSConfig(iou_threshold=0.45))
        self.assertEqual(len(kept), 1)
        self.assertEqual(kept[0].score, 0.9)

    def test_different_classes_never_suppress(self) -> None:
        dets = [_det(0.9, 0, (0, 0, 10, 10)), _det(0.8, 1, (0, 0, 10, 10))]
        kept = non_max_suppression(dets, NMSConfig(iou_threshold=0.45))
        self.assertEqual([d.class_id for d in kept], [0, 1])

    def test_class_agnostic_mode(self) -> None:
        dets = [_det(0.9, 0, (0, 0, 10, 10)), _det(0.8, 1, (0, 0, 10, 10))]
        kept = non_max_suppression(dets, NMSConfig(iou_threshold=0.45, class_agnostic=True))
        self.assertEqual(len(kept), 1)
        self.assertEqual(kept[0].class_id, 0)

    def test_iou_equal_to_threshold_is_kept(self) -> None:
        # IoU is exactly 0.5; suppression needs strictly more.
        dets = [_det(0.9, 0, (0, 0, 10, 10)), _det(0.8, 0, (0, 0, 10, 5))]
        kept = non_max_suppression(dets, NMSConfig(iou_threshold=0.5))
        self.assertEqual(len(kept), 2)

    def test_output_sorted_by_score(self) -> None:
        dets = [
            _det(0.3, 0, (0, 0, 1, 1)),
            _det(0.7, 1, (5, 5, 6, 6)),
            _det(0.5, 2, (9, 9, 10, 10)),
        ]
        kept = non_max_suppression(dets)
        self.assertEqual([d.score for d in kept], [0.7, 0.5, 0.3])

    def test_ties_keep_input_order(self) -> None:
        boxes = np.array([[0, 0, 1, 1], [5, 5, 6, 6], [9, 9, 10, 10]], dtype=np.float32)
        scores = np.array([0.5, 0.5, 0.5], dtype=np.float32)
        self.assertEqual(nms(boxes, scores).tolist(), [0, 1, 2])

    def test_max_detections_caps_kept_list(self) -> None:
        boxes = np.array([[0, 0, 1, 1], [5, 5, 6, 6], [9, 9, 10, 10]], dtype=np.float32)
        scores = np.array([0.2, 0.9, 0.5], dtype=np.float32)
        keep = nms(boxes, scores, np.array([0, 0, 0]), NMSConfig(max_detections=2))
        self.assertEqual(keep.tolist(), [1, 2])

    def test_suppressed_box_does_not_suppress_others(self) -> None:
        # B overlaps A and C; A suppresses B, so C (no overlap with A) survives.
        boxes = np.array([[0, 0, 10, 10], [5, 0, 15, 10], [10, 0, 20, 10]], dtype=np.float32)
        scores = np.array([0.9, 0.8, 0.7], dtype=np.float32)
        keep = nms(boxes, scores, np.zeros(3, dtype=np.int64), NMSConfig(iou_threshold=0.3))
        self.assertEqual(keep.tolist(), [0, 2])

    def test_empty_input(self) -> None:
        self.assertEqual(non_max_suppression([]), [])
        self.assertEqual(nms(np.empty((0, 4)), np.empty((0,))).size, 0)

    def test_length_mismatch_rejected(self) -> None:
        with self.assertRaises(ValueError):
            nms(np.zeros((2, 4)), np.zeros(3))


if __name__ == "__main__":
    unittest.main()
