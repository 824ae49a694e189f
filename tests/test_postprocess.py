import unittest

import numpy as np

from infer_kit.errors import ShapeMismatchError
from infer_kit.postprocess import (
    ClassificationConfig,
    ClassificationPostprocessor,
    DetectionPostConfig,
    DetectionPostprocessor,
)


class TestClassificationPostprocess(unittest.TestCase):
    def test_top2_with_softmax(self) -> None:
        post = ClassificationPostprocessor({0: "cat", 1: "dog"}, ClassificationConfig(top_k=2, min_score=0.0))
        out = post.process([2.0, 1.0, 0.1])
        self.assertEqual([c.label for c in out], ["cat", "dog"])
        self.assertEqual([c.class_id for c in out], [0, 1])
        self.assertGreater(out[0].score, out[1].score)
        self.assertAlmostEqual(out[0].score, 0.659, places=3)

    def test_unlabeled_index_is_dropped(self) -> None:
        post = ClassificationPostprocessor({0: "cat", 1: "dog"}, ClassificationConfig(top_k=3))
        out = post.process([0.1, 1.0, 2.0])
        self.assertEqual([c.class_id for c in out], [1, 0])

    def test_min_score_filter(self) -> None:
        post = ClassificationPostprocessor({0: "cat", 1: "dog"}, ClassificationConfig(top_k=2, min_score=0.5))
        out = post.process([2.0, 1.0, 0.1])
        self.assertEqual([c.label for c in out], ["cat"])

    def test_raw_scores_without_softmax(self) -> None:
        post = ClassificationPostprocessor({0: "a", 1: "b"}, ClassificationConfig(top_k=1, apply_softmax=False))
        out = post([3.0, -1.0])
        self.assertEqual(len(out), 1)
        self.assertEqual(out[0].score, 3.0)

    def test_nothing_survives_returns_empty_list(self) -> None:
        post = ClassificationPostprocessor({}, ClassificationConfig(top_k=3))
        self.assertEqual(post.process([1.0, 2.0]), [])

    def test_zero_top_k_returns_empty(self) -> None:
        post = ClassificationPostprocessor({0: "cat", 1: "dog"}, ClassificationConfig(top_k=0))
        self.assertEqual(post.process([2.0, 1.0]), [])

    def test_negative_top_k_rejected(self) -> None:
        with self.assertRaises(ValueError):
            ClassificationConfig(top_k=-1)


class TestDetectionPostprocess(unittest.TestCase):
    LABELS = {0: "cat", 1: "dog"}

    def _outputs(self, second_class_logits):
        # Three candidates, three classes; class 2 has no label ("no object").
        logits = np.array(
            [
                [5.0, 0.0, 0.0],
                second_class_logits,
                [0.0, 0.0, 5.0],
            ],
            dtype=np.float32,
        )
        boxes = np.array(
            [
                [0.5, 0.5, 0.2, 0.2],
                [0.51, 0.5, 0.2, 0.2],
                [0.2, 0.2, 0.1, 0.1],
            ],
            dtype=np.float32,
        )
        return logits, boxes

    def test_decode_scales_and_suppresses(self) -> None:
        logits, boxes = self._outputs([4.0, 0.0, 0.0])
        post = DetectionPostprocessor(self.LABELS, DetectionPostConfig(iou_threshold=0.45))
        dets = post.process(logits.reshape(-1), boxes.reshape(-1), orig_size=(100, 200))
        self.assertEqual(len(dets), 1)
        det = dets[0]
        self.assertEqual(det.label, "cat")
        self.assertEqual(det.class_id, 0)
        self.assertAlmostEqual(det.score, np.exp(5.0) / (np.exp(5.0) + 2.0), places=5)
        self.assertTrue(np.allclose(det.as_xyxy(), (40.0, 80.0, 60.0, 120.0), atol=1e-4))

    def test_other_class_survives_overlap(self) -> None:
        logits, boxes = self._outputs([0.0, 4.0, 0.0])
        post = DetectionPostprocessor(self.LABELS, DetectionPostConfig(iou_threshold=0.45))
        dets = post.process(logits[None], boxes[None], orig_size=(100, 200))
        self.assertEqual([d.label for d in dets], ["cat", "dog"])
        self.assertGreater(dets[0].score, dets[1].score)

    def test_confidence_threshold(self) -> None:
        logits, boxes = self._outputs([0.0, 4.0, 0.0])
        post = DetectionPostprocessor(self.LABELS, DetectionPostConfig(conf_threshold=0.97))
        dets = post.process(logits, boxes, orig_size=(100, 200))
        self.assertEqual([d.label for d in dets], ["cat"])

    def test_max_detections(self) -> None:
        logits, boxes = self._outputs([0.0, 4.0, 0.0])
        post = DetectionPostprocessor(self.LABELS, DetectionPostConfig(max_detections=1))
        dets = post.process(logits, boxes, orig_size=(100, 200))
        self.assertEqual(len(dets), 1)
        self.assertEqual(dets[0].label, "cat")

    def test_shape_mismatch(self) -> None:
        post = DetectionPostprocessor(self.LABELS)
        with self.assertRaises(ShapeMismatchError):
            post.process(np.zeros(6), np.zeros(7), orig_size=(10, 10))
        with self.assertRaises(ShapeMismatchError):
            post.process(np.zeros(7), np.zeros(8), orig_size=(10, 10))
        with self.assertRaises(ShapeMismatchError):
            post.process(np.zeros(0), np.zeros(4), orig_size=(10, 10))

    def test_no_candidates(self) -> None:
        post = DetectionPostprocessor(self.LABELS)
        self.assertEqual(post.process(np.zeros(0), np.zeros(0), orig_size=(10, 10)), [])

    def test_invalid_config(self) -> None:
        with self.assertRaises(ValueError):
            DetectionPostConfig(iou_threshold=1.5)


if __name__ == "__main__":
    unittest.main()
