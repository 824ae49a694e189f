"""
Tokenization and post-processing for pretrained vision and language models.

Model execution is delegated to an inference engine (ONNX Runtime by default)
through a "run(named inputs) -> named outputs" callable. This package turns
text into model-ready token ids and raw output tensors into labeled
predictions. Core functionality needs only NumPy; OpenCV and ONNX Runtime are
optional.
"""

from .errors import ConfigurationError, ShapeMismatchError
from .types import Box, Classification, Detection, MaskLogits, TokenSequence
from .ops import iou, l2_normalize, sigmoid, softmax, top_k
from .vocab import SpecialTokens, Vocabulary, load_vocab, read_vocab
from .tokenizer import WordPieceTokenizer
from .nms import NMSConfig, nms, non_max_suppression
from .postprocess import (
    ClassificationConfig,
    ClassificationPostprocessor,
    DetectionPostConfig,
    DetectionPostprocessor,
)
from .metadata import load_class_names
from .config import PostprocessProfile, load_postprocess_profile
from .runtime import (
    DetectionPipeline,
    ImageClassificationPipeline,
    MaskedLMPipeline,
    PixelInput,
    find_project_root,
    load_backend,
    resolve_path,
)
from .visualize import draw_detections

__all__ = [
    "ConfigurationError",
    "ShapeMismatchError",
    "Box",
    "Classification",
    "Detection",
    "MaskLogits",
    "TokenSequence",
    "iou",
    "l2_normalize",
    "sigmoid",
    "softmax",
    "top_k",
    "SpecialTokens",
    "Vocabulary",
    "load_vocab",
    "read_vocab",
    "WordPieceTokenizer",
    "NMSConfig",
    "nms",
    "non_max_suppression",
    "ClassificationConfig",
    "ClassificationPostprocessor",
    "DetectionPostConfig",
    "DetectionPostprocessor",
    "load_class_names",
    "PostprocessProfile",
    "load_postprocess_profile",
    "DetectionPipeline",
    "ImageClassificationPipeline",
    "MaskedLMPipeline",
    "PixelInput",
    "find_project_root",
    "load_backend",
    "resolve_path",
    "draw_detections",
]
