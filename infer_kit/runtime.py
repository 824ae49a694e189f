from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .postprocess import (
    ClassificationConfig,
    ClassificationPostprocessor,
    DetectionPostConfig,
    DetectionPostprocessor,
)
from .tokenizer import WordPieceTokenizer
from .types import Classification, Detection, TokenSequence


PathLike = Union[str, Path]

# The execution capability: named input arrays in, named output arrays out.
InferFn = Callable[[Dict[str, np.ndarray]], Dict[str, np.ndarray]]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", "setup.py", ".git", "requirements.txt"),
) -> Path:
    """
    Best-effort project root discovery.

    Useful when models live next to the code, e.g. `A/models/bert.onnx`.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    # If a file is provided, start from its directory.
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Resolve `path` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against `root` if provided, the project root otherwise.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


def _output(outputs: Mapping[str, np.ndarray], name: str) -> np.ndarray:
    if name not in outputs:
        raise KeyError(f"Model output {name!r} not found (available: {sorted(outputs)})")
    return np.asarray(outputs[name])


@dataclass(frozen=True)
class PixelInput:
    """
    Preprocessed image handed over by the image collaborator.

    pixel_values: float32 NCHW blob, usually (1, 3, H, W), already normalized
    orig_size: (width, height) of the image before resizing
    """

    pixel_values: np.ndarray
    orig_size: Tuple[int, int]


@dataclass
class MaskPrediction:
    position: int
    predictions: List[Classification]


class MaskedLMPipeline:
    """
    Text -> tokenizer -> model -> top-k vocabulary predictions for every [MASK].
    """

    def __init__(
        self,
        infer_fn: InferFn,
        tokenizer: WordPieceTokenizer,
        *,
        max_length: int = 512,
        cfg: ClassificationConfig = ClassificationConfig(),
        logits_name: str = "logits",
    ):
        self._infer_fn = infer_fn
        self.tokenizer = tokenizer
        self.max_length = max_length
        self.logits_name = logits_name
        self.post = ClassificationPostprocessor(tokenizer.labels, cfg)

    def encode(self, text: str) -> TokenSequence:
        return self.tokenizer.encode(text, self.max_length)

    def __call__(self, text: str) -> List[MaskPrediction]:
        seq = self.encode(text)
        outputs = self._infer_fn(seq.as_model_inputs())
        logits = _output(outputs, self.logits_name)
        return [
            MaskPrediction(position=m.position, predictions=self.post.process(m.logits))
            for m in self.tokenizer.mask_logits(seq.tokens, logits)
        ]


class ImageClassificationPipeline:
    def __init__(
        self,
        infer_fn: InferFn,
        labels: Mapping[int, str],
        cfg: ClassificationConfig = ClassificationConfig(),
        *,
        input_name: str = "pixel_values",
        logits_name: str = "logits",
    ):
        self._infer_fn = infer_fn
        self.input_name = input_name
        self.logits_name = logits_name
        self.post = ClassificationPostprocessor(labels, cfg)

    def __call__(self, image: PixelInput) -> List[Classification]:
        outputs = self._infer_fn({self.input_name: image.pixel_values})
        return self.post.process(_output(outputs, self.logits_name))


class DetectionPipeline:
    """
    Preprocessed image -> model -> labeled boxes in original image coordinates.
    """

    def __init__(
        self,
        infer_fn: InferFn,
        labels: Mapping[int, str],
        cfg: DetectionPostConfig = DetectionPostConfig(),
        *,
        input_name: str = "pixel_values",
        logits_name: str = "logits",
        boxes_name: str = "pred_boxes",
    ):
        self._infer_fn = infer_fn
        self.input_name = input_name
        self.logits_name = logits_name
        self.boxes_name = boxes_name
        self.post = DetectionPostprocessor(labels, cfg)

    def __call__(self, image: PixelInput) -> List[Detection]:
        outputs = self._infer_fn({self.input_name: image.pixel_values})
        return self.post.process(
            _output(outputs, self.logits_name),
            _output(outputs, self.boxes_name),
            orig_size=image.orig_size,
        )


def load_backend(
    model_path: PathLike,
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_output_names: Optional[Sequence[str]] = None,
) -> InferFn:
    """
    Create an execution backend for a model on disk and return its `run` callable.

    Args:
        model_path: path to the model file; relative paths resolve against project root by default
        backend: "onnxruntime", or None to infer from extension
        root: base directory for resolving relative model paths ("auto" uses best-effort project root)
    """

    resolved = resolve_path(model_path, root=root)
    chosen = backend
    if chosen is None:
        suffix = resolved.suffix.lower()
        if suffix == ".onnx":
            chosen = "onnxruntime"
        else:
            raise ValueError(
                f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly."
            )

    if chosen.lower() == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        ort_backend = OnnxRuntimeBackend(
            resolved,
            OnnxRuntimeBackendConfig(providers=onnx_providers, output_names=onnx_output_names),
        )
        return ort_backend.run

    raise ValueError(f"Unsupported backend: {backend!r}")
