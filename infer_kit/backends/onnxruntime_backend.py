from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import numpy as np


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    - output_names: restrict which outputs are fetched; None fetches all of them
    - intra_op_num_threads: 0 lets ORT decide
    """

    providers: Optional[Sequence[str]] = None
    output_names: Optional[Sequence[str]] = None
    intra_op_num_threads: int = 0


class OnnxRuntimeBackend:
    """
    Minimal ONNX Runtime backend.

    `run` takes named input arrays (e.g. input_ids/attention_mask or
    pixel_values) and returns every requested output by name.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        sess_opts = ort.SessionOptions()
        if cfg.intra_op_num_threads > 0:
            sess_opts.intra_op_num_threads = int(cfg.intra_op_num_threads)
        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)

        self.input_names = tuple(i.name for i in self.session.get_inputs())
        self.output_names = tuple(cfg.output_names) if cfg.output_names else tuple(
            o.name for o in self.session.get_outputs()
        )
        logger.debug(
            "Loaded %s (inputs=%s, outputs=%s, providers=%s)",
            self.model_path,
            self.input_names,
            self.output_names,
            self.providers_in_use,
        )

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    @property
    def available_providers(self) -> Sequence[str]:
        return tuple(self._ort.get_available_providers())

    def run(self, inputs: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        missing = [name for name in self.input_names if name not in inputs]
        if missing:
            raise KeyError(f"Missing model inputs: {missing} (model expects {list(self.input_names)})")
        feed = {name: inputs[name] for name in self.input_names}
        outputs = self.session.run(list(self.output_names), feed)
        return dict(zip(self.output_names, outputs))

    __call__ = run
