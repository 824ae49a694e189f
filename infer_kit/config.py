from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Set

from .postprocess import ClassificationConfig, DetectionPostConfig


@dataclass(frozen=True)
class PostprocessProfile:
    schema_version: int
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    detection: DetectionPostConfig = field(default_factory=DetectionPostConfig)
    max_length: int = 512
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if self.schema_version != 1:
            raise ValueError("postprocess profile schema_version must be 1")
        if self.max_length < 1:
            raise ValueError("max_length must be >= 1")


def _require_int(payload: Dict[str, Any], key: str) -> int:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _optional_number(payload: Dict[str, Any], key: str, default: float) -> float:
    if key not in payload:
        return default
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _optional_int(payload: Dict[str, Any], key: str, default: int) -> int:
    if key not in payload:
        return default
    return _require_int(payload, key)


def _optional_bool(payload: Dict[str, Any], key: str, default: bool) -> bool:
    if key not in payload:
        return default
    value = payload[key]
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


def _check_keys(payload: Dict[str, Any], allowed: Set[str], where: str) -> None:
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown {where} keys: {unknown}")


def _section(payload: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = payload.get(key, {})
    if not isinstance(section, dict):
        raise ValueError(f"'{key}' must be an object")
    return section


def parse_postprocess_profile(payload: Dict[str, Any]) -> PostprocessProfile:
    _check_keys(payload, {"schema_version", "classification", "detection", "max_length", "notes"}, "profile")

    cls_payload = _section(payload, "classification")
    _check_keys(cls_payload, {"top_k", "min_score", "apply_softmax"}, "classification")
    defaults_cls = ClassificationConfig()
    classification = ClassificationConfig(
        top_k=_optional_int(cls_payload, "top_k", defaults_cls.top_k),
        min_score=_optional_number(cls_payload, "min_score", defaults_cls.min_score),
        apply_softmax=_optional_bool(cls_payload, "apply_softmax", defaults_cls.apply_softmax),
    )

    det_payload = _section(payload, "detection")
    _check_keys(det_payload, {"conf_threshold", "iou_threshold", "max_detections", "class_agnostic_nms"}, "detection")
    defaults_det = DetectionPostConfig()
    detection = DetectionPostConfig(
        conf_threshold=_optional_number(det_payload, "conf_threshold", defaults_det.conf_threshold),
        iou_threshold=_optional_number(det_payload, "iou_threshold", defaults_det.iou_threshold),
        max_detections=_optional_int(det_payload, "max_detections", defaults_det.max_detections),
        class_agnostic_nms=_optional_bool(det_payload, "class_agnostic_nms", defaults_det.class_agnostic_nms),
    )

    notes = payload.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise ValueError("notes must be a string if provided")

    return PostprocessProfile(
        schema_version=_require_int(payload, "schema_version"),
        classification=classification,
        detection=detection,
        max_length=_optional_int(payload, "max_length", 512),
        notes=notes,
    )


def load_postprocess_profile(path: Path) -> PostprocessProfile:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Postprocess profile not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid postprocess profile JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Postprocess profile must be a JSON object")
    return parse_postprocess_profile(payload)
