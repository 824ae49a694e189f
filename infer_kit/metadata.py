from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Union


def _names_from_json(payload: object, path: Path) -> Dict[int, str]:
    # Model configs keep the table under "id2label".
    if isinstance(payload, dict) and "id2label" in payload:
        payload = payload["id2label"]

    if isinstance(payload, list):
        return {i: str(name) for i, name in enumerate(payload) if name not in (None, "")}

    if not isinstance(payload, dict):
        raise ValueError(f"Label file must hold a JSON object or list: {path}")

    names: Dict[int, str] = {}
    for key, value in payload.items():
        key_s = str(key).strip()
        if not key_s.isdigit():
            raise ValueError(f"Label id must be a non-negative integer, got {key!r} in {path}")
        if not isinstance(value, str):
            raise ValueError(f"Label for id {key_s} must be a string in {path}")
        names[int(key_s)] = value
    return names


def load_class_names(metadata_path: Union[str, Path]) -> Dict[int, str]:
    """
    Load a class-index -> label table.

    Two formats are accepted. JSON files (`.json`) may hold an `id2label`
    object as found in model configs, a flat `{"0": "cat"}` object, or a list
    of labels. Anything else is read as the lightweight `metadata.yaml` layout:

        names:
          0: person
          1: bicycle
          ...

    Indices missing from the table count as "no label" for the decoders.
    """

    path = Path(metadata_path)
    if not path.exists():
        raise FileNotFoundError(f"Label file not found: {path}")

    if path.suffix.lower() == ".json":
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid label JSON: {path}") from exc
        return _names_from_json(payload, path)

    names: Dict[int, str] = {}
    in_names = False

    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names:
                continue

            # Parse "id: label"
            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            right = right.strip().strip("'").strip('"')
            if not left.isdigit():
                continue
            names[int(left)] = right

    return names
