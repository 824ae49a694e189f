from __future__ import annotations

import io
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import IO, Dict, Iterable, Iterator, Mapping, Optional, Union

from .errors import ConfigurationError


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class SpecialTokens:
    """
    Canonical spellings of the BERT special tokens.

    Matching against input text is case-insensitive; `canonical()` always
    returns the spelling registered in the vocabulary.
    """

    pad: str = "[PAD]"
    unk: str = "[UNK]"
    cls: str = "[CLS]"
    sep: str = "[SEP]"
    mask: str = "[MASK]"
    _lookup: Mapping[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        table = {tok.upper(): tok for tok in (self.pad, self.unk, self.cls, self.sep, self.mask)}
        object.__setattr__(self, "_lookup", MappingProxyType(table))

    @property
    def required(self) -> tuple:
        return (self.pad, self.unk, self.cls, self.sep)

    def canonical(self, token: str) -> Optional[str]:
        return self._lookup.get(token.upper())


class Vocabulary:
    """
    Immutable token <-> id mapping with dense ids in [0, N).
    """

    def __init__(self, token_to_id: Mapping[str, int]):
        forward: Dict[str, int] = dict(token_to_id)
        reverse: Dict[int, str] = {}
        for token, idx in forward.items():
            if isinstance(idx, bool) or not isinstance(idx, int):
                raise ConfigurationError(f"Vocabulary id for {token!r} must be an integer, got {idx!r}")
            if idx in reverse:
                raise ConfigurationError(f"Duplicate vocabulary id {idx} ({reverse[idx]!r} and {token!r})")
            reverse[idx] = token

        n = len(forward)
        if reverse and (min(reverse) != 0 or max(reverse) != n - 1):
            raise ConfigurationError(f"Vocabulary ids must be contiguous in [0, {n}), got [{min(reverse)}, {max(reverse)}]")

        self._token_to_id = MappingProxyType(forward)
        self._id_to_token = MappingProxyType(reverse)

    @classmethod
    def from_tokens(cls, tokens: Iterable[str]) -> "Vocabulary":
        """
        Assign sequential ids in order, skipping blank entries.
        """

        mapping: Dict[str, int] = {}
        for raw in tokens:
            token = raw.strip()
            if not token:
                continue
            if token in mapping:
                raise ConfigurationError(f"Duplicate vocabulary token: {token!r}")
            mapping[token] = len(mapping)
        return cls(mapping)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, int]) -> "Vocabulary":
        return cls(mapping)

    @classmethod
    def from_tokenizer_json(cls, payload: Mapping[str, object]) -> "Vocabulary":
        """
        Build from a tokenizer document exposing `model.vocab` (token -> id).
        """

        model = payload.get("model") if isinstance(payload, Mapping) else None
        vocab = model.get("vocab") if isinstance(model, Mapping) else None
        if not isinstance(vocab, Mapping):
            raise ConfigurationError("Tokenizer JSON must contain an object at model.vocab")
        return cls(vocab)

    @property
    def token_to_id(self) -> Mapping[str, int]:
        return self._token_to_id

    @property
    def id_to_token(self) -> Mapping[int, str]:
        return self._id_to_token

    def get(self, token: str, default: Optional[int] = None) -> Optional[int]:
        return self._token_to_id.get(token, default)

    def __getitem__(self, token: str) -> int:
        return self._token_to_id[token]

    def __contains__(self, token: object) -> bool:
        return token in self._token_to_id

    def __len__(self) -> int:
        return len(self._token_to_id)

    def __iter__(self) -> Iterator[str]:
        return iter(self._token_to_id)

    def __repr__(self) -> str:
        return f"Vocabulary(size={len(self)})"


def read_vocab(stream: IO) -> Vocabulary:
    """
    Read a newline-delimited vocabulary from a text or binary stream.
    """

    data = stream.read()
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    vocab = Vocabulary.from_tokens(io.StringIO(data))
    logger.debug("Read vocabulary with %d tokens", len(vocab))
    return vocab


def load_vocab(path: PathLike) -> Vocabulary:
    """
    Load a vocabulary file.

    - `*.json`: tokenizer document with `model.vocab` (ids taken from the document)
    - anything else: one token per line, ids assigned in file order
    """

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Vocabulary not found: {p}")

    if p.suffix.lower() == ".json":
        raw = p.read_text(encoding="utf-8")
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Invalid tokenizer JSON: {p}") from exc
        if not isinstance(payload, dict):
            raise ConfigurationError("Tokenizer JSON must be a JSON object")
        vocab = Vocabulary.from_tokenizer_json(payload)
    else:
        with open(p, "r", encoding="utf-8") as f:
            vocab = Vocabulary.from_tokens(f)

    logger.debug("Loaded vocabulary with %d tokens from %s", len(vocab), p)
    return vocab
