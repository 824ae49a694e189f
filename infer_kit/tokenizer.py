from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Union

import numpy as np

from .errors import ConfigurationError, ShapeMismatchError
from .types import MaskLogits, TokenSequence
from .vocab import SpecialTokens, Vocabulary, load_vocab


logger = logging.getLogger(__name__)

# Bracketed runs (candidate special tokens), word runs, punctuation runs.
# Word and space classes are ASCII-only, so accented letters split off as punctuation.
_PRE_TOKENIZE = re.compile(r"\[[^\[\]]+\]|\w+|[^\w\s]+", re.ASCII)

CONTINUATION_PREFIX = "##"


class WordPieceTokenizer:
    """
    BERT-style tokenizer: coarse pre-tokenization, lowercasing, then greedy
    longest-match WordPiece splitting against a fixed vocabulary.

    The vocabulary and special-token tables are read-only after construction,
    so one instance can be shared between threads.
    """

    def __init__(
        self,
        vocab: Union[Vocabulary, Mapping[str, int]],
        special_tokens: SpecialTokens = SpecialTokens(),
        *,
        require_mask: bool = False,
    ):
        self.vocab = vocab if isinstance(vocab, Vocabulary) else Vocabulary(vocab)
        self.special_tokens = special_tokens

        required = list(special_tokens.required)
        if require_mask:
            required.append(special_tokens.mask)
        missing = [tok for tok in required if tok not in self.vocab]
        if missing:
            raise ConfigurationError(f"Vocabulary is missing required special tokens: {missing}")

        self.pad_id = self.vocab[special_tokens.pad]
        self.unk_id = self.vocab[special_tokens.unk]
        self.cls_id = self.vocab[special_tokens.cls]
        self.sep_id = self.vocab[special_tokens.sep]
        self.mask_id: Optional[int] = self.vocab.get(special_tokens.mask)

        logger.debug("WordPieceTokenizer ready (vocab_size=%d)", len(self.vocab))

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        special_tokens: SpecialTokens = SpecialTokens(),
        *,
        require_mask: bool = False,
    ) -> "WordPieceTokenizer":
        return cls(load_vocab(path), special_tokens, require_mask=require_mask)

    @property
    def vocab_size(self) -> int:
        return len(self.vocab)

    @property
    def labels(self) -> Mapping[int, str]:
        """
        id -> token mapping, usable as a label table for masked-token predictions.
        """

        return self.vocab.id_to_token

    # ------------------------------------------------------------------ #
    # Encoding
    # ------------------------------------------------------------------ #
    def tokenize(self, text: str) -> List[str]:
        """
        Split `text` into vocabulary pieces (without CLS/SEP/padding).
        """

        pieces: List[str] = []
        for token in _PRE_TOKENIZE.findall(text):
            if token.startswith("[") and token.endswith("]"):
                canonical = self.special_tokens.canonical(token)
                if canonical is not None:
                    pieces.append(canonical)
                    continue

            token = token.lower()
            if token in self.vocab:
                pieces.append(token)
            else:
                pieces.extend(self.word_piece(token))
        return pieces

    def word_piece(self, word: str) -> List[str]:
        """
        Greedy longest-match split of a single word.

        Non-initial pieces are looked up with the `##` prefix. If any position
        has no match the whole word becomes a single UNK piece.
        """

        if word in self.vocab:
            return [word]

        pieces: List[str] = []
        start = 0
        n = len(word)
        while start < n:
            end = n
            match = None
            while end > start:
                candidate = word[start:end]
                if start > 0:
                    candidate = CONTINUATION_PREFIX + candidate
                if candidate in self.vocab:
                    match = candidate
                    break
                end -= 1

            if match is None:
                return [self.special_tokens.unk]

            pieces.append(match)
            start = end
        return pieces

    def encode(self, text: str, max_length: int) -> TokenSequence:
        """
        Encode `text` into exactly `max_length` ids.

        Layout: [CLS] pieces... [SEP] [PAD]... Overlong sequences are cut at
        `max_length`, which may drop the trailing [SEP].
        """

        if max_length < 1:
            raise ValueError("max_length must be >= 1")

        st = self.special_tokens
        input_ids = [self.cls_id]
        tokens = [st.cls]

        for piece in self.tokenize(text):
            idx = self.vocab.get(piece)
            if idx is None:
                input_ids.append(self.unk_id)
                tokens.append(st.unk)
            else:
                input_ids.append(idx)
                tokens.append(piece)

        input_ids.append(self.sep_id)
        tokens.append(st.sep)
        attention_mask = [1] * len(input_ids)

        if len(input_ids) > max_length:
            input_ids = input_ids[:max_length]
            attention_mask = attention_mask[:max_length]
            tokens = tokens[:max_length]
        else:
            pad = max_length - len(input_ids)
            input_ids.extend([self.pad_id] * pad)
            attention_mask.extend([0] * pad)
            tokens.extend([st.pad] * pad)

        return TokenSequence(input_ids=input_ids, attention_mask=attention_mask, tokens=tokens)

    def decode(self, ids: Sequence[int], skip_special_tokens: bool = True) -> str:
        st = self.special_tokens
        skipped = {st.pad, st.cls, st.sep} if skip_special_tokens else set()
        words: List[str] = []
        for idx in ids:
            token = self.vocab.id_to_token.get(int(idx), st.unk)
            if token in skipped:
                continue
            if token.startswith(CONTINUATION_PREFIX) and words:
                words[-1] += token[len(CONTINUATION_PREFIX):]
            else:
                words.append(token)
        return " ".join(words)

    # ------------------------------------------------------------------ #
    # Masked-LM helpers
    # ------------------------------------------------------------------ #
    def mask_positions(self, tokens: Sequence[str]) -> List[int]:
        mask = self.special_tokens.mask
        return [i for i, tok in enumerate(tokens) if tok == mask]

    def mask_position(self, tokens: Sequence[str]) -> Optional[int]:
        positions = self.mask_positions(tokens)
        return positions[0] if positions else None

    def mask_logits(self, tokens: Sequence[str], logits: np.ndarray) -> List[MaskLogits]:
        """
        Slice the per-position vocabulary logits for every [MASK] in `tokens`.

        `logits` may be flat or shaped (1, seq_len, vocab_size).
        """

        flat = np.asarray(logits, dtype=np.float32).reshape(-1)
        if not tokens:
            raise ShapeMismatchError("mask_logits() needs a non-empty token sequence")
        if flat.shape[0] % len(tokens) != 0:
            raise ShapeMismatchError(
                f"logits length ({flat.shape[0]}) is not a multiple of tokens length ({len(tokens)})"
            )

        width = self.vocab_size
        out: List[MaskLogits] = []
        for pos in self.mask_positions(tokens):
            start = pos * width
            end = start + width
            if end > flat.shape[0]:
                raise ShapeMismatchError(f"logits array too short for mask at position {pos}")
            out.append(MaskLogits(position=pos, logits=flat[start:end]))
        return out
