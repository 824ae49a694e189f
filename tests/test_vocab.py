import io
import json
import tempfile
import unittest
from pathlib import Path

from infer_kit.errors import ConfigurationError
from infer_kit.vocab import SpecialTokens, Vocabulary, load_vocab, read_vocab


class TestVocabulary(unittest.TestCase):
    def _write(self, name: str, text: str) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / name
        path.write_text(text, encoding="utf-8")
        return path

    def test_sequential_ids_skip_blank_lines(self) -> None:
        vocab = Vocabulary.from_tokens(["[PAD]\n", "\n", "hello\n", "  \n", "world"])
        self.assertEqual(dict(vocab.token_to_id), {"[PAD]": 0, "hello": 1, "world": 2})
        self.assertEqual(vocab.id_to_token[2], "world")
        self.assertEqual(len(vocab), 3)

    def test_duplicate_token_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            Vocabulary.from_tokens(["a", "b", "a"])

    def test_mapping_ids_must_be_contiguous_and_unique(self) -> None:
        with self.assertRaises(ConfigurationError):
            Vocabulary.from_mapping({"a": 0, "b": 2})
        with self.assertRaises(ConfigurationError):
            Vocabulary.from_mapping({"a": 0, "b": 0})

    def test_views_are_read_only(self) -> None:
        vocab = Vocabulary.from_tokens(["a", "b"])
        with self.assertRaises(TypeError):
            vocab.token_to_id["c"] = 2  # type: ignore[index]
        with self.assertRaises(TypeError):
            vocab.id_to_token[2] = "c"  # type: ignore[index]

    def test_load_text_file(self) -> None:
        path = self._write("vocab.txt", "[PAD]\n[UNK]\n[CLS]\n[SEP]\nhello\n\nworld\n")
        vocab = load_vocab(path)
        self.assertEqual(vocab["world"], 5)
        self.assertIn("hello", vocab)
        self.assertIsNone(vocab.get("missing"))

    def test_load_tokenizer_json(self) -> None:
        payload = {"model": {"type": "WordPiece", "vocab": {"[PAD]": 0, "hello": 2, "[UNK]": 1}}}
        path = self._write("tokenizer.json", json.dumps(payload))
        vocab = load_vocab(path)
        self.assertEqual(vocab["hello"], 2)
        self.assertEqual(vocab.id_to_token[1], "[UNK]")

    def test_tokenizer_json_without_vocab_rejected(self) -> None:
        path = self._write("tokenizer.json", json.dumps({"model": {"type": "WordPiece"}}))
        with self.assertRaises(ConfigurationError):
            load_vocab(path)

    def test_invalid_json_rejected(self) -> None:
        path = self._write("tokenizer.json", "{not json")
        with self.assertRaises(ConfigurationError):
            load_vocab(path)

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_vocab("/nonexistent/vocab.txt")

    def test_read_from_binary_stream(self) -> None:
        vocab = read_vocab(io.BytesIO("[PAD]\n[UNK]\ncafé\n".encode("utf-8")))
        self.assertEqual(vocab["café"], 2)


class TestSpecialTokens(unittest.TestCase):
    def test_canonical_is_case_insensitive(self) -> None:
        st = SpecialTokens()
        self.assertEqual(st.canonical("[cls]"), "[CLS]")
        self.assertEqual(st.canonical("[Mask]"), "[MASK]")
        self.assertIsNone(st.canonical("[foo]"))

    def test_custom_spelling_is_returned(self) -> None:
        st = SpecialTokens(mask="<mask>")
        self.assertEqual(st.canonical("<MASK>"), "<mask>")
        self.assertEqual(st.required, ("[PAD]", "[UNK]", "[CLS]", "[SEP]"))


if __name__ == "__main__":
    unittest.main()
