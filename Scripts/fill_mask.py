import argparse

from infer_kit import ClassificationConfig, MaskedLMPipeline, WordPieceTokenizer, load_backend


def main() -> int:
    parser = argparse.ArgumentParser(description="Predict the most likely tokens for every [MASK] in a sentence.")
    parser.add_argument(
        "--text",
        default="The [MASK] is a large animal that lives in the [MASK].",
        help="Input text containing one or more [MASK] tokens.",
    )
    parser.add_argument("--model", default="models/distilbert.onnx", help="Path to a masked-LM ONNX model.")
    parser.add_argument("--vocab", default="models/vocab.txt", help="Path to vocab.txt or tokenizer.json.")
    parser.add_argument("--max-length", type=int, default=512, help="Sequence length fed to the model.")
    parser.add_argument("--top-k", type=int, default=5, help="Predictions to print per mask.")
    parser.add_argument("--min-score", type=float, default=0.0, help="Minimum probability to report.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    args = parser.parse_args()

    if args.max_length < 2:
        raise ValueError("--max-length must be >= 2")
    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    tokenizer = WordPieceTokenizer.from_file(args.vocab, require_mask=True)
    infer_fn = load_backend(args.model, onnx_providers=onnx_providers)
    pipeline = MaskedLMPipeline(
        infer_fn,
        tokenizer,
        max_length=args.max_length,
        cfg=ClassificationConfig(top_k=args.top_k, min_score=args.min_score),
    )

    results = pipeline(args.text)
    if not results:
        print("No [MASK] token found in the input text.")
        return 1

    for result in results:
        print(f"\nTop {args.top_k} predictions for mask at position {result.position}")
        for pred in result.predictions:
            print(f"{pred.label}: {pred.score * 100:.2f}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
