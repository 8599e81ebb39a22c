#!/usr/bin/env python3
"""
Model conversion utility.
Converts word2vec models between the binary, text and compact formats and
prints a summary of a model file.
"""

import argparse
import sys
from pathlib import Path

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.core.config import SUPPORTED_FORMATS, VERSION, get_default_byte_order, validate_codec_config
from src.vector import Word2VecModel, Word2VecError
from util.logging import ProgressTimer, logger


def _load(path: str, fmt: str, byte_order: str) -> Word2VecModel:
    if fmt == "bin":
        return Word2VecModel.from_bin_file(path, byte_order=byte_order, progress=ProgressTimer())
    return Word2VecModel.load(path, fmt)


def convert_command(args) -> int:
    """Convert a model from one format to another."""
    print(f"🔄 Loading {args.input} ({args.source_format})...")
    model = _load(args.input, args.source_format, args.byte_order)

    print(f"💾 Writing {args.output} ({args.target_format})...")
    model.save(args.output, args.target_format)

    print("✅ Conversion completed successfully")
    print(f"   Words: {len(model)}")
    print(f"   Dimensions: {model.layer_size}")
    return 0


def inspect_command(args) -> int:
    """Print vocabulary size, dimensionality and the first words of a model."""
    model = _load(args.input, args.format, args.byte_order)

    print(f"Model: {args.input}")
    print(f"   Format: {args.format}")
    print(f"   Words: {len(model)}")
    print(f"   Dimensions: {model.layer_size}")
    print(f"   Segments: {len(model.store.segments)}")
    for i, word in enumerate(model.vocab[:args.head]):
        preview = " ".join(f"{v:.4f}" for v in model.vector_at(i)[:5])
        print(f"   {i:>6} {word}: {preview}{' ...' if model.layer_size > 5 else ''}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convert and inspect word2vec model files")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Convert a model between formats")
    convert.add_argument("input", help="Model file to read")
    convert.add_argument("output", help="Model file to write")
    convert.add_argument(
        "--from",
        dest="source_format",
        choices=SUPPORTED_FORMATS,
        default="bin",
        help="Format of the input file (default: bin)"
    )
    convert.add_argument(
        "--to",
        dest="target_format",
        choices=SUPPORTED_FORMATS,
        default="compact",
        help="Format of the output file (default: compact)"
    )
    convert.add_argument(
        "--byte-order",
        choices=["little", "big"],
        default=get_default_byte_order(),
        help="Byte order of binary input floats (output is always little endian)"
    )
    convert.set_defaults(func=convert_command)

    inspect = subparsers.add_parser("inspect", help="Summarize a model file")
    inspect.add_argument("input", help="Model file to read")
    inspect.add_argument("--format", choices=SUPPORTED_FORMATS, default="bin")
    inspect.add_argument("--byte-order", choices=["little", "big"], default=get_default_byte_order())
    inspect.add_argument("--head", type=int, default=10, help="Number of words to show (default: 10)")
    inspect.set_defaults(func=inspect_command)

    return parser


def main(argv=None) -> int:
    issues = validate_codec_config()
    if issues:
        for issue in issues:
            print(f"❌ ERROR: {issue}")
        return 1

    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (Word2VecError, OSError, EOFError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"❌ {args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
