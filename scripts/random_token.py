#!/usr/bin/env python3
"""
Print random tokens for secrets, file names or fixtures.

Tokens use the same 64-character alphabet as stored upload names
([a-zA-Z0-9_+]). Run from project root:

    python scripts/random_token.py
    python scripts/random_token.py --length 40 --count 5
"""

import argparse
import sys
from pathlib import Path

# Project root on path so "webtoolkit" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from webtoolkit.core.config import RANDOM_NAME_LENGTH
from webtoolkit.services.random_token import random_string


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Print random tokens.")
    parser.add_argument(
        "--length",
        type=int,
        default=RANDOM_NAME_LENGTH,
        help=f"Characters per token (default {RANDOM_NAME_LENGTH}).",
    )
    parser.add_argument("--count", type=int, default=1, help="Number of tokens to print.")
    args = parser.parse_args(argv)

    if args.length < 0 or args.count < 0:
        parser.error("--length and --count must be non-negative")

    for _ in range(args.count):
        print(random_string(args.length))


if __name__ == "__main__":
    main()
