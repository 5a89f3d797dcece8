#!/usr/bin/env python3
"""
Start the text analysis server.

    python run_server.py --word-list basic_english_2000.txt --port 60000

The word list must exist before the server starts. To create one from the
English frequency dictionary bundled with symspellpy:

    python run_server.py --word-list words.txt --bootstrap-top-n 2000

Connect with any line-oriented client, e.g. `telnet localhost 60000`.
"""

import argparse
import asyncio
import logging
import os
import sys

from text_analysis_server import TextAnalysisServer, TextAnalysisSession
from word_list import WordList, WordListLoadError, bootstrap_word_list

DEFAULT_WORD_LIST = "basic_english_2000.txt"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Interactive text analysis server"
    )
    parser.add_argument(
        "--word-list", "-w",
        default=DEFAULT_WORD_LIST,
        help=f"Path to the word list, one word per line (default: {DEFAULT_WORD_LIST})"
    )
    parser.add_argument(
        "--host",
        default=TextAnalysisServer.DEFAULT_HOST,
        help=f"Interface to listen on (default: {TextAnalysisServer.DEFAULT_HOST})"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=TextAnalysisServer.SERVER_PORT,
        help=f"Port to listen on (default: {TextAnalysisServer.SERVER_PORT})"
    )
    parser.add_argument(
        "--max-input-length",
        type=int,
        default=TextAnalysisSession.MAX_INPUT_LENGTH,
        help=f"Longest accepted input line (default: {TextAnalysisSession.MAX_INPUT_LENGTH})"
    )
    parser.add_argument(
        "--max-tokens",
        type=int,
        default=TextAnalysisSession.MAX_TOKENS,
        help=f"Most words per input line (default: {TextAnalysisSession.MAX_TOKENS})"
    )
    parser.add_argument(
        "--max-sessions",
        type=int,
        default=1,
        help="Sessions served at the same time (default: 1)"
    )
    parser.add_argument(
        "--read-timeout",
        type=float,
        default=None,
        help="Seconds to wait for each client reply (default: wait forever)"
    )
    parser.add_argument(
        "--bootstrap-top-n",
        type=int,
        default=None,
        help="Create the word list from the N most frequent symspellpy words if it does not exist"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    print("Starting text analysis server...")
    print(f"  Word list: {args.word_list}")
    print(f"  Listen: {args.host}:{args.port}")
    print(f"  Max input length: {args.max_input_length}")
    print(f"  Max words per line: {args.max_tokens}")
    print()

    if args.bootstrap_top_n and not os.path.exists(args.word_list):
        try:
            written = bootstrap_word_list(args.word_list, args.bootstrap_top_n, encoding="utf-8")
        except (WordListLoadError, ValueError) as e:
            print(f"ERROR: {e}")
            return 1
        print(f"  ✓ Created {args.word_list} with {written:,} words")

    word_list = WordList(args.word_list)
    try:
        words = word_list.load()
    except WordListLoadError as e:
        print(f"ERROR: {e}")
        return 1

    print(f"  ✓ Loaded {len(words):,} words")

    server = TextAnalysisServer(
        word_list,
        host=args.host,
        port=args.port,
        max_sessions=args.max_sessions,
        max_input_length=args.max_input_length,
        max_tokens=args.max_tokens,
        read_timeout=args.read_timeout,
    )

    try:
        asyncio.run(server.serve_forever())
    except OSError as e:
        print(f"ERROR: Cannot start server: {e}")
        return 1
    except KeyboardInterrupt:
        pass

    print("\nServer stopped. Goodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
