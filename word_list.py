"""
Append-only word list backed by a newline-delimited text file.

File format: one lowercase word per line. Words are kept in file order and
duplicates are never removed. New words are appended to the end of the file
and of the in-memory sequence.
"""

import logging
import os
import threading
from importlib import resources
from pathlib import Path
from typing import Iterator, Optional, Tuple

logger = logging.getLogger(__name__)

FREQUENCY_DICTIONARY = "frequency_dictionary_en_82_765.txt"


class WordListLoadError(Exception):
    """The word list file is missing or cannot be read."""


class WordList:
    """
    Ordered in-memory word list plus its backing file.

    Readers take an immutable snapshot; appends go through a lock so that a
    snapshot never sees a half-applied addition.
    """

    def __init__(self, file_path: str, encoding: str = "utf-8"):
        self.file_path = file_path
        self.encoding = encoding
        self._words: list[str] = []
        self._lock = threading.Lock()

    def load(self) -> list[str]:
        """Read the backing file, replacing the in-memory words."""
        path = Path(self.file_path)
        if not path.is_file():
            raise WordListLoadError(f"Could not find the file: {self.file_path}")

        words: list[str] = []
        try:
            with open(path, "r", encoding=self.encoding) as f:
                for line in f:
                    word = line.strip().lower()
                    if word:
                        words.append(word)
        except (OSError, UnicodeDecodeError) as exc:
            raise WordListLoadError(f"Failed to load the file: {self.file_path}") from exc

        with self._lock:
            self._words = words
        logger.info("Loaded %d words from %s", len(words), self.file_path)
        return list(words)

    def snapshot(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._words)

    def append(self, word: str):
        """Add a word to the end of the file and of the in-memory list."""
        word = word.strip().lower()
        if not word or "\n" in word or "\r" in word:
            raise ValueError(f"not a storable word: {word!r}")

        with self._lock:
            with open(self.file_path, "a", encoding=self.encoding) as f:
                f.write(f"{word}\n")
            self._words.append(word)
        logger.info("Added %r to %s", word, self.file_path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._words)

    def __contains__(self, word: str) -> bool:
        with self._lock:
            return word in self._words

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())


def bundled_frequency_dictionary() -> Path:
    """Path of the English frequency dictionary shipped with symspellpy."""
    return Path(str(resources.files("symspellpy") / FREQUENCY_DICTIONARY))


def bootstrap_word_list(
    target: str,
    n: int,
    corpus: Optional[str] = None,
    term_index: int = 0,
    count_index: int = 1,
    separator: str = " ",
    encoding: Optional[str] = None,
) -> int:
    """
    Create a word list from the top N most frequent words of a frequency
    dictionary (`term count` per line).

    Only plain ASCII alphabetic terms are kept, since those are the only
    words a client can ever type. Returns the number of words written.
    """
    if os.path.exists(target):
        raise FileExistsError(f"Refusing to overwrite existing word list: {target}")
    if n < 1:
        raise ValueError("n must be at least 1")

    corpus_path = Path(corpus) if corpus else bundled_frequency_dictionary()
    if not corpus_path.exists():
        raise WordListLoadError(f"Could not find the frequency dictionary: {corpus_path}")

    words_list: list[tuple[str, int]] = []

    with open(corpus_path, "r", encoding=encoding) as f:
        for line in f:
            parts = line.rstrip().split(separator)
            if len(parts) < 2:
                continue

            term = parts[term_index].lower()
            if not (term.isascii() and term.isalpha()):
                continue
            try:
                count = int(parts[count_index])
            except ValueError:
                continue

            words_list.append((term, count))

    # Most frequent first; sorted() is stable so file order breaks ties
    words_list = sorted(words_list, key=lambda x: -x[1])[:n]

    with open(target, "w", encoding="utf-8") as f:
        for term, _ in words_list:
            f.write(f"{term}\n")

    logger.info("Wrote %d words from %s to %s", len(words_list), corpus_path, target)
    return len(words_list)
