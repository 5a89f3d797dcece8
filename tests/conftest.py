"""Shared fixtures for the text analysis server tests."""

import asyncio

import pytest

from word_list import WordList

ANIMALS = ["cat", "bat", "rat", "hat", "mat", "cats"]


class RecordingWriter:
    """Stand-in for asyncio.StreamWriter that keeps everything written."""

    def __init__(self):
        self.buffer = bytearray()
        self.closed = False

    def write(self, data: bytes):
        self.buffer.extend(data)

    async def drain(self):
        pass

    def close(self):
        self.closed = True

    async def wait_closed(self):
        pass

    def get_extra_info(self, name, default=None):
        return default

    @property
    def text(self) -> str:
        return self.buffer.decode("utf-8")

    @property
    def lines(self) -> list[str]:
        return self.text.split("\r\n")


def make_reader(*lines: str, eof: bool = True, limit: int = 2**16) -> asyncio.StreamReader:
    """StreamReader preloaded with CRLF-terminated client lines."""
    reader = asyncio.StreamReader(limit=limit)
    for line in lines:
        reader.feed_data(f"{line}\r\n".encode("utf-8"))
    if eof:
        reader.feed_eof()
    return reader


@pytest.fixture
def word_file(tmp_path):
    path = tmp_path / "words.txt"
    path.write_text("\n".join(ANIMALS) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def word_list(word_file) -> WordList:
    words = WordList(str(word_file))
    words.load()
    return words
