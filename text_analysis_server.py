"""
Interactive text analysis server.

A client sends one line of text. Each word in it is matched against the word
list and, when the word is unknown, the client decides whether to add it,
take the best suggestion, or quit.

Transcript (every line ends with CRLF, the prompt does not):

    Hello, this is Text Analysis Server!
    Please enter your input string:
    > teh cat
    WORD 01: teh
    MATCHES: the (1), tea (1), ten (1), tel (1), cat (3)
    WORD 'teh' is not present in dictionary.
    Do you want to add this word to dictionary or exit? (y/N/q): > n
    Word not added to dictionary.
    WORD 02: cat
    MATCHES: cat (0), bat (1), ...

    INPUT : teh cat
    OUTPUT: the cat
    Thanks for using Text Analysis Server! Goodbye!
"""

import asyncio
import logging
import re
from typing import List, Optional

from symspellpy.suggest_item import SuggestItem

from text_matcher import TopKMatcher, has_exact_match, is_filled
from word_list import WordList

logger = logging.getLogger(__name__)

LINE_END = "\r\n"

GREETING = "Hello, this is Text Analysis Server!"
INPUT_PROMPT = "Please enter your input string:"
CHECK_OTHER_WORD = "Check the other word..."
ADD_PROMPT = "Do you want to add this word to dictionary or exit? (y/N/q): "
WORD_ADDED = "Word added to dictionary."
WORD_NOT_ADDED = "Word not added to dictionary."
CLOSED_BY_USER = "Connection closed by user."
GOODBYE = "Thanks for using Text Analysis Server! Goodbye!"

_VALID_INPUT = re.compile(r"[A-Za-z]+(?: [A-Za-z]+)*")


class TextAnalysisError(Exception):
    """Base class for errors that end a session."""


class ValidationError(TextAnalysisError):
    """The input line was rejected; the message is sent to the client."""


class CapacityError(ValidationError):
    """The input holds more words than one session will match."""


class TransportError(TextAnalysisError):
    """Reading from or writing to the client failed."""


def validate_input(raw: str, max_length: int) -> str:
    """Return the stripped input, or raise ValidationError."""
    text = raw.strip()
    if len(text) > max_length:
        raise ValidationError(f"ERROR: Input is longer than {max_length}!")
    if not text:
        raise ValidationError("ERROR: Input is empty!")
    if not _VALID_INPUT.fullmatch(text):
        raise ValidationError("ERROR: including dots, commas, question marks, etc!")
    return text


def tokenize(text: str, max_tokens: int) -> List[str]:
    tokens = text.lower().split(" ")
    if len(tokens) > max_tokens:
        raise CapacityError(f"ERROR: Input has more than {max_tokens} words!")
    return tokens


def format_matches(candidates: List[SuggestItem]) -> str:
    filled = [f"{item.term} ({item.distance})" for item in candidates if is_filled(item)]
    return "MATCHES: " + (", ".join(filled) if filled else "(none)")


class TextAnalysisSession:
    """
    Protocol run for one client connection.

    Holds all per-connection state: the input line, its tokens, one candidate
    list per token and the resolved output words. Nothing here is shared
    with other sessions except the word list, which is read through a
    snapshot and written through WordList.append.
    """

    MAX_INPUT_LENGTH = 100
    READ_SLACK = 10
    MAX_TOKENS = 25

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        word_list: WordList,
        matcher: Optional[TopKMatcher] = None,
        max_input_length: int = MAX_INPUT_LENGTH,
        max_tokens: int = MAX_TOKENS,
        read_timeout: Optional[float] = None,
    ):
        self.reader = reader
        self.writer = writer
        self.word_list = word_list
        self.matcher = matcher or TopKMatcher()
        self.max_input_length = max_input_length
        self.max_tokens = max_tokens
        self.read_timeout = read_timeout

        self.input_text = ""
        self.tokens: List[str] = []
        self.candidates: List[List[SuggestItem]] = []
        self.output_words: List[str] = []

    async def run(self) -> Optional[List[str]]:
        """
        Drive the session to completion.

        Returns the resolved output words, or None when the client quit.
        Raises ValidationError or TransportError when the session ends early.
        """
        await self.send_line(GREETING)
        await self.send_line(INPUT_PROMPT)

        try:
            raw = await self.read_input()
            self.input_text = validate_input(raw, self.max_input_length)
            self.tokens = tokenize(self.input_text, self.max_tokens)
        except ValidationError as exc:
            await self.send_line(str(exc))
            await self.send_line(CHECK_OTHER_WORD)
            raise

        self.input_text = self.input_text.lower()
        self.candidates = await self.match_tokens(self.tokens)

        for index, token in enumerate(self.tokens):
            if not await self.resolve_token(index, token):
                return None

        await self.send_line("")
        await self.send_line(f"INPUT : {self.input_text}")
        await self.send_line(f"OUTPUT: {' '.join(self.output_words)}")
        await self.send_line(GOODBYE)
        return self.output_words

    async def match_tokens(self, tokens: List[str]) -> List[List[SuggestItem]]:
        """Match every token in its own task against one word list snapshot."""
        words = self.word_list.snapshot()
        tasks = [asyncio.to_thread(self.matcher.lookup, token, words) for token in tokens]
        results = await asyncio.gather(*tasks)
        logger.debug("Matched %d tokens against %d words", len(tokens), len(words))
        return list(results)

    async def resolve_token(self, index: int, token: str) -> bool:
        """
        Settle the output word for one token.

        Returns False when the client asked to quit.
        """
        candidates = self.candidates[index]

        await self.send_line(f"WORD {index + 1:02d}: {token}")
        await self.send_line(format_matches(candidates))

        if has_exact_match(token, candidates):
            self.output_words.append(token)
            return True

        await self.send_line(f"WORD '{token}' is not present in dictionary.")
        await self.send(ADD_PROMPT)
        answer = await self.read_answer()

        if answer == "y":
            await asyncio.to_thread(self.word_list.append, token)
            await self.send_line(WORD_ADDED)
            self.output_words.append(token)
        elif answer == "q":
            await self.send_line(CLOSED_BY_USER)
            await self.send_line(CHECK_OTHER_WORD)
            return False
        else:
            await self.send_line(WORD_NOT_ADDED)
            best = candidates[0]
            self.output_words.append(best.term if is_filled(best) else token)
        return True

    async def read_input(self) -> str:
        try:
            line = await self._readline()
        except ValueError as exc:
            # Line ran past the stream limit
            raise ValidationError(f"ERROR: Input is longer than {self.max_input_length}!") from exc
        if not line:
            raise TransportError("connection closed before any input")
        return line.decode("utf-8", errors="replace")

    async def read_answer(self) -> str:
        """First character of the client's answer, lowercased; '' on failure."""
        try:
            line = await asyncio.wait_for(self._read_whole_line(), self.read_timeout)
        except (asyncio.TimeoutError, ConnectionError):
            return ""
        if line is None:
            return ""
        answer = line.decode("utf-8", errors="replace").strip().lower()
        return answer[:1]

    async def _read_whole_line(self) -> Optional[bytes]:
        """
        Read up to and including the next line terminator.

        Returns None when the line ran past the stream limit; everything up
        to its terminator (or EOF) is consumed so none of it is mistaken for
        the next line.
        """
        overflow = False
        while True:
            try:
                line = await self.reader.readuntil(b"\n")
            except asyncio.IncompleteReadError as exc:
                line = exc.partial
            except asyncio.LimitOverrunError as exc:
                overflow = True
                await self.reader.readexactly(exc.consumed)
                continue
            return None if overflow else line

    async def _readline(self) -> bytes:
        try:
            return await asyncio.wait_for(self.reader.readline(), self.read_timeout)
        except asyncio.TimeoutError as exc:
            raise TransportError("timed out waiting for the client") from exc
        except (ConnectionError, asyncio.IncompleteReadError) as exc:
            raise TransportError(str(exc)) from exc

    async def send_line(self, text: str):
        await self.send(text + LINE_END)

    async def send(self, text: str):
        try:
            self.writer.write(text.encode("utf-8"))
            await self.writer.drain()
        except ConnectionError as exc:
            raise TransportError(str(exc)) from exc


class TextAnalysisServer:
    """
    TCP listener that runs one TextAnalysisSession per connection.

    Args:
        word_list: Loaded word list shared by all sessions
        host: Interface to bind
        port: Port to bind (0 picks a free one)
        max_sessions: Sessions allowed to run at the same time
        max_input_length: Longest accepted input line
        max_tokens: Most words matched per input line
        read_timeout: Seconds to wait on each client read (None waits forever)
    """

    SERVER_PORT = 60000
    DEFAULT_HOST = "0.0.0.0"

    def __init__(
        self,
        word_list: WordList,
        host: str = DEFAULT_HOST,
        port: int = SERVER_PORT,
        max_sessions: int = 1,
        max_input_length: int = TextAnalysisSession.MAX_INPUT_LENGTH,
        max_tokens: int = TextAnalysisSession.MAX_TOKENS,
        read_timeout: Optional[float] = None,
    ):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.word_list = word_list
        self.host = host
        self.port = port
        self.max_sessions = max_sessions
        self.max_input_length = max_input_length
        self.max_tokens = max_tokens
        self.read_timeout = read_timeout
        self.matcher = TopKMatcher()
        self.server: Optional[asyncio.AbstractServer] = None
        self._semaphore = asyncio.Semaphore(max_sessions)

    @property
    def bound_port(self) -> int:
        if not self.server or not self.server.sockets:
            return self.port
        return self.server.sockets[0].getsockname()[1]

    async def start(self) -> asyncio.AbstractServer:
        self.server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
            limit=self.max_input_length + TextAnalysisSession.READ_SLACK + len(LINE_END),
            reuse_address=True,
        )
        logger.info("Server is up on port %d. Waiting for connections...", self.bound_port)
        return self.server

    async def serve_forever(self):
        if self.server is None:
            await self.start()
        async with self.server:
            await self.server.serve_forever()

    async def close(self):
        if self.server is not None:
            self.server.close()
            await self.server.wait_closed()
            self.server = None

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        peer = writer.get_extra_info("peername")
        async with self._semaphore:
            logger.info("New client connected: %s", peer)
            session = TextAnalysisSession(
                reader,
                writer,
                self.word_list,
                matcher=self.matcher,
                max_input_length=self.max_input_length,
                max_tokens=self.max_tokens,
                read_timeout=self.read_timeout,
            )
            try:
                output = await session.run()
                if output is None:
                    logger.info("Client %s quit", peer)
                else:
                    logger.info("Client %s done: %r -> %r", peer, session.input_text, " ".join(output))
            except ValidationError as exc:
                logger.info("Rejected input from %s: %s", peer, exc)
            except TransportError as exc:
                logger.warning("Connection to %s failed: %s", peer, exc)
            except Exception:
                logger.exception("Session with %s crashed", peer)
            finally:
                writer.close()
                try:
                    await writer.wait_closed()
                except ConnectionError:
                    pass
