"""Tests for the command-line launcher."""

from unittest.mock import patch

import run_server
from word_list import bootstrap_word_list, bundled_frequency_dictionary


def test_missing_word_list_exits_with_error(tmp_path, capsys):
    missing = tmp_path / "missing.txt"

    with patch("run_server.asyncio.run") as fake_run:
        status = run_server.main(["--word-list", str(missing)])

    assert status == 1
    fake_run.assert_not_called()
    assert "ERROR: Could not find the file" in capsys.readouterr().out


def test_loads_word_list_and_starts_server(word_file, capsys):
    with patch("run_server.asyncio.run") as fake_run:
        status = run_server.main(["--word-list", str(word_file), "--port", "0", "--max-sessions", "2"])

    assert status == 0
    fake_run.assert_called_once()
    fake_run.call_args.args[0].close()
    assert "Loaded 6 words" in capsys.readouterr().out


def test_bind_failure_exits_with_error(word_file, capsys):
    def fail(coro):
        coro.close()
        raise OSError("address already in use")

    with patch("run_server.asyncio.run", side_effect=fail):
        status = run_server.main(["--word-list", str(word_file)])

    assert status == 1
    assert "Cannot start server" in capsys.readouterr().out


def test_bootstrap_creates_missing_word_list(tmp_path, capsys):
    target = tmp_path / "fresh.txt"

    with patch("run_server.asyncio.run") as fake_run:
        status = run_server.main(["--word-list", str(target), "--bootstrap-top-n", "50"])

    assert status == 0
    fake_run.call_args.args[0].close()
    assert len(target.read_text(encoding="utf-8").splitlines()) == 50


def test_bundled_frequency_dictionary_bootstrap(tmp_path):
    assert bundled_frequency_dictionary().exists()
    target = tmp_path / "top.txt"

    written = bootstrap_word_list(str(target), 100, encoding="utf-8")

    words = target.read_text(encoding="utf-8").splitlines()
    assert written == len(words) == 100
    assert "the" in words
    assert all(word.isascii() and word.isalpha() and word.islower() for word in words)
