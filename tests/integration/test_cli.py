"""End-to-end tests of the command line entry point with stubbed providers."""

import io
import json
import signal
import sys

import pytest

from code_editor import main as cli
from code_editor.cancellation import CancellationToken
from code_editor.testing.fakes import FakeEmbeddingProvider, InMemoryVectorStore
from code_editor.testing.mock_llm import create_mock_llm, tool_call_message


@pytest.fixture(autouse=True)
def in_tmp(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def stdio(monkeypatch, capsys):
    """Replace stdin; returns a setter for the input text.

    The setter returns a callable giving everything written to stdout so far.
    """

    def feed(text):
        monkeypatch.setattr(sys, "stdin", io.StringIO(text))
        return lambda: capsys.readouterr().out

    feed("")
    return feed


class TestChat:
    def test_missing_credentials_exit_code(self, stdio):
        out = stdio("")
        assert cli.main([]) == 1
        assert "No LLM API key configured" in out()

    def test_end_of_input_exits_cleanly(self, stdio, monkeypatch):
        monkeypatch.setenv("CODE_EDITOR_LLM_BASE_URL", "http://localhost:9/v1")
        out = stdio("")
        assert cli.main([]) == 0
        text = out()
        assert "read_file, list_files, edit_file, create_file" in text
        assert "Context retrieval disabled" in text
        assert "Goodbye!" in text

    def test_scripted_session_edits_workspace(self, stdio, monkeypatch, in_tmp):
        workspace = in_tmp / "workspace"
        workspace.mkdir()
        (workspace / "greet.py").write_text('print("hi")\n', encoding="utf-8")
        model = create_mock_llm([
            tool_call_message((
                "edit_file",
                {"path": "greet.py", "old_str": '"hi"', "new_str": '"hello"'},
            )),
            "Updated the greeting.",
        ])
        monkeypatch.setattr(cli, "create_chat_model", lambda settings: model)
        out = stdio("make it say hello\n")

        assert cli.main([]) == 0
        assert (workspace / "greet.py").read_text(encoding="utf-8") == 'print("hello")\n'
        text = out()
        assert "Executing: edit_file" in text
        assert "Updated the greeting." in text

    def test_signal_handlers_restored(self, stdio, monkeypatch):
        monkeypatch.setenv("CODE_EDITOR_LLM_BASE_URL", "http://localhost:9/v1")
        before = signal.getsignal(signal.SIGINT)
        cli.main([])
        assert signal.getsignal(signal.SIGINT) is before


class TestIndex:
    def test_index_without_embedder_fails(self, stdio):
        out = stdio("")
        assert cli.main(["--index"]) == 1
        assert "without an embedding provider" in out()

    def test_index_workspace(self, stdio, monkeypatch, in_tmp):
        workspace = in_tmp / "workspace"
        workspace.mkdir()
        (workspace / "calc.go").write_text("package calc\n\nfunc One() int { return 1 }\n", encoding="utf-8")
        store = InMemoryVectorStore()
        monkeypatch.setattr(cli, "create_embedding_provider", lambda settings, timeout=None: FakeEmbeddingProvider())
        monkeypatch.setattr(cli, "_open_vector_store", lambda settings, embedder: store)
        stdio("")

        assert cli.main(["--index"]) == 0
        (snippet,) = store.snippets.values()
        assert snippet.symbols == ("One",)


def test_missing_config_file(stdio):
    assert cli.main(["--config", "absent.json"]) == 1


@pytest.mark.parametrize("config", [
    {"binary": {"bogus": 1}},
    {"timeouts": {"embed_seconds": None}},
    {"retrieval": "none"},
    ["not", "an", "object"],
])
def test_malformed_config_file(stdio, capsys, in_tmp, config):
    (in_tmp / "bad.json").write_text(json.dumps(config), encoding="utf-8")
    assert cli.main(["--config", "bad.json"]) == 1
    assert "could not load configuration" in capsys.readouterr().err


def test_termination_handler_cancels_and_arms_hard_exit(monkeypatch):
    armed = []

    class RecordingTimer:
        def __init__(self, interval, function, args=None):
            armed.append((interval, function, args))
            self.daemon = False

        def start(self):
            armed.append("started")

    monkeypatch.setattr(cli.threading, "Timer", RecordingTimer)
    token = CancellationToken()
    handler = cli._make_termination_handler(token)

    with pytest.raises(KeyboardInterrupt):
        handler(signal.SIGINT, None)

    assert token.cancelled
    assert armed[0][0] == cli.HARD_EXIT_SECONDS
    assert armed[0][2] == (0,)
    assert armed[1] == "started"
