import asyncio
from datetime import date
from unittest.mock import MagicMock

import pytest
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.keys import Keys
from prompt_toolkit.output import DummyOutput

from commitsum.errors import AuthenticationError
from commitsum.providers import FetchCancelled
from commitsum.schemas import DateRange
from commitsum.session import FetchCommits, Screen, SessionController
from commitsum.tui import TerminalUI, translate_key
from conftest import TODAY, make_commit_set

DAY = DateRange(start=date(2026, 10, 18), end=date(2026, 10, 18))


@pytest.fixture
def ui(settings, clipboard, tmp_path):
    controller = SessionController(settings, clipboard, output_root=tmp_path, today=lambda: TODAY)
    retriever = MagicMock()
    with create_pipe_input() as pipe_input:
        yield TerminalUI(controller, retriever, settings, input=pipe_input, output=DummyOutput())


# --- translate_key ---


@pytest.mark.parametrize(
    "key, data, expected",
    [
        (Keys.ControlM, "\r", ["enter"]),
        (Keys.ControlJ, "\n", ["enter"]),
        (Keys.Escape, "\x1b", ["escape"]),
        (Keys.Up, "", ["up"]),
        (Keys.Down, "", ["down"]),
        (Keys.ControlI, "\t", ["tab"]),
        (Keys.ControlH, "\x08", ["backspace"]),
        (Keys.ControlC, "\x03", ["ctrl+c"]),
        (" ", " ", ["space"]),
        ("j", "j", ["j"]),
        ("R", "R", ["R"]),
        (Keys.Left, "", []),
        (Keys.F1, "", []),
    ],
)
def test_translate_key(key, data, expected):
    assert translate_key(key, data) == expected


def test_translate_bracketed_paste():
    assert translate_key(Keys.BracketedPaste, "a b") == ["a", "space", "b"]


# --- Driver ---


def test_render_frame(ui):
    frame = ui.render_frame()
    assert isinstance(frame, ANSI)
    assert "Select a date range" in frame.value


def test_fetch_success_dispatches_commits(ui):
    fetch = FetchCommits(1, DAY)
    ui.controller.state.pending_request = 1
    ui.controller.state.date_range = DAY
    ui.retriever.fetch_range.return_value = make_commit_set({"acme/api": 2})

    asyncio.run(ui.fetch(fetch, MagicMock()))

    assert ui.controller.state.screen is Screen.REPO_LIST
    assert ui.controller.state.displayed_repos == ["acme/api"]
    ui.retriever.fetch_range.assert_called_once()
    assert ui.retriever.fetch_range.call_args[0][0] == DAY


def test_fetch_failure_dispatches_error(ui):
    ui.controller.state.pending_request = 1
    ui.controller.state.date_range = DAY
    ui.retriever.fetch_range.side_effect = AuthenticationError("401")

    asyncio.run(ui.fetch(FetchCommits(1, DAY), MagicMock()))

    assert isinstance(ui.controller.state.load_error, AuthenticationError)


def test_cancelled_fetch_is_silent(ui):
    ui.controller.state.screen = Screen.DATE_RANGE_SELECT
    ui.retriever.fetch_range.side_effect = FetchCancelled("gh search commits")

    asyncio.run(ui.fetch(FetchCommits(1, DAY), MagicMock()))

    assert ui.controller.state.screen is Screen.DATE_RANGE_SELECT


def test_cancel_sets_event(ui):
    event = MagicMock()
    ui._cancel_event = event

    ui._cancel_fetch()

    event.set.assert_called_once()
    assert ui._cancel_event is None
