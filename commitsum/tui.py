# commitsum/tui.py

"""
Terminal driver: feeds key presses, spinner ticks and fetch results into the
session controller and executes the effects it returns.
"""

import asyncio
import logging
import threading
from io import StringIO
from typing import List, Optional

from prompt_toolkit import Application
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from rich.console import Console

from commitsum import views
from commitsum.config import AppSettings
from commitsum.core import CommitRetriever
from commitsum.errors import CommitSumError
from commitsum.providers import FetchCancelled
from commitsum.session import (
    CancelFetch,
    CommitsLoaded,
    Effect,
    Event,
    FetchCommits,
    KeyPress,
    Quit,
    Screen,
    SessionController,
    Tick,
)

TICK_INTERVAL = 0.1

KEY_NAMES = {
    Keys.ControlM: "enter",
    Keys.ControlJ: "enter",
    Keys.Escape: "escape",
    Keys.Up: "up",
    Keys.Down: "down",
    Keys.ControlI: "tab",
    Keys.ControlH: "backspace",
    Keys.ControlC: "ctrl+c",
}


def translate_key(key, data: str) -> List[str]:
    """Maps a prompt_toolkit key press to controller key names."""
    if key in KEY_NAMES:
        return [KEY_NAMES[key]]
    if key == Keys.BracketedPaste:
        return [k for char in data for k in translate_key(char, char)]
    if isinstance(key, Keys):
        return []
    if data == " ":
        return ["space"]
    if len(data) == 1 and data.isprintable():
        return [data]
    return []


class TerminalUI:
    def __init__(
        self,
        controller: SessionController,
        retriever: CommitRetriever,
        settings: AppSettings,
        logger: Optional[logging.Logger] = None,
        input=None,
        output=None,
    ):
        self.controller = controller
        self.retriever = retriever
        self.settings = settings
        self.logger = logger or logging.getLogger(__name__)

        self._fetch_task: Optional[asyncio.Task] = None
        self._cancel_event: Optional[threading.Event] = None
        self.app = self._build_app(input, output)

    def _build_app(self, input, output) -> Application:
        kb = KeyBindings()

        @kb.add(Keys.Any)
        def _(event):
            for key_press in event.key_sequence:
                for key in translate_key(key_press.key, key_press.data):
                    self.dispatch(KeyPress(key))

        control = FormattedTextControl(self.render_frame, focusable=True, show_cursor=False)
        app = Application(
            layout=Layout(Window(control, wrap_lines=False)),
            key_bindings=kb,
            full_screen=True,
            input=input,
            output=output,
        )
        # A lone escape should not wait half a second for a sequence
        app.ttimeoutlen = 0.05
        return app

    def render_frame(self) -> ANSI:
        size = self.app.output.get_size()
        buffer = StringIO()
        console = Console(
            file=buffer,
            force_terminal=True,
            color_system="256",
            width=size.columns,
            height=size.rows,
        )
        console.print(views.render(self.controller.state, self.settings, height=size.rows))
        return ANSI(buffer.getvalue())

    # --- Event loop ---

    def dispatch(self, event: Event) -> None:
        effect = self.controller.handle(event)
        if effect is not None:
            self._apply(effect)
        self.app.invalidate()

    def _apply(self, effect: Effect) -> None:
        if isinstance(effect, FetchCommits):
            self._start_fetch(effect)
        elif isinstance(effect, CancelFetch):
            self._cancel_fetch()
        elif isinstance(effect, Quit):
            self._cancel_fetch()
            if self.app.is_running:
                self.app.exit()

    def _start_fetch(self, effect: FetchCommits) -> None:
        self._cancel_fetch()
        self._cancel_event = threading.Event()
        self._fetch_task = self.app.create_background_task(
            self.fetch(effect, self._cancel_event)
        )

    def _cancel_fetch(self) -> None:
        if self._cancel_event is not None:
            self._cancel_event.set()
            self._cancel_event = None
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
        self._fetch_task = None

    async def fetch(self, effect: FetchCommits, cancel_event: threading.Event) -> None:
        """Runs the blocking retrieval off the event loop and reports the outcome."""
        loop = asyncio.get_running_loop()
        try:
            commit_set = await loop.run_in_executor(
                None,
                self.retriever.fetch_range,
                effect.date_range,
                cancel_event,
                effect.refresh,
            )
        except asyncio.CancelledError:
            cancel_event.set()
            raise
        except FetchCancelled:
            self.logger.debug(f"Fetch cancelled | request={effect.request_id}")
            return
        except Exception as e:
            if not isinstance(e, CommitSumError):
                self.logger.error("Unexpected error while fetching commits", exc_info=True)
            self.dispatch(CommitsLoaded(effect.request_id, error=e))
            return
        self.dispatch(CommitsLoaded(effect.request_id, commit_set=commit_set))

    async def _ticker(self) -> None:
        while True:
            await asyncio.sleep(TICK_INTERVAL)
            if self.controller.state.screen is Screen.LOADING:
                self.dispatch(Tick())

    def _on_start(self) -> None:
        self.app.create_background_task(self._ticker())

    def run(self) -> None:
        try:
            self.app.run(pre_run=self._on_start)
        finally:
            self._cancel_fetch()
