from __future__ import annotations

import shutil
import signal
import sys
from dataclasses import dataclass
from typing import Callable

from ultrastar_lyrics.sync.tracker import LyricView


CSI = "\x1b["


def _sgr(*codes: int) -> str:
    return CSI + ";".join(str(c) for c in codes) + "m"


@dataclass(frozen=True, slots=True)
class Theme:
    title: str = _sgr(36, 1)  # cyan bold
    sung: str = _sgr(37)  # white
    active: str = _sgr(32, 1)  # green bold
    dim: str = _sgr(90)  # bright black
    warning: str = _sgr(33, 1)  # yellow bold
    reset: str = _sgr(0)


class AnsiRenderer:
    def __init__(self, use_alt_screen: bool = True, theme: Theme | None = None):
        self.use_alt_screen = use_alt_screen
        self.theme = theme or Theme()
        self._entered = False
        self._resize_handler: Callable[[], None] | None = None
        self._last_render_args: tuple[str, LyricView, str | None] | None = None

    def __enter__(self):
        self.enter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exit()

    def enter(self) -> None:
        if self._entered:
            return
        if self.use_alt_screen:
            sys.stdout.write(CSI + "?1049h")  # alt screen
        sys.stdout.write(CSI + "?25l")  # hide cursor
        sys.stdout.write(CSI + "H" + CSI + "2J")  # home + clear
        sys.stdout.flush()
        self._entered = True

        # Register SIGWINCH handler for resize
        def _on_resize(signum=None, frame=None):
            if self._last_render_args:
                self.render(*self._last_render_args)

        self._resize_handler = _on_resize
        signal.signal(signal.SIGWINCH, _on_resize)

    def exit(self) -> None:
        if not self._entered:
            return
        # Restore default SIGWINCH handler
        if self._resize_handler:
            signal.signal(signal.SIGWINCH, signal.SIG_DFL)
            self._resize_handler = None
        sys.stdout.write(self.theme.reset)
        sys.stdout.write(CSI + "?25h")  # show cursor
        if self.use_alt_screen:
            sys.stdout.write(CSI + "?1049l")  # normal screen
        sys.stdout.flush()
        self._entered = False
        self._last_render_args = None

    def format_line(self, view: LyricView) -> str:
        """
        Sung tokens plain, the active token highlighted, the rest dim.
        A preview line (lead-in) is dim apart from a speculative highlight.
        """
        th = self.theme
        if not view.tokens:
            return f"{th.dim}{view.text}{th.reset}"
        parts: list[str] = []
        for i, tok in enumerate(view.tokens):
            if i == view.active_token:
                color = th.active
            elif i < view.active_token and not view.preview:
                color = th.sung
            else:
                color = th.dim
            parts.append(f"{color}{tok.text}{th.reset}")
        return " ".join(parts)

    def render(self, title: str, view: LyricView, status: str | None = None) -> None:
        # Store args for SIGWINCH redraw
        self._last_render_args = (title, view, status)

        cols, rows = shutil.get_terminal_size(fallback=(80, 24))
        th = self.theme

        out: list[str] = [f"{th.title}♫ {title} ♫{th.reset}", ""]
        if not view.is_empty:
            out.append(self.format_line(view))
            if view.next_text:
                out.append(f"{th.dim}{view.next_text}{th.reset}")
        if status:
            out.append("")
            out.append(f"{th.warning}{status}{th.reset}")

        # move home + clear, then print full frame
        sys.stdout.write(CSI + "H" + CSI + "2J")
        sys.stdout.write("\n".join(out[: max(rows, 1)]))
        sys.stdout.write(th.reset)
        sys.stdout.flush()
