from __future__ import annotations

import signal

from ultrastar_lyrics.render.ansi import AnsiRenderer, Theme
from ultrastar_lyrics.sync.lines import LyricToken
from ultrastar_lyrics.sync.tracker import EMPTY_VIEW, LyricView

VIEW = LyricView(
    line_index=0,
    text="He llo world",
    next_text="next line",
    tokens=(LyricToken("He", 0, 1), LyricToken("llo", 1, 2), LyricToken("world", 2, 3)),
    active_token=1,
)


class TestAnsiRendererSigwinch:
    """Test SIGWINCH handling in renderer."""

    def test_sigwinch_registered_on_enter(self):
        renderer = AnsiRenderer(use_alt_screen=False)
        old_handler = signal.signal(signal.SIGWINCH, signal.SIG_DFL)
        signal.signal(signal.SIGWINCH, old_handler)  # restore

        renderer.enter()
        current_handler = signal.signal(signal.SIGWINCH, signal.SIG_DFL)
        assert current_handler != old_handler
        signal.signal(signal.SIGWINCH, old_handler)  # restore
        renderer.exit()

    def test_sigwinch_restored_on_exit(self):
        renderer = AnsiRenderer(use_alt_screen=False)
        old_handler = signal.signal(signal.SIGWINCH, signal.SIG_DFL)
        signal.signal(signal.SIGWINCH, old_handler)  # restore

        renderer.enter()
        renderer.exit()

        current_handler = signal.signal(signal.SIGWINCH, signal.SIG_DFL)
        assert current_handler == signal.SIG_DFL
        signal.signal(signal.SIGWINCH, old_handler)  # restore

    def test_last_render_args_stored(self, capsys):
        renderer = AnsiRenderer(use_alt_screen=False)
        renderer.enter()
        assert renderer._last_render_args is None

        renderer.render("Title", VIEW, "status")
        assert renderer._last_render_args == ("Title", VIEW, "status")

        renderer.exit()
        assert renderer._last_render_args is None


class TestAnsiRendererFrame:
    def test_frame_contents(self, capsys):
        th = Theme()
        renderer = AnsiRenderer(use_alt_screen=False, theme=th)
        renderer.render("Artist - Song", VIEW, "First note in 5s")
        out = capsys.readouterr().out
        assert "♫ Artist - Song ♫" in out
        assert f"{th.sung}He{th.reset}" in out
        assert f"{th.active}llo{th.reset}" in out
        assert f"{th.dim}world{th.reset}" in out
        assert f"{th.dim}next line{th.reset}" in out
        assert "First note in 5s" in out

    def test_empty_view_shows_only_title(self, capsys):
        renderer = AnsiRenderer(use_alt_screen=False)
        renderer.render("T", EMPTY_VIEW)
        out = capsys.readouterr().out
        assert "♫ T ♫" in out
        assert "next" not in out

    def test_preview_line_is_dim(self):
        th = Theme()
        renderer = AnsiRenderer(use_alt_screen=False, theme=th)
        preview = LyricView(line_index=0, text=VIEW.text, tokens=VIEW.tokens, active_token=-1, preview=True)
        line = renderer.format_line(preview)
        assert th.active not in line
        assert line.count(th.dim) == 3
