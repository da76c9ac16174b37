from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .lines import LyricLine, LyricToken

LEAD_IN_MS = 300.0
TOKEN_TOLERANCE_MS = 50.0
SKIP_INTRO_THRESHOLD_MS = 3000.0

NO_TOKEN = -1


@dataclass(frozen=True, slots=True)
class LyricView:
    """
    What the display should show for one position.
    `line_index` is the rendered line (-1 when nothing is shown);
    `preview` marks the first line shown during the lead-in.
    """

    line_index: int = -1
    text: str = ""
    next_text: str = ""
    tokens: tuple[LyricToken, ...] = ()
    active_token: int = NO_TOKEN
    preview: bool = False

    @property
    def is_empty(self) -> bool:
        return self.line_index < 0


EMPTY_VIEW = LyricView()


def find_active_token_index(
    tokens: Sequence[LyricToken],
    current_ms: float,
    tolerance_ms: float = TOKEN_TOLERANCE_MS,
) -> int:
    """
    - before the first token's window: -1
    - inside [start - tol, end + tol): that token
    - in a gap: the earlier token stays lit
    - after the last window: the last token (sticky)
    """
    if not tokens:
        return NO_TOKEN
    if current_ms < tokens[0].start_ms - tolerance_ms:
        return NO_TOKEN

    for i, tok in enumerate(tokens):
        if tok.start_ms - tolerance_ms <= current_ms < tok.end_ms + tolerance_ms:
            return i

    for i in range(1, len(tokens)):
        if current_ms < tokens[i].start_ms - tolerance_ms:
            return i - 1
    return len(tokens) - 1


@dataclass(slots=True)
class LyricTracker:
    """
    Seek-safe cursor over lyric lines.

    The cursor moves from its last position (back on rewinds, forward on
    playback), so a tick costs O(lines moved). `update` only returns a view
    when the rendered (line, token) pair changed.

    Not thread-safe: one tracker per playing song.
    """

    lines: list[LyricLine] = field(default_factory=list)
    lead_in_ms: float = LEAD_IN_MS
    token_tolerance_ms: float = TOKEN_TOLERANCE_MS
    skip_intro_threshold_ms: float = SKIP_INTRO_THRESHOLD_MS
    first_note_start_ms: float | None = None

    # -1 before the first line, len(lines) past the end
    current_line_index: int = -1
    last_rendered_line_index: int = -1
    last_active_token_index: int | None = None

    @classmethod
    def from_lines(cls, lines: Sequence[LyricLine], **kwargs) -> "LyricTracker":
        return cls(lines=list(lines), **kwargs)

    def reset(self) -> None:
        self.current_line_index = -1
        self.last_rendered_line_index = -1
        self.last_active_token_index = None

    def load(self, lines: Sequence[LyricLine], first_note_start_ms: float | None = None) -> None:
        self.lines = list(lines)
        self.first_note_start_ms = first_note_start_ms
        self.reset()

    @property
    def past_end(self) -> bool:
        return bool(self.lines) and self.current_line_index >= len(self.lines)

    def _next_text(self, index: int) -> str:
        return self.lines[index + 1].text if index + 1 < len(self.lines) else ""

    def _line_view(self, index: int, current_ms: float, *, preview: bool = False) -> LyricView:
        line = self.lines[index]
        return LyricView(
            line_index=index,
            text=line.text,
            next_text=self._next_text(index),
            tokens=line.tokens,
            active_token=find_active_token_index(line.tokens, current_ms, self.token_tolerance_ms),
            preview=preview,
        )

    def _seek(self, current_ms: float) -> int:
        n = len(self.lines)
        i = min(max(self.current_line_index, 0), n - 1)
        # rewind
        while i > 0 and current_ms < self.lines[i - 1].end_ms:
            i -= 1
        # playback / forward seek
        while i < n and current_ms >= self.lines[i].end_ms:
            i += 1
        return i

    def resolve(self, current_ms: float) -> LyricView:
        """
        Move the cursor to `current_ms` and return the view for it.
        """
        if not self.lines:
            self.reset()
            return EMPTY_VIEW

        first = self.lines[0]
        if current_ms < first.start_ms - self.lead_in_ms:
            self.current_line_index = -1
            return EMPTY_VIEW

        if current_ms < first.start_ms:
            self.current_line_index = -1
            return self._line_view(0, current_ms, preview=True)

        index = self._seek(current_ms)
        self.current_line_index = index
        if index >= len(self.lines):
            return EMPTY_VIEW
        return self._line_view(index, current_ms)

    def update(self, current_ms: float) -> LyricView | None:
        """
        Like `resolve`, but None when the rendered (line, token) is unchanged.
        """
        view = self.resolve(current_ms)
        key_token = None if view.is_empty else view.active_token
        if (view.line_index, key_token) == (self.last_rendered_line_index, self.last_active_token_index):
            return None
        self.last_rendered_line_index = view.line_index
        self.last_active_token_index = key_token
        return view

    def skip_intro_available(self, current_ms: float) -> bool:
        if self.first_note_start_ms is None:
            return False
        return self.first_note_start_ms - current_ms > self.skip_intro_threshold_ms
