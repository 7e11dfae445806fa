"""Terminal picker listing the mini programs found by a scan."""

from __future__ import annotations

from rich import box
from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from wxapkg.console import console as default_console
from wxapkg.wxid import CACHE_PATH, WxidInfo

_COLUMNS = (("Name", 20), ("Developer", 30), ("Description", 40))
_MAX_HEIGHT = 10
_PROGRESS_WIDTH = sum(width for _, width in _COLUMNS) + len(_COLUMNS) * 2
_PERCENT_WIDTH = len(" 100%")
_GRADIENT = ((0xFF, 0x7C, 0xCB), (0xFD, 0xFF, 0x8C))
_EMPTY_CELL = "color(239)"

_TITLE = "bold magenta"
_CONTENT = "cyan"
_LINK = "italic underline cyan"
_BORDER = "color(240)"
_SELECTED = "color(229) on color(57)"
_HELP_KEY = "color(245)"
_HELP_DESC = "color(241)"
_HELP_SEP = "color(238)"
_HELP = (("enter", "unpack"), ("↑/k", "move up"), ("↓/j", "move down"), ("q", "exit"))

_UP = frozenset({"up", "k"})
_DOWN = frozenset({"down", "j"})
_PAGE_UP = frozenset({"pgup", "b"})
_PAGE_DOWN = frozenset({"pgdown", "f"})
_TOP = frozenset({"home", "g"})
_BOTTOM = frozenset({"end", "G"})
_QUIT = frozenset({"q", "ctrl+c"})


def _blend(t: float) -> str:
    start, end = _GRADIENT
    r, g, b = (round(a + (z - a) * t) for a, z in zip(start, end))
    return f"#{r:02x}{g:02x}{b:02x}"


class ScanTui:
    """A selectable table of mini programs with details of the highlighted one."""

    def __init__(self, infos: list[WxidInfo]) -> None:
        self.infos = list(infos)
        self.cursor = 0
        self.focused = True
        self.selected: WxidInfo | None = None
        self.height = min(_MAX_HEIGHT, len(self.infos))
        self._offset = 0

    def _move(self, cursor: int) -> None:
        if not self.infos:
            return
        self.cursor = max(0, min(cursor, len(self.infos) - 1))
        if self.cursor < self._offset:
            self._offset = self.cursor
        elif self.cursor >= self._offset + self.height:
            self._offset = self.cursor - self.height + 1

    def handle_key(self, key: str) -> bool:
        """Apply one key press; return ``True`` when the picker should close."""
        if key == "esc":
            self.focused = not self.focused
            return False
        if key in _QUIT:
            return True
        if key == "enter":
            if self.infos:
                self.selected = self.infos[self.cursor]
            return True
        if not self.focused:
            return False
        step = max(self.height, 1)
        if key in _UP:
            self._move(self.cursor - 1)
        elif key in _DOWN:
            self._move(self.cursor + 1)
        elif key in _PAGE_UP:
            self._move(self.cursor - step)
        elif key in _PAGE_DOWN:
            self._move(self.cursor + step)
        elif key in _TOP:
            self._move(0)
        elif key in _BOTTOM:
            self._move(len(self.infos) - 1)
        return False

    def render_progress(self) -> Text:
        """Return a bar showing the position of the cursor, labelled ``n/total``."""
        total = len(self.infos)
        position = self.cursor + 1 if total else 0
        ratio = position / total if total else 0.0
        bar_width = _PROGRESS_WIDTH - _PERCENT_WIDTH
        filled = round(bar_width * ratio)

        text = Text()
        for index in range(filled):
            text.append("█", style=_blend(index / (filled - 1) if filled > 1 else 0.0))
        text.append("░" * (bar_width - filled), style=_EMPTY_CELL)

        percent = f" {ratio * 100:3.0f}%"
        digits = percent.strip()
        label = f"{position}/{total}".rjust(len(digits))
        text.append(percent.replace(digits, label, 1))
        return text

    def render_table(self) -> Table:
        """Return the visible window of the table, the cursor row highlighted."""
        table = Table(
            box=box.HEAVY_HEAD,
            border_style=_BORDER,
            header_style=_TITLE,
            show_edge=True,
        )
        for title, width in _COLUMNS:
            table.add_column(title, width=width, no_wrap=True, overflow="ellipsis")
        window = self.infos[self._offset : self._offset + self.height]
        for index, info in enumerate(window, start=self._offset):
            table.add_row(
                info.nickname,
                info.principal_name,
                info.description,
                style=_SELECTED if index == self.cursor else None,
            )
        return table

    def render_detail(self) -> Text:
        """Return the details of the highlighted mini program."""
        text = Text()
        if self.infos:
            info = self.infos[self.cursor]
            if info.error:
                text.append("  error: ", style=_TITLE)
                text.append(info.error + "\n", style="red")
            else:
                for label, value in (
                    ("wxid", info.wxid),
                    ("Name", info.nickname),
                    ("Developer", info.principal_name),
                    ("Description", info.description),
                ):
                    text.append(f"  {label}: ", style=_TITLE)
                    text.append(value + "\n", style=_CONTENT)
            text.append("  Location: ", style=_TITLE)
            text.append(info.location, style=_LINK)
            text.append("\n")
            if not info.error:
                text.append("  Avatar: ", style=_TITLE)
                text.append(info.avatar, style=_LINK)
                text.append("\n")
        text.append("  All information see '", style=_TITLE)
        text.append(".\\" + CACHE_PATH, style=_CONTENT)
        text.append("'", style=_TITLE)
        return text

    def render_help(self) -> Text:
        """Return the one-line key help."""
        text = Text()
        for index, (key, description) in enumerate(_HELP):
            if index:
                text.append(" • ", style=_HELP_SEP)
            text.append(key, style=_HELP_KEY)
            text.append(" ")
            text.append(description, style=_HELP_DESC)
        return text

    def view(self) -> Group:
        """Return the whole screen."""
        return Group(
            self.render_progress(),
            self.render_table(),
            self.render_detail(),
            Text(""),
            Text.assemble("  ", self.render_help()),
        )

    def run(self, console: Console | None = None) -> WxidInfo | None:
        """Show the picker until the user chooses or quits; return the choice.

        Each input line holds key names separated by spaces; an empty line is
        ``enter``. End of input quits.
        """
        console = default_console if console is None else console
        with console.screen():
            while True:
                console.clear()
                console.print(self.view())
                try:
                    line = console.input("> ")
                except (EOFError, KeyboardInterrupt):
                    break
                keys = line.split() or ["enter"]
                if any(self.handle_key(key) for key in keys):
                    break
        return self.selected