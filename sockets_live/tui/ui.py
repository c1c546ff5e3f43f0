from __future__ import annotations
import curses
import textwrap
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..state.dashboard import DashboardState

MIN_HEIGHT = 10
MIN_WIDTH = 40
HIGHLIGHT_SYMBOL = ">"
SOCKETS_TITLE = "Open sockets (←/→ focus, ↑/↓ move, q quit)"


@dataclass
class Rect:
    y: int
    x: int
    h: int
    w: int


@dataclass
class Styles:
    title: int = curses.A_BOLD
    text: int = curses.A_NORMAL
    error: int = curses.A_BOLD
    tcp_highlight: int = curses.A_BOLD
    udp_highlight: int = curses.A_BOLD
    levels: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_curses(cls) -> "Styles":
        if not curses.has_colors():
            return cls(tcp_highlight=curses.A_REVERSE, udp_highlight=curses.A_REVERSE)
        curses.start_color()
        try:
            curses.use_default_colors()
            bg = -1
        except curses.error:
            bg = curses.COLOR_BLACK
        pairs = [
            (1, curses.COLOR_MAGENTA), (2, curses.COLOR_GREEN), (3, curses.COLOR_YELLOW),
            (4, curses.COLOR_RED), (5, curses.COLOR_WHITE),
        ]
        for num, fg in pairs:
            curses.init_pair(num, fg, bg)
        return cls(
            title=curses.color_pair(1) | curses.A_BOLD,
            text=curses.color_pair(5),
            error=curses.color_pair(4) | curses.A_BOLD,
            tcp_highlight=curses.color_pair(2) | curses.A_BOLD,
            udp_highlight=curses.color_pair(3) | curses.A_BOLD,
            levels={
                "INFO": curses.color_pair(5),
                "WARNING": curses.color_pair(3),
                "ERROR": curses.color_pair(1),
                "CRITICAL": curses.color_pair(4) | curses.A_BOLD,
            },
        )


def put(win, y: int, x: int, text: str, width: int, attr: int = 0) -> None:
    if width <= 0:
        return
    try:
        win.addnstr(y, x, text, width, attr)
    except curses.error:
        # writing the bottom-right cell moves the cursor off-screen
        pass


def scroll_offset(count: int, selected: Optional[int], height: int) -> int:
    """First visible row so that `selected` stays inside a window of `height` rows."""
    if selected is None or height <= 0 or selected < height:
        return 0
    return min(selected - height + 1, max(count - height, 0))


def wrap_text(text: str, width: int) -> List[str]:
    if width <= 0:
        return []
    lines: List[str] = []
    for para in text.splitlines():
        lines.extend(textwrap.wrap(para, width) or [""])
    return lines


def draw_box(win, r: Rect, title: str, styles: Styles):
    if r.h < 2 or r.w < 2:
        return None
    try:
        box = win.derwin(r.h, r.w, r.y, r.x)
    except curses.error:
        return None
    box.box()
    put(box, 0, 2, f" {title} ", r.w - 4, styles.title)
    return box


def draw_list(win, r: Rect, title: str, items: Sequence[str], selected: Optional[int],
              highlight: int, styles: Styles) -> None:
    box = draw_box(win, r, title, styles)
    if box is None:
        return
    inner_h, inner_w = r.h - 2, r.w - 2
    start = scroll_offset(len(items), selected, inner_h)
    for row, idx in enumerate(range(start, min(len(items), start + inner_h))):
        if idx == selected:
            put(box, 1 + row, 1, f"{HIGHLIGHT_SYMBOL}{items[idx]}", inner_w, highlight)
        else:
            put(box, 1 + row, 1, f" {items[idx]}", inner_w, styles.text)


def draw_paragraph(win, r: Rect, title: str, text: str, attr: int, styles: Styles) -> None:
    box = draw_box(win, r, title, styles)
    if box is None:
        return
    for row, line in enumerate(wrap_text(text, r.w - 2)[: r.h - 2]):
        put(box, 1 + row, 1, line, r.w - 2, attr)


def draw_events(win, r: Rect, events: Sequence[Tuple[str, str]], styles: Styles) -> None:
    box = draw_box(win, r, "Events", styles)
    if box is None:
        return
    for row, (level, message) in enumerate(events[: r.h - 2]):
        put(box, 1 + row, 1, f"{level}: {message}", r.w - 2, styles.levels.get(level, styles.text))


def status_line(state: DashboardState) -> str:
    return f"TCP count: {state.tcp_count}; UDP count: {state.udp_count}; focus: {state.focus.label}"


def draw(stdscr, state: DashboardState, events: Sequence[Tuple[str, str]], styles: Styles) -> None:
    stdscr.erase()
    h, w = stdscr.getmaxyx()
    if h < MIN_HEIGHT or w < MIN_WIDTH:
        put(stdscr, 0, 0, "terminal too small", w, styles.error)
        stdscr.refresh()
        return

    top_h = h // 2
    draw_box(stdscr, Rect(0, 0, top_h, w), SOCKETS_TITLE, styles)
    inner = Rect(1, 1, top_h - 2, w - 2)
    lists_h = inner.h - 1
    half = inner.w // 2
    tcp_rect = Rect(inner.y, inner.x, lists_h, half)
    udp_rect = Rect(inner.y, inner.x + half, lists_h, inner.w - half)
    if state.error is not None:
        msg = str(state.error)
        draw_paragraph(stdscr, tcp_rect, "TCP", msg, styles.error, styles)
        draw_paragraph(stdscr, udp_rect, "UDP", msg, styles.error, styles)
    else:
        draw_list(stdscr, tcp_rect, "TCP", state.tcp_display, state.selected_tcp(), styles.tcp_highlight, styles)
        draw_list(stdscr, udp_rect, "UDP", state.udp_display, state.selected_udp(), styles.udp_highlight, styles)
    put(stdscr, inner.y + lists_h, inner.x, status_line(state), inner.w, styles.text)

    info_w = w * 3 // 5
    draw_paragraph(stdscr, Rect(top_h, 0, h - top_h, info_w), "Socket info",
                   state.selected_socket_info(), styles.text, styles)
    draw_events(stdscr, Rect(top_h, info_w, h - top_h, w - info_w), events, styles)
    stdscr.refresh()
