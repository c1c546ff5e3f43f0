from __future__ import annotations
import curses
import logging
import time
from typing import Callable, Optional

from ..config import CFG
from ..eventlog import EventLog
from ..state.dashboard import DashboardState
from .ui import Styles, draw

log = logging.getLogger(__name__)

KEY_NAMES = {
    curses.KEY_UP: "up",
    curses.KEY_DOWN: "down",
    curses.KEY_LEFT: "left",
    curses.KEY_RIGHT: "right",
}


def key_name(ch: int) -> Optional[str]:
    if ch in KEY_NAMES:
        return KEY_NAMES[ch]
    if 0 < ch < 128 and chr(ch).isprintable():
        return chr(ch).lower()
    return None


def run(stdscr, cfg: CFG, state: DashboardState, events: EventLog,
        styles: Optional[Styles] = None, clock: Callable[[], float] = time.monotonic) -> None:
    try:
        curses.curs_set(0)
    except curses.error:
        pass
    if styles is None:
        styles = Styles.from_curses()
    stdscr.timeout(cfg.idle_ms)

    state.refresh()
    last = clock()
    log.info("dashboard started (tick %.2fs)", cfg.tick_rate)
    while not state.should_quit:
        now = clock()
        if now - last >= cfg.tick_rate:
            state.refresh()
            last = now
        draw(stdscr, state, events.entries(), styles)

        ch = stdscr.getch()
        if ch == -1 or ch == curses.KEY_RESIZE:
            continue
        name = key_name(ch)
        if name is not None:
            state.on_key(name)


def run_app(cfg: CFG, state: DashboardState, events: EventLog) -> None:
    curses.wrapper(run, cfg, state, events)
