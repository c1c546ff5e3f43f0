from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

import orjson

from .collectors import ProcessTable, make_source
from .collectors.source import BACKENDS
from .config import CFG, LOG_LEVELS, init_cfg_from_args
from .eventlog import EventLog
from .state import DashboardState
from .utils.path import log_path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description='Terminal dashboard of open TCP/UDP sockets and their processes')
    ap.add_argument('--interval', type=float, default=None, help='seconds between socket refreshes (default 0.25)')
    ap.add_argument('--backend', choices=BACKENDS, default=None, help='socket source; auto prefers ss on Linux')
    ap.add_argument('--families', type=str, default=None, help='comma-separated address families (ipv4,ipv6)')
    ap.add_argument('--protocols', type=str, default=None, help='comma-separated protocols (tcp,udp)')
    ap.add_argument('--config', type=str, default=None, help='YAML or JSON settings file')
    ap.add_argument('--events', type=int, default=None, help='number of log events kept for the events panel')
    ap.add_argument('--log-file', type=str, default=None, help='log file (default sockets_live.log)')
    ap.add_argument('--log-level', choices=LOG_LEVELS, default=None)
    ap.add_argument('--dump', action='store_true', help='print one snapshot as JSON and exit')
    return ap

def setup_logging(cfg: CFG) -> EventLog:
    events = EventLog(limit=cfg.event_limit)
    fh = logging.FileHandler(log_path(cfg.log_file), encoding="utf-8")
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.setLevel(cfg.log_level)
    root.addHandler(fh)
    root.addHandler(events)
    return events

def build_state(cfg: CFG) -> DashboardState:
    return DashboardState(make_source(cfg.backend), ProcessTable(),
                          families=sorted(cfg.families), protocols=sorted(cfg.protocols))

def dump(state: DashboardState) -> int:
    state.refresh()
    if state.error is not None:
        sys.stdout.write(orjson.dumps({"error": str(state.error)}, option=orjson.OPT_INDENT_2).decode() + "\n")
        return 1
    data = {
        "tcp_count": state.tcp_count,
        "udp_count": state.udp_count,
        "tcp": state.tcp_display,
        "udp": state.udp_display,
    }
    sys.stdout.write(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode() + "\n")
    return 0

def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    try:
        cfg = init_cfg_from_args(args)
    except ValueError as err:
        ap.error(str(err))

    events = setup_logging(cfg)
    state = build_state(cfg)
    if args.dump:
        return dump(state)

    # curses is missing from stock Windows builds; --dump works without it
    from .tui import run_app
    run_app(cfg, state, events)
    return 0

if __name__ == '__main__':
    sys.exit(main())
