from __future__ import annotations
import logging
from datetime import datetime
from enum import IntEnum
from typing import Collection, Dict, List, Optional, Protocol as TypingProtocol, Sequence, Union

from ..errors import EnumerationError
from ..models import AddressFamily, Pids, ProcessInfo, Protocol, TcpSocketInfo, UdpSocketInfo
from ..collectors.source import SocketSource
from .snapshot import SocketSnapshot, partition

log = logging.getLogger(__name__)

ALL_FAMILIES = (AddressFamily.IPV4, AddressFamily.IPV6)
ALL_PROTOCOLS = (Protocol.TCP, Protocol.UDP)

SELECT_PROMPT = "Use ←/→ to select the TCP or UDP list, ↑/↓ to move through it."
SOCKETS_UNAVAILABLE = "Sockets info is not available."
NO_OWNER = "no owning process (unknown or insufficient privileges)"


class ProcessLookup(TypingProtocol):
    def refresh_all(self) -> None: ...
    def lookup(self, pid: int) -> Optional[ProcessInfo]: ...


class ProtocolFocus(IntEnum):
    NONE = 0
    TCP = 1
    UDP = 2

    def right(self) -> "ProtocolFocus":
        return ProtocolFocus(min(self + 1, ProtocolFocus.UDP))

    def left(self) -> "ProtocolFocus":
        return ProtocolFocus(max(self - 1, ProtocolFocus.NONE))

    @property
    def label(self) -> str:
        return {ProtocolFocus.NONE: "None", ProtocolFocus.TCP: "Tcp", ProtocolFocus.UDP: "Udp"}[self]


def format_pids(pids: Pids) -> str:
    return "pids[" + ", ".join(str(p) for p in pids) + "]"


def tcp_socket_to_string(si: TcpSocketInfo, pids: Pids) -> str:
    return (f"local[{si.local_addr}:{si.local_port}] -> remote[{si.remote_addr}:{si.remote_port}]; "
            f"{format_pids(pids)}; state: {si.state}")


def udp_socket_to_string(si: UdpSocketInfo, pids: Pids) -> str:
    return f"local[{si.local_addr}:{si.local_port}] -> *:*; {format_pids(pids)}"


def format_start_time(ts: float) -> str:
    if not ts:
        return "-"
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")


def format_environ(env: Dict[str, str]) -> str:
    if not env:
        return "-"
    return " ".join(f"{k}={v}" for k, v in sorted(env.items()))


def process_to_string(p: ProcessInfo) -> str:
    return "\n".join([
        f"pid: {p.pid}",
        f"name: {p.name}",
        f"status: {p.status}",
        f"cmd: {p.cmd or '-'}",
        f"exe: {p.exe or '-'}",
        f"environ: {format_environ(p.environ)}",
        f"memory: {p.memory // 1024} kB",
        f"virtual memory: {p.virtual_memory // 1024} kB",
        f"start time: {format_start_time(p.start_time)}",
        f"cpu usage: {p.cpu_usage:.1f}%",
    ])


def missing_process_to_string(pid: int) -> str:
    return f"pid: {pid}\nprocess info not available"


def _clamp(cursor: Optional[int], count: int) -> Optional[int]:
    if cursor is None or count == 0:
        return cursor
    return min(cursor, count - 1)


class DashboardState:
    """Socket lists, per-protocol cursors and the focused protocol.

    Owned by a single event loop: `refresh()` runs on every tick, the
    `on_*` handlers on key presses. Collaborator failures never escape;
    they turn into empty lists or placeholder text.
    """

    def __init__(self, source: SocketSource, processes: ProcessLookup,
                 families: Collection[AddressFamily] = ALL_FAMILIES,
                 protocols: Collection[Protocol] = ALL_PROTOCOLS):
        self._source = source
        self._processes = processes
        self.families = tuple(families)
        self.protocols = tuple(protocols)

        self.snapshot = SocketSnapshot()
        self.error: Optional[EnumerationError] = None
        self.tcp_display: List[str] = []
        self.udp_display: List[str] = []
        self.tcp_count = 0
        self.udp_count = 0

        self.focus = ProtocolFocus.NONE
        self.tcp_cursor: Optional[int] = None
        self.udp_cursor: Optional[int] = None
        self.should_quit = False

    @property
    def snapshot_result(self) -> Union[SocketSnapshot, EnumerationError]:
        return self.error if self.error is not None else self.snapshot

    # ---- tick -------------------------------------------------------------

    def refresh(self) -> None:
        try:
            sockets = self._source(self.families, self.protocols)
        except EnumerationError as err:
            if self.error is None or str(self.error) != str(err):
                log.warning("%s", err)
            self.snapshot = SocketSnapshot()
            self.error = err
            self.tcp_display, self.udp_display = [], []
            self.tcp_count = self.udp_count = 0
            return

        snap = partition(sockets)
        if self.error is not None:
            log.info("socket enumeration recovered (%d sockets)", len(snap))
        self.snapshot = snap
        self.error = None
        self.tcp_display = [tcp_socket_to_string(si, pids) for si, pids in snap.tcp]
        self.udp_display = [udp_socket_to_string(si, pids) for si, pids in snap.udp]
        self.tcp_count = len(self.tcp_display)
        self.udp_count = len(self.udp_display)
        self.tcp_cursor = _clamp(self.tcp_cursor, self.tcp_count)
        self.udp_cursor = _clamp(self.udp_cursor, self.udp_count)
        self._processes.refresh_all()

    # ---- navigation -------------------------------------------------------

    def on_right(self) -> None:
        self.focus = self.focus.right()

    def on_left(self) -> None:
        self.focus = self.focus.left()

    def on_up(self) -> None:
        self._move(up=True)

    def on_down(self) -> None:
        self._move(up=False)

    def on_key(self, key: str) -> None:
        if key == "q":
            self.should_quit = True
            return
        handler = {
            "up": self.on_up, "k": self.on_up,
            "down": self.on_down, "j": self.on_down,
            "left": self.on_left, "h": self.on_left,
            "right": self.on_right, "l": self.on_right,
        }.get(key)
        if handler is not None:
            handler()

    def _count(self, focus: ProtocolFocus) -> int:
        return self.tcp_count if focus is ProtocolFocus.TCP else self.udp_count

    def _cursor(self, focus: ProtocolFocus) -> Optional[int]:
        return self.tcp_cursor if focus is ProtocolFocus.TCP else self.udp_cursor

    def _move(self, up: bool) -> None:
        if self.focus is ProtocolFocus.NONE:
            return
        count = self._count(self.focus)
        if count == 0:
            return
        cur = _clamp(self._cursor(self.focus), count)
        if cur is None:
            new = 0
        elif up:
            new = cur - 1 if cur > 0 else count - 1
        else:
            new = 0 if cur >= count - 1 else cur + 1
        if self.focus is ProtocolFocus.TCP:
            self.tcp_cursor = new
        else:
            self.udp_cursor = new

    def _selected(self, focus: ProtocolFocus) -> Optional[int]:
        if self.focus is not focus:
            return None
        count = self._count(focus)
        if count == 0:
            return None
        return _clamp(self._cursor(focus), count)

    def selected_tcp(self) -> Optional[int]:
        return self._selected(ProtocolFocus.TCP)

    def selected_udp(self) -> Optional[int]:
        return self._selected(ProtocolFocus.UDP)

    # ---- details ----------------------------------------------------------

    def selected_socket_info(self) -> str:
        if self.focus is ProtocolFocus.NONE:
            return SELECT_PROMPT
        if self.error is not None:
            return SOCKETS_UNAVAILABLE
        if self.focus is ProtocolFocus.TCP:
            entries: Sequence = self.snapshot.tcp
            lines = self.tcp_display
        else:
            entries = self.snapshot.udp
            lines = self.udp_display
        if not entries:
            return f"No {self.focus.label.upper()} sockets."
        idx = _clamp(self._cursor(self.focus) or 0, len(entries))
        _, pids = entries[idx]
        if not pids:
            return f"{lines[idx]}\n\n{NO_OWNER}"
        return lines[idx] + "\n\n" + "\n\n".join(self._describe_pid(pid) for pid in pids)

    def _describe_pid(self, pid: int) -> str:
        info = self._processes.lookup(pid)
        if info is None:
            return missing_process_to_string(pid)
        return process_to_string(info)
