from __future__ import annotations
import logging
from typing import Callable, Dict, Optional, TypeVar

import psutil

from ..errors import ProcessLookupMissing
from ..models import ProcessInfo

log = logging.getLogger(__name__)

T = TypeVar("T")


def _best_effort(fn: Callable[[], T], default: T) -> T:
    # single fields (cmdline, exe, environ) are often denied for foreign processes
    try:
        return fn()
    except psutil.AccessDenied:
        return default


def read_process(p: psutil.Process) -> ProcessInfo:
    try:
        with p.oneshot():
            name = p.name()
            status = p.status()
            mem = p.memory_info()
            started = p.create_time()
            cpu = p.cpu_percent(interval=None)
            cmd = _best_effort(lambda: " ".join(p.cmdline()), "")
            exe = _best_effort(p.exe, "")
            env = _best_effort(p.environ, {})
    except psutil.NoSuchProcess as err:
        raise ProcessLookupMissing(p.pid, "no such process") from err
    except psutil.AccessDenied as err:
        raise ProcessLookupMissing(p.pid, "access denied") from err
    return ProcessInfo(
        pid=p.pid, name=name, status=str(status), cmd=cmd, exe=exe, environ=dict(env),
        memory=mem.rss, virtual_memory=mem.vms, start_time=started, cpu_usage=cpu,
    )


class ProcessTable:
    """Process introspection with a cache that lives for one tick.

    `refresh_all()` starts a new tick. psutil handles survive between ticks
    so `cpu_percent()` measures the interval since the previous sample; the
    first sample of a process reads 0.0.
    """

    def __init__(self):
        self._handles: Dict[int, psutil.Process] = {}
        self._cache: Dict[int, Optional[ProcessInfo]] = {}

    def refresh_all(self) -> None:
        self._cache.clear()
        alive = set(psutil.pids())
        for pid in [pid for pid in self._handles if pid not in alive]:
            del self._handles[pid]

    def _handle(self, pid: int) -> psutil.Process:
        p = self._handles.get(pid)
        # is_running() compares create times, so a reused pid gets a fresh handle
        if p is not None and not p.is_running():
            del self._handles[pid]
            p = None
        if p is None:
            try:
                p = psutil.Process(pid)
            except psutil.NoSuchProcess as err:
                raise ProcessLookupMissing(pid, "no such process") from err
            except psutil.AccessDenied as err:
                raise ProcessLookupMissing(pid, "access denied") from err
            self._handles[pid] = p
        return p

    def lookup(self, pid: int) -> Optional[ProcessInfo]:
        if pid in self._cache:
            return self._cache[pid]
        try:
            info: Optional[ProcessInfo] = read_process(self._handle(pid))
        except ProcessLookupMissing as err:
            log.debug("process lookup failed: %s", err)
            self._handles.pop(pid, None)
            info = None
        self._cache[pid] = info
        return info
