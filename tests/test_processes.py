import contextlib
from collections import namedtuple

import psutil
import pytest

from sockets_live.collectors import processes as procmod
from sockets_live.collectors.processes import ProcessTable, read_process
from sockets_live.errors import ProcessLookupMissing

pmem = namedtuple("pmem", "rss vms")


class FakeProc:
    created = []

    def __init__(self, pid):
        if pid == 404:
            raise psutil.NoSuchProcess(pid)
        self.pid = pid
        self.samples = 0
        self.gone = False
        self.running = True
        FakeProc.created.append(pid)

    def is_running(self):
        return self.running

    @contextlib.contextmanager
    def oneshot(self):
        yield

    def name(self):
        if self.gone:
            raise psutil.NoSuchProcess(self.pid)
        return f"proc{self.pid}"

    def status(self):
        return psutil.STATUS_SLEEPING

    def memory_info(self):
        return pmem(4096, 8192)

    def create_time(self):
        return 1_700_000_000.0

    def cpu_percent(self, interval=None):
        self.samples += 1
        return 0.0 if self.samples == 1 else 12.5

    def cmdline(self):
        return ["/bin/proc", "--flag"]

    def exe(self):
        raise psutil.AccessDenied(self.pid)

    def environ(self):
        return {"HOME": "/root"}


@pytest.fixture
def fake_psutil(monkeypatch):
    FakeProc.created = []
    alive = {1, 2}
    monkeypatch.setattr(procmod.psutil, "Process", FakeProc)
    monkeypatch.setattr(procmod.psutil, "pids", lambda: sorted(alive))
    return alive


def test_read_process_fills_fields_and_tolerates_denied_fields(fake_psutil):
    info = read_process(FakeProc(1))
    assert info.name == "proc1"
    assert info.status == "sleeping"
    assert info.cmd == "/bin/proc --flag"
    assert info.exe == ""
    assert info.environ == {"HOME": "/root"}
    assert (info.memory, info.virtual_memory) == (4096, 8192)
    assert info.start_time == 1_700_000_000.0


def test_read_process_of_vanished_process(fake_psutil):
    p = FakeProc(1)
    p.gone = True
    with pytest.raises(ProcessLookupMissing):
        read_process(p)


def test_lookup_is_cached_for_one_tick(fake_psutil):
    table = ProcessTable()
    first = table.lookup(1)
    assert table.lookup(1) is first
    assert first.cpu_usage == 0.0
    table.refresh_all()
    second = table.lookup(1)
    assert second is not first
    # the same handle is reused, so cpu usage covers the last tick
    assert second.cpu_usage == 12.5
    assert FakeProc.created == [1]


def test_missing_pid_yields_none(fake_psutil):
    table = ProcessTable()
    assert table.lookup(404) is None
    assert table.lookup(404) is None


def test_handles_of_exited_processes_are_dropped(fake_psutil):
    table = ProcessTable()
    table.lookup(1)
    table.lookup(2)
    fake_psutil.discard(2)
    table.refresh_all()
    table.lookup(2)
    assert FakeProc.created == [1, 2, 2]


def test_reused_pid_gets_a_fresh_handle(fake_psutil):
    table = ProcessTable()
    table.lookup(1)
    old = table._handles[1]
    # pid 1 exited and was reused between ticks, so it is still in pids()
    old.running = False
    table.refresh_all()
    info = table.lookup(1)
    assert FakeProc.created == [1, 1]
    assert table._handles[1] is not old
    assert info.cpu_usage == 0.0
