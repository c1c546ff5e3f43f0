import logging

import pytest

from fakes import FakeProcesses, FakeSource, process, scenario
from sockets_live.state import DashboardState


@pytest.fixture
def processes():
    return FakeProcesses([
        process(1, "nginx", status="sleeping", cmd="nginx -g daemon off;", exe="/usr/sbin/nginx",
                memory=2 * 1024 * 1024, virtual_memory=8 * 1024 * 1024, cpu_usage=1.5),
        process(2, "curl", status="running"),
    ])


@pytest.fixture
def state(processes):
    st = DashboardState(FakeSource(scenario()), processes)
    st.refresh()
    return st


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in root.handlers:
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
