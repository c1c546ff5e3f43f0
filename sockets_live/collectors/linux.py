import logging
import re
import shutil
import subprocess
from typing import Collection, List, Optional, Tuple

from ..errors import EnumerationError
from ..models import AddressFamily, Protocol, SocketInfo, TcpSocketInfo, UdpSocketInfo

log = logging.getLogger(__name__)

SS_RE = re.compile(
    r"^(?P<netid>tcp|udp)\s+(?P<state>\S+)\s+\S+\s+\S+\s+(?P<laddr>\S+)\s+(?P<raddr>\S+)(?:\s+(?P<users>.*))?$")
PID_RE = re.compile(r"pid=(?P<pid>\d+)")

# ss abbreviates states; report them the way psutil does
SS_STATES = {
    "ESTAB": "ESTABLISHED",
    "SYN-SENT": "SYN_SENT",
    "SYN-RECV": "SYN_RECV",
    "FIN-WAIT-1": "FIN_WAIT1",
    "FIN-WAIT-2": "FIN_WAIT2",
    "TIME-WAIT": "TIME_WAIT",
    "CLOSE-WAIT": "CLOSE_WAIT",
    "LAST-ACK": "LAST_ACK",
    "UNCONN": "NONE",
    "UNKNOWN": "NONE",
}


def _safe_int(s: str, default: int = 0) -> int:
    try:
        return int(s)
    except ValueError:
        return default


def parse_addr(addr: str) -> Tuple[str, int]:
    """
    Handles:
      - '1.2.3.4:5678', '127.0.0.53%lo:53'
      - '[::1]:443', '[fe80::1%eth0]:123'
      - '0.0.0.0:*', '*:443', '*:*', '*'
    """
    if not addr or addr == '*':
        return ('*', 0)

    host, sep, port = addr.rpartition(':')
    if not sep:
        return (addr, 0)
    host = host.strip('[]').split('%', 1)[0]
    if not host:
        host = '*'
    return (host, 0 if port in ('*', '') else _safe_int(port, 0))


def family_of(host: str) -> AddressFamily:
    # ss prints dual-stack wildcard binds as '*'
    if host == '*' or ':' in host:
        return AddressFamily.IPV6
    return AddressFamily.IPV4


def parse_line(line: str) -> Optional[SocketInfo]:
    m = SS_RE.match(line.strip())
    if not m:
        return None
    laddr = parse_addr(m.group("laddr"))
    pids = tuple(dict.fromkeys(int(p) for p in PID_RE.findall(m.group("users") or "")))
    if m.group("netid") == "tcp":
        raddr = parse_addr(m.group("raddr"))
        state = m.group("state").upper()
        info = TcpSocketInfo(laddr[0], laddr[1], raddr[0], raddr[1], SS_STATES.get(state, state.replace('-', '_')))
    else:
        info = UdpSocketInfo(laddr[0], laddr[1])
    return SocketInfo(protocol_info=info, associated_pids=pids, family=family_of(laddr[0]))


def parse_output(out: str) -> List[SocketInfo]:
    sockets: List[SocketInfo] = []
    for line in out.splitlines():
        si = parse_line(line)
        if si is not None:
            sockets.append(si)
    return sockets


def ss_command(families: Collection[AddressFamily]) -> List[str]:
    # always both tables: ss drops the Netid column when only one is listed
    cmd = ["ss", "-H", "-a", "-n", "-p", "-t", "-u"]
    if AddressFamily.IPV4 in families and AddressFamily.IPV6 not in families:
        cmd.append("-4")
    elif AddressFamily.IPV6 in families and AddressFamily.IPV4 not in families:
        cmd.append("-6")
    return cmd


def available() -> bool:
    return shutil.which("ss") is not None


def collect(families: Collection[AddressFamily], protocols: Collection[Protocol]) -> List[SocketInfo]:
    if not families or not protocols:
        return []
    cmd = ss_command(families)
    try:
        # process names in the users field are raw bytes, not necessarily UTF-8
        res = subprocess.run(cmd, capture_output=True, encoding="utf-8", errors="replace", check=False)
    except OSError as err:
        raise EnumerationError(f"cannot run {cmd[0]}: {err}") from err
    if res.returncode != 0:
        msg = res.stderr.strip() or f"{' '.join(cmd)} exited with status {res.returncode}"
        raise EnumerationError(msg)

    sockets = parse_output(res.stdout)
    log.debug("ss reported %d sockets", len(sockets))
    return [si for si in sockets if si.family in families and si.protocol in protocols]
