from __future__ import annotations
import logging
import socket
from typing import Collection, List, Optional, Tuple

import psutil

from ..errors import EnumerationError
from ..models import AddressFamily, Protocol, SocketInfo, TcpSocketInfo, UdpSocketInfo

log = logging.getLogger(__name__)

_FAMILIES = {socket.AF_INET: AddressFamily.IPV4, socket.AF_INET6: AddressFamily.IPV6}
_TYPES = {socket.SOCK_STREAM: Protocol.TCP, socket.SOCK_DGRAM: Protocol.UDP}
_UNSPECIFIED = {AddressFamily.IPV4: "0.0.0.0", AddressFamily.IPV6: "::"}


def _addr(a, family: AddressFamily) -> Tuple[str, int]:
    # psutil gives an (ip, port) namedtuple, or an empty tuple when unbound
    if not a:
        return (_UNSPECIFIED[family], 0)
    ip = a.ip if hasattr(a, 'ip') else a[0]
    port = a.port if hasattr(a, 'port') else a[1]
    return (ip, port)


def to_socket_info(c) -> Optional[SocketInfo]:
    family = _FAMILIES.get(c.family)
    proto = _TYPES.get(c.type)
    if family is None or proto is None:
        return None
    laddr = _addr(c.laddr, family)
    pids = (c.pid,) if c.pid else ()
    if proto is Protocol.TCP:
        raddr = _addr(c.raddr, family)
        info = TcpSocketInfo(laddr[0], laddr[1], raddr[0], raddr[1], str(c.status))
    else:
        info = UdpSocketInfo(laddr[0], laddr[1])
    return SocketInfo(protocol_info=info, associated_pids=pids, family=family)


def collect(families: Collection[AddressFamily], protocols: Collection[Protocol]) -> List[SocketInfo]:
    try:
        conns = psutil.net_connections(kind='inet')
    except psutil.AccessDenied as err:
        raise EnumerationError(f"access denied ({err})") from err
    except (psutil.Error, OSError) as err:
        raise EnumerationError(str(err) or err.__class__.__name__) from err

    sockets: List[SocketInfo] = []
    for c in conns:
        si = to_socket_info(c)
        if si is None:
            continue
        if si.family not in families or si.protocol not in protocols:
            continue
        sockets.append(si)
    log.debug("psutil reported %d sockets (%d kept)", len(conns), len(sockets))
    return sockets
