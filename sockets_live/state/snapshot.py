from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from ..models import Pids, SocketInfo, TcpSocketInfo, UdpSocketInfo

TcpEntry = Tuple[TcpSocketInfo, Pids]
UdpEntry = Tuple[UdpSocketInfo, Pids]


@dataclass
class SocketSnapshot:
    """One enumeration of the host's sockets, split by protocol.

    Entries keep the order in which the source reported them; duplicates
    are kept as well.
    """
    tcp: List[TcpEntry] = field(default_factory=list)
    udp: List[UdpEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.tcp) + len(self.udp)


def partition(sockets: Iterable[SocketInfo]) -> SocketSnapshot:
    snap = SocketSnapshot()
    for si in sockets:
        info = si.protocol_info
        if isinstance(info, TcpSocketInfo):
            snap.tcp.append((info, tuple(si.associated_pids)))
        elif isinstance(info, UdpSocketInfo):
            snap.udp.append((info, tuple(si.associated_pids)))
        else:
            raise TypeError(f"unexpected socket record: {info!r}")
    return snap
