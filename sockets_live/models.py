from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple, Union


class Protocol(str, Enum):
    TCP = "tcp"
    UDP = "udp"


class AddressFamily(str, Enum):
    IPV4 = "ipv4"
    IPV6 = "ipv6"


@dataclass(frozen=True)
class TcpSocketInfo:
    local_addr: str
    local_port: int
    remote_addr: str
    remote_port: int
    state: str  # 'LISTEN', 'ESTABLISHED', ...


@dataclass(frozen=True)
class UdpSocketInfo:
    local_addr: str
    local_port: int


ProtocolSocketInfo = Union[TcpSocketInfo, UdpSocketInfo]
Pids = Tuple[int, ...]


@dataclass(frozen=True)
class SocketInfo:
    protocol_info: ProtocolSocketInfo
    associated_pids: Pids = ()
    family: AddressFamily = AddressFamily.IPV4

    @property
    def protocol(self) -> Protocol:
        if isinstance(self.protocol_info, TcpSocketInfo):
            return Protocol.TCP
        return Protocol.UDP


@dataclass
class ProcessInfo:
    pid: int
    name: str
    status: str = "?"
    cmd: str = ""
    exe: str = ""
    environ: Dict[str, str] = field(default_factory=dict)
    memory: int = 0          # resident, bytes
    virtual_memory: int = 0  # bytes
    start_time: float = 0.0  # epoch seconds
    cpu_usage: float = 0.0   # percent since previous sample
