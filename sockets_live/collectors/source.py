from __future__ import annotations
import functools
import logging
import platform
from typing import Callable, Collection, List

from ..models import AddressFamily, Protocol, SocketInfo
from . import linux
from . import psutil_source

log = logging.getLogger(__name__)

BACKENDS = ("auto", "psutil", "ss")

SocketSource = Callable[[Collection[AddressFamily], Collection[Protocol]], List[SocketInfo]]


def resolve_backend(name: str) -> str:
    if name not in BACKENDS:
        raise ValueError(f"unknown socket backend {name!r} (expected one of {', '.join(BACKENDS)})")
    if name != "auto":
        return name
    if platform.system() == 'Linux' and linux.available():
        return "ss"
    return "psutil"


def enumerate_sockets(families: Collection[AddressFamily], protocols: Collection[Protocol],
                      backend: str = "auto") -> List[SocketInfo]:
    """List open sockets of the requested families/protocols.

    Raises EnumerationError when the backend cannot be queried.
    """
    if resolve_backend(backend) == "ss":
        return linux.collect(families, protocols)
    return psutil_source.collect(families, protocols)


def make_source(backend: str) -> SocketSource:
    resolved = resolve_backend(backend)
    log.info("socket backend: %s", resolved)
    return functools.partial(enumerate_sockets, backend=resolved)
