from .snapshot import SocketSnapshot, partition
from .dashboard import DashboardState, ProtocolFocus
