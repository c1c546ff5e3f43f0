from .processes import ProcessTable
from .source import enumerate_sockets, make_source
