from .backend import DashboardBackend
from .chatterbox import DashboardChatterboxBackend
from .commands import CATALOG, CommandShape, CommandSpec
from .dashboard import Dashboard
from .errors import (
  DashboardConnectionError,
  DashboardError,
  DashboardTimeoutError,
  ProtocolMismatchError,
  VersionParseError,
  VersionUnsupportedError,
)
from .ur_backend import URDashboardBackend
from .version import FirmwareVersion, parse_version
