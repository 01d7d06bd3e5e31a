import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

LOG_FROM_STRING = {
  "IO": 5,
  "DEBUG": logging.DEBUG,
  "INFO": logging.INFO,
  "WARNING": logging.WARNING,
  "ERROR": logging.ERROR,
  "CRITICAL": logging.CRITICAL,
}

LOG_TO_STRING = {v: k for k, v in LOG_FROM_STRING.items()}

DASHBOARD_SERVER_PORT = 29999


@dataclass
class Config:
  """The configuration object for urdashboard."""

  @dataclass
  class Logging:
    """The logging configuration."""

    level: int = logging.INFO
    log_dir: Optional[Path] = None

  @dataclass
  class Dashboard:
    """Connection defaults for the dashboard server.

    Attributes:
      port: TCP port of the dashboard server.
      read_timeout: per-read deadline in seconds, used for every reply line unless a command
        widens it.
      poll_interval: seconds between two status queries while waiting for a state transition.
      default_wait_timeout: seconds a fire-and-wait command polls for the settled state.
    """

    port: int = DASHBOARD_SERVER_PORT
    read_timeout: float = 1.0
    poll_interval: float = 0.1
    default_wait_timeout: float = 30.0

  logging: Logging = field(default_factory=Logging)
  dashboard: Dashboard = field(default_factory=Dashboard)

  @classmethod
  def from_dict(cls, d: dict) -> "Config":
    logging_data = d.get("logging", {})
    dashboard_data = d.get("dashboard", {})
    defaults = cls.Dashboard()
    return cls(
      logging=cls.Logging(
        level=LOG_FROM_STRING[logging_data.get("level", "INFO")],
        log_dir=Path(logging_data["log_dir"]) if logging_data.get("log_dir") else None,
      ),
      dashboard=cls.Dashboard(
        port=int(dashboard_data.get("port", defaults.port)),
        read_timeout=float(dashboard_data.get("read_timeout", defaults.read_timeout)),
        poll_interval=float(dashboard_data.get("poll_interval", defaults.poll_interval)),
        default_wait_timeout=float(
          dashboard_data.get("default_wait_timeout", defaults.default_wait_timeout)
        ),
      ),
    )

  @property
  def as_dict(self) -> dict:
    return {
      "logging": {
        "level": LOG_TO_STRING[self.logging.level],
        "log_dir": str(self.logging.log_dir) if self.logging.log_dir is not None else None,
      },
      "dashboard": {
        "port": self.dashboard.port,
        "read_timeout": self.dashboard.read_timeout,
        "poll_interval": self.dashboard.poll_interval,
        "default_wait_timeout": self.dashboard.default_wait_timeout,
      },
    }
