from typing import Optional


class DashboardError(Exception):
  """Base exception for dashboard client errors."""


class DashboardConnectionError(DashboardError, ConnectionError):
  """The connection to the dashboard server could not be established, is already established,
  or was lost."""


class DashboardTimeoutError(DashboardError, TimeoutError):
  """No reply line arrived within the read deadline. The connection has been closed."""

  def __init__(self, message: str, timeout: float):
    self.timeout = timeout
    super().__init__(f"{message} (timeout: {timeout} s)")


class ProtocolMismatchError(DashboardError):
  """A reply did not match the pattern expected for the command."""

  def __init__(self, expected: str, actual: str, command: Optional[str] = None):
    self.expected = expected
    self.actual = actual
    self.command = command
    prefix = f"'{command}': " if command is not None else ""
    super().__init__(f"{prefix}Expected: {expected}, but received: {actual}")


class VersionUnsupportedError(DashboardError):
  """A command is not available on the connected controller generation or firmware version."""

  def __init__(self, command: str, required: Optional[str], actual: str, e_series: bool):
    self.command = command
    self.required = required
    self.actual = actual
    self.e_series = e_series
    if required is None:
      generation = "e-series" if e_series else "CB3"
      super().__init__(
        f"'{command}' is not available on {generation} controllers (software version {actual})"
      )
    else:
      super().__init__(
        f"'{command}' requires software version {required}, but actual version is {actual}"
      )


class VersionParseError(DashboardError, ValueError):
  """A software version string could not be parsed."""
