import asyncio
import logging
import re
from typing import Optional, Union

import urdashboard
from urdashboard.dashboard.backend import DashboardBackend
from urdashboard.dashboard.commands import DEFAULT_RETRY_ROUNDS, CommandShape, get_command
from urdashboard.dashboard.errors import (
  DashboardConnectionError,
  DashboardTimeoutError,
  ProtocolMismatchError,
)
from urdashboard.dashboard.version import FirmwareVersion, extract_version, parse_version
from urdashboard.io import Socket

logger = logging.getLogger(__name__)

MAX_REPLY_LENGTH = 4096
TRAILING_WHITESPACE = "\t\n\v\f\r "
RETRY_ROUND_TIMEOUT = 1.0


def _matches(pattern: str, reply: str) -> bool:
  return re.fullmatch(pattern, reply) is not None


class URDashboardBackend(DashboardBackend):
  """Client for the dashboard server of a Universal Robots controller (TCP port 29999).

  The server speaks a line protocol: every request line gets exactly one reply line. Requests on
  one backend are serialized, so concurrent tasks wait for each other instead of interleaving on
  the wire.

  On setup the server's banner is read and the controller's software version is queried. The
  version decides which commands may be sent, see `urdashboard.dashboard.commands`.

  A reply that does not arrive within the read timeout closes the connection. Every following
  command fails with `DashboardConnectionError` until `setup` is called again.

  Example::

    backend = URDashboardBackend("192.168.56.101")
    await backend.setup()
    await backend.execute("power_on")
    mode = await backend.execute("robot_mode")
  """

  def __init__(
    self,
    host: str,
    port: Optional[int] = None,
    read_timeout: Optional[float] = None,
    poll_interval: Optional[float] = None,
    default_wait_timeout: Optional[float] = None,
  ) -> None:
    super().__init__()
    defaults = urdashboard.CONFIG.dashboard
    self.host = host
    self.port = port if port is not None else defaults.port
    self.read_timeout = read_timeout if read_timeout is not None else defaults.read_timeout
    self.poll_interval = poll_interval if poll_interval is not None else defaults.poll_interval
    self.default_wait_timeout = (
      default_wait_timeout if default_wait_timeout is not None else defaults.default_wait_timeout
    )
    self.io = Socket(host=self.host, port=self.port, read_timeout=self.read_timeout)

    self._lock = asyncio.Lock()
    self._connected = False
    self._active_read_timeout = self.read_timeout
    self._polyscope_version: Optional[str] = None
    self._firmware_version: Optional[FirmwareVersion] = None

  @property
  def connected(self) -> bool:
    return self._connected

  @property
  def firmware_version(self) -> Optional[FirmwareVersion]:
    return self._firmware_version

  @property
  def polyscope_version(self) -> Optional[str]:
    """The version string as reported by the controller when the connection was opened."""
    return self._polyscope_version

  async def setup(self):
    if self._connected:
      logger.error("Socket is already connected. Refusing to reconnect.")
      raise DashboardConnectionError(
        f"Already connected to dashboard server {self.host}:{self.port}. Refusing to reconnect."
      )

    try:
      await self.io.setup()
    except (OSError, asyncio.TimeoutError) as e:
      raise DashboardConnectionError(
        f"Could not connect to dashboard server {self.host}:{self.port}: {e}"
      ) from e
    self._connected = True

    async with self._lock:
      self._active_read_timeout = self.read_timeout
      banner = await self._read_reply()
    logger.info("%s", banner)

    try:
      reply = await self.send_request_capture("PolyscopeVersion", "(?:URSoftware ).*")
      version = extract_version(reply)
      firmware_version = parse_version(version)
    except (ProtocolMismatchError, ValueError):
      await self.stop()
      raise
    self._polyscope_version = version
    self._firmware_version = firmware_version
    logger.info(
      "Dashboard server %s:%d runs software %s (%s)",
      self.host,
      self.port,
      version,
      "e-series" if firmware_version.is_e_series else "CB3",
    )

  async def stop(self):
    if not self._connected and not self.io.connected:
      return
    logger.info("Disconnecting from Dashboard server on %s:%d", self.host, self.port)
    await self._disconnect()

  async def _disconnect(self):
    self._connected = False
    self._polyscope_version = None
    self._firmware_version = None
    await self.io.stop()

  def serialize(self) -> dict:
    return {
      **super().serialize(),
      "host": self.host,
      "port": self.port,
      "read_timeout": self.read_timeout,
      "poll_interval": self.poll_interval,
      "default_wait_timeout": self.default_wait_timeout,
    }

  # region framing

  @staticmethod
  def _encode_request(command: str) -> bytes:
    if "\n" in command:
      raise ValueError(f"Dashboard commands must not contain line breaks: {command!r}")
    return (command + "\n").encode("utf-8")

  async def _read_byte(self) -> bytes:
    try:
      char = await self.io.read(1, timeout=self._active_read_timeout)
    except asyncio.TimeoutError as e:
      timeout = self._active_read_timeout
      await self._disconnect()
      raise DashboardTimeoutError(
        "Did not receive answer from dashboard server in time. "
        "Disconnecting from dashboard server.",
        timeout=timeout,
      ) from e
    if len(char) == 0:
      await self._disconnect()
      raise DashboardConnectionError(
        f"Dashboard server {self.host}:{self.port} closed the connection."
      )
    return char

  async def _read_reply(self) -> str:
    """Read one reply line, byte by byte. Must be called while holding the lock.

    A line longer than `MAX_REPLY_LENGTH` bytes is cut off there. The rest of it is read and
    dropped, so that the next request gets its own reply.
    """
    buffer = bytearray()
    char = b""
    while len(buffer) < MAX_REPLY_LENGTH:
      char = await self._read_byte()
      buffer.extend(char)
      if char == b"\n":
        break

    if char != b"\n":
      dropped = 0
      while await self._read_byte() != b"\n":
        dropped += 1
      logger.warning("Reply exceeds %d bytes, dropped %d bytes", MAX_REPLY_LENGTH, dropped)
    return buffer.decode("utf-8", errors="replace").rstrip(TRAILING_WHITESPACE)

  # endregion

  # region request/reply

  async def send_and_receive(self, command: str, read_timeout: Optional[float] = None) -> str:
    """Send one request line and return the reply line without trailing whitespace.

    Args:
      command: the request, without line terminator.
      read_timeout: read deadline for this reply only. The default read timeout is restored
        afterwards, also when the exchange fails.

    Raises:
      DashboardConnectionError: if not connected, or the request could not be written.
      DashboardTimeoutError: if no reply arrived in time. The connection is closed.
    """
    data = self._encode_request(command)
    async with self._lock:
      if not self._connected:
        raise DashboardConnectionError(
          "Failed to send request to dashboard server. Are you connected to the Dashboard Server?"
        )
      previous_timeout = self._active_read_timeout
      if read_timeout is not None:
        self._active_read_timeout = read_timeout
      try:
        try:
          await self.io.write(data)
        except (OSError, asyncio.TimeoutError) as e:
          raise DashboardConnectionError(
            "Failed to send request to dashboard server. "
            "Are you connected to the Dashboard Server?"
          ) from e
        return await self._read_reply()
      finally:
        self._active_read_timeout = previous_timeout

  async def send_request(
    self, command: str, expected: str, read_timeout: Optional[float] = None
  ) -> bool:
    """Send `command` and require the reply to match `expected` in full.

    Raises:
      ProtocolMismatchError: if the reply does not match.
    """
    await self.send_request_capture(command, expected, read_timeout=read_timeout)
    return True

  async def send_request_capture(
    self, command: str, expected: str, read_timeout: Optional[float] = None
  ) -> str:
    """Like `send_request`, but returns the reply."""
    logger.debug("Send Request: %s", command)
    reply = await self.send_and_receive(command, read_timeout=read_timeout)
    if not _matches(expected, reply):
      logger.error("Unexpected reply to '%s'. Expected: %s, received: %s", command, expected, reply)
      raise ProtocolMismatchError(expected=expected, actual=reply, command=command)
    return reply

  # endregion

  # region polling

  async def wait_for_reply(self, command: str, expected: str,
                           timeout: Optional[float] = None) -> bool:
    """Send `command` every `poll_interval` until the reply matches `expected`.

    Not matching within `timeout` seconds is an expected outcome, not an error.

    Returns:
      True if a reply matched, False if `timeout` elapsed first.
    """
    if timeout is None:
      timeout = self.default_wait_timeout

    elapsed = 0.0
    reply = ""
    while elapsed < timeout:
      reply = await self.send_and_receive(command)
      if _matches(expected, reply):
        return True

      await asyncio.sleep(self.poll_interval)
      elapsed += self.poll_interval

    logger.warning(
      'Did not get the expected "%s" response within the timeout. Last response was: "%s"',
      expected,
      reply,
    )
    return False

  async def retry_command(
    self,
    command: str,
    expected: str,
    status_command: str,
    status_expected: str,
    timeout_rounds: int,
    round_timeout: float = RETRY_ROUND_TIMEOUT,
  ) -> bool:
    """Send `command` and poll `status_command`, re-sending `command` after every round in
    which the status did not settle.

    Every attempt of `command` must be acknowledged with `expected`.

    Args:
      timeout_rounds: maximum number of attempts. At least one attempt is made.
      round_timeout: seconds to poll the status after each attempt.

    Returns:
      True once the status matched, False if all rounds were used up.
    """
    attempts = 0
    while True:
      await self.send_request(command, expected)
      attempts += 1

      if await self.wait_for_reply(status_command, status_expected, round_timeout):
        return True
      if attempts >= timeout_rounds:
        return False

  # endregion

  async def execute(self, name: str, timeout: Optional[float] = None,
                    **arguments) -> Union[bool, str]:
    spec = get_command(name)
    self.check_version(spec)

    request = spec.request_line(**arguments)
    expected = spec.expected_pattern(**arguments)

    if spec.shape is CommandShape.QUERY:
      reply = await self.send_request_capture(request, expected, read_timeout=spec.read_timeout)
      if spec.reject is not None and _matches(spec.reject, reply):
        logger.error("Dashboard server did not understand '%s': %s", request, reply)
        raise ProtocolMismatchError(expected=expected, actual=reply, command=request)
      return reply

    if spec.shape is CommandShape.PROBE:
      logger.debug("Send Request: %s", request)
      reply = await self.send_and_receive(request, read_timeout=spec.read_timeout)
      return _matches(expected, reply)

    status_request = spec.status_request

    if spec.shape is CommandShape.RETRY:
      assert status_request is not None
      return await self.retry_command(
        request,
        expected,
        status_request,
        spec.status_pattern(**arguments),
        timeout_rounds=int(timeout) if timeout is not None else DEFAULT_RETRY_ROUNDS,
      )

    await self.send_request(request, expected, read_timeout=spec.read_timeout)

    if spec.shape is CommandShape.WAIT:
      assert status_request is not None
      return await self.wait_for_reply(
        status_request, spec.status_pattern(**arguments), timeout=timeout
      )
    return True
