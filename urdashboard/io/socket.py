import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from urdashboard.io.capture import Command, capturer, get_capture_or_validation_active
from urdashboard.io.errors import ValidationError
from urdashboard.io.validation_utils import LOG_LEVEL_IO, align_sequences

if TYPE_CHECKING:
  from urdashboard.io.capture import CaptureReader


logger = logging.getLogger(__name__)


@dataclass
class SocketCommand(Command):
  data: str

  def __init__(self, device_id: str, action: str, data: str, module: str = "socket"):
    super().__init__(module=module, device_id=device_id, action=action)
    self.data = data


class Socket:
  """IO for reading/writing to a TCP socket.

  `read_timeout` is the deadline applied to every read that does not pass its own timeout.
  It can be changed while connected. Connecting gives up after `connect_timeout` seconds with
  `asyncio.TimeoutError`.
  """

  def __init__(
    self,
    host: str,
    port: int,
    read_timeout: float = 1,
    write_timeout: float = 30,
    connect_timeout: float = 10,
  ):
    self._host = host
    self._port = port
    self._reader: Optional[asyncio.StreamReader] = None
    self._writer: Optional[asyncio.StreamWriter] = None
    self.read_timeout = read_timeout
    self._write_timeout = write_timeout
    self._connect_timeout = connect_timeout
    self._unique_id = f"{self._host}:{self._port}"
    self._read_lock = asyncio.Lock()
    self._write_lock = asyncio.Lock()

    if get_capture_or_validation_active():
      raise RuntimeError("Cannot create a new Socket object while capture or validation is active")

  @property
  def connected(self) -> bool:
    return self._writer is not None

  async def setup(self):
    await self._connect()

  async def _connect(self):
    self._reader, self._writer = await asyncio.wait_for(
      asyncio.open_connection(self._host, self._port), timeout=self._connect_timeout
    )
    logger.log(LOG_LEVEL_IO, "[%s:%d] connected", self._host, self._port)

  async def stop(self):
    await self._disconnect()

  async def _disconnect(self):
    async with self._read_lock, self._write_lock:
      self._reader = None
      if self._writer is None:
        return

      logger.info("Closing connection to socket %s:%s", self._host, self._port)

      try:
        self._writer.close()
        await self._writer.wait_closed()
      except OSError as e:
        logger.warning("Error while closing socket connection: %s", e)
      finally:
        self._writer = None

  def serialize(self):
    return {
      "host": self._host,
      "port": self._port,
      "type": "Socket",
      "read_timeout": self.read_timeout,
      "write_timeout": self._write_timeout,
      "connect_timeout": self._connect_timeout,
    }

  @classmethod
  def deserialize(cls, data: dict) -> "Socket":
    kwargs = {
      key: data[key]
      for key in ("read_timeout", "write_timeout", "connect_timeout")
      if key in data
    }
    return cls(
      host=data["host"],
      port=data["port"],
      **kwargs,
    )

  async def write(self, data: bytes, timeout: Optional[float] = None) -> None:
    """Wrapper around StreamWriter.write with lock and io logging.
    Does not retry on timeouts.
    """
    if self._writer is None:
      raise ConnectionError(f"Socket {self._unique_id} is not connected. Forgot to call setup?")

    async with self._write_lock:
      self._writer.write(data)
      logger.log(LOG_LEVEL_IO, "[%s:%d] write %s", self._host, self._port, data)
      capturer.record(
        SocketCommand(
          device_id=self._unique_id,
          action="write",
          data=data.hex(),
        )
      )
      try:
        await asyncio.wait_for(self._writer.drain(), timeout=timeout or self._write_timeout)
      except (ConnectionResetError, OSError) as e:
        logger.error("write error: %r", e)
        raise

  async def read(self, num_bytes: int = 128, timeout: Optional[float] = None) -> bytes:
    """Wrapper around StreamReader.read with lock and io logging.

    Returns an empty bytes object when the peer closed the connection.

    Raises:
      asyncio.TimeoutError: if nothing arrives within `timeout` (default: `read_timeout`).
    """
    if self._reader is None:
      raise ConnectionError(f"Socket {self._unique_id} is not connected. Forgot to call setup?")
    async with self._read_lock:
      data = await asyncio.wait_for(
        self._reader.read(num_bytes), timeout=timeout or self.read_timeout
      )
      logger.log(LOG_LEVEL_IO, "[%s:%d] read %s", self._host, self._port, data.hex())
      capturer.record(
        SocketCommand(
          device_id=self._unique_id,
          action="read",
          data=data.hex(),
        )
      )
      return data


class SocketValidator(Socket):
  """Replays a recorded transcript in place of a real socket."""

  def __init__(
    self,
    cr: "CaptureReader",
    host: str,
    port: int,
    read_timeout: float = 1,
    write_timeout: float = 30,
    connect_timeout: float = 10,
  ):
    super().__init__(
      host=host,
      port=port,
      read_timeout=read_timeout,
      write_timeout=write_timeout,
      connect_timeout=connect_timeout,
    )
    self.cr = cr

  @property
  def connected(self) -> bool:
    return True

  async def setup(self):
    return

  async def stop(self):
    return

  def _next_command(self, action: str) -> SocketCommand:
    next_command = SocketCommand(**self.cr.next_command())
    if not (
      next_command.module == "socket"
      and next_command.device_id == self._unique_id
      and next_command.action == action
    ):
      raise ValidationError(
        f"Expected socket {action} command for {self._unique_id}, "
        f"got {next_command.module} {next_command.action} for {next_command.device_id}"
      )
    return next_command

  async def write(self, data: bytes, *args, **kwargs):
    """Validate a write against the transcript."""
    next_command = self._next_command("write")
    expected = bytes.fromhex(next_command.data)
    if expected != data:
      diff = align_sequences(
        expected=expected.decode("utf-8", errors="replace"),
        actual=data.decode("utf-8", errors="replace"),
      )
      raise ValidationError(f"Socket write data mismatch:\n{diff}")

  async def read(self, *args, **kwargs) -> bytes:
    """Return the recorded read data."""
    return bytes.fromhex(self._next_command("read").data)
