from typing import Dict, Optional, Union

from urdashboard.dashboard.backend import DashboardBackend
from urdashboard.dashboard.commands import CommandShape, get_command
from urdashboard.dashboard.errors import DashboardConnectionError
from urdashboard.dashboard.version import FirmwareVersion, parse_version


class DashboardChatterboxBackend(DashboardBackend):
  """ Chatter box backend for device-free testing. Prints out all operations.

  Pretends to be a controller running `version`, refuses the same commands a real controller of
  that version would refuse, and keeps just enough state (robot mode, loaded program, program
  state) for status queries to follow the commands that were sent.
  """

  def __init__(self, version: str = "5.9.4.10300", robot_model: str = "UR5",
               serial_number: str = "20185500001") -> None:
    super().__init__()
    self._version = version
    self._robot_model = robot_model
    self._serial_number = serial_number
    self._firmware_version: Optional[FirmwareVersion] = None
    self._robot_mode = "POWER_OFF"
    self._loaded_program = "<unnamed>"
    self._program_state = "STOPPED"
    self._operational_mode = "NONE"
    self._user_role = "PROGRAMMER"

  @property
  def firmware_version(self) -> Optional[FirmwareVersion]:
    return self._firmware_version

  @property
  def polyscope_version(self) -> Optional[str]:
    return self._version if self._firmware_version is not None else None

  async def setup(self):
    print(f"Connecting to the dashboard server, software version {self._version}.")
    self._firmware_version = parse_version(self._version)

  async def stop(self):
    print("Disconnecting from the dashboard server.")
    self._firmware_version = None

  def serialize(self) -> dict:
    return {
      **super().serialize(),
      "version": self._version,
      "robot_model": self._robot_model,
      "serial_number": self._serial_number,
    }

  def _replies(self) -> Dict[str, str]:
    return {
      "polyscope_version": f"URSoftware {self._version} (Jan 01 2024)",
      "robot_mode": f"Robotmode: {self._robot_mode}",
      "get_loaded_program": f"Loaded program: {self._loaded_program}",
      "program_state": f"{self._program_state} {self._loaded_program}",
      "safety_mode": "Safetymode: NORMAL",
      "safety_status": "Safetystatus: NORMAL",
      "get_robot_model": self._robot_model,
      "get_serial_number": self._serial_number,
      "get_operational_mode": self._operational_mode,
      "get_user_role": self._user_role,
    }

  def _apply(self, name: str, arguments: dict):
    if name == "power_on":
      self._robot_mode = "IDLE"
    elif name == "brake_release":
      self._robot_mode = "RUNNING"
    elif name in ("power_off", "restart_safety"):
      self._robot_mode = "POWER_OFF"
    elif name == "load_program":
      self._loaded_program = arguments["program"]
      self._program_state = "STOPPED"
    elif name == "play":
      self._program_state = "PLAYING"
    elif name == "pause":
      self._program_state = "PAUSED"
    elif name == "stop":
      self._program_state = "STOPPED"
    elif name == "set_operational_mode":
      self._operational_mode = arguments["mode"].upper()
    elif name == "clear_operational_mode":
      self._operational_mode = "NONE"
    elif name == "set_user_role":
      self._user_role = arguments["role"].upper()

  async def execute(self, name: str, timeout: Optional[float] = None,
                    **arguments) -> Union[bool, str]:
    spec = get_command(name)
    if self._firmware_version is None:
      raise DashboardConnectionError(f"Cannot send '{name}': the chatterbox is not set up.")
    self.check_version(spec)
    print(f"Sending '{spec.request_line(**arguments)}'.")

    if spec.shape is CommandShape.QUERY:
      return self._replies()[name]
    if spec.shape is CommandShape.PROBE:
      return name != "running" or self._program_state == "PLAYING"
    self._apply(name, arguments)
    return True
