from __future__ import annotations

import functools
import sys
from typing import Any, Awaitable, Callable, Optional, TypeVar, cast

from urdashboard.dashboard.backend import DashboardBackend
from urdashboard.dashboard.version import FirmwareVersion

if sys.version_info < (3, 10):
  from typing_extensions import ParamSpec
else:
  from typing import ParamSpec

_P = ParamSpec("_P")
_R = TypeVar("_R", bound=Awaitable[Any])


def need_setup_finished(func: Callable[_P, _R]) -> Callable[_P, _R]:
  """Decorator for methods that require the dashboard to be set up.

  Raises:
    RuntimeError: If the dashboard is not set up.
  """

  @functools.wraps(func)
  async def wrapper(*args, **kwargs):
    self = args[0]
    assert isinstance(self, Dashboard), "The first argument must be a Dashboard."

    if not self.setup_finished:
      raise RuntimeError("The setup has not finished. See `setup`.")
    return await func(*args, **kwargs)

  return cast(Callable[_P, _R], wrapper)


class Dashboard:
  """Frontend for the dashboard server of a robot controller.

  Every method sends one command of the catalog in `urdashboard.dashboard.commands`. Commands
  that the connected controller does not support raise `VersionUnsupportedError` before anything
  is sent.

  Example::

    async with Dashboard(URDashboardBackend("192.168.56.101")) as dashboard:
      await dashboard.power_on()
      await dashboard.brake_release()
      await dashboard.load_program("pick.urp")
      await dashboard.play()
  """

  def __init__(self, backend: DashboardBackend):
    self.backend = backend
    self._setup_finished = False

  @property
  def setup_finished(self) -> bool:
    return self._setup_finished

  @property
  def firmware_version(self) -> Optional[FirmwareVersion]:
    return self.backend.firmware_version

  @property
  def is_e_series(self) -> bool:
    return self.backend.is_e_series

  def serialize(self) -> dict:
    return {"backend": self.backend.serialize()}

  @classmethod
  def deserialize(cls, data: dict) -> "Dashboard":
    return cls(backend=DashboardBackend.deserialize(data["backend"]))

  async def setup(self):
    await self.backend.setup()
    self._setup_finished = True

  @need_setup_finished
  async def stop(self):
    await self.backend.stop()
    self._setup_finished = False

  async def __aenter__(self):
    await self.setup()
    return self

  async def __aexit__(self, exc_type, exc_value, traceback):
    await self.stop()

  async def _bool(self, name: str, timeout: Optional[float] = None, **arguments) -> bool:
    return cast(bool, await self.backend.execute(name, timeout=timeout, **arguments))

  async def _str(self, name: str, **arguments) -> str:
    return cast(str, await self.backend.execute(name, **arguments))

  # region power

  @need_setup_finished
  async def power_on(self, timeout: int = 1200) -> bool:
    """Power on the robot and wait until it is idle.

    Args:
      timeout: number of rounds. Each round sends the power on request and then polls the robot
        mode for one second. A round takes longer than one second, because sending and receiving
        add to it, so the total wait is more than `timeout` seconds.
    """
    return await self._bool("power_on", timeout=timeout)

  @need_setup_finished
  async def power_off(self, timeout: Optional[float] = None) -> bool:
    """Power off the robot and wait until it reports POWER_OFF."""
    return await self._bool("power_off", timeout=timeout)

  @need_setup_finished
  async def brake_release(self, timeout: Optional[float] = None) -> bool:
    """Release the brakes and wait until the robot is running."""
    return await self._bool("brake_release", timeout=timeout)

  # endregion

  # region programs

  @need_setup_finished
  async def load_program(self, program: str, timeout: Optional[float] = None) -> bool:
    """Load a program file (with .urp extension) and wait until it is loaded and stopped."""
    return await self._bool("load_program", timeout=timeout, program=program)

  @need_setup_finished
  async def load_installation(self, installation: str) -> bool:
    return await self._bool("load_installation", installation=installation)

  @need_setup_finished
  async def play(self, timeout: Optional[float] = None) -> bool:
    """Start the loaded program and wait until it is playing."""
    return await self._bool("play", timeout=timeout)

  @need_setup_finished
  async def pause(self, timeout: Optional[float] = None) -> bool:
    return await self._bool("pause", timeout=timeout)

  @need_setup_finished
  async def stop_program(self, timeout: Optional[float] = None) -> bool:
    """Stop the running program and wait until it is stopped.

    Named `stop_program` because `stop` closes the connection.
    """
    return await self._bool("stop", timeout=timeout)

  @need_setup_finished
  async def running(self) -> bool:
    """Whether a program is running."""
    return await self._bool("running")

  @need_setup_finished
  async def is_program_saved(self) -> bool:
    return await self._bool("is_program_saved")

  @need_setup_finished
  async def get_loaded_program(self) -> str:
    return await self._str("get_loaded_program")

  @need_setup_finished
  async def program_state(self) -> str:
    return await self._str("program_state")

  # endregion

  # region popups and log

  @need_setup_finished
  async def popup(self, text: str) -> bool:
    return await self._bool("popup", text=text)

  @need_setup_finished
  async def close_popup(self) -> bool:
    return await self._bool("close_popup")

  @need_setup_finished
  async def close_safety_popup(self) -> bool:
    return await self._bool("close_safety_popup")

  @need_setup_finished
  async def add_to_log(self, text: str) -> bool:
    """Add a message to the controller log."""
    return await self._bool("add_to_log", text=text)

  # endregion

  # region safety

  @need_setup_finished
  async def restart_safety(self, timeout: Optional[float] = None) -> bool:
    """Restart the safety system, e.g. after a safety fault. The robot ends up powered off."""
    return await self._bool("restart_safety", timeout=timeout)

  @need_setup_finished
  async def unlock_protective_stop(self) -> bool:
    return await self._bool("unlock_protective_stop")

  @need_setup_finished
  async def safety_mode(self) -> str:
    return await self._str("safety_mode")

  @need_setup_finished
  async def safety_status(self) -> str:
    return await self._str("safety_status")

  # endregion

  # region session

  @need_setup_finished
  async def shutdown(self) -> bool:
    """Shut down the controller."""
    return await self._bool("shutdown")

  @need_setup_finished
  async def quit(self) -> bool:
    """Ask the server to close the connection."""
    return await self._bool("quit")

  @need_setup_finished
  async def is_in_remote_control(self) -> bool:
    """Whether the controller is in remote control mode. e-series only."""
    return await self._bool("is_in_remote_control")

  # endregion

  # region controller information

  @need_setup_finished
  async def polyscope_version(self) -> str:
    """Query the software version string, e.g. ``URSoftware 5.9.4.10300 (Nov 27 2020)``.

    The version that gates commands was read on setup and does not change.
    """
    return await self._str("polyscope_version")

  @need_setup_finished
  async def robot_mode(self) -> str:
    return await self._str("robot_mode")

  @need_setup_finished
  async def get_robot_model(self) -> str:
    return await self._str("get_robot_model")

  @need_setup_finished
  async def get_serial_number(self) -> str:
    return await self._str("get_serial_number")

  # endregion

  # region operational mode and user role

  @need_setup_finished
  async def get_operational_mode(self) -> str:
    return await self._str("get_operational_mode")

  @need_setup_finished
  async def set_operational_mode(self, mode: str) -> bool:
    """Set the operational mode ("manual" or "automatic"). e-series only."""
    return await self._bool("set_operational_mode", mode=mode)

  @need_setup_finished
  async def clear_operational_mode(self) -> bool:
    return await self._bool("clear_operational_mode")

  @need_setup_finished
  async def set_user_role(self, role: str) -> bool:
    """Set the user role, e.g. "programmer" or "locked". CB3 only."""
    return await self._bool("set_user_role", role=role)

  @need_setup_finished
  async def get_user_role(self) -> str:
    return await self._str("get_user_role")

  # endregion

  # region diagnostics

  @need_setup_finished
  async def generate_flight_report(self, report_type: str) -> bool:
    """Generate a flight report ("controller", "software" or "system"). Can take minutes."""
    return await self._bool("generate_flight_report", report_type=report_type)

  @need_setup_finished
  async def generate_support_file(self, dir_path: str) -> bool:
    """Generate a support file in `dir_path`, an existing directory inside the programs
    directory. Can take up to ten minutes."""
    return await self._bool("generate_support_file", dir_path=dir_path)

  # endregion
