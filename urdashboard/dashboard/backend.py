import inspect
import weakref
from abc import ABC, abstractmethod
from typing import Optional, Type, TypeVar, Union

from urdashboard.dashboard.commands import CommandSpec
from urdashboard.dashboard.errors import DashboardConnectionError
from urdashboard.dashboard.version import FirmwareVersion, meets_minimum

T = TypeVar("T")


def _find_subclass(class_name: str, cls: Type[T]) -> Optional[Type[T]]:
  """Recursively find the subclass of `cls` called `class_name`."""
  if cls.__name__ == class_name:
    return cls
  for subclass in cls.__subclasses__():
    found = _find_subclass(class_name, subclass)
    if found is not None:
      return found
  return None


class DashboardBackend(ABC):
  """Abstract class for dashboard server backends.

  A backend executes catalog commands by name. It knows the software version of the controller it
  is connected to and refuses commands that the version does not support.
  """

  _instances: "weakref.WeakSet[DashboardBackend]" = weakref.WeakSet()

  def __init__(self):
    self._instances.add(self)

  @abstractmethod
  async def setup(self):
    """Connect to the dashboard server and read the controller's software version."""

  @abstractmethod
  async def stop(self):
    """Disconnect from the dashboard server."""

  @abstractmethod
  async def execute(self, name: str, timeout: Optional[float] = None,
                    **arguments) -> Union[bool, str]:
    """Execute the catalog command `name`.

    Args:
      name: catalog key of the command.
      timeout: seconds to wait for the settled state (fire-and-wait commands), or number of
        retry rounds (fire-and-retry commands). Ignored by other commands.
      arguments: values for the placeholders of the command's request template.

    Returns:
      The reply text for query commands, otherwise whether the command succeeded or settled.
    """

  @property
  @abstractmethod
  def firmware_version(self) -> Optional[FirmwareVersion]:
    """Software version of the connected controller, None while not connected."""

  @property
  def is_e_series(self) -> bool:
    version = self.firmware_version
    return version is not None and version.is_e_series

  def check_version(self, spec: CommandSpec) -> bool:
    """Raise if `spec` may not be sent to the connected controller.

    Raises:
      DashboardConnectionError: if the software version is not known, i.e. not connected.
      VersionUnsupportedError: if the controller does not support the command.
    """
    if not spec.gated:
      return True
    version = self.firmware_version
    if version is None:
      raise DashboardConnectionError(
        f"Cannot send '{spec.name}': not connected to a dashboard server."
      )
    return meets_minimum(spec.name, spec.e_series, spec.cb3, version)

  def serialize(self) -> dict:
    return {"type": self.__class__.__name__}

  @classmethod
  def deserialize(cls, data: dict) -> "DashboardBackend":
    data = data.copy()
    class_name = data.pop("type")
    subclass = _find_subclass(class_name, cls=cls)
    if subclass is None:
      raise ValueError(f'Could not find subclass with name "{class_name}"')
    if inspect.isabstract(subclass):
      raise ValueError(f'Subclass with name "{class_name}" is abstract')
    return subclass(**data)

  @classmethod
  def get_all_instances(cls):
    return cls._instances
