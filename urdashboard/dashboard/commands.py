"""The dashboard server command catalog.

Every command is declared once as a `CommandSpec`. The backend executes a spec according to
its `CommandShape`, so the version matrix and the reply patterns in this module are the whole
wire contract of the client.

Request templates and patterns use ``str.format`` placeholders for caller arguments. Arguments
are inserted verbatim into requests and regex-escaped into patterns.
"""

import enum
import re
from dataclasses import dataclass
from typing import Dict, Optional

UNDERSTOOD_REJECT = "(?:could not understand).*"

# attempts of a fire-and-retry command when the caller does not limit them, one second each
DEFAULT_RETRY_ROUNDS = 1200


class CommandShape(enum.Enum):
  """How a command is executed."""

  CONFIRM = "confirm"  # send, require the acknowledgement
  WAIT = "wait"  # send, require the acknowledgement, then poll the status until it settles
  RETRY = "retry"  # re-send the action between poll rounds until the status settles
  QUERY = "query"  # send, require the pattern, return the reply text
  PROBE = "probe"  # send, return whether the reply matches; a mismatch is not an error


@dataclass(frozen=True)
class CommandSpec:
  """Declaration of a single dashboard command.

  Attributes:
    name: catalog key, also the name of the `Dashboard` accessor.
    request: request line template.
    expected: full-line pattern the acknowledgement (or reply) must match.
    e_series: minimum software version on e-series controllers, None if unavailable there.
    cb3: minimum software version on CB3 controllers, None if unavailable there.
    shape: how the command is executed.
    status_request: status query polled by WAIT and RETRY commands.
    status_expected: pattern of the settled status reply.
    reject: pattern of replies that are treated as a mismatch even though they match `expected`.
    read_timeout: read deadline for the reply, for commands that take long to acknowledge.
    gated: False for commands that are sent regardless of the software version.
  """

  name: str
  request: str
  expected: str
  e_series: Optional[str]
  cb3: Optional[str]
  shape: CommandShape = CommandShape.CONFIRM
  status_request: Optional[str] = None
  status_expected: Optional[str] = None
  reject: Optional[str] = None
  read_timeout: Optional[float] = None
  gated: bool = True

  def __post_init__(self):
    if self.shape in (CommandShape.WAIT, CommandShape.RETRY) and (
      self.status_request is None or self.status_expected is None
    ):
      raise ValueError(f"Command '{self.name}' polls a status but does not declare one.")

  @staticmethod
  def _check_arguments(arguments: Dict[str, str]):
    for key, value in arguments.items():
      if "\n" in str(value) or "\r" in str(value):
        raise ValueError(f"Argument '{key}' must not contain line breaks: {value!r}")

  def request_line(self, **arguments) -> str:
    self._check_arguments(arguments)
    return self.request.format(**arguments)

  def expected_pattern(self, **arguments) -> str:
    return self.expected.format(**{k: re.escape(str(v)) for k, v in arguments.items()})

  def status_pattern(self, **arguments) -> str:
    assert self.status_expected is not None
    return self.status_expected.format(**{k: re.escape(str(v)) for k, v in arguments.items()})


def _spec(name: str, request: str, expected: str, e_series: Optional[str], cb3: Optional[str],
          **kwargs) -> CommandSpec:
  return CommandSpec(name=name, request=request, expected=expected, e_series=e_series, cb3=cb3,
                     **kwargs)


_COMMANDS = [
  # power and brakes
  _spec("power_off", "power off", "Powering off", "5.0.0", "3.0",
        shape=CommandShape.WAIT, status_request="robotmode",
        status_expected="Robotmode: POWER_OFF"),
  _spec("power_on", "power on", "Powering on", "5.0.0", "3.0",
        shape=CommandShape.RETRY, status_request="robotmode",
        status_expected="Robotmode: IDLE"),
  _spec("brake_release", "brake release", "Brake releasing", "5.0.0", "3.0",
        shape=CommandShape.WAIT, status_request="robotmode",
        status_expected="Robotmode: RUNNING"),

  # programs and installations
  _spec("load_program", "load {program}", "(?:Loading program: ).*(?:{program}).*", "5.0.0", "1.4",
        shape=CommandShape.WAIT, status_request="programState",
        status_expected="STOPPED {program}"),
  _spec("load_installation", "load installation {installation}",
        "(?:Loading installation: ).*(?:{installation}).*", "5.0.0", "3.2"),
  _spec("play", "play", "Starting program", "5.0.0", "1.4",
        shape=CommandShape.WAIT, status_request="programState",
        status_expected="(?:PLAYING ).*"),
  _spec("pause", "pause", "Pausing program", "5.0.0", "1.4",
        shape=CommandShape.WAIT, status_request="programState",
        status_expected="(?:PAUSED ).*"),
  _spec("stop", "stop", "Stopped", "5.0.0", "1.4",
        shape=CommandShape.WAIT, status_request="programState",
        status_expected="(?:STOPPED ).*"),
  _spec("running", "running", "Program running: true", "5.0.0", "1.6",
        shape=CommandShape.PROBE),
  _spec("is_program_saved", "isProgramSaved", "(?:true ).*", "5.0.0", "1.8",
        shape=CommandShape.PROBE),
  _spec("get_loaded_program", "get loaded program", "(?:Loaded program: ).*", "5.0.0", "1.6",
        shape=CommandShape.QUERY),
  _spec("program_state", "programState", ".*", "5.0.0", "1.8",
        shape=CommandShape.QUERY, reject=UNDERSTOOD_REJECT),

  # popups and log
  _spec("close_popup", "close popup", "closing popup", "5.0.0", "1.6"),
  _spec("close_safety_popup", "close safety popup", "closing safety popup", "5.0.0", "3.1"),
  _spec("popup", "popup {text}", "showing popup", "5.0.0", "1.6"),
  _spec("add_to_log", "addToLog {text}", "Added log message", "5.0.0", "1.8"),

  # safety
  _spec("restart_safety", "restart safety", "Restarting safety", "5.1.0", "3.7",
        shape=CommandShape.WAIT, status_request="robotmode",
        status_expected="Robotmode: POWER_OFF"),
  _spec("unlock_protective_stop", "unlock protective stop", "Protective stop releasing",
        "5.0.0", "3.1"),
  _spec("safety_mode", "safetymode", "(?:Safetymode: ).*", "5.0.0", "3.0",
        shape=CommandShape.QUERY),
  _spec("safety_status", "safetystatus", "(?:Safetystatus: ).*", "5.4.0", "3.11",
        shape=CommandShape.QUERY),

  # session
  _spec("shutdown", "shutdown", "Shutting down", "5.0.0", "1.4"),
  _spec("quit", "quit", "Disconnected", "5.0.0", "1.4"),
  _spec("is_in_remote_control", "is in remote control", "true", "5.6.0", None,
        shape=CommandShape.PROBE),

  # controller information
  _spec("polyscope_version", "PolyscopeVersion", "(?:URSoftware ).*", None, None,
        shape=CommandShape.QUERY, gated=False),
  _spec("robot_mode", "robotmode", "(?:Robotmode: ).*", "5.0.0", "1.6",
        shape=CommandShape.QUERY),
  _spec("get_robot_model", "get robot model", "(?:UR).*", "5.6.0", "3.12",
        shape=CommandShape.QUERY),
  _spec("get_serial_number", "get serial number", "(?:20).*", "5.6.0", "3.12",
        shape=CommandShape.QUERY),

  # operational mode (e-series) and user role (CB3)
  _spec("get_operational_mode", "get operational mode", ".*", "5.6.0", None,
        shape=CommandShape.QUERY, reject=UNDERSTOOD_REJECT),
  _spec("set_operational_mode", "set operational mode {mode}",
        "(?:Operational mode ).*(?:{mode}).*", "5.0.0", None),
  _spec("clear_operational_mode", "clear operational mode",
        "(?:No longer controlling the operational mode. ).*", "5.0.0", None),
  _spec("set_user_role", "setUserRole {role}", "(?:Setting user role: ).*", None, "1.8"),
  _spec("get_user_role", "getUserRole", ".*", None, "1.8",
        shape=CommandShape.QUERY, reject=UNDERSTOOD_REJECT),

  # diagnostics
  _spec("generate_flight_report", "generate flight report {report_type}",
        "(?:Flight Report generated with id:).*", "5.8.0", "3.13", read_timeout=180),
  _spec("generate_support_file", "generate support file {dir_path}",
        "(?:Completed successfully:).*", "5.8.0", "3.13", read_timeout=600),
]

CATALOG: Dict[str, CommandSpec] = {spec.name: spec for spec in _COMMANDS}


def get_command(name: str) -> CommandSpec:
  try:
    return CATALOG[name]
  except KeyError as e:
    raise KeyError(f"Unknown dashboard command '{name}'") from e
