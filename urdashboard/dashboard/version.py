"""Software version parsing and the per-generation version gate."""

from typing import NamedTuple, Optional

from urdashboard.dashboard.errors import VersionParseError, VersionUnsupportedError

E_SERIES_MIN_MAJOR = 5


class FirmwareVersion(NamedTuple):
  """A PolyScope software version. Ordered lexicographically over its four components."""

  major: int
  minor: int
  patch: int
  build: int

  @property
  def is_e_series(self) -> bool:
    return self.major >= E_SERIES_MIN_MAJOR

  def __str__(self) -> str:
    return ".".join(str(part) for part in self)


def _scan_int(text: str, pos: int) -> int:
  end = pos
  while end < len(text) and "0" <= text[end] <= "9":
    end += 1
  if end == pos:
    raise VersionParseError(f"Expected a number at position {pos} of version string '{text}'")
  return end


def parse_version(version: str) -> FirmwareVersion:
  """Parse a dotted version string such as ``5.9.2.10332``.

  The first integer is read, then up to three more, each preceded by exactly one separator
  character. Components missing at the end of the string count as 0, so ``3.2`` parses as
  ``(3, 2, 0, 0)``. Text after the fourth integer is ignored.

  Raises:
    VersionParseError: if an integer is missing where one is expected, e.g. ``5..1`` or ``x``.
  """

  text = version.strip()
  parts = []
  end = _scan_int(text, 0)
  parts.append(int(text[:end]))
  pos = end
  for _ in range(3):
    if pos >= len(text):
      parts.append(0)
      continue
    start = pos + 1  # skip the separator
    end = _scan_int(text, start)
    parts.append(int(text[start:end]))
    pos = end
  return FirmwareVersion(*parts)


def extract_version(polyscope_reply: str) -> str:
  """Get the bare version from a ``PolyscopeVersion`` reply.

  ``URSoftware 5.9.4.10300 (Nov 27 2020)`` -> ``5.9.4.10300``
  """

  _, sep, rest = polyscope_reply.partition(" ")
  if not sep:
    raise VersionParseError(f"No version in reply '{polyscope_reply}'")
  return rest.split(" (", 1)[0].strip()


def meets_minimum(
  command: str,
  required_e_series: Optional[str],
  required_cb3: Optional[str],
  actual: FirmwareVersion,
) -> bool:
  """Check that `command` may be sent to a controller running `actual`.

  The threshold is chosen by the generation of the connected controller. A threshold of
  None means the command does not exist on that generation.

  Returns:
    True. Ineligibility is never reported as False.

  Raises:
    VersionUnsupportedError: if the actual version is below the threshold, or the command does
      not exist on the controller's generation.
  """

  e_series = actual.is_e_series
  required = required_e_series if e_series else required_cb3
  if required is None or parse_version(required) > actual:
    raise VersionUnsupportedError(
      command=command, required=required, actual=str(actual), e_series=e_series
    )
  return True
