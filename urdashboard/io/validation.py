from typing import Iterable, Optional

from urdashboard.io.capture import CaptureReader, capturer
from urdashboard.io.socket import Socket, SocketValidator

cr: Optional[CaptureReader] = None


def validate(capture_file: str, backends: Optional[Iterable] = None):
  """Start validation against a transcript.

  Every backend's `io` is replaced by a validator that checks writes against, and serves reads
  from, the transcript.

  Args:
    capture_file: path to the transcript. Generate with start_capture.
    backends: the backends to validate. Defaults to every live DashboardBackend.
  """

  if capturer.capture_active:
    raise RuntimeError("Cannot validate while capture is active")

  global cr
  cr = CaptureReader(path=capture_file)

  def _replace_io(obj) -> bool:
    if not hasattr(obj, "io"):
      return False
    if obj.io.__class__ is Socket:
      kwargs = obj.io.serialize()
      kwargs.pop("type")
      obj.io = SocketValidator(**kwargs, cr=cr)
    elif isinstance(obj.io, SocketValidator):
      obj.io.cr = cr
    else:
      return False
    return True

  if backends is None:
    from urdashboard.dashboard.backend import DashboardBackend  # pylint: disable=import-outside-toplevel
    backends = list(DashboardBackend.get_all_instances())

  for backend in backends:
    if not _replace_io(backend):
      raise RuntimeError(f"Backend {backend} not supported for validation")

  cr.start()


def end_validation():
  if cr is None:
    raise RuntimeError("Validation not started")
  cr.done()
