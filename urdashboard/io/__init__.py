from .capture import CaptureReader, capturer, start_capture, stop_capture
from .errors import ValidationError
from .socket import Socket, SocketValidator
from .validation import end_validation, validate
