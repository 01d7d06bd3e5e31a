class ValidationError(Exception):
  """Raised when IO during replay validation deviates from the recorded transcript."""
