import pytest

from urdashboard import Config, configure
from urdashboard.io.capture import get_capture_or_validation_active
from urdashboard.io.validation_utils import LOG_LEVEL_IO


@pytest.fixture(scope="session")
def test_log_dir(tmp_path_factory):
  return tmp_path_factory.mktemp("urdashboard_logs")


@pytest.fixture(autouse=True)
def setup_test_config(test_log_dir):
  """Log everything down to IO level into a temporary directory, and make sure no test leaves
  capture or validation switched on for the next one."""
  configure(Config(logging=Config.Logging(level=LOG_LEVEL_IO, log_dir=test_log_dir)))
  yield
  assert not get_capture_or_validation_active(), "capture or validation left active"
