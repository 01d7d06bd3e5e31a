"""Finds and loads the urdashboard config file.

The working directory and all of its parents are searched for `urdashboard.ini` or
`urdashboard.json`; the closest one wins. Without a file the defaults of `Config` apply.
"""

from pathlib import Path
from typing import Optional, Union

from urdashboard.config.config import Config
from urdashboard.config.formats import MultiLoader
from urdashboard.config.formats.ini_config import IniLoader
from urdashboard.config.formats.json_config import JsonLoader
from urdashboard.config.io.file import FileReader

LOADERS = [IniLoader(), JsonLoader()]


def get_config_file(
  base_name: str,
  cur_dir: Optional[Union[str, Path]] = None
) -> Optional[Path]:
  """Find the config file in `cur_dir` or one of its parents.

  Args:
    base_name: The base name of the config file, without extension.
    cur_dir: Directory to start searching in. Defaults to the current directory.

  Returns:
    The path to the config file, or None if there is none.
  """
  directory = Path(cur_dir) if cur_dir is not None else Path.cwd()
  for candidate in (directory, *directory.parents):
    for loader in LOADERS:
      path = candidate / f"{base_name}.{loader.extension}"
      if path.exists():
        return path
  return None


def load_config(base_name: str, cur_dir: Optional[Union[str, Path]] = None) -> Config:
  """Load the config named `base_name`, or the defaults if no such file exists.

  Raises:
    ValueError: if the file exists but is neither valid INI nor valid JSON config.
  """
  path = get_config_file(base_name, cur_dir=cur_dir)
  if path is None:
    return Config()
  return FileReader(format_loader=MultiLoader(LOADERS)).read(path)
