from pathlib import Path
from typing import Union

from urdashboard.config.config import Config
from urdashboard.config.formats import ConfigLoader, ConfigSaver


class FileReader:
  """Reads a Config from a file on disk, in the format of `format_loader`."""

  def __init__(self, format_loader: ConfigLoader, encoding: str = "utf-8"):
    self.format_loader = format_loader
    self.encoding = encoding

  def read(self, path: Union[str, Path]) -> Config:
    with open(path, "r", encoding=self.encoding) as f:
      return self.format_loader.load(f)


class FileWriter:
  """Writes a Config to a file on disk, e.g. to start a `urdashboard.ini` from the defaults."""

  def __init__(self, format_saver: ConfigSaver, encoding: str = "utf-8"):
    self.format_saver = format_saver
    self.encoding = encoding

  def write(self, path: Union[str, Path], cfg: Config):
    with open(path, "w", encoding=self.encoding) as f:
      self.format_saver.save(f, cfg)
