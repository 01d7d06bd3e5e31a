from pathlib import Path
import logging
import tempfile
import unittest

from urdashboard import load_config
from urdashboard.config import get_config_file
from urdashboard.config.config import Config
from urdashboard.config.io.file import FileReader, FileWriter
from urdashboard.config.formats import ConfigLoader, ConfigSaver, MultiLoader
from urdashboard.config.formats.ini_config import IniLoader, IniSaver
from urdashboard.config.formats.json_config import JsonLoader, JsonSaver


class ConfigTests(unittest.TestCase):
  """ Tests for urdashboard.config """
  def run_file_reader_writer_test(
    self,
    format_loader: ConfigLoader,
    format_saver: ConfigSaver,
    write_to: Path,
    should_be: Config,
  ):
    writer = FileWriter(
      format_saver=format_saver
    )
    writer.write(write_to, should_be)
    reader = FileReader(
      format_loader=format_loader
    )
    cfg = reader.read(write_to)
    self.assertEqual(cfg, should_be)

  def test_file_reader_writer(self):
    tmp_path: Path = Path(tempfile.mkdtemp())
    fake_config = Config(
      logging=Config.Logging(
        level=logging.DEBUG,
        log_dir=tmp_path / "logs",
      ),
      dashboard=Config.Dashboard(
        port=30001,
        read_timeout=2.5,
        poll_interval=0.05,
        default_wait_timeout=12.0,
      ),
    )
    cases = (
      (IniLoader(), IniSaver(), "fake_config.ini"),
      (JsonLoader(), JsonSaver(), "fake_config.json"),
      (MultiLoader([IniLoader(), JsonLoader()]), JsonSaver(), "multi_config.json"),
    )
    for rdr, wr, fp in cases:
      self.run_file_reader_writer_test(
        rdr, wr, tmp_path / fp, fake_config
      )

  def test_from_dict_fills_in_defaults(self):
    cfg = Config.from_dict({"dashboard": {"read_timeout": "3"}})
    self.assertEqual(cfg.dashboard.read_timeout, 3.0)
    self.assertEqual(cfg.dashboard.port, 29999)
    self.assertEqual(cfg.logging, Config.Logging())

  def test_get_config_file_searches_parents(self):
    tmp_path = Path(tempfile.mkdtemp())
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    FileWriter(format_saver=IniSaver()).write(tmp_path / "robot_cell.ini", Config())
    self.assertEqual(get_config_file("robot_cell", cur_dir=nested), tmp_path / "robot_cell.ini")

  def test_load_config_reads_closest_file(self):
    tmp_path = Path(tempfile.mkdtemp())
    nested = tmp_path / "cell"
    nested.mkdir()
    FileWriter(format_saver=JsonSaver()).write(
      nested / "robot_cell.json", Config(dashboard=Config.Dashboard(port=30002))
    )
    FileWriter(format_saver=IniSaver()).write(tmp_path / "robot_cell.ini", Config())
    cfg = load_config("robot_cell", cur_dir=nested)
    self.assertEqual(cfg.dashboard.port, 30002)

  def test_load_config_defaults_without_file(self):
    tmp_path = Path(tempfile.mkdtemp())
    self.assertEqual(load_config("no_such_config", cur_dir=tmp_path), Config())

  def test_load_config_rejects_garbage(self):
    tmp_path = Path(tempfile.mkdtemp())
    (tmp_path / "robot_cell.ini").write_text("not a config", encoding="utf-8")
    with self.assertRaises(ValueError):
      load_config("robot_cell", cur_dir=tmp_path)
