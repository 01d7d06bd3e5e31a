import re
import unittest

from urdashboard.dashboard.commands import CATALOG, CommandShape, CommandSpec, get_command


class CommandCatalogTests(unittest.TestCase):
  def test_catalog_size_and_names(self):
    self.assertEqual(len(CATALOG), 34)
    for name, spec in CATALOG.items():
      self.assertEqual(name, spec.name)

  def test_version_matrix(self):
    matrix = {name: (spec.e_series, spec.cb3) for name, spec in CATALOG.items()}
    self.assertEqual(matrix["power_on"], ("5.0.0", "3.0"))
    self.assertEqual(matrix["load_installation"], ("5.0.0", "3.2"))
    self.assertEqual(matrix["restart_safety"], ("5.1.0", "3.7"))
    self.assertEqual(matrix["safety_status"], ("5.4.0", "3.11"))
    self.assertEqual(matrix["get_serial_number"], ("5.6.0", "3.12"))
    self.assertEqual(matrix["generate_support_file"], ("5.8.0", "3.13"))
    self.assertEqual(matrix["is_in_remote_control"], ("5.6.0", None))
    self.assertEqual(matrix["set_operational_mode"], ("5.0.0", None))
    self.assertEqual(matrix["get_user_role"], (None, "1.8"))
    self.assertFalse(CATALOG["polyscope_version"].gated)

  def test_shapes(self):
    self.assertIs(CATALOG["power_on"].shape, CommandShape.RETRY)
    self.assertIs(CATALOG["load_program"].shape, CommandShape.WAIT)
    self.assertIs(CATALOG["shutdown"].shape, CommandShape.CONFIRM)
    self.assertIs(CATALOG["robot_mode"].shape, CommandShape.QUERY)
    self.assertIs(CATALOG["is_in_remote_control"].shape, CommandShape.PROBE)

  def test_long_running_commands_widen_the_read_timeout(self):
    self.assertEqual(CATALOG["generate_flight_report"].read_timeout, 180)
    self.assertEqual(CATALOG["generate_support_file"].read_timeout, 600)
    self.assertIsNone(CATALOG["play"].read_timeout)

  def test_load_program_contract(self):
    spec = get_command("load_program")
    self.assertEqual(spec.request_line(program="test.urp"), "load test.urp")
    expected = spec.expected_pattern(program="test.urp")
    self.assertIsNotNone(re.fullmatch(expected, "Loading program: /programs/test.urp"))
    self.assertIsNone(re.fullmatch(expected, "Loading program: /programs/testXurp"))
    self.assertIsNone(re.fullmatch(expected, "File not found: /programs/test.urp"))
    status = spec.status_pattern(program="test.urp")
    self.assertIsNotNone(re.fullmatch(status, "STOPPED test.urp"))
    self.assertIsNone(re.fullmatch(status, "PLAYING test.urp"))

  def test_acknowledgements_are_full_line_matches(self):
    expected = get_command("stop").expected_pattern()
    self.assertIsNotNone(re.fullmatch(expected, "Stopped"))
    self.assertIsNone(re.fullmatch(expected, "Failed to execute: Stopped"))
    status = get_command("play").status_pattern()
    self.assertIsNotNone(re.fullmatch(status, "PLAYING pick.urp"))
    self.assertIsNone(re.fullmatch(status, "PAUSED pick.urp"))

  def test_argument_with_line_break_is_rejected(self):
    with self.assertRaises(ValueError):
      get_command("popup").request_line(text="hello\nshutdown")

  def test_unknown_command(self):
    with self.assertRaises(KeyError):
      get_command("self_destruct")

  def test_polling_command_needs_a_status(self):
    with self.assertRaises(ValueError):
      CommandSpec(name="x", request="x", expected="ok", e_series="5.0.0", cb3="3.0",
                  shape=CommandShape.WAIT)
