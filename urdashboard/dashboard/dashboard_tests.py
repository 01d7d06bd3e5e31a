import unittest

from urdashboard.dashboard.chatterbox import DashboardChatterboxBackend
from urdashboard.dashboard.dashboard import Dashboard
from urdashboard.dashboard.errors import DashboardConnectionError, VersionUnsupportedError
from urdashboard.dashboard.version import FirmwareVersion


class DashboardTests(unittest.IsolatedAsyncioTestCase):
  """ Tests for the dashboard frontend, on the chatterbox backend """

  async def asyncSetUp(self):
    await super().asyncSetUp()
    self.dashboard = Dashboard(backend=DashboardChatterboxBackend())
    await self.dashboard.setup()

  async def asyncTearDown(self):
    if self.dashboard.setup_finished:
      await self.dashboard.stop()
    await super().asyncTearDown()

  async def test_setup(self):
    self.assertTrue(self.dashboard.setup_finished)
    self.assertEqual(self.dashboard.firmware_version, FirmwareVersion(5, 9, 4, 10300))
    self.assertTrue(self.dashboard.is_e_series)

  async def test_requires_setup(self):
    dashboard = Dashboard(backend=DashboardChatterboxBackend())
    with self.assertRaises(RuntimeError):
      await dashboard.robot_mode()
    with self.assertRaises(RuntimeError):
      await dashboard.stop()

  async def test_backend_requires_setup(self):
    backend = DashboardChatterboxBackend()
    with self.assertRaises(DashboardConnectionError):
      await backend.execute("robot_mode")

  async def test_power_and_program_flow(self):
    self.assertEqual(await self.dashboard.robot_mode(), "Robotmode: POWER_OFF")
    self.assertTrue(await self.dashboard.power_on())
    self.assertEqual(await self.dashboard.robot_mode(), "Robotmode: IDLE")
    self.assertTrue(await self.dashboard.brake_release())
    self.assertEqual(await self.dashboard.robot_mode(), "Robotmode: RUNNING")

    self.assertTrue(await self.dashboard.load_program("pick.urp"))
    self.assertEqual(await self.dashboard.get_loaded_program(), "Loaded program: pick.urp")
    self.assertEqual(await self.dashboard.program_state(), "STOPPED pick.urp")
    self.assertFalse(await self.dashboard.running())

    self.assertTrue(await self.dashboard.play())
    self.assertTrue(await self.dashboard.running())
    self.assertTrue(await self.dashboard.pause())
    self.assertEqual(await self.dashboard.program_state(), "PAUSED pick.urp")
    self.assertTrue(await self.dashboard.stop_program())
    self.assertEqual(await self.dashboard.program_state(), "STOPPED pick.urp")

    self.assertTrue(await self.dashboard.power_off())
    self.assertEqual(await self.dashboard.robot_mode(), "Robotmode: POWER_OFF")

  async def test_queries(self):
    self.assertEqual(await self.dashboard.safety_mode(), "Safetymode: NORMAL")
    self.assertEqual(await self.dashboard.safety_status(), "Safetystatus: NORMAL")
    self.assertEqual(await self.dashboard.get_robot_model(), "UR5")
    self.assertEqual(await self.dashboard.get_serial_number(), "20185500001")
    self.assertEqual(await self.dashboard.polyscope_version(),
                     "URSoftware 5.9.4.10300 (Jan 01 2024)")
    self.assertTrue(await self.dashboard.is_in_remote_control())
    self.assertTrue(await self.dashboard.is_program_saved())

  async def test_confirmations(self):
    self.assertTrue(await self.dashboard.popup("hello"))
    self.assertTrue(await self.dashboard.close_popup())
    self.assertTrue(await self.dashboard.close_safety_popup())
    self.assertTrue(await self.dashboard.add_to_log("picked"))
    self.assertTrue(await self.dashboard.unlock_protective_stop())
    self.assertTrue(await self.dashboard.load_installation("default.installation"))
    self.assertTrue(await self.dashboard.generate_flight_report("system"))
    self.assertTrue(await self.dashboard.generate_support_file("/programs/support"))

  async def test_restart_safety_powers_off(self):
    await self.dashboard.power_on()
    self.assertTrue(await self.dashboard.restart_safety())
    self.assertEqual(await self.dashboard.robot_mode(), "Robotmode: POWER_OFF")

  async def test_operational_mode(self):
    self.assertEqual(await self.dashboard.get_operational_mode(), "NONE")
    self.assertTrue(await self.dashboard.set_operational_mode("manual"))
    self.assertEqual(await self.dashboard.get_operational_mode(), "MANUAL")
    self.assertTrue(await self.dashboard.clear_operational_mode())
    self.assertEqual(await self.dashboard.get_operational_mode(), "NONE")

  async def test_user_role_is_cb3_only(self):
    with self.assertRaises(VersionUnsupportedError) as ctx:
      await self.dashboard.set_user_role("locked")
    self.assertIsNone(ctx.exception.required)
    self.assertTrue(ctx.exception.e_series)
    with self.assertRaises(VersionUnsupportedError):
      await self.dashboard.get_user_role()

  async def test_serialize(self):
    serialized = self.dashboard.serialize()
    self.assertEqual(serialized, {
      "backend": {
        "type": "DashboardChatterboxBackend",
        "version": "5.9.4.10300",
        "robot_model": "UR5",
        "serial_number": "20185500001",
      }
    })
    copy = Dashboard.deserialize(serialized)
    self.assertIsInstance(copy.backend, DashboardChatterboxBackend)
    self.assertEqual(copy.serialize(), serialized)

  async def test_context_manager(self):
    async with Dashboard(backend=DashboardChatterboxBackend()) as dashboard:
      self.assertTrue(dashboard.setup_finished)
      self.assertEqual(await dashboard.robot_mode(), "Robotmode: POWER_OFF")
    self.assertFalse(dashboard.setup_finished)
    self.assertIsNone(dashboard.firmware_version)


class CB3DashboardTests(unittest.IsolatedAsyncioTestCase):
  """ Tests for the dashboard frontend, on a CB3 chatterbox """

  async def asyncSetUp(self):
    await super().asyncSetUp()
    self.dashboard = Dashboard(backend=DashboardChatterboxBackend(version="3.10.0.9999"))
    await self.dashboard.setup()

  async def test_generation(self):
    self.assertFalse(self.dashboard.is_e_series)

  async def test_user_role(self):
    self.assertEqual(await self.dashboard.get_user_role(), "PROGRAMMER")
    self.assertTrue(await self.dashboard.set_user_role("locked"))
    self.assertEqual(await self.dashboard.get_user_role(), "LOCKED")

  async def test_e_series_only_commands(self):
    for call in (self.dashboard.is_in_remote_control, self.dashboard.get_operational_mode,
                 self.dashboard.clear_operational_mode):
      with self.subTest(call=call.__name__):
        with self.assertRaises(VersionUnsupportedError):
          await call()

  async def test_too_old_for_command(self):
    with self.assertRaises(VersionUnsupportedError) as ctx:
      await self.dashboard.safety_status()
    self.assertEqual(ctx.exception.required, "3.11")
    self.assertEqual(await self.dashboard.safety_mode(), "Safetymode: NORMAL")
