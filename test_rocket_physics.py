"""
Unit tests for rocket_physics.py
Tests free fall, thrust, contact events and the downward ray cast of the
synthetic rigid body.
"""

import unittest
import numpy as np

# Import module under test
import sn11_constants as SC
from actuation import ActuationCommand
from collision_ledger import LANDING_PAD_TAG, GROUND_TAG
from kinematics import ContactListener, NO_GROUND_DISTANCE
from rocket_physics import RocketPhysics

DT = 0.02
HOVER_THRUST = SC.VEHICLE_MASS * SC.GRAVITY


class RecordingListener(ContactListener):
    """Records contact events in arrival order"""

    def __init__(self):
        self.events = []

    def on_collision_enter(self, tag):
        self.events.append(('enter', tag))

    def on_collision_exit(self, tag):
        self.events.append(('exit', tag))


class TestFlightDynamics(unittest.TestCase):
    """Test motion away from the ground"""

    def setUp(self):
        self.physics = RocketPhysics()
        self.physics.teleport([0.0, 100.0, 0.0], [0.0, 0.0, 0.0])

    def test_free_fall(self):
        for _ in range(50):
            self.physics.step(DT)
        self.assertAlmostEqual(self.physics.linear_velocity()[1], -SC.GRAVITY * 1.0, places=6)
        self.assertLess(self.physics.position()[1], 100.0)
        self.assertAlmostEqual(self.physics.time, 1.0, places=9)

    def test_hover(self):
        self.physics.apply_actuation(ActuationCommand(0.0, 0.0, HOVER_THRUST))
        for _ in range(50):
            self.physics.step(DT)
        np.testing.assert_allclose(self.physics.linear_velocity(), np.zeros(3), atol=1e-9)
        np.testing.assert_allclose(self.physics.angular_velocity(), np.zeros(3), atol=1e-9)

    def test_thrust_direction_follows_gimbal(self):
        self.physics.apply_actuation(ActuationCommand(30.0, 0.0, HOVER_THRUST))
        np.testing.assert_allclose(self.physics.thrust_direction(),
                                   [0.0, np.cos(np.radians(30.0)), np.sin(np.radians(30.0))],
                                   atol=1e-12)

    def test_gimbal_produces_rotation(self):
        self.physics.apply_actuation(ActuationCommand(10.0, 0.0, HOVER_THRUST))
        self.physics.step(DT)
        omega = self.physics.angular_velocity()
        self.assertGreater(abs(omega[0]), 0.0)
        self.assertAlmostEqual(omega[1], 0.0)

    def test_orientation_reported_in_degrees(self):
        self.physics.teleport([0.0, 100.0, 0.0], [10.0, 20.0, 30.0])
        np.testing.assert_allclose(self.physics.orientation(), [10.0, 20.0, 30.0], atol=1e-9)


class TestGroundContact(unittest.TestCase):
    """Test contact events and resting on the ground"""

    def setUp(self):
        self.physics = RocketPhysics()
        self.listener = RecordingListener()
        self.physics.add_contact_listener(self.listener)

    def drop(self, x, steps=100):
        self.physics.teleport([x, SC.VEHICLE_HEIGHT / 2.0 + 0.5, 0.0], [0.0, 0.0, 0.0])
        for _ in range(steps):
            self.physics.step(DT)

    def test_pad_contact(self):
        self.drop(0.0)
        self.assertEqual(self.listener.events, [('enter', LANDING_PAD_TAG)])
        self.assertTrue(self.physics.in_contact)

    def test_ground_contact(self):
        self.drop(100.0)
        self.assertEqual(self.listener.events, [('enter', GROUND_TAG)])

    def test_comes_to_rest(self):
        self.drop(0.0)
        np.testing.assert_allclose(self.physics.linear_velocity(), np.zeros(3))
        self.assertAlmostEqual(self.physics.raycast_down(), SC.VEHICLE_HEIGHT / 2.0, places=6)

    def test_lift_off_fires_exit(self):
        self.drop(0.0)
        self.physics.apply_actuation(ActuationCommand(0.0, 0.0, 2.0 * HOVER_THRUST))
        for _ in range(20):
            self.physics.step(DT)
        self.assertEqual(self.listener.events,
                         [('enter', LANDING_PAD_TAG), ('exit', LANDING_PAD_TAG)])
        self.assertFalse(self.physics.in_contact)

    def test_teleport_drops_contact_silently(self):
        self.drop(0.0)
        self.physics.teleport([0.0, 300.0, 0.0], [0.0, 0.0, 0.0])
        self.assertFalse(self.physics.in_contact)
        self.assertEqual(self.listener.events, [('enter', LANDING_PAD_TAG)])


class TestRaycast(unittest.TestCase):
    """Test downward ground distance"""

    def setUp(self):
        self.physics = RocketPhysics()

    def test_height_above_ground(self):
        self.physics.teleport([20.0, 250.0, -30.0], [0.0, 0.0, 0.0])
        self.assertAlmostEqual(self.physics.raycast_down(), 250.0)

    def test_beyond_ground_extent(self):
        self.physics.teleport([SC.GROUND_HALF_EXTENT + 1.0, 250.0, 0.0], [0.0, 0.0, 0.0])
        self.assertEqual(self.physics.raycast_down(), NO_GROUND_DISTANCE)

    def test_below_surface(self):
        self.physics.teleport([0.0, -10.0, 0.0], [0.0, 0.0, 0.0])
        self.assertEqual(self.physics.raycast_down(), NO_GROUND_DISTANCE)


if __name__ == '__main__':
    unittest.main()
