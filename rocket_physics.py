"""
rocket_physics.py
Lightweight rigid-body physics source for the SN-11 landing environment

Implements kinematics.PhysicsSource without an external engine so the
environment can be trained and tested anywhere:
- Slender-cylinder rigid body with gravity along -Y
- Single gimballed thruster at the base of the vehicle (force at position)
- Flat ground at landing-pad height with a circular landing pad
- Contact begin/end events tagged "Landing Pad" or "Ground"
- Contact friction and angular damping bring a grounded body to rest
- Downward ray cast with a -1 sentinel when nothing lies below

Integration is semi-implicit Euler; attitude is propagated with the
Rodrigues formula and re-orthonormalised every step.
"""

import logging

import numpy as np

import sn11_constants as SC
from actuation import ActuationCommand
from collision_ledger import LANDING_PAD_TAG, GROUND_TAG
from common_utils import (euler_to_matrix, matrix_to_euler, axis_angle_to_matrix,
                          orthonormalize)
from kinematics import PhysicsSource, NO_GROUND_DISTANCE

logger = logging.getLogger(__name__)


class RocketPhysics(PhysicsSource):
    """
    Rigid-body model of the SN-11 vehicle over flat ground.

    Args:
        pad_position: (3,) landing pad centre; the ground plane sits at its Y
        pad_radius: landing pad radius (m)
        mass: vehicle mass (kg)
        height: vehicle length (m)
        radius: vehicle radius (m)
        gravity: gravitational acceleration magnitude (m/s²)
        ground_half_extent: ray casts beyond this X/Z half-width miss
    """

    def __init__(self,
                 pad_position=SC.LANDING_PAD_POSITION,
                 pad_radius=SC.LANDING_PAD_RADIUS,
                 mass=SC.VEHICLE_MASS,
                 height=SC.VEHICLE_HEIGHT,
                 radius=SC.VEHICLE_RADIUS,
                 gravity=SC.GRAVITY,
                 ground_half_extent=SC.GROUND_HALF_EXTENT,
                 friction=SC.CONTACT_FRICTION,
                 angular_damping=SC.CONTACT_ANGULAR_DAMPING,
                 rest_threshold=SC.REST_SPEED_THRESHOLD):
        self.pad_position = np.asarray(pad_position, dtype=float)
        self.pad_radius = float(pad_radius)
        self.mass = float(mass)
        self.height = float(height)
        self.gravity = float(gravity)
        self.ground_half_extent = float(ground_half_extent)
        self.friction = float(friction)
        self.angular_damping = float(angular_damping)
        self.rest_threshold = float(rest_threshold)

        # Body-frame endpoints of the vehicle axis; the thruster sits at the base
        self.base_offset_B = np.array([0.0, -self.height / 2.0, 0.0])
        self.nose_offset_B = np.array([0.0, self.height / 2.0, 0.0])

        # Slender cylinder about its centre: axis along body Y
        i_perp = self.mass * (3.0 * radius ** 2 + self.height ** 2) / 12.0
        i_axis = self.mass * radius ** 2 / 2.0
        self.inertia_B = np.diag([i_perp, i_axis, i_perp])
        self.inertia_B_inv = np.linalg.inv(self.inertia_B)

        self._listeners = []
        self._contact_tag = None
        self.command = ActuationCommand.idle()
        self.time = 0.0

        self._position = self.pad_position + np.array([0.0, self.height / 2.0, 0.0])
        self._velocity = np.zeros(3)
        self._rotation = np.eye(3)
        self._omega = np.zeros(3)

    # ------------------------------------------------------------------
    # PhysicsSource reads
    # ------------------------------------------------------------------

    def position(self):
        return self._position.copy()

    def orientation(self):
        return matrix_to_euler(self._rotation)

    def linear_velocity(self):
        return self._velocity.copy()

    def angular_velocity(self):
        return self._omega.copy()

    @property
    def surface_height(self):
        return float(self.pad_position[1])

    def raycast_down(self):
        offset = self._position - self.pad_position
        if abs(offset[0]) > self.ground_half_extent or abs(offset[2]) > self.ground_half_extent:
            return NO_GROUND_DISTANCE
        distance = self._position[1] - self.surface_height
        if distance < 0.0:
            return NO_GROUND_DISTANCE
        return float(distance)

    @property
    def in_contact(self):
        return self._contact_tag is not None

    # ------------------------------------------------------------------
    # PhysicsSource control
    # ------------------------------------------------------------------

    def add_contact_listener(self, listener):
        self._listeners.append(listener)

    def apply_actuation(self, command):
        self.command = ActuationCommand(*command)

    def teleport(self, position, orientation):
        """Place the body at rest; current contacts are dropped without exit events."""
        self._position = np.asarray(position, dtype=float).copy()
        self._rotation = euler_to_matrix(orientation)
        self._velocity = np.zeros(3)
        self._omega = np.zeros(3)
        self._contact_tag = None
        self.command = ActuationCommand.idle()
        self.time = 0.0

    # ------------------------------------------------------------------
    # Dynamics
    # ------------------------------------------------------------------

    def thrust_direction(self):
        """World direction of the thrust force for the current gimbal command."""
        gimbal = euler_to_matrix([self.command.gimbal_x, 0.0, self.command.gimbal_z])
        return self._rotation @ gimbal @ np.array([0.0, 1.0, 0.0])

    def _forces_and_torque(self):
        force = np.array([0.0, -self.mass * self.gravity, 0.0])
        torque = np.zeros(3)
        if self.command.thrust > 0.0:
            thrust = self.thrust_direction() * self.command.thrust
            lever = self._rotation @ self.base_offset_B
            force += thrust
            torque += np.cross(lever, thrust)
        return force, torque

    def _lowest_point(self):
        base = self._position + self._rotation @ self.base_offset_B
        nose = self._position + self._rotation @ self.nose_offset_B
        return base if base[1] <= nose[1] else nose

    def _contact_tag_at(self, point):
        offset = point - self.pad_position
        if np.hypot(offset[0], offset[2]) <= self.pad_radius:
            return LANDING_PAD_TAG
        return GROUND_TAG

    def _resolve_contact(self):
        lowest = self._lowest_point()
        penetration = self.surface_height - lowest[1]

        if penetration >= 0.0:
            self._position[1] += penetration
            if self._velocity[1] < 0.0:
                self._velocity[1] = 0.0
            self._velocity[0] *= (1.0 - self.friction)
            self._velocity[2] *= (1.0 - self.friction)
            self._omega *= (1.0 - self.angular_damping)
            if (np.linalg.norm(self._velocity) < self.rest_threshold
                    and np.linalg.norm(self._omega) < self.rest_threshold):
                self._velocity[:] = 0.0
                self._omega[:] = 0.0

            if self._contact_tag is None:
                self._contact_tag = self._contact_tag_at(lowest)
                for listener in self._listeners:
                    listener.on_collision_enter(self._contact_tag)

        elif self._contact_tag is not None and -penetration > SC.CONTACT_EXIT_MARGIN:
            tag, self._contact_tag = self._contact_tag, None
            for listener in self._listeners:
                listener.on_collision_exit(tag)

    def step(self, dt):
        force, torque = self._forces_and_torque()

        inertia_inv_W = self._rotation @ self.inertia_B_inv @ self._rotation.T
        self._velocity += force / self.mass * dt
        self._omega += inertia_inv_W @ torque * dt

        self._position += self._velocity * dt
        self._rotation = orthonormalize(axis_angle_to_matrix(self._omega * dt) @ self._rotation)

        self._resolve_contact()
        self.time += dt
