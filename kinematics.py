"""
kinematics.py
Read-only view of the physics engine for the SN-11 agent

The landing core never touches engine types directly. A physics backend
implements PhysicsSource (read accessors, a downward ray cast, contact
subscription and actuation input) and KinematicsAdapter turns those reads
into a VehicleState snapshot once per tick.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from common_utils import normalize_angle

NO_GROUND_DISTANCE = -1.0


class ContactListener(ABC):
    """Receives collision begin/end events from a PhysicsSource."""

    @abstractmethod
    def on_collision_enter(self, tag: str) -> None:
        ...

    @abstractmethod
    def on_collision_exit(self, tag: str) -> None:
        ...


class PhysicsSource(ABC):
    """
    Narrow capability interface over a rigid-body engine.

    Implementations must deliver contact events to every registered listener
    from inside step(), so they are applied before the caller classifies the
    resulting state.
    """

    @abstractmethod
    def position(self) -> np.ndarray:
        """World position (3,)."""

    @abstractmethod
    def orientation(self) -> np.ndarray:
        """Euler angles (pitch_x, yaw_y, roll_z) in degrees, each in [0, 360)."""

    @abstractmethod
    def linear_velocity(self) -> np.ndarray:
        """World linear velocity (3,)."""

    @abstractmethod
    def angular_velocity(self) -> np.ndarray:
        """World angular velocity (3,) in rad/s."""

    @abstractmethod
    def raycast_down(self) -> float:
        """Distance to the first surface straight below, or -1 when nothing is hit."""

    @abstractmethod
    def add_contact_listener(self, listener: ContactListener) -> None:
        """Subscribe to collision begin/end events."""

    @abstractmethod
    def apply_actuation(self, command) -> None:
        """Set the thrust-vector gimbal and thrust used by the next step()."""

    @abstractmethod
    def teleport(self, position, orientation) -> None:
        """Place the body at rest at a new pose (episode reset)."""

    @abstractmethod
    def step(self, dt: float) -> None:
        """Advance the simulation by dt seconds."""


@dataclass(frozen=True)
class VehicleState:
    """Per-tick kinematic snapshot of the vehicle."""

    position: np.ndarray
    orientation: np.ndarray
    linear_velocity: np.ndarray
    angular_velocity: np.ndarray
    ground_distance: float
    pad_offset: np.ndarray

    @property
    def pitch(self) -> float:
        return float(self.orientation[0])

    @property
    def yaw(self) -> float:
        return float(self.orientation[1])

    @property
    def roll(self) -> float:
        return float(self.orientation[2])

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.linear_velocity))

    @property
    def horizontal_pad_distance(self) -> float:
        """Distance to the pad centre in the ground (X/Z) plane."""
        return float(np.hypot(self.pad_offset[0], self.pad_offset[2]))

    @property
    def ground_detected(self) -> bool:
        return self.ground_distance >= 0.0

    @classmethod
    def from_values(cls, position=(0.0, 0.0, 0.0), orientation=(0.0, 0.0, 0.0),
                    linear_velocity=(0.0, 0.0, 0.0), angular_velocity=(0.0, 0.0, 0.0),
                    ground_distance=NO_GROUND_DISTANCE, pad_position=(0.0, 0.0, 0.0)):
        """Build a state from plain sequences (orientation wrapped into [0, 360))."""
        position = np.asarray(position, dtype=float)
        return cls(
            position=position,
            orientation=normalize_angle(np.asarray(orientation, dtype=float)),
            linear_velocity=np.asarray(linear_velocity, dtype=float),
            angular_velocity=np.asarray(angular_velocity, dtype=float),
            ground_distance=float(ground_distance),
            pad_offset=position - np.asarray(pad_position, dtype=float),
        )


class KinematicsAdapter:
    """Reads a PhysicsSource into VehicleState snapshots."""

    def __init__(self, physics: PhysicsSource, pad_position):
        self.physics = physics
        self.pad_position = np.asarray(pad_position, dtype=float)

    def read(self) -> VehicleState:
        position = np.array(self.physics.position(), dtype=float)
        ground_distance = float(self.physics.raycast_down())
        if ground_distance < 0.0:
            ground_distance = NO_GROUND_DISTANCE
        return VehicleState(
            position=position,
            orientation=normalize_angle(np.array(self.physics.orientation(), dtype=float)),
            linear_velocity=np.array(self.physics.linear_velocity(), dtype=float),
            angular_velocity=np.array(self.physics.angular_velocity(), dtype=float),
            ground_distance=ground_distance,
            pad_offset=position - self.pad_position,
        )
