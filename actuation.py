"""
actuation.py
Maps normalised policy outputs to physical thrust-vector commands

Control vector layout (each component nominally in [-1, 1]):
    [0] thrust-vector gimbal about X
    [1] thrust-vector gimbal about Z
    [2] thrust magnitude (values below 0 mean no thrust)

Inputs are clamped to their domain before denormalisation, so an
out-of-domain signal can never command more than MaxThrustForce or
MaxThrusterGimbal. Thrust is forced to zero once actuation is disabled;
the gimbal keeps moving.
"""

import logging
from typing import NamedTuple

import numpy as np

from agent_config import AgentConfig
from common_utils import denormalize_symmetric, denormalize_one_sided

logger = logging.getLogger(__name__)


class ActuationCommand(NamedTuple):
    gimbal_x: float  # degrees
    gimbal_z: float  # degrees
    thrust: float  # N

    @classmethod
    def idle(cls):
        return cls(0.0, 0.0, 0.0)


class ActuationMapper:
    """Converts a 3-component control vector into an ActuationCommand."""

    def __init__(self, config=None):
        self.config = config or AgentConfig()
        self.max_gimbal = np.asarray(self.config.max_thruster_gimbal, dtype=float)
        self.max_thrust = float(self.config.max_thrust_force)

    def map(self, control, actuation_enabled=True):
        """
        Args:
            control: sequence of 3 floats
            actuation_enabled: False once the vehicle has touched anything

        Returns:
            ActuationCommand

        Raises:
            ValueError: if the control vector is malformed or non-finite
        """
        control = np.asarray(control, dtype=float).reshape(-1)
        if control.shape != (3,):
            raise ValueError(f"Control vector must have 3 components, got shape {control.shape}")
        if not np.all(np.isfinite(control)):
            raise ValueError(f"Control vector must be finite, got {control}")

        gimbal_x = denormalize_symmetric(control[0], -self.max_gimbal[0], self.max_gimbal[0])
        gimbal_z = denormalize_symmetric(control[1], -self.max_gimbal[2], self.max_gimbal[2])
        thrust = denormalize_one_sided(control[2], 0.0, self.max_thrust)
        if not actuation_enabled:
            thrust = 0.0

        if self.config.debug_mode:
            logger.debug("Thrust X control signal: %.4f", gimbal_x)
            logger.debug("Thrust Z control signal: %.4f", gimbal_z)
            logger.debug("Thrust control signal: %.4f", thrust)

        return ActuationCommand(gimbal_x, gimbal_z, thrust)
