"""
episode_initializer.py
Randomised episode start states for the SN-11 agent

Start states are sampled relative to the landing pad:
    1) Y position uniform in [MinInitPosition.y, MaxInitPosition.y] above the pad
    2) X and Z positions uniform in their own ranges around the pad
    3) Orientation uniform in [0, 360) on every axis

With the default min_pad_clearance of 0 the vehicle may start directly above
the pad. A positive clearance resamples X/Z until the horizontal distance to
the pad centre reaches it.
"""

import logging
from typing import NamedTuple

import numpy as np

from agent_config import AgentConfig
from common_utils import ConfigurationError

logger = logging.getLogger(__name__)

MAX_CLEARANCE_ATTEMPTS = 1000


class InitialConditions(NamedTuple):
    position: np.ndarray
    orientation: np.ndarray


class EpisodeInitializer:
    """Samples valid start poses and resets the episode collaborators."""

    def __init__(self, config=None):
        self.config = config or AgentConfig()
        self.pad_position = np.asarray(self.config.pad_position, dtype=float)
        self.min_init = np.asarray(self.config.min_init_position, dtype=float)
        self.max_init = np.asarray(self.config.max_init_position, dtype=float)
        self._check_clearance_reachable()

    def _check_clearance_reachable(self):
        clearance = self.config.min_pad_clearance
        if clearance <= 0.0:
            return
        # Farthest corner of the X/Z sampling box from the pad centre
        far_x = max(abs(self.min_init[0]), abs(self.max_init[0]))
        far_z = max(abs(self.min_init[2]), abs(self.max_init[2]))
        if np.hypot(far_x, far_z) <= clearance:
            raise ConfigurationError(
                f"min_pad_clearance {clearance} cannot be met inside the X/Z init range "
                f"[{self.min_init[0]}, {self.max_init[0]}] x [{self.min_init[2]}, {self.max_init[2]}]")

    def _sample_xz(self, rng):
        x = rng.uniform(self.min_init[0], self.max_init[0])
        z = rng.uniform(self.min_init[2], self.max_init[2])
        return x, z

    def sample(self, rng):
        """
        Draw a start pose.

        Args:
            rng: numpy Generator (the environment's np_random)

        Returns:
            InitialConditions with world position and (x, y, z) orientation degrees
        """
        y = rng.uniform(self.min_init[1], self.max_init[1])
        x, z = self._sample_xz(rng)

        clearance = self.config.min_pad_clearance
        if clearance > 0.0:
            for _ in range(MAX_CLEARANCE_ATTEMPTS):
                if np.hypot(x, z) >= clearance:
                    break
                x, z = self._sample_xz(rng)
            else:
                raise ConfigurationError(
                    f"No start position at least {clearance} from the pad after "
                    f"{MAX_CLEARANCE_ATTEMPTS} attempts")

        position = np.array([x, y, z]) + self.pad_position
        # uniform() draws from the half-open [0, 360)
        orientation = rng.uniform(0.0, 360.0, size=3)
        return InitialConditions(position=position, orientation=orientation)

    def initialize(self, physics, controller, rng):
        """
        Place the vehicle at a fresh start pose and reset the episode.

        Args:
            physics: PhysicsSource to teleport
            controller: EpisodeController (its ledger and episode state are reset)
            rng: numpy Generator

        Returns:
            InitialConditions
        """
        conditions = self.sample(rng)
        controller.reset()
        physics.teleport(conditions.position, conditions.orientation)
        logger.debug("Episode start: position=%s orientation=%s",
                     np.round(conditions.position, 2), np.round(conditions.orientation, 2))
        return conditions
