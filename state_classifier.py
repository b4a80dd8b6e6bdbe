"""
state_classifier.py
Orientation, motion and terminal-condition predicates for the SN-11 agent

All predicates are pure functions of a VehicleState and a CollisionLedger and
are evaluated fresh every tick. Orientation uses the (pitch_x, yaw_y, roll_z)
convention with every component in [0, 360); "upright" means pitch and roll
are both near 0 once wrap-around is accounted for.
"""

from collections import namedtuple
from enum import Enum

import numpy as np

from agent_config import AgentConfig
from collision_ledger import LANDING_PAD_TAG
from common_utils import is_within_tolerance_of_zero


Classification = namedtuple('Classification', [
    'upright',            # tight tolerance
    'upright_band',       # wide tolerance, shaping eligibility
    'belly_flop',
    'stationary',
    'approaching_safely',
    'landed',
    'landed_on_pad',
    'crashed',
    'crashed_on_pad',
    'out_of_range',
])


class TerminationReason(str, Enum):
    """Why an episode ended."""
    TIMEOUT = 'timeout'
    LANDED_ON_PAD = 'landed_on_pad'
    LANDED_OFF_PAD = 'landed_off_pad'
    CRASHED_ON_PAD = 'crashed_on_pad'
    CRASHED_OFF_PAD = 'crashed_off_pad'
    OUT_OF_RANGE = 'out_of_range'


def is_axis_upright(angle_deg, tolerance_deg):
    """Return whether a single axis in [0, 360) is within tolerance of 0."""
    return is_within_tolerance_of_zero(angle_deg, tolerance_deg)


class StateClassifier:
    """Classifies vehicle state into orientation, motion and terminal bands."""

    def __init__(self, config=None):
        self.config = config or AgentConfig()
        self._out_of_range = np.asarray(self.config.out_of_range_distance, dtype=float)

    # -- orientation --------------------------------------------------------

    def is_upright(self, state, tolerance=None):
        """
        Pitch and roll both within tolerance of 0 (wrap-aware).

        Args:
            state: VehicleState
            tolerance: degrees; defaults to the tight upright epsilon
        """
        if tolerance is None:
            tolerance = self.config.upright_epsilon
        return is_axis_upright(state.pitch, tolerance) and is_axis_upright(state.roll, tolerance)

    def is_upright_band(self, state):
        """Upright within the wider shaping tolerance."""
        return self.is_upright(state, self.config.upright_orientation_range)

    def is_belly_flop(self, state):
        """Roll near 0 (wrap-aware) and pitch inside the closed belly-flop band."""
        low, high = self.config.belly_flop_pitch_range
        return (is_axis_upright(state.roll, self.config.belly_flop_roll_tolerance)
                and low <= state.pitch <= high)

    # -- motion -------------------------------------------------------------

    def is_stationary(self, state):
        return state.speed < self.config.stationary_epsilon

    def is_approaching_safely(self, state):
        """Slow enough and inside the approach altitude window (sentinel never qualifies)."""
        if not state.ground_detected:
            return False
        return (state.speed < self.config.max_approach_speed
                and self.config.min_approach_distance < state.ground_distance
                < self.config.max_approach_distance)

    # -- terminal conditions ------------------------------------------------

    def has_landed(self, state, ledger):
        return self.is_stationary(state) and self.is_upright(state) and ledger.is_colliding()

    def has_landed_on_pad(self, state, ledger):
        return self.has_landed(state, ledger) and ledger.has_tag(LANDING_PAD_TAG)

    def has_crashed(self, state, ledger):
        return (not self.is_upright(state)) and self.is_stationary(state) and ledger.is_colliding()

    def has_crashed_on_pad(self, state, ledger):
        return self.has_crashed(state, ledger) and ledger.has_tag(LANDING_PAD_TAG)

    def is_out_of_range(self, state):
        """Any pad-relative axis at or beyond its symmetric bound."""
        return bool(np.any(np.abs(state.pad_offset) >= self._out_of_range))

    def classify(self, state, ledger):
        """Evaluate every predicate for this tick."""
        return Classification(
            upright=self.is_upright(state),
            upright_band=self.is_upright_band(state),
            belly_flop=self.is_belly_flop(state),
            stationary=self.is_stationary(state),
            approaching_safely=self.is_approaching_safely(state),
            landed=self.has_landed(state, ledger),
            landed_on_pad=self.has_landed_on_pad(state, ledger),
            crashed=self.has_crashed(state, ledger),
            crashed_on_pad=self.has_crashed_on_pad(state, ledger),
            out_of_range=self.is_out_of_range(state),
        )
