"""
reward_shaper.py
Reward shaping for SN-11 landing training

Maps classifier outputs and pad distance to named, additive reward
contributions. Two families exist:

1. Shaping rewards (~1e-4 to 1e-2 per tick): bias exploration toward a
   belly-flop descent at altitude, an upright attitude below the switch
   altitude, and a slow final approach.
2. Terminal rewards (~1.0, once per episode): landed upright, landed on pad,
   crashed on pad, and a proportional pad-distance reward on every landed or
   crashed outcome.

A contact with any surface other than the landing pad costs a fixed penalty
at the moment of first touch.

Shaping magnitudes are kept at least MIN_TERMINAL_TO_SHAPING_RATIO times
below the terminal magnitudes so they never dominate the landing objective.
"""

import math
from dataclasses import dataclass, fields
from enum import Enum
from typing import List, NamedTuple, Optional

import sn11_constants as SC
from agent_config import AgentConfig
from collision_ledger import LANDING_PAD_TAG
from common_utils import ConfigurationError, clamp
from state_classifier import TerminationReason


class RewardCause(str, Enum):
    """Every reward contribution names exactly one cause."""
    UPRIGHT_ORIENTATION = 'upright_orientation'
    BELLY_FLOP_ORIENTATION = 'belly_flop_orientation'
    APPROACH_VELOCITY = 'approach_velocity'
    LANDED_UPRIGHT = 'landed_upright'
    LANDED_ON_PAD = 'landed_on_pad'
    CRASHED_ON_PAD = 'crashed_on_pad'
    PAD_DISTANCE = 'pad_distance'
    OFF_PAD_CONTACT = 'off_pad_contact'


class RewardContribution(NamedTuple):
    cause: RewardCause
    value: float


@dataclass(frozen=True)
class RewardTable:
    """
    Immutable reward magnitudes for one training run.

    One table may be shared by every environment of a vectorised run; build a
    new table for per-environment tuning.
    """

    landed_upright: float = SC.LANDED_UPRIGHT_REWARD
    landed_on_pad: float = SC.LANDED_ON_PAD_REWARD
    crashed_on_pad: float = SC.CRASHED_ON_PAD_REWARD
    pad_distance_scale: float = SC.PAD_DISTANCE_REWARD_SCALE
    upright_orientation: float = SC.UPRIGHT_POSITION_REWARD
    belly_flop_orientation: float = SC.BELLY_FLOP_POSITION_REWARD
    approach_velocity: float = SC.APPROACHING_VELOCITY_REWARD
    off_pad_contact: float = SC.OFF_PAD_CONTACT_PENALTY

    def __post_init__(self):
        self.validate()

    def validate(self):
        """
        Raises:
            ConfigurationError: on a non-finite magnitude, or shaping rewards
                too close to the terminal rewards
        """
        for f in fields(self):
            value = getattr(self, f.name)
            if not math.isfinite(value):
                raise ConfigurationError(f"Reward magnitude {f.name} must be finite, got {value}")

        terminal = [v for v in (self.landed_upright, self.landed_on_pad,
                                self.crashed_on_pad, self.pad_distance_scale) if v > 0]
        shaping = [abs(v) for v in (self.upright_orientation, self.belly_flop_orientation,
                                    self.approach_velocity)]
        if terminal and max(shaping) * SC.MIN_TERMINAL_TO_SHAPING_RATIO > min(terminal):
            raise ConfigurationError(
                f"Shaping rewards ({max(shaping)}) must be at least "
                f"{SC.MIN_TERMINAL_TO_SHAPING_RATIO:.0f}x smaller than terminal rewards "
                f"({min(terminal)})")


class RewardShaper:
    """
    Turns a tick's classification into reward contributions.

    Args:
        reward_table: RewardTable (defaults to the stock magnitudes)
        config: AgentConfig providing the altitude and distance thresholds
    """

    def __init__(self, reward_table: Optional[RewardTable] = None,
                 config: Optional[AgentConfig] = None):
        self.table = reward_table or RewardTable()
        self.config = config or AgentConfig()

    def shaping_rewards(self, state, classification) -> List[RewardContribution]:
        """Per-tick shaping rewards for a running episode."""
        contributions = []
        switch_altitude = self.config.upright_switch_altitude

        # Upright only pays once low enough; a -1 ground sentinel never counts as low
        if classification.upright_band and 0.0 <= state.ground_distance < switch_altitude:
            contributions.append(
                RewardContribution(RewardCause.UPRIGHT_ORIENTATION, self.table.upright_orientation))

        if classification.belly_flop and state.ground_distance > switch_altitude:
            contributions.append(
                RewardContribution(RewardCause.BELLY_FLOP_ORIENTATION,
                                   self.table.belly_flop_orientation))

        if classification.approaching_safely:
            contributions.append(
                RewardContribution(RewardCause.APPROACH_VELOCITY, self.table.approach_velocity))

        return contributions

    def pad_distance_reward(self, state) -> float:
        """
        Proportional reward for ending close to the pad centre.

        1.0 * scale at the centre, falling linearly to 0.0 at
        max_distance_from_pad and clamped there beyond it.
        """
        fraction = clamp(state.horizontal_pad_distance / self.config.max_distance_from_pad, 0.0, 1.0)
        return self.table.pad_distance_scale * (1.0 - fraction)

    def terminal_rewards(self, reason, state) -> List[RewardContribution]:
        """
        One-time rewards for a terminal transition.

        Args:
            reason: TerminationReason
            state: VehicleState at the terminal tick
        """
        contributions = []
        if reason in (TerminationReason.LANDED_ON_PAD, TerminationReason.LANDED_OFF_PAD):
            contributions.append(
                RewardContribution(RewardCause.LANDED_UPRIGHT, self.table.landed_upright))
        if reason is TerminationReason.LANDED_ON_PAD:
            contributions.append(
                RewardContribution(RewardCause.LANDED_ON_PAD, self.table.landed_on_pad))
        if reason is TerminationReason.CRASHED_ON_PAD:
            contributions.append(
                RewardContribution(RewardCause.CRASHED_ON_PAD, self.table.crashed_on_pad))
        if reason in (TerminationReason.LANDED_ON_PAD, TerminationReason.LANDED_OFF_PAD,
                      TerminationReason.CRASHED_ON_PAD, TerminationReason.CRASHED_OFF_PAD):
            contributions.append(
                RewardContribution(RewardCause.PAD_DISTANCE, self.pad_distance_reward(state)))
        return contributions

    def contact_reward(self, tag) -> List[RewardContribution]:
        """Penalty for touching any surface other than the landing pad."""
        if tag == LANDING_PAD_TAG:
            return []
        return [RewardContribution(RewardCause.OFF_PAD_CONTACT, self.table.off_pad_contact)]

    @staticmethod
    def total(contributions) -> float:
        return float(sum(c.value for c in contributions))

    @staticmethod
    def as_dict(contributions) -> dict:
        """Sum contributions per cause (for info dicts and logging)."""
        components = {}
        for c in contributions:
            components[c.cause.value] = components.get(c.cause.value, 0.0) + c.value
        return components
