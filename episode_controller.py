"""
episode_controller.py
Episode state machine for the SN-11 agent

Owns the timeout countdown, the actuation gate and the running reward of one
episode. Each tick it classifies the vehicle state, collects reward
contributions and decides whether the episode terminates.

Terminal checks run in a fixed priority order, first match wins:
    1. Timeout (countdown reaches 0, within TIMEOUT_EPSILON)
    2. Landed on pad
    3. Landed off pad
    4. Crashed on pad
    5. Crashed off pad
    6. Out of range
Otherwise the episode keeps running and only shaping rewards apply.

Contact events arrive from the physics source between ticks. Any contact
disables thrust for the rest of the episode, even after the contact ends.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from agent_config import AgentConfig
from collision_ledger import CollisionLedger
from kinematics import ContactListener
from reward_shaper import RewardShaper, RewardContribution
from state_classifier import StateClassifier, Classification, TerminationReason

logger = logging.getLogger(__name__)

__all__ = ['EpisodeController', 'EpisodeState', 'EpisodeStatus', 'TerminationReason',
           'TickResult']

# Countdown slack absorbing float drift from repeated dt subtraction
TIMEOUT_EPSILON = 1e-9


class EpisodeStatus(str, Enum):
    RUNNING = 'running'
    TERMINATED = 'terminated'


@dataclass
class EpisodeState:
    """Mutable bookkeeping for the episode in progress."""
    time_remaining: float
    actuation_enabled: bool = True
    contact_made: bool = False
    cumulative_reward: float = 0.0
    steps: int = 0
    status: EpisodeStatus = EpisodeStatus.RUNNING
    reason: Optional[TerminationReason] = None


@dataclass
class TickResult:
    """Outcome of one tick: reward, its causes, and the resulting status."""
    reward: float
    contributions: List[RewardContribution]
    status: EpisodeStatus
    reason: Optional[TerminationReason]
    classification: Classification
    time_remaining: float = 0.0
    components: dict = field(default_factory=dict)

    @property
    def terminated(self):
        return self.status is EpisodeStatus.TERMINATED


class EpisodeController(ContactListener):
    """
    Orchestrates classification, reward shaping and termination.

    Args:
        config: AgentConfig
        reward_shaper: RewardShaper (built from config if omitted)
        ledger: CollisionLedger shared with the contact source
    """

    def __init__(self, config=None, reward_shaper=None, ledger=None):
        self.config = config or AgentConfig()
        self.classifier = StateClassifier(self.config)
        self.shaper = reward_shaper or RewardShaper(config=self.config)
        self.ledger = ledger if ledger is not None else CollisionLedger()
        self.episode = EpisodeState(time_remaining=self.config.episode_timeout)
        self._pending = []

    # ------------------------------------------------------------------
    # Episode lifecycle
    # ------------------------------------------------------------------

    def reset(self):
        """Start a new episode: full countdown, thrust enabled, no contacts."""
        self.ledger.clear()
        self.episode = EpisodeState(time_remaining=self.config.episode_timeout)
        self._pending = []
        return self.episode

    @property
    def actuation_enabled(self):
        return self.episode.actuation_enabled

    @property
    def is_running(self):
        return self.episode.status is EpisodeStatus.RUNNING

    # ------------------------------------------------------------------
    # Contact events
    # ------------------------------------------------------------------

    def on_collision_enter(self, tag):
        self.ledger.add_collision(tag)
        if self.episode.actuation_enabled:
            logger.debug("First contact (%s): thrust disabled for the rest of the episode", tag)
        self.episode.actuation_enabled = False
        self.episode.contact_made = True
        self._pending.extend(self.shaper.contact_reward(tag))

    def on_collision_exit(self, tag):
        self.ledger.remove_collision(tag)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def _terminal_reason(self, classification):
        if self.episode.time_remaining <= TIMEOUT_EPSILON:
            return TerminationReason.TIMEOUT
        if classification.landed_on_pad:
            return TerminationReason.LANDED_ON_PAD
        if classification.landed:
            return TerminationReason.LANDED_OFF_PAD
        if classification.crashed_on_pad:
            return TerminationReason.CRASHED_ON_PAD
        if classification.crashed:
            return TerminationReason.CRASHED_OFF_PAD
        if classification.out_of_range:
            return TerminationReason.OUT_OF_RANGE
        return None

    def tick(self, state, dt):
        """
        Advance the episode by one tick.

        Args:
            state: VehicleState read after contact events were applied
            dt: elapsed simulation time in seconds

        Returns:
            TickResult

        Raises:
            RuntimeError: if the episode has already terminated
        """
        if not self.is_running:
            raise RuntimeError(
                f"Episode already terminated ({self.episode.reason.value}); call reset() first")

        self.episode.steps += 1
        self.episode.time_remaining -= dt

        classification = self.classifier.classify(state, self.ledger)
        reason = self._terminal_reason(classification)

        contributions = self._pending
        self._pending = []
        if reason is None:
            contributions.extend(self.shaper.shaping_rewards(state, classification))
        else:
            contributions.extend(self.shaper.terminal_rewards(reason, state))
            self.episode.status = EpisodeStatus.TERMINATED
            self.episode.reason = reason
            if reason is TerminationReason.TIMEOUT:
                self.episode.time_remaining = 0.0

        reward = self.shaper.total(contributions)
        self.episode.cumulative_reward += reward

        if reason is not None:
            logger.info("Episode terminated: %s after %d steps (reward %.4f, cumulative %.4f)",
                        reason.value, self.episode.steps, reward, self.episode.cumulative_reward)

        return TickResult(
            reward=reward,
            contributions=contributions,
            status=self.episode.status,
            reason=reason,
            classification=classification,
            time_remaining=self.episode.time_remaining,
            components=self.shaper.as_dict(contributions),
        )
