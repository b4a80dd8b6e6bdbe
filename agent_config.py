"""
agent_config.py
Immutable configuration for the SN-11 landing agent

AgentConfig gathers every tunable of the episode, classification, actuation
and initialisation logic. Defaults come from sn11_constants; per-environment
overrides are passed as keyword arguments, a dict, or a JSON file.

Vector options are stored as tuples so the config stays hashable and
comparable; consumers convert them with np.asarray.
"""

import json
import math
from dataclasses import dataclass, field, fields, replace, asdict

import sn11_constants as SC
from common_utils import ConfigurationError


def _vec(values):
    return tuple(float(v) for v in values)


@dataclass(frozen=True)
class AgentConfig:
    """
    Configuration surface of the landing core.

    Groups:
      1. Episode (timeout, tick length, out-of-range bound)
      2. Actuation limits
      3. Episode initialisation
      4. State classification thresholds
      5. Reward shaping geometry
      6. Debug
    """

    # -- 1. Episode ---------------------------------------------------------
    episode_timeout: float = SC.EPISODE_TIMEOUT
    dt: float = SC.FIXED_TIMESTEP
    out_of_range_distance: tuple = field(default_factory=lambda: _vec(SC.OUT_OF_RANGE_DISTANCE))

    # -- 2. Actuation -------------------------------------------------------
    max_thrust_force: float = SC.MAX_THRUST_FORCE
    max_thruster_gimbal: tuple = field(default_factory=lambda: _vec(SC.MAX_THRUSTER_GIMBAL))

    # -- 3. Initialisation --------------------------------------------------
    min_init_position: tuple = field(default_factory=lambda: _vec(SC.MIN_INIT_POSITION))
    max_init_position: tuple = field(default_factory=lambda: _vec(SC.MAX_INIT_POSITION))
    min_pad_clearance: float = SC.MIN_PAD_CLEARANCE
    pad_position: tuple = field(default_factory=lambda: _vec(SC.LANDING_PAD_POSITION))
    pad_radius: float = SC.LANDING_PAD_RADIUS

    # -- 4. Classification --------------------------------------------------
    upright_epsilon: float = SC.UPRIGHT_EPSILON
    upright_orientation_range: float = SC.UPRIGHT_ORIENTATION_RANGE
    belly_flop_pitch_range: tuple = SC.BELLY_FLOP_PITCH_RANGE
    belly_flop_roll_tolerance: float = SC.BELLY_FLOP_ROLL_TOLERANCE
    stationary_epsilon: float = SC.STATIONARY_EPSILON
    max_approach_speed: float = SC.MAX_APPROACH_SPEED
    min_approach_distance: float = SC.MIN_APPROACH_DISTANCE
    max_approach_distance: float = SC.MAX_APPROACH_DISTANCE

    # -- 5. Reward geometry -------------------------------------------------
    upright_switch_altitude: float = SC.UPRIGHT_SWITCH_ALTITUDE
    max_distance_from_pad: float = SC.MAX_DISTANCE_FROM_PAD

    # -- 6. Debug -----------------------------------------------------------
    debug_mode: bool = False

    def __post_init__(self):
        # Normalise sequences given as lists or numpy arrays
        for name in ('out_of_range_distance', 'max_thruster_gimbal', 'min_init_position',
                     'max_init_position', 'pad_position', 'belly_flop_pitch_range'):
            object.__setattr__(self, name, _vec(getattr(self, name)))
        self.validate()

    def validate(self):
        """
        Check internal consistency.

        Raises:
            ConfigurationError: on the first invalid option found
        """
        for f in fields(self):
            value = getattr(self, f.name)
            items = value if isinstance(value, tuple) else (value,)
            for item in items:
                if isinstance(item, float) and not math.isfinite(item):
                    raise ConfigurationError(f"{f.name} must be finite, got {value}")

        for name in ('out_of_range_distance', 'max_thruster_gimbal', 'min_init_position',
                     'max_init_position', 'pad_position'):
            if len(getattr(self, name)) != 3:
                raise ConfigurationError(f"{name} needs 3 components, got {getattr(self, name)}")

        if self.episode_timeout <= 0:
            raise ConfigurationError(f"episode_timeout must be positive, got {self.episode_timeout}")
        if self.dt <= 0:
            raise ConfigurationError(f"dt must be positive, got {self.dt}")
        if any(b <= 0 for b in self.out_of_range_distance):
            raise ConfigurationError(
                f"out_of_range_distance must be positive per axis, got {self.out_of_range_distance}")
        if self.max_thrust_force < 0:
            raise ConfigurationError(f"max_thrust_force must be >= 0, got {self.max_thrust_force}")
        if any(g < 0 for g in self.max_thruster_gimbal):
            raise ConfigurationError(
                f"max_thruster_gimbal must be >= 0 per axis, got {self.max_thruster_gimbal}")
        if any(lo > hi for lo, hi in zip(self.min_init_position, self.max_init_position)):
            raise ConfigurationError(
                f"min_init_position {self.min_init_position} exceeds "
                f"max_init_position {self.max_init_position}")
        if self.min_pad_clearance < 0:
            raise ConfigurationError(f"min_pad_clearance must be >= 0, got {self.min_pad_clearance}")
        if len(self.belly_flop_pitch_range) != 2 or \
                self.belly_flop_pitch_range[0] > self.belly_flop_pitch_range[1]:
            raise ConfigurationError(
                f"belly_flop_pitch_range must be (low, high), got {self.belly_flop_pitch_range}")
        for name in ('upright_epsilon', 'upright_orientation_range', 'belly_flop_roll_tolerance'):
            if not 0.0 <= getattr(self, name) < 180.0:
                raise ConfigurationError(f"{name} must be in [0, 180), got {getattr(self, name)}")
        if self.stationary_epsilon <= 0:
            raise ConfigurationError(f"stationary_epsilon must be positive, got {self.stationary_epsilon}")
        if self.min_approach_distance >= self.max_approach_distance:
            raise ConfigurationError(
                f"min_approach_distance {self.min_approach_distance} must be below "
                f"max_approach_distance {self.max_approach_distance}")
        if self.max_distance_from_pad <= 0:
            raise ConfigurationError(
                f"max_distance_from_pad must be positive, got {self.max_distance_from_pad}")
        if self.pad_radius <= 0:
            raise ConfigurationError(f"pad_radius must be positive, got {self.pad_radius}")

    @classmethod
    def from_dict(cls, data):
        """
        Build a config from a dict of overrides.

        Raises:
            ConfigurationError: on unknown keys
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    def with_overrides(self, **overrides):
        """Return a copy with some options replaced (validated again)."""
        return replace(self, **overrides)

    def to_dict(self):
        return asdict(self)


def load_config(path):
    """
    Load an AgentConfig from a JSON file of overrides.

    Args:
        path: JSON file containing a flat object of AgentConfig fields

    Returns:
        AgentConfig
    """
    with open(path, 'r') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a JSON object")
    return AgentConfig.from_dict(data)
