"""
sn11_env.py
Gymnasium Environment for SN-11 Starship Prototype Landing

This module provides a Gymnasium-compatible environment for training RL agents
to land an SN-11 style rocket upright on a landing pad using thrust vector
control, with Stable Baselines3 or any other Gymnasium-compatible learner.

Features:
- Full Gymnasium API compatibility (step, reset, render)
- Physics reached only through kinematics.PhysicsSource (RocketPhysics by default)
- Landing-phase classification, reward shaping and termination handled by
  episode_controller.EpisodeController
- Randomised start states from episode_initializer.EpisodeInitializer

NOTE: Default configuration constants are defined in sn11_constants.py
"""

import logging

import numpy as np
import gymnasium as gym
from gymnasium import spaces

import sn11_constants as SC
from actuation import ActuationMapper, ActuationCommand
from agent_config import AgentConfig
from common_utils import normalize_angle
from episode_controller import EpisodeController, TerminationReason
from episode_initializer import EpisodeInitializer
from kinematics import KinematicsAdapter
from reward_shaper import RewardShaper
from rocket_physics import RocketPhysics

logger = logging.getLogger(__name__)


def build_observation(state, command):
    """
    Assemble the 16D observation vector.

    Breakdown:
        orientation (3) + velocity (3) + ground distance (1) +
        pad-relative position (3) + angular velocity (3) +
        thrust vector orientation (2) + current thrust (1) = 16

    Args:
        state: VehicleState for this tick
        command: ActuationCommand most recently applied

    Returns:
        obs: (16,) float32 array
    """
    thrust_vector = normalize_angle(np.array([command.gimbal_x, command.gimbal_z]))
    obs = np.concatenate([
        state.orientation,  # pitch, yaw, roll in [0, 360) (3)
        state.linear_velocity,  # vx, vy, vz (3)
        [state.ground_distance],  # -1 when no ground below (1)
        state.pad_offset,  # position minus pad position (3)
        state.angular_velocity,  # wx, wy, wz (3)
        thrust_vector,  # gimbal x, z in [0, 360) (2)
        [command.thrust],  # N (1)
    ]).astype(np.float32)
    assert obs.shape == (SC.OBSERVATION_SIZE,), \
        f"Observation shape validation failed: {obs.shape} != ({SC.OBSERVATION_SIZE},)"
    return obs


class SN11LanderEnv(gym.Env):
    """
    Gymnasium Environment for SN-11 Landing

    Observation Space (16D):
        - Orientation (3): Euler degrees (pitch, yaw, roll), each in [0, 360)
        - Velocity (3): [vx, vy, vz]
        - Ground distance (1): downward ray cast, -1 if nothing below
        - Pad-relative position (3): position minus landing pad position
        - Angular velocity (3): [wx, wy, wz] rad/s
        - Thrust vector orientation (2): gimbal [x, z] degrees in [0, 360)
        - Current thrust (1): N

    Action Space (3D), each in [-1, 1]:
        - Thrust vector gimbal about X -> [-MaxThrusterGimbal.x, +MaxThrusterGimbal.x]
        - Thrust vector gimbal about Z -> [-MaxThrusterGimbal.z, +MaxThrusterGimbal.z]
        - Thrust -> [0, MaxThrustForce] (negative values clamp to 0)

    Reward Function:
        - Terminal rewards (~1.0): landed upright, landed on pad, crashed on pad,
          proportional pad distance
        - Shaping (1e-4 to 1e-2 per tick): belly-flop above the switch altitude,
          upright below it, slow approach near the ground
        - Off-pad contact penalty (-0.25) at first touch of anything but the pad

    Episode end:
        - terminated: landed / crashed (on or off pad), out of range
        - truncated: episode timeout
    """

    metadata = {'render_modes': ['human', 'rgb_array'], 'render_fps': 50}

    def __init__(self,
                 config=None,
                 reward_table=None,
                 physics=None,
                 render_mode=None,
                 verbose=False):
        """
        Initialize SN-11 Landing Gymnasium Environment

        Args:
            config: AgentConfig (defaults from sn11_constants)
            reward_table: RewardTable (defaults from sn11_constants)
            physics: PhysicsSource; a RocketPhysics over the configured pad if None
            render_mode: 'human' or 'rgb_array' or None (rendering is not implemented)
            verbose: Print an environment summary on creation
        """
        super().__init__()

        self.config = config or AgentConfig()
        self.render_mode = render_mode
        self.dt = self.config.dt

        self.physics = physics or RocketPhysics(pad_position=self.config.pad_position,
                                                pad_radius=self.config.pad_radius)
        self.kinematics = KinematicsAdapter(self.physics, self.config.pad_position)
        self.controller = EpisodeController(
            config=self.config,
            reward_shaper=RewardShaper(reward_table=reward_table, config=self.config))
        self.physics.add_contact_listener(self.controller)
        self.actuation = ActuationMapper(self.config)
        self.initializer = EpisodeInitializer(self.config)

        # Episode tracking
        self.current_step = 0
        self.episode_count = 0
        self.last_command = ActuationCommand.idle()
        self._last_result = None
        self._needs_reset = True

        self.action_space = spaces.Box(low=-1.0, high=1.0, shape=(SC.ACTION_SIZE,),
                                       dtype=np.float32)
        self.observation_space = spaces.Box(low=-np.inf, high=np.inf,
                                            shape=(SC.OBSERVATION_SIZE,), dtype=np.float32)

        if verbose:
            print(f"\n{'='*60}")
            print("SN-11 Landing Gymnasium Environment Initialized")
            print(f"{'='*60}")
            print(f"Action space: {self.action_space.shape} (gimbal x, gimbal z, thrust)")
            print(f"Observation space: {self.observation_space.shape}")
            print(f"Episode timeout: {self.config.episode_timeout} s")
            print(f"Simulation timestep: {self.dt} s")
            print(f"Physics: {type(self.physics).__name__}")
            print(f"{'='*60}\n")

    @property
    def reward_table(self):
        return self.controller.shaper.table

    def _get_observation(self, state=None):
        state = state or self.kinematics.read()
        return build_observation(state, self.last_command)

    def _log_observation(self, state):
        """Dump every observed quantity (debug mode only)."""
        logger.debug("===================== AGENT DATA =====================")
        logger.debug("Agent Orientation: %s", state.orientation)
        logger.debug("Agent Velocity: %s", state.linear_velocity)
        logger.debug("Agent Distance From Landing Pad: %s", state.pad_offset)
        logger.debug("Agent Distance From Ground: %s", state.ground_distance)
        logger.debug("Agent Angular Velocity: %s", state.angular_velocity)
        logger.debug("Agent Thrust Vector Orientation: %s",
                     (self.last_command.gimbal_x, self.last_command.gimbal_z))
        logger.debug("Agent Thrust: %s", self.last_command.thrust)
        logger.debug("=======================================================")

    def reset(self, seed=None, options=None):
        """
        Reset environment to a random start state

        Returns:
            observation: Initial observation
            info: Additional information
        """
        super().reset(seed=seed)

        self.current_step = 0
        self.episode_count += 1
        self.last_command = ActuationCommand.idle()
        self._last_result = None

        conditions = self.initializer.initialize(self.physics, self.controller, self.np_random)
        self._needs_reset = False

        state = self.kinematics.read()
        if self.config.debug_mode:
            self._log_observation(state)

        info = {
            'episode': self.episode_count,
            'initial_position': conditions.position.tolist(),
            'initial_orientation': conditions.orientation.tolist(),
        }
        return self._get_observation(state), info

    def step(self, action):
        """
        Execute one tick

        Args:
            action: (3,) control vector

        Returns:
            observation: New observation
            reward: Reward for this tick
            terminated: Landed, crashed or out of range
            truncated: Episode timeout
            info: Additional information
        """
        if self._needs_reset:
            raise RuntimeError("Episode has ended; call reset() before step()")

        self.current_step += 1

        command = self.actuation.map(action, self.controller.actuation_enabled)
        self.physics.apply_actuation(command)
        self.last_command = command

        # Contact events fire inside step(), before the state is read
        self.physics.step(self.dt)
        # A contact during this step gates thrust immediately
        if not self.controller.actuation_enabled and self.last_command.thrust > 0.0:
            self.last_command = self.last_command._replace(thrust=0.0)
            self.physics.apply_actuation(self.last_command)

        state = self.kinematics.read()
        result = self.controller.tick(state, self.dt)
        self._last_result = result

        terminated = result.terminated and result.reason is not TerminationReason.TIMEOUT
        truncated = result.reason is TerminationReason.TIMEOUT
        if result.terminated:
            self._needs_reset = True

        info = {
            'step': self.current_step,
            'reason': result.reason.value if result.reason is not None else None,
            'time_remaining': result.time_remaining,
            'ground_distance': state.ground_distance,
            'pad_distance': state.horizontal_pad_distance,
            'actuation_enabled': self.controller.actuation_enabled,
            'cumulative_reward': self.controller.episode.cumulative_reward,
            'reward_components': dict(result.components),
        }

        return self._get_observation(state), float(result.reward), terminated, truncated, info

    def render(self):
        """Render environment (not implemented; visualisation is out of scope)"""
        return None

    def close(self):
        """Drop the last tick result; the next step() requires a reset()."""
        self._last_result = None
        self._needs_reset = True


# Register environment with Gymnasium
gym.register(
    id='SN11Lander-v0',
    entry_point='sn11_env:SN11LanderEnv',
)


if __name__ == "__main__":
    # Test the environment
    print("Testing SN-11 Landing Environment...")

    env = SN11LanderEnv(verbose=True)

    obs, info = env.reset(seed=0)
    print(f"\nInitial observation shape: {obs.shape}")
    print(f"Initial info: {info}")

    for i in range(5):
        action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        print(f"\nStep {i+1}:")
        print(f"  Action: [{action[0]:.2f}, {action[1]:.2f}, {action[2]:.2f}]")
        print(f"  Reward: {reward:.6f}")
        print(f"  Ground distance: {info['ground_distance']:.2f} m")
        print(f"  Terminated: {terminated}, Truncated: {truncated}")
        if terminated or truncated:
            print("Episode ended!")
            break
    print("\nEnvironment test complete!")
