"""
Unit tests for sn11_env.py
Tests the Gymnasium API surface, observation layout, episode termination and
contact handling of SN11LanderEnv.
"""

import unittest
import numpy as np
import gymnasium as gym
from stable_baselines3.common.env_checker import check_env

# Import module under test
import sn11_constants as SC
from agent_config import AgentConfig
from collision_ledger import GROUND_TAG
from sn11_env import SN11LanderEnv, build_observation
from actuation import ActuationCommand
from kinematics import VehicleState

IDLE = np.array([0.0, 0.0, -1.0], dtype=np.float32)


class TestEnvironmentAPI(unittest.TestCase):
    """Test Gymnasium compliance and spaces"""

    def test_sb3_env_checker(self):
        env = SN11LanderEnv()
        check_env(env, warn=True)
        env.close()

    def test_registered(self):
        env = gym.make('SN11Lander-v0')
        self.assertIsInstance(env.unwrapped, SN11LanderEnv)
        obs, info = env.reset(seed=0)
        self.assertEqual(obs.shape, (SC.OBSERVATION_SIZE,))
        env.close()

    def test_spaces(self):
        env = SN11LanderEnv()
        self.assertEqual(env.action_space.shape, (3,))
        np.testing.assert_array_equal(env.action_space.low, -1.0)
        np.testing.assert_array_equal(env.action_space.high, 1.0)
        self.assertEqual(env.observation_space.shape, (16,))

    def test_reset_observation(self):
        env = SN11LanderEnv()
        obs, info = env.reset(seed=0)
        self.assertEqual(obs.dtype, np.float32)
        self.assertTrue(env.observation_space.contains(obs))
        self.assertIn('initial_position', info)
        # Idle thrust vector and thrust after reset
        np.testing.assert_array_equal(obs[13:], [0.0, 0.0, 0.0])

    def test_step_returns(self):
        env = SN11LanderEnv()
        env.reset(seed=0)
        obs, reward, terminated, truncated, info = env.step(IDLE)
        self.assertIsInstance(reward, float)
        self.assertFalse(terminated)
        self.assertFalse(truncated)
        for key in ('step', 'reason', 'time_remaining', 'ground_distance', 'pad_distance',
                    'actuation_enabled', 'cumulative_reward', 'reward_components'):
            self.assertIn(key, info)
        self.assertIsNone(info['reason'])
        self.assertEqual(info['step'], 1)

    def test_seeded_reset_deterministic(self):
        env_a, env_b = SN11LanderEnv(), SN11LanderEnv()
        obs_a, _ = env_a.reset(seed=11)
        obs_b, _ = env_b.reset(seed=11)
        np.testing.assert_array_equal(obs_a, obs_b)
        action = np.array([0.3, -0.2, 0.5], dtype=np.float32)
        for _ in range(10):
            obs_a, reward_a, *_ = env_a.step(action)
            obs_b, reward_b, *_ = env_b.step(action)
        np.testing.assert_array_equal(obs_a, obs_b)
        self.assertEqual(reward_a, reward_b)

    def test_different_seeds_differ(self):
        env = SN11LanderEnv()
        obs_a, _ = env.reset(seed=1)
        obs_b, _ = env.reset(seed=2)
        self.assertFalse(np.array_equal(obs_a, obs_b))


class TestObservation(unittest.TestCase):
    """Test the 16D observation layout"""

    def test_layout(self):
        state = VehicleState.from_values(position=(3.0, 40.0, -4.0), orientation=(10.0, 20.0, 30.0),
                                         linear_velocity=(1.0, -2.0, 3.0),
                                         angular_velocity=(0.1, 0.2, 0.3), ground_distance=40.0)
        obs = build_observation(state, ActuationCommand(-15.0, 10.0, 6000.0))
        np.testing.assert_allclose(obs[0:3], [10.0, 20.0, 30.0])
        np.testing.assert_allclose(obs[3:6], [1.0, -2.0, 3.0])
        self.assertEqual(obs[6], 40.0)
        np.testing.assert_allclose(obs[7:10], [3.0, 40.0, -4.0])
        np.testing.assert_allclose(obs[10:13], [0.1, 0.2, 0.3], rtol=1e-6)
        # Negative gimbal reported in [0, 360)
        np.testing.assert_allclose(obs[13:15], [345.0, 10.0])
        self.assertEqual(obs[15], 6000.0)

    def test_no_ground_sentinel(self):
        state = VehicleState.from_values(ground_distance=-1.0)
        obs = build_observation(state, ActuationCommand.idle())
        self.assertEqual(obs[6], -1.0)


class TestEpisodeTermination(unittest.TestCase):
    """Test terminated / truncated signalling"""

    def test_timeout_truncates(self):
        env = SN11LanderEnv(config=AgentConfig(episode_timeout=1.0, dt=0.25))
        env.reset(seed=0)
        for _ in range(3):
            _, _, terminated, truncated, _ = env.step(IDLE)
            self.assertFalse(terminated or truncated)
        _, reward, terminated, truncated, info = env.step(IDLE)
        self.assertFalse(terminated)
        self.assertTrue(truncated)
        self.assertEqual(info['reason'], 'timeout')
        self.assertEqual(reward, 0.0)

    def test_step_after_end_requires_reset(self):
        env = SN11LanderEnv(config=AgentConfig(episode_timeout=0.5, dt=0.25))
        env.reset(seed=0)
        env.step(IDLE)
        env.step(IDLE)
        with self.assertRaises(RuntimeError):
            env.step(IDLE)
        env.reset(seed=0)
        env.step(IDLE)

    def test_step_before_reset_raises(self):
        env = SN11LanderEnv()
        with self.assertRaises(RuntimeError):
            env.step(IDLE)

    def test_landing_on_pad(self):
        env = SN11LanderEnv()
        env.reset(seed=0)
        env.physics.teleport([0.0, SC.VEHICLE_HEIGHT / 2.0 + 0.5, 0.0], [0.0, 0.0, 0.0])
        for _ in range(100):
            obs, reward, terminated, truncated, info = env.step(IDLE)
            if terminated or truncated:
                break
        self.assertTrue(terminated)
        self.assertEqual(info['reason'], 'landed_on_pad')
        self.assertAlmostEqual(reward, 3.0)
        self.assertFalse(info['actuation_enabled'])

    def test_landing_off_pad_pays_contact_penalty(self):
        env = SN11LanderEnv()
        env.reset(seed=0)
        env.physics.teleport([100.0, SC.VEHICLE_HEIGHT / 2.0 + 0.5, 0.0], [0.0, 0.0, 0.0])
        for _ in range(100):
            obs, reward, terminated, truncated, info = env.step(IDLE)
            if terminated or truncated:
                break
        self.assertEqual(info['reason'], 'landed_off_pad')
        self.assertAlmostEqual(reward, 0.75)
        self.assertEqual(info['reward_components'],
                         {'off_pad_contact': -0.25, 'landed_upright': 1.0, 'pad_distance': 0.0})


class TestActuationGate(unittest.TestCase):
    """Test that contact disables thrust for the rest of the episode"""

    def test_thrust_zero_after_contact(self):
        env = SN11LanderEnv()
        env.reset(seed=0)
        obs, _, _, _, info = env.step(np.array([0.0, 0.0, 1.0], dtype=np.float32))
        self.assertEqual(obs[15], SC.MAX_THRUST_FORCE)

        env.controller.on_collision_enter(GROUND_TAG)
        env.controller.on_collision_exit(GROUND_TAG)
        obs, reward, _, _, info = env.step(np.array([0.5, 0.0, 1.0], dtype=np.float32))
        self.assertEqual(obs[15], 0.0)
        self.assertAlmostEqual(obs[13], 15.0)
        self.assertFalse(info['actuation_enabled'])
        self.assertAlmostEqual(info['reward_components']['off_pad_contact'], -0.25)


class TestDebugMode(unittest.TestCase):
    """Test observation dumps in debug mode"""

    def test_reset_logs_observation(self):
        env = SN11LanderEnv(config=AgentConfig(debug_mode=True))
        with self.assertLogs('sn11_env', level='DEBUG') as logs:
            env.reset(seed=0)
        self.assertTrue(any('AGENT DATA' in line for line in logs.output))


if __name__ == '__main__':
    unittest.main()
