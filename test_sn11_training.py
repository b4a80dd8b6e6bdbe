"""
Unit tests for sn11_training.py
Tests PPO hyperparameters, model construction, callbacks and evaluation
(unit tests, no full training run).
"""

import unittest
import numpy as np
from stable_baselines3 import PPO
from stable_baselines3.common.logger import configure
from stable_baselines3.common.vec_env import VecNormalize

# Import module under test
from agent_config import AgentConfig
from sn11_training import (
    PPO_HYPERPARAMETERS,
    SN11Trainer,
    TrainingProgressCallback,
    RewardStatisticsCallback,
    linear_schedule,
    build_parser,
)

SHORT_EPISODES = AgentConfig(episode_timeout=0.5, dt=0.25)


class TestHyperparameters(unittest.TestCase):
    """Test PPO settings match the SN-11 behaviour configuration"""

    def test_values(self):
        self.assertEqual(PPO_HYPERPARAMETERS['batch_size'], 64)
        self.assertEqual(PPO_HYPERPARAMETERS['n_steps'], 1024)
        self.assertEqual(PPO_HYPERPARAMETERS['n_epochs'], 3)
        self.assertEqual(PPO_HYPERPARAMETERS['learning_rate'], 3e-4)
        self.assertEqual(PPO_HYPERPARAMETERS['ent_coef'], 0.01)
        self.assertEqual(PPO_HYPERPARAMETERS['clip_range'], 0.2)
        self.assertEqual(PPO_HYPERPARAMETERS['gae_lambda'], 0.99)
        self.assertEqual(PPO_HYPERPARAMETERS['gamma'], 0.99)
        self.assertEqual(PPO_HYPERPARAMETERS['net_arch'], [128, 128])

    def test_buffer_divisible_by_batch(self):
        self.assertEqual(PPO_HYPERPARAMETERS['n_steps'] % PPO_HYPERPARAMETERS['batch_size'], 0)

    def test_linear_schedule(self):
        schedule = linear_schedule(3e-4)
        self.assertAlmostEqual(schedule(1.0), 3e-4)
        self.assertAlmostEqual(schedule(0.5), 1.5e-4)
        self.assertEqual(schedule(0.0), 0.0)


class TestTrainerSetup(unittest.TestCase):
    """Test environment vectorisation and model construction"""

    def setUp(self):
        self.trainer = SN11Trainer(n_envs=2, config=SHORT_EPISODES, verbose=0)

    def test_vec_env_normalised(self):
        env = self.trainer.make_vec_env()
        self.assertIsInstance(env, VecNormalize)
        self.assertEqual(env.num_envs, 2)
        self.assertTrue(env.norm_obs)
        self.assertFalse(env.norm_reward)
        env.close()

    def test_model_hyperparameters(self):
        env = self.trainer.make_vec_env()
        model = self.trainer.create_model(env)
        self.assertIsInstance(model, PPO)
        self.assertEqual(model.n_steps, 1024)
        self.assertEqual(model.batch_size, 64)
        self.assertEqual(model.n_epochs, 3)
        self.assertEqual(model.gamma, 0.99)
        self.assertEqual(model.gae_lambda, 0.99)
        self.assertEqual(model.ent_coef, 0.01)
        self.assertAlmostEqual(model.lr_schedule(1.0), 3e-4)
        self.assertAlmostEqual(model.lr_schedule(0.5), 1.5e-4)
        self.assertEqual(model.policy_kwargs['net_arch'], [128, 128])
        env.close()

    def test_model_overrides(self):
        env = self.trainer.make_vec_env(n_envs=1)
        model = self.trainer.create_model(env, n_steps=128)
        self.assertEqual(model.n_steps, 128)
        env.close()


class TestCallbacks(unittest.TestCase):
    """Test episode bookkeeping from vectorised step locals"""

    def setUp(self):
        self.trainer = SN11Trainer(n_envs=2, config=SHORT_EPISODES, verbose=0)
        self.env = self.trainer.make_vec_env()
        self.model = self.trainer.create_model(self.env)
        self.model.set_logger(configure(None, []))

    def tearDown(self):
        self.env.close()

    def step(self, callback, dones, infos):
        callback.update_locals({'dones': np.array(dones), 'infos': infos})
        callback.on_step()

    def test_success_rate(self):
        callback = TrainingProgressCallback()
        callback.init_callback(self.model)
        self.step(callback, [True, True], [
            {'reason': 'landed_on_pad', 'episode': {'r': 3.0, 'l': 100}},
            {'reason': 'crashed_off_pad', 'episode': {'r': 0.2, 'l': 80}},
        ])
        self.step(callback, [False, True], [
            {'reason': None},
            {'reason': 'timeout', 'episode': {'r': 0.0, 'l': 6000}},
        ])
        self.assertEqual(callback.episode_rewards, [3.0, 0.2, 0.0])
        self.assertAlmostEqual(callback.get_success_rate(), 1.0 / 3.0)
        self.assertEqual(callback.reason_counts(),
                         {'landed_on_pad': 1, 'crashed_off_pad': 1, 'timeout': 1})

    def test_success_rate_empty(self):
        self.assertEqual(TrainingProgressCallback().get_success_rate(), 0.0)

    def test_reward_components_summed_per_episode(self):
        callback = RewardStatisticsCallback(log_every=1)
        callback.init_callback(self.model)
        self.step(callback, [False, False], [
            {'reward_components': {'approach_velocity': 0.01}},
            {'reward_components': {'off_pad_contact': -0.25}},
        ])
        self.step(callback, [True, False], [
            {'reward_components': {'approach_velocity': 0.01, 'landed_upright': 1.0}},
            {'reward_components': {}},
        ])
        self.assertAlmostEqual(callback.reward_components['approach_velocity'][0], 0.02)
        self.assertEqual(callback.reward_components['landed_upright'], [1.0])
        self.assertNotIn('off_pad_contact', callback.reward_components)
        self.assertEqual(callback.episodes_logged, 1)


class TestEvaluation(unittest.TestCase):
    """Test in-process evaluation"""

    def test_random_policy(self):
        trainer = SN11Trainer(n_envs=1, config=SHORT_EPISODES, verbose=0)
        summary = trainer.evaluate(model=None, n_episodes=2)
        self.assertEqual(len(summary['reasons']), 2)
        self.assertEqual(summary['reasons'], ['timeout', 'timeout'])
        self.assertEqual(summary['mean_length'], 2.0)
        self.assertEqual(summary['success_rate'], 0.0)

    def test_untrained_model(self):
        trainer = SN11Trainer(n_envs=1, config=SHORT_EPISODES, verbose=0)
        trainer.vec_env = trainer.make_vec_env()
        model = trainer.create_model(trainer.vec_env)
        summary = trainer.evaluate(model=model, n_episodes=1)
        self.assertEqual(len(summary['reasons']), 1)
        trainer.vec_env.close()


class TestCommandLine(unittest.TestCase):
    """Test argument parsing"""

    def test_defaults(self):
        args = build_parser().parse_args([])
        self.assertEqual(args.mode, 'train')
        self.assertEqual(args.n_envs, 4)
        self.assertIsNone(args.config)
        self.assertFalse(args.debug)

    def test_modes(self):
        for mode in ('test', 'train', 'eval'):
            self.assertEqual(build_parser().parse_args(['--mode', mode]).mode, mode)
        with self.assertRaises(SystemExit):
            build_parser().parse_args(['--mode', 'resume'])


if __name__ == '__main__':
    unittest.main()
