"""
sn11_training.py
PPO Training for the SN-11 Landing Environment

Trains a Stable Baselines3 PPO agent on SN11LanderEnv using the
hyperparameters of the SN-11 ML-Agents behaviour configuration:

    trainer_type: ppo       batch_size: 64        buffer_size: 1024
    learning_rate: 3e-4     (linear schedule)     beta: 0.01
    epsilon: 0.2            lambd: 0.99           num_epoch: 3
    hidden_units: 128 x 2   normalize: true       gamma: 0.99

Key Features:
- Parallel environments (DummyVecEnv / SubprocVecEnv)
- Observation normalisation (VecNormalize)
- Success tracking by terminal reason (landed on pad)
- Reward component statistics
- In-process evaluation after training

Trained models are not written to disk.

Usage Examples:
    # Quick setup check
    python sn11_training.py --mode test

    # Train for 1M steps, then evaluate
    python sn11_training.py --mode train --timesteps 1000000

    # Random-policy baseline
    python sn11_training.py --mode eval --eval-episodes 20

    # Custom agent configuration
    python sn11_training.py --mode train --config my_agent.json
"""

import sys
import argparse
import logging
import multiprocessing
from typing import Dict, List, Optional

import numpy as np
from stable_baselines3 import PPO
from stable_baselines3.common.callbacks import BaseCallback, CallbackList
from stable_baselines3.common.env_checker import check_env
from stable_baselines3.common.monitor import Monitor
from stable_baselines3.common.vec_env import DummyVecEnv, SubprocVecEnv, VecNormalize

from agent_config import AgentConfig, load_config
from sn11_env import SN11LanderEnv
from state_classifier import TerminationReason

logger = logging.getLogger(__name__)

SUCCESS_REASON = TerminationReason.LANDED_ON_PAD.value

# Mirrors the SN-11 ML-Agents behaviour configuration
PPO_HYPERPARAMETERS = {
    'learning_rate': 3e-4,
    'n_steps': 1024,  # buffer_size
    'batch_size': 64,
    'n_epochs': 3,
    'gamma': 0.99,
    'gae_lambda': 0.99,
    'clip_range': 0.2,
    'ent_coef': 0.01,  # beta
    'net_arch': [128, 128],
}


def linear_schedule(initial_value: float):
    """Learning-rate schedule decaying linearly from initial_value to 0."""
    def schedule(progress_remaining: float) -> float:
        return progress_remaining * initial_value
    return schedule


# ============================================================================
# CALLBACKS
# ============================================================================

class TrainingProgressCallback(BaseCallback):
    """Tracks episode rewards, lengths and landing success across all environments"""

    def __init__(self, verbose: int = 0):
        super().__init__(verbose)
        self.episode_rewards = []
        self.episode_lengths = []
        self.episode_reasons = []

    def _on_step(self) -> bool:
        dones = self.locals.get('dones', [])
        infos = self.locals.get('infos', [])
        for done, info in zip(dones, infos):
            if not done:
                continue
            reason = info.get('reason')
            self.episode_reasons.append(reason)
            if 'episode' in info:
                self.episode_rewards.append(info['episode']['r'])
                self.episode_lengths.append(info['episode']['l'])
                self.logger.record("episode/reward", info['episode']['r'])
                self.logger.record("episode/length", info['episode']['l'])
            self.logger.record("episode/success", float(reason == SUCCESS_REASON))
            if len(self.episode_reasons) >= 100:
                self.logger.record("episode/success_rate_100", self.get_success_rate(100))
        return True

    def get_success_rate(self, num_episodes: int = 100) -> float:
        """Fraction of the last N episodes that landed on the pad"""
        recent = self.episode_reasons[-num_episodes:]
        if not recent:
            return 0.0
        return float(np.mean([r == SUCCESS_REASON for r in recent]))

    def reason_counts(self) -> Dict[str, int]:
        counts = {}
        for reason in self.episode_reasons:
            counts[reason] = counts.get(reason, 0) + 1
        return counts


class RewardStatisticsCallback(BaseCallback):
    """Accumulates per-cause reward contributions and logs their episode means"""

    def __init__(self, log_every: int = 100, verbose: int = 0):
        super().__init__(verbose)
        self.log_every = log_every
        self.reward_components = {}
        self._running = {}
        self.episodes_logged = 0

    def _on_step(self) -> bool:
        dones = self.locals.get('dones', [])
        infos = self.locals.get('infos', [])
        for env_idx, (done, info) in enumerate(zip(dones, infos)):
            running = self._running.setdefault(env_idx, {})
            for name, value in info.get('reward_components', {}).items():
                running[name] = running.get(name, 0.0) + value
            if done:
                for name, value in running.items():
                    self.reward_components.setdefault(name, []).append(value)
                self._running[env_idx] = {}
                self.episodes_logged += 1
                if self.episodes_logged % self.log_every == 0:
                    self._log_component_statistics()
        return True

    def _log_component_statistics(self):
        for name, values in self.reward_components.items():
            self.logger.record(f"reward_components/{name}", float(np.mean(values[-self.log_every:])))
        for name in self.reward_components:
            if len(self.reward_components[name]) > 2 * self.log_every:
                self.reward_components[name] = self.reward_components[name][-2 * self.log_every:]


# ============================================================================
# TRAINER
# ============================================================================

class SN11Trainer:
    """PPO training, setup checks and evaluation for SN11LanderEnv"""

    def __init__(self,
                 n_envs: int = 4,
                 config: Optional[AgentConfig] = None,
                 seed: int = 42,
                 use_subprocess: bool = False,
                 verbose: int = 1):
        """
        Args:
            n_envs: Number of parallel environments
            config: AgentConfig shared by every environment
            seed: Random seed
            use_subprocess: SubprocVecEnv instead of DummyVecEnv
            verbose: Verbosity level (0=none, 1=info, 2=debug)
        """
        self.n_envs = n_envs
        self.config = config or AgentConfig()
        self.seed = seed
        self.use_subprocess = use_subprocess
        self.verbose = verbose

        self.model = None
        self.vec_env = None

        if self.verbose > 0:
            self._print_header()

    def _print_header(self):
        print("\n" + "="*80)
        print("SN-11 LANDING PPO TRAINER")
        print("="*80)
        print(f"Parallel environments: {self.n_envs}")
        print(f"Vectorisation: {'SubprocVecEnv' if self.use_subprocess else 'DummyVecEnv'}")
        print(f"Episode timeout: {self.config.episode_timeout} s at dt={self.config.dt} s")
        print(f"Random seed: {self.seed}")
        print("="*80 + "\n")

    def _make_env(self, rank: int = 0):
        """Create environment factory"""
        config = self.config
        seed = self.seed + rank

        def _init():
            env = Monitor(SN11LanderEnv(config=config))
            env.reset(seed=seed)
            return env
        return _init

    def make_vec_env(self, n_envs: Optional[int] = None, training: bool = True):
        """Vectorised, observation-normalised environments"""
        n_envs = n_envs or self.n_envs
        factories = [self._make_env(rank) for rank in range(n_envs)]
        if self.use_subprocess and n_envs > 1:
            env = SubprocVecEnv(factories, start_method='spawn')
        else:
            env = DummyVecEnv(factories)
        return VecNormalize(
            env,
            training=training,
            norm_obs=True,
            norm_reward=False,
            clip_obs=10.0,
            gamma=PPO_HYPERPARAMETERS['gamma'],
        )

    def create_model(self, env, **overrides):
        """Create PPO model with the SN-11 hyperparameters"""
        params = dict(PPO_HYPERPARAMETERS)
        params.update(overrides)
        net_arch = params.pop('net_arch')
        learning_rate = params.pop('learning_rate')
        return PPO(
            policy='MlpPolicy',
            env=env,
            learning_rate=linear_schedule(learning_rate),
            policy_kwargs={'net_arch': net_arch},
            verbose=1 if self.verbose > 1 else 0,
            seed=self.seed,
            **params
        )

    # ========================================================================
    # MODE: TEST
    # ========================================================================

    def test_setup(self, rollout_steps: int = 200) -> bool:
        """Check the environment and run one short PPO update"""
        print("\n" + "="*80)
        print("QUICK ENVIRONMENT TEST")
        print("="*80 + "\n")

        print("[1/3] Validating environment with SB3 checker...")
        env = SN11LanderEnv(config=self.config)
        check_env(env, warn=True)
        print("  ✓ Environment validation passed")

        print("\n[2/3] Testing environment interaction...")
        obs, info = env.reset(seed=self.seed)
        for _ in range(rollout_steps):
            obs, reward, terminated, truncated, info = env.step(env.action_space.sample())
            if terminated or truncated:
                print(f"  Episode ended: {info['reason']}")
                obs, info = env.reset()
        env.close()
        print("  ✓ Environment interaction successful")

        print("\n[3/3] Testing model creation and one PPO update...")
        vec_env = self.make_vec_env(n_envs=1)
        model = self.create_model(vec_env, n_steps=128, batch_size=64)
        model.learn(total_timesteps=128)
        vec_env.close()
        print("  ✓ Model training successful")

        print("\n" + "="*80)
        print("✓ ENVIRONMENT TEST PASSED!")
        print("="*80 + "\n")
        return True

    # ========================================================================
    # MODE: TRAIN
    # ========================================================================

    def train(self, total_timesteps: int = 1_000_000, eval_episodes: int = 10):
        """
        Train PPO, then evaluate the trained policy in-process.

        Returns:
            (TrainingProgressCallback, evaluation summary dict)
        """
        self.vec_env = self.make_vec_env()
        self.model = self.create_model(self.vec_env)

        progress = TrainingProgressCallback()
        callbacks = CallbackList([progress, RewardStatisticsCallback()])

        logger.info("Training PPO for %d timesteps on %d environments", total_timesteps, self.n_envs)
        self.model.learn(total_timesteps=total_timesteps, callback=callbacks)

        print("\n" + "="*80)
        print("TRAINING COMPLETE")
        print("="*80)
        print(f"Episodes: {len(progress.episode_reasons)}")
        print(f"Success rate (last 100): {progress.get_success_rate(100) * 100:.1f}%")
        print(f"Terminal reasons: {progress.reason_counts()}")
        print("="*80 + "\n")

        summary = None
        if eval_episodes > 0:
            summary = self.evaluate(self.model, n_episodes=eval_episodes)
        self.vec_env.close()
        return progress, summary

    # ========================================================================
    # MODE: EVALUATION
    # ========================================================================

    def evaluate(self, model=None, n_episodes: int = 10, deterministic: bool = True) -> Dict:
        """
        Run full episodes with a trained model, or uniformly random actions if model is None.

        Returns:
            dict with mean/std reward, mean length, success rate and reasons
        """
        eval_env = self.make_vec_env(n_envs=1, training=False)
        if self.vec_env is not None:
            eval_env.obs_rms = self.vec_env.obs_rms

        episode_rewards: List[float] = []
        episode_lengths: List[int] = []
        reasons: List[str] = []

        obs = eval_env.reset()
        episode_reward, episode_length = 0.0, 0
        while len(reasons) < n_episodes:
            if model is None:
                action = np.array([eval_env.action_space.sample()])
            else:
                action, _states = model.predict(obs, deterministic=deterministic)
            obs, rewards, dones, infos = eval_env.step(action)
            episode_reward += float(rewards[0])
            episode_length += 1
            if dones[0]:
                episode_rewards.append(episode_reward)
                episode_lengths.append(episode_length)
                reasons.append(infos[0].get('reason'))
                status = "✓ SUCCESS" if reasons[-1] == SUCCESS_REASON else "✗ FAILED"
                print(f"Episode {len(reasons)}/{n_episodes}: {status} ({reasons[-1]})")
                print(f"  Reward: {episode_reward:.4f}")
                print(f"  Length: {episode_length} steps")
                episode_reward, episode_length = 0.0, 0
        eval_env.close()

        summary = {
            'mean_reward': float(np.mean(episode_rewards)),
            'std_reward': float(np.std(episode_rewards)),
            'mean_length': float(np.mean(episode_lengths)),
            'success_rate': float(np.mean([r == SUCCESS_REASON for r in reasons])),
            'reasons': reasons,
        }

        print("\n" + "="*80)
        print("EVALUATION SUMMARY")
        print("="*80)
        print(f"Policy: {'random' if model is None else type(model).__name__}")
        print(f"Episodes: {n_episodes}")
        print(f"Mean reward: {summary['mean_reward']:.4f} ± {summary['std_reward']:.4f}")
        print(f"Mean episode length: {summary['mean_length']:.1f} steps")
        print(f"Success rate: {summary['success_rate'] * 100:.1f}%")
        print("="*80 + "\n")
        return summary


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def build_parser():
    parser = argparse.ArgumentParser(
        description='SN-11 Landing PPO Training',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python sn11_training.py --mode test
  python sn11_training.py --mode train --timesteps 1000000 --n-envs 8
  python sn11_training.py --mode eval --eval-episodes 20
        """
    )
    parser.add_argument('--mode', type=str, default='train',
                        choices=['test', 'train', 'eval'],
                        help='Run mode')
    parser.add_argument('--timesteps', type=int, default=1_000_000,
                        help='Total training timesteps')
    parser.add_argument('--n-envs', type=int, default=4,
                        help='Number of parallel environments')
    parser.add_argument('--subprocess', action='store_true',
                        help='Use SubprocVecEnv for parallel environments')
    parser.add_argument('--config', type=str, default=None,
                        help='JSON file of AgentConfig overrides')
    parser.add_argument('--eval-episodes', type=int, default=10,
                        help='Number of episodes for evaluation')
    parser.add_argument('--debug', action='store_true',
                        help='Enable agent debug mode (observation and control logging)')
    parser.add_argument('--seed', type=int, default=42,
                        help='Random seed')
    parser.add_argument('--verbose', type=int, default=1,
                        help='Verbosity level (0, 1, 2)')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = load_config(args.config) if args.config else AgentConfig()
    if args.debug:
        config = config.with_overrides(debug_mode=True)

    trainer = SN11Trainer(
        n_envs=args.n_envs,
        config=config,
        seed=args.seed,
        use_subprocess=args.subprocess,
        verbose=args.verbose
    )

    if args.mode == 'test':
        ok = trainer.test_setup()
        return 0 if ok else 1
    elif args.mode == 'train':
        trainer.train(total_timesteps=args.timesteps, eval_episodes=args.eval_episodes)
    elif args.mode == 'eval':
        trainer.evaluate(model=None, n_episodes=args.eval_episodes)
    return 0


if __name__ == "__main__":
    # Windows multiprocessing requires 'spawn' for SubprocVecEnv
    if sys.platform == 'win32':
        multiprocessing.set_start_method('spawn', force=True)

    sys.exit(main())
