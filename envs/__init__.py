"""
Fan Mahjong Gymnasium Environments
"""

from .mahjong_env import FanMahjongEnv, register_envs

__all__ = ["FanMahjongEnv", "register_envs"]
