"""Gymnasium environments for the puzzle bot."""

from __future__ import annotations

from gymnasium.envs.registration import register

# One action per reachable landing of the current piece
register(
    id="BlockPuzzleBot-Placement-v0",
    entry_point="block_puzzle_bot.env.placement_env:PlacementEnv",
)

__all__ = ["BlockPuzzleBot-Placement-v0"]
