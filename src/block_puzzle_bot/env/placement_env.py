from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from block_puzzle_bot.engine.policy import DecisionContext, DecisionPolicy, PolicyConfig, ScoredPlacement
from block_puzzle_bot.engine.weights import DEFAULT_WEIGHTS, Weights
from block_puzzle_bot.game.core import Action, BotMatch, GameConfig


PALETTE = np.array(
    [
        (30, 30, 36),     # empty
        (0, 200, 220),    # I
        (230, 210, 40),   # O
        (160, 70, 200),   # T
        (70, 200, 90),    # S
        (220, 60, 60),    # Z
        (50, 90, 220),    # J
        (240, 140, 30),   # L
        (120, 120, 120),  # garbage
    ],
    dtype=np.uint8,
)


def max_placements(width: int, overhang: int) -> int:
    """Upper bound on distinct landings: four orientations per swept column."""
    return 4 * (width + 2 * overhang)


class PlacementEnv(gym.Env):
    """One step per piece: the action picks one of the current reachable landings.

    Action ``i`` refers to the i-th landing in enumeration order; indices past
    the end of the list are masked out in ``info["action_mask"]``.
    """

    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 weights: Weights = DEFAULT_WEIGHTS,
                 policy_config: Optional[PolicyConfig] = None,
                 survival_bonus: float = 0.01,
                 invalid_action_penalty: float = -1.0,
                 max_pieces: int = 1000) -> None:
        super().__init__()
        self.match = BotMatch(config)
        self.render_mode = render_mode
        self.survival_bonus = float(survival_bonus)
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.max_pieces = int(max_pieces)

        width = self.match.config.width
        height = self.match.config.height
        policy_config = policy_config or PolicyConfig(board_shape=(height, width))
        self.policy = DecisionPolicy(weights, policy_config, rules=self.match.rules)

        self.observation_space = spaces.Dict(
            {
                "grid": spaces.Box(low=0, high=len(PALETTE) - 1, shape=(height, width), dtype=np.int8),
                "piece": spaces.Discrete(len(PALETTE) - 1),
            }
        )
        self.action_space = spaces.Discrete(max_placements(width, policy_config.overhang))

        self._placements: List[ScoredPlacement] = []
        self._previous: Optional[Tuple[int, int]] = None

    def _context(self) -> DecisionContext:
        return DecisionContext(
            total_attack=self.match.stats.total_attack,
            previous=self._previous,
            combo=self.match.stats.chain,
        )

    def _refresh(self) -> None:
        piece = self.match.current_piece
        if self.match.game_over or piece is None:
            self._placements = []
            return
        self._placements = self.policy.rank(self.match.grid.grid, piece, self._context())
        if not self._placements:
            # no legal move is a top-out
            self.match.game_over = True

    def action_mask(self) -> np.ndarray:
        mask = np.zeros(self.action_space.n, dtype=np.bool_)
        mask[: len(self._placements)] = True
        return mask

    def _get_obs(self) -> Dict[str, Any]:
        piece = self.match.current_piece
        kind = int(piece.kind) if piece is not None and not self.match.game_over else 0
        return {"grid": self.match.grid.clone_state(), "piece": kind}

    def _get_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "action_mask": self.action_mask(),
            "pieces": self.match.stats.pieces,
            "lines_cleared": self.match.stats.lines_cleared,
            "total_attack": self.match.stats.total_attack,
            "chain": self.match.stats.chain,
        }
        if self._placements:
            info["suggested_action"] = self.policy.select(self._placements)
        return info

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        self.match.reset(seed)
        self._previous = None
        self._refresh()
        return self._get_obs(), self._get_info()

    def step(self, action: int):
        index = int(action)
        if self.match.game_over:
            return self._get_obs(), 0.0, True, False, self._get_info()

        if not 0 <= index < len(self._placements):
            info = self._get_info()
            info["invalid_action"] = True
            return self._get_obs(), self.invalid_action_penalty, False, False, info

        placement = self._placements[index].placement
        for move in placement.actions:
            self.match.step(move)
        result = self.match.step(Action.HARD_DROP)
        self._previous = (placement.piece.x, placement.piece.orientation)

        self._refresh()
        terminated = bool(self.match.game_over)
        reward = float(result.garbage_sent if result is not None else 0)
        if not terminated:
            reward += self.survival_bonus
        truncated = not terminated and self.match.stats.pieces >= self.max_pieces

        info = self._get_info()
        if result is not None:
            info["lines"] = result.lines_cleared
            info["garbage_sent"] = result.garbage_sent
            info["tspin"] = result.tspin.name
        return self._get_obs(), reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        grid = self.match.get_state()
        cell = 12
        colors = PALETTE[np.abs(grid.astype(np.int16))]
        return np.repeat(np.repeat(colors, cell, axis=0), cell, axis=1)

    def close(self) -> None:
        pass
