from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import random
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from block_puzzle_bot.engine.policy import DecisionContext, DecisionPolicy, PolicyConfig
from block_puzzle_bot.engine.weights import DEFAULT_WEIGHTS, Weights
from block_puzzle_bot.game.core import Action, BotMatch, GameConfig, MatchStats

logger = logging.getLogger(__name__)


@dataclass
class BotConfig:
    """Settings for one headless bot."""
    strength: int = 100
    weights: Weights = DEFAULT_WEIGHTS
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    max_pieces: int = 500


def load_weights(path: str) -> Weights:
    """Read a JSON object of coefficients keyed by parameter name."""
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object of weights")
    return Weights.from_mapping(data)


def play_game(bot: BotConfig, game: Optional[GameConfig] = None, garbage_every: int = 0,
              garbage_lines: int = 1, rng: Optional[random.Random] = None) -> MatchStats:
    """Play one match until top-out or ``bot.max_pieces`` locks.

    Every ``garbage_every`` pieces the bot is sent ``garbage_lines`` rows; they
    are queued and only pushed into the board after the next lock.
    """
    match = BotMatch(game)
    height, width = match.config.height, match.config.width
    policy_config = bot.policy
    if policy_config.board_shape != (height, width):
        policy_config = dataclasses.replace(policy_config, board_shape=(height, width))
    policy = DecisionPolicy(bot.weights, policy_config, rules=match.rules, rng=rng)

    previous: Optional[Tuple[int, int]] = None
    while not match.game_over and match.stats.pieces < bot.max_pieces:
        if garbage_every > 0 and match.stats.pieces > 0 and match.stats.pieces % garbage_every == 0:
            match.receive_garbage(garbage_lines)
        context = DecisionContext(
            strength=bot.strength,
            total_attack=match.stats.total_attack,
            previous=previous,
            combo=match.stats.chain,
        )
        placement = policy.choose(match.grid.grid, match.current_piece, context)
        if placement is None:
            logger.debug("no legal move for %s, topping out", match.current_piece.kind.name)
            match.game_over = True
            break
        for move in placement.actions:
            match.step(move)
        result = match.step(Action.HARD_DROP)
        previous = (placement.piece.x, placement.piece.orientation)
        if result is not None and result.garbage_sent:
            logger.debug("piece %d sent %d lines (tspin=%s, chain=%d)",
                         match.stats.pieces, result.garbage_sent, result.tspin.name, match.stats.chain)
    return match.stats


def _print_progress(game_idx: int, total: int, stats: MatchStats) -> None:
    width = 30
    filled = int(width * (game_idx + 1) / max(1, total))
    bar = "=" * filled + "." * (width - filled)
    msg = f"\r[{bar}] {game_idx + 1}/{total}  pieces={stats.pieces}  attack={stats.total_attack}"
    print(msg, end="", file=sys.stdout, flush=True)


def run(bot: BotConfig, games: int = 1, seed: int = 0, garbage_every: int = 0, garbage_lines: int = 1,
        progress: bool = True) -> List[MatchStats]:
    results: List[MatchStats] = []
    for i in range(games):
        game = GameConfig(random_seed=seed + i)
        stats = play_game(bot, game, garbage_every, garbage_lines, rng=random.Random(seed + i))
        results.append(stats)
        if progress:
            _print_progress(i, games, stats)
    if progress:
        print()
    return results


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Play headless matches with the placement bot.")
    p.add_argument("--games", type=int, default=1)
    p.add_argument("--pieces", type=int, default=500, help="pieces per game before stopping")
    p.add_argument("--strength", type=int, default=100)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--weights", type=str, default=None, help="JSON file of weight coefficients")
    p.add_argument("--garbage-every", type=int, default=0)
    p.add_argument("--garbage-lines", type=int, default=1)
    p.add_argument("--no-progress", action="store_true")
    p.add_argument("--verbose", action="store_true")
    return p


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    if not 0 <= args.strength <= 100:
        raise SystemExit(f"--strength must be within [0, 100], got {args.strength}")

    weights = load_weights(args.weights) if args.weights else DEFAULT_WEIGHTS
    bot = BotConfig(strength=args.strength, weights=weights, max_pieces=args.pieces)
    results = run(bot, args.games, args.seed, args.garbage_every, args.garbage_lines,
                  progress=not args.no_progress)

    for i, stats in enumerate(results):
        print(
            f"Game {i + 1}: pieces={stats.pieces} lines={stats.lines_cleared} "
            f"attack={stats.total_attack} max_chain={stats.max_chain} tspins={stats.tspins} "
            f"garbage_received={stats.garbage_received}"
        )
    if len(results) > 1:
        mean_attack = sum(s.total_attack for s in results) / len(results)
        mean_pieces = sum(s.pieces for s in results) / len(results)
        print(f"Average: pieces={mean_pieces:.1f} attack={mean_attack:.1f}")


if __name__ == "__main__":  # pragma: no cover
    main()
