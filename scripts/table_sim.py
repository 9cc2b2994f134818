#!/usr/bin/env python3
"""Play a table of house bots offline and check that no chips go missing.

Every seat is driven by the same decision model the practice server uses, and
actions go straight into GameEngine without any sockets or pacing. After each
round the total of all stacks must equal what the table started with.

Example:
    python scripts/table_sim.py --players 5 --rounds 200 --variant muflis
"""

from __future__ import annotations

import argparse
import logging
import random
from collections import Counter
from typing import Dict

from patti.game import GameEngine
from patti.models import TableConfig, Variant
from practice.bots import house_move, house_roster

LOGGER = logging.getLogger("table_sim")

# Guard against a round that never settles; real rounds finish in far fewer turns.
MAX_TURNS_PER_ROUND = 5_000


def build_table(args: argparse.Namespace) -> GameEngine:
    config = TableConfig(
        seats=args.players,
        starting_stack=args.starting_stack,
        boot=args.boot,
        move_time_ms=0,
        variant=Variant(args.variant),
        think_time_scale=0.0,
    )
    engine = GameEngine(config, room_id="SIM")
    for idx, (name, personality) in enumerate(house_roster(args.players)):
        engine.assign_seat(name, player_id=f"BOT{idx + 1}", personality=personality.value)
    return engine


def play_round(engine: GameEngine, rng: random.Random, seed: int) -> Counter:
    engine.start_round(seed=seed)
    actions: Counter = Counter()
    turns = 0
    while not engine.is_round_complete():
        actor = engine.next_actor()
        if actor is None:
            raise RuntimeError(f"Round {engine.round_counter} stalled with no actor")
        move = house_move(engine, actor, rng)
        engine.apply_action(actor, move.action, move.amount)
        actions[move.action.value] += 1
        turns += 1
        if turns > MAX_TURNS_PER_ROUND:
            raise RuntimeError(f"Round {engine.round_counter} did not finish in {MAX_TURNS_PER_ROUND} turns")
    return actions


def run_simulation(args: argparse.Namespace) -> Dict[str, object]:
    engine = build_table(args)
    rng = random.Random(args.seed)
    total_chips = sum(seat.stack for seat in engine.seats if seat)
    totals: Counter = Counter()
    wins: Counter = Counter()

    for offset in range(args.rounds):
        if not engine.can_start_round():
            LOGGER.info("Only one funded seat left after %s rounds", engine.round_counter)
            break
        totals.update(play_round(engine, rng, args.seed + offset))
        assert engine.state is not None
        wins.update(engine.state.winners)

        table_total = sum(seat.stack for seat in engine.seats if seat)
        if table_total != total_chips:
            raise RuntimeError(
                f"Chip total drifted after round {engine.round_counter}: {table_total} != {total_chips}"
            )
        if engine.round_counter % args.report_every == 0:
            LOGGER.info("Completed %s rounds", engine.round_counter)

    summary = engine.match_result_payload()
    summary["actions"] = dict(totals)
    summary["wins"] = dict(wins)
    return summary


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run house bots against each other without a server")
    parser.add_argument("--players", type=int, default=4)
    parser.add_argument("--rounds", type=int, default=100)
    parser.add_argument("--starting-stack", type=int, default=2_000)
    parser.add_argument("--boot", type=int, default=10)
    parser.add_argument("--variant", choices=[variant.value for variant in Variant], default=Variant.CLASSIC.value)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--report-every", type=int, default=25)
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    summary = run_simulation(args)
    LOGGER.info("Actions taken: %s", summary["actions"])
    for entry in summary["final_stacks"]:  # type: ignore[union-attr]
        LOGGER.info(
            "%-12s stack=%-6s wins=%s",
            entry["name"],
            entry["stack"],
            summary["wins"].get(entry["player"], 0),  # type: ignore[union-attr]
        )
    LOGGER.info("Winner: %s", summary["winner"])


if __name__ == "__main__":
    main()
