from __future__ import annotations

import asyncio
import json
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import websockets

from patti.errors import EngineError
from patti.game import GameEngine
from patti.models import ActionType, TableConfig
from practice.bots import house_move, house_roster

LOGGER = logging.getLogger("practice_host")

REMOTE_PLAYER_ID = "YOU"

# PracticeSession is the turn scheduler for one table: it paces house seats by
# their thinking time, waits on the remote seat with a move timer, and feeds
# every choice back through GameEngine.apply_action.


def _config_payload(config: TableConfig) -> Dict[str, Any]:
    return {
        "variant": config.variant.value,
        "seats": config.seats,
        "starting_stack": config.starting_stack,
        "boot": config.boot,
        "move_time_ms": config.move_time_ms,
    }


async def _send_error(websocket: Any, code: str, msg: str) -> None:
    await websocket.send(json.dumps({"v": 1, "type": "error", "code": code, "msg": msg}))


@dataclass
class RemoteClient:
    name: str
    websocket: Any
    player_id: str = REMOTE_PLAYER_ID
    seat_idx: Optional[int] = None

    async def send_json(self, payload: Dict[str, Any]) -> None:
        await self.websocket.send(json.dumps({"v": 1, **payload}))


class PracticeSession:
    """Handles one practice table: a remote player against house bots."""

    def __init__(
        self,
        config: TableConfig,
        remote: RemoteClient,
        bots: int = 3,
        max_rounds: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        if bots < 1:
            raise ValueError("At least one house bot required")
        if bots + 1 > config.seats:
            raise ValueError("Table config does not have enough seats")
        self.engine = GameEngine(config, room_id="PRACTICE")
        self.remote = remote
        self.bots = bots
        self.max_rounds = max_rounds
        self.rng = rng or random.Random()

    async def run(self) -> None:
        # One practice match = repeated rounds until the remote seat or the house runs dry.
        self._assign_seats()
        await self.remote.send_json(
            {
                "type": "welcome",
                "table_id": self.engine.room_id,
                "seat": self.remote.seat_idx,
                "player_id": self.remote.player_id,
                "config": _config_payload(self.engine.config),
                "lobby": self.engine.lobby_state(),
            }
        )
        while self._should_deal():
            self.engine.start_round()
            await self.remote.send_json(
                {"type": "start_round", **self.engine.snapshot_payload(self.remote.player_id)}
            )
            await self._broadcast_events(self.engine.consume_pre_events())
            await self._play_round()

        await self.remote.send_json({"type": "match_end", **self.engine.match_result_payload()})

    def _assign_seats(self) -> None:
        roster = house_roster(self.bots)
        if self.remote.name.casefold() in {name.casefold() for name, _ in roster}:
            self.remote.name = f"{self.remote.name} (you)"
        seat = self.engine.assign_seat(self.remote.name, player_id=self.remote.player_id)
        self.remote.seat_idx = seat.seat
        self.engine.set_connected(seat.seat, True)
        for idx, (name, personality) in enumerate(roster):
            self.engine.assign_seat(name, player_id=f"BOT{idx + 1}", personality=personality.value)

    def _should_deal(self) -> bool:
        if self.max_rounds is not None and self.engine.round_counter >= self.max_rounds:
            return False
        if not self.engine.can_start_round():
            return False
        remote_seat = self.engine.seat_of(self.remote.player_id)
        return bool(remote_seat and remote_seat.stack >= self.engine.config.boot)

    async def _play_round(self) -> None:
        while not self.engine.is_round_complete():
            player_id = self.engine.next_actor()
            if player_id is None:
                LOGGER.warning("Round %s has no actor; abandoning", self.engine.round_counter)
                return
            if player_id == self.remote.player_id:
                events = await self._remote_turn()
            else:
                events = await self._house_turn(player_id)
            await self._broadcast_events(events)

        await self.remote.send_json(
            {
                "type": "end_round",
                **self.engine.end_round_payload(),
                "table": self.engine.snapshot_payload(self.remote.player_id),
            }
        )

    async def _house_turn(self, player_id: str) -> List[Dict[str, object]]:
        move = house_move(self.engine, player_id, self.rng)
        delay = move.thinking_ms / 1000 * self.engine.config.think_time_scale
        if delay > 0:
            await asyncio.sleep(delay)
        events = self.engine.apply_action(player_id, move.action, move.amount)
        events[0]["message"] = move.message
        return events

    async def _remote_turn(self) -> List[Dict[str, object]]:
        player_id = self.remote.player_id
        move_time_ms = self.engine.config.move_time_ms
        loop = asyncio.get_running_loop()
        # One deadline per turn; rejected actions do not restart the clock.
        deadline = loop.time() + move_time_ms / 1000 if move_time_ms > 0 else None
        remaining_ms: Optional[int] = move_time_ms if move_time_ms > 0 else None
        while True:
            snapshot = self.engine.snapshot_payload(player_id, time_ms_remaining=remaining_ms)
            await self.remote.send_json({"type": "act", **snapshot})
            try:
                action, amount = await self._await_remote_action(remaining_ms)
            except asyncio.TimeoutError:
                LOGGER.info("%s ran out of time; packing", self.remote.name)
                events = self.engine.apply_action(player_id, ActionType.PACK)
                events[0]["timeout"] = True
                return events
            try:
                return self.engine.apply_action(player_id, action, amount)
            except EngineError as exc:
                await _send_error(self.remote.websocket, exc.code, exc.msg)
            if deadline is not None:
                remaining_ms = max(0, int((deadline - loop.time()) * 1000))

    async def _await_remote_action(self, timeout_ms: Optional[int]) -> Tuple[object, Optional[int]]:
        timeout = timeout_ms / 1000 if timeout_ms is not None else None
        return await asyncio.wait_for(self._read_action(), timeout)

    async def _read_action(self) -> Tuple[object, Optional[int]]:
        while True:
            raw = await self.remote.websocket.recv()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await _send_error(self.remote.websocket, "BAD_JSON", "Messages must be JSON objects")
                continue
            if not isinstance(message, dict) or message.get("type") != "action":
                continue
            return message.get("action"), message.get("amount")

    async def _broadcast_events(self, events: List[Dict[str, object]]) -> None:
        for event in events:
            await self.remote.send_json({"type": "event", **event})


async def handle_connection(websocket: Any, config: TableConfig, bots: int) -> None:
    hello_raw = await websocket.recv()
    try:
        hello = json.loads(hello_raw)
    except json.JSONDecodeError:
        hello = None
    if not isinstance(hello, dict) or hello.get("type") != "hello":
        await _send_error(websocket, "BAD_HELLO", "Expected hello")
        return

    name_raw = hello.get("name")
    name = name_raw.strip() if isinstance(name_raw, str) else ""
    if not name:
        name = "Guest"

    remote = RemoteClient(name=name, websocket=websocket)
    session = PracticeSession(config, remote, bots=bots)
    LOGGER.info("Practice table opened for %s with %s house bots", name, bots)
    try:
        await session.run()
    except websockets.ConnectionClosed:
        LOGGER.info("%s disconnected after %s rounds", name, session.engine.round_counter)
    except Exception:  # noqa: BLE001
        LOGGER.exception("Practice session crashed for %s", name)


async def run_server(host: str, port: int, config: TableConfig, bots: int = 3) -> None:
    async def _handler(ws: Any) -> None:
        await handle_connection(ws, config, bots)

    async with websockets.serve(_handler, host, port):
        LOGGER.info("Practice server listening on %s:%s", host, port)
        await asyncio.Future()
