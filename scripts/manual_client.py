#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
from collections import deque
from typing import Any, Dict, List, Optional

import websockets

LOGGER = logging.getLogger("manual_client")

# ManualClient plays a practice table from the terminal.

_SHORTCUTS = {"p": "pack", "b": "blind", "c": "chaal", "r": "raise", "s": "show", "ss": "sideshow"}


class ManualClient:
    def __init__(self, name: str, url: str) -> None:
        self.name = name
        self.url = url
        self.websocket: Any = None
        self.player_id: Optional[str] = None
        self.names: Dict[str, str] = {}
        self.recent_events: deque[str] = deque(maxlen=8)

    async def run(self) -> None:
        async with websockets.connect(self.url) as ws:
            self.websocket = ws
            await self._send({"type": "hello", "name": self.name})
            await self._loop()

    async def _send(self, payload: Dict[str, Any]) -> None:
        assert self.websocket is not None
        await self.websocket.send(json.dumps({"v": 1, **payload}))

    async def _loop(self) -> None:
        assert self.websocket is not None
        while True:
            msg = json.loads(await self.websocket.recv())
            msg_type = msg.get("type")
            self._print_message(msg)
            if msg_type == "act":
                await self._handle_act(msg)
            elif msg_type == "match_end":
                print("Match ended.")
                break

    async def _handle_act(self, msg: Dict[str, Any]) -> None:
        legal: List[str] = list(msg.get("legal", []))
        stakes: Dict[str, int] = msg.get("stakes", {})
        while True:
            choice = await asyncio.to_thread(self._prompt_action, legal, stakes, msg.get("time_ms_remaining"))
            if choice is None:
                continue
            await self._send({"type": "action", **choice})
            return

    def _prompt_action(
        self, legal: List[str], stakes: Dict[str, int], time_ms: Optional[int]
    ) -> Optional[Dict[str, Any]]:
        prompt = "Action [" + "/".join(legal) + "] (h=help): "
        if time_ms:
            prompt = f"({time_ms // 1000}s) {prompt}"
        raw = input(prompt).strip().lower()
        if not raw:
            choice = "blind" if "blind" in legal else "chaal"
            print(f"Using default: {choice}")
            return {"action": choice}
        if raw == "h":
            self._print_help(legal, stakes)
            return None

        parts = raw.split()
        action = _SHORTCUTS.get(parts[0], parts[0])
        if action not in legal:
            print("Illegal selection. Try again.")
            return None
        payload: Dict[str, Any] = {"action": action}
        if len(parts) > 1:
            try:
                payload["amount"] = int(parts[1])
            except ValueError:
                print("Amount must be a whole number")
                return None
        return payload

    def _print_help(self, legal: List[str], stakes: Dict[str, int]) -> None:
        print("Type an action, optionally followed by a stake, e.g. 'raise 80'.")
        print("Shortcuts: " + ", ".join(f"{key}={value}" for key, value in _SHORTCUTS.items()))
        for action in legal:
            stake = stakes.get(action)
            print(f"  {action}" + (f" (stake {stake})" if stake is not None else ""))

    def _label(self, player_id: Optional[str]) -> str:
        if player_id is None:
            return "?"
        return self.names.get(player_id, player_id)

    def _remember_names(self, players: List[Dict[str, Any]]) -> None:
        for entry in players:
            player_id = entry.get("player_id") or entry.get("player")
            if player_id and entry.get("name"):
                self.names[player_id] = entry["name"]

    def _print_message(self, msg: Dict[str, Any]) -> None:
        msg_type = msg.get("type", "?")
        print(f"\n>>> {msg_type.upper()}")
        if msg_type == "welcome":
            self.player_id = msg.get("player_id")
            self._remember_names(msg.get("lobby", {}).get("players", []))
            print(f"Seat {msg['seat']} as {self.player_id}, config: {json.dumps(msg['config'])}")
        elif msg_type == "start_round":
            self._remember_names(msg.get("players", []))
            self.recent_events.clear()
            print(f"Round {msg['round']} ({msg['variant']}) pot={msg['pot']} boot={msg['boot']}")
        elif msg_type == "act":
            self._render_table(msg)
        elif msg_type == "event":
            summary = self._describe_event(msg)
            self.recent_events.append(summary)
            print(summary)
        elif msg_type == "end_round":
            print(f"Winners: {[self._label(pid) for pid in msg.get('winners', [])]}")
            for payout in msg.get("payouts", []):
                print(f"  {self._label(payout['player'])} +{payout['amount']}")
            print("Stacks: " + ", ".join(f"{self._label(e['player'])}={e['stack']}" for e in msg.get("stacks", [])))
        elif msg_type == "error":
            print(f"Error {msg.get('code')}: {msg.get('msg')}")
        elif msg_type == "match_end":
            print(f"Winner: {msg.get('winner')} | stacks: {msg.get('final_stacks')}")
        else:
            print(json.dumps(msg, indent=2))

    def _describe_event(self, msg: Dict[str, Any]) -> str:
        ev = msg.get("ev")
        who = self._label(msg.get("player"))
        if ev in {"BLIND", "CHAAL", "RAISE"}:
            text = f"{who} {ev.lower()} {msg.get('amount')} (pot {msg.get('pot')})"
        elif ev == "SIDESHOW":
            text = f"{who} sideshow vs {self._label(msg.get('target'))}: {self._label(msg.get('loser'))} packs"
        elif ev == "SHOWDOWN":
            text = f"{who} shows {' '.join(msg.get('hand', []))} ({msg.get('description')})"
        elif ev == "POT_AWARD":
            text = f"{who} wins {msg.get('amount')}"
        elif ev in {"PACK", "SHOW", "ELIMINATED"}:
            text = f"{who} {ev.lower()}"
        else:
            text = f"{ev}: " + json.dumps({k: v for k, v in msg.items() if k not in {"type", "v", "ev"}})
        if msg.get("message"):
            text += f"  \"{msg['message']}\""
        return text

    def _render_table(self, msg: Dict[str, Any]) -> None:
        you = msg.get("you", {})
        cards = " ".join(you.get("cards") or []) or "(blind)"
        hand = (you.get("hand") or {}).get("description", "")
        print(f"Pot={msg.get('pot')} current_bet={msg.get('current_bet')} round={msg.get('round')}")
        print(f"You: {cards} {hand} chips={you.get('chips')} {'blind' if you.get('is_blind') else 'seen'}")
        print("Table:")
        for entry in msg.get("players", []):
            marker = "*" if entry.get("is_turn") else " "
            dealer = "D" if entry.get("is_dealer") else " "
            print(
                f" {marker}{dealer} {entry['name']:<14} chips={entry['chips']:<6} bet={entry['current_bet']:<5} "
                f"{entry['status']}{' (blind)' if entry.get('is_blind') else ''}"
            )
        if self.recent_events:
            print("Recent: " + " | ".join(self.recent_events))
        print(f"Legal: {msg.get('legal')} stakes: {msg.get('stakes')}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play a practice table from the terminal")
    parser.add_argument("--name", default="Guest")
    parser.add_argument("--url", default="ws://127.0.0.1:9876")
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))
    client = ManualClient(args.name, args.url)
    try:
        asyncio.run(client.run())
    except KeyboardInterrupt:
        print("\nExiting")
    except websockets.ConnectionClosed:
        LOGGER.warning("Server closed the connection")


if __name__ == "__main__":
    main()
