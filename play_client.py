"""
Play Client
===========
Terminal client for a running server. Creates or joins a room over HTTP,
then plays over the room socket.

Usage:
    python play_client.py create Ada [single|multi]
    python play_client.py join ABC123 Grace

Commands while connected:
    p <text>    send a prompt (drawer)
    g <text>    send a guess
    w <word>    set the word (drawer)
    r [cat]     random word (drawer)
    q           quit
"""

import asyncio
import json
import sys

import httpx
import websockets

BASE_URL = "http://localhost:8000"
WS_URL = "ws://localhost:8000"


def open_ticket(argv: list[str]) -> dict:
    action = argv[1]
    with httpx.Client(base_url=BASE_URL, timeout=10.0) as client:
        if action == "create":
            mode = argv[3] if len(argv) > 3 else "multi"
            resp = client.post("/api/rooms", json={"playerName": argv[2], "mode": mode})
        elif action == "join":
            resp = client.post(f"/api/rooms/{argv[2]}/join", json={"playerName": argv[3]})
        else:
            raise SystemExit(f"Unknown action: {action}")
        resp.raise_for_status()
        return resp.json()


def show(raw: str) -> None:
    msg = json.loads(raw)
    kind = msg.get("type")
    if kind == "gameState":
        role = "drawer" if msg["isDrawer"] else "guesser"
        print(f"\n[round {msg['currentRound']}/{msg['maxRounds']}] {msg['status']} as {role}, "
              f"{msg['attemptsRemaining']} attempts left")
        if msg.get("word"):
            print(f"  word: {msg['word']}")
        if msg.get("generating"):
            print("  generating image...")
        if msg.get("currentImage"):
            print(f"  image: {msg['currentImage']}")
        if msg.get("error"):
            print(f"  error: {msg['error']}")
        print("  scores: " + ", ".join(f"{p['name']}={p['score']}" for p in msg["players"]))
    elif kind == "error":
        print(f"\n! {msg['code']}: {msg['error']}")
    else:
        print(f"\n* {msg.get('message')}")


def to_frame(line: str) -> dict | None:
    cmd, _, rest = line.strip().partition(" ")
    if cmd == "p":
        return {"type": "prompt", "prompt": rest}
    if cmd == "g":
        return {"type": "guess", "guess": rest}
    if cmd == "w":
        return {"type": "setWord", "word": rest}
    if cmd == "r":
        return {"type": "generateWord", "category": rest or None}
    return None


async def play(code: str, player_id: int) -> None:
    uri = f"{WS_URL}/ws/room/{code}?playerId={player_id}"
    print(f"Connecting to {uri}")

    async with websockets.connect(uri) as ws:
        async def receive():
            async for raw in ws:
                show(raw)

        listener = asyncio.create_task(receive())
        try:
            while True:
                line = await asyncio.to_thread(input, "> ")
                if line.strip() == "q":
                    break
                frame = to_frame(line)
                if frame is None:
                    print(__doc__)
                    continue
                await ws.send(json.dumps(frame))
        finally:
            listener.cancel()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)

    ticket = open_ticket(sys.argv)
    print(f"Room {ticket['code']}, you are player {ticket['playerId']}")
    asyncio.run(play(ticket["code"], ticket["playerId"]))
