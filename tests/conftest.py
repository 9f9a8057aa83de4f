from pathlib import Path

import pytest

from movestats.buttons import Buttons
from movestats.event import ButtonChanged, MatchEnd, StreamEnd, Tick
from movestats.parse import ParseError
from movestats.stats.move_computer import MoveComputer

W = int(Buttons.FORWARD)
S = int(Buttons.BACK)
A = int(Buttons.MOVELEFT)
D = int(Buttons.MOVERIGHT)
JUMP = int(Buttons.JUMP)

PLAYER = 76561198000000001
OTHER = 76561198000000002


def press(computer: MoveComputer, tick: int, buttons: int, player_id: int = PLAYER, name: str = "tester"):
    computer.dispatch(ButtonChanged(tick, player_id, buttons, name))


def sample(computer: MoveComputer, tick: int, yaw: float, grounded: bool = False, player_id: int = PLAYER):
    computer.dispatch(Tick(tick, player_id, grounded, yaw))


def match_events() -> list:
    """A short match: one W/S overlap of 5 ticks, a clean A->D switch, a few airborne ticks."""
    return [
        ButtonChanged(10, PLAYER, W, "tester"),
        Tick(10, PLAYER, True, 0.0),
        ButtonChanged(20, PLAYER, W | S, "tester"),
        ButtonChanged(25, PLAYER, S, "tester"),
        ButtonChanged(30, PLAYER, A, "tester"),
        Tick(30, PLAYER, False, 10.0),
        ButtonChanged(40, PLAYER, D, "tester"),
        Tick(40, PLAYER, False, 5.0),
        ButtonChanged(50, PLAYER, 0, "tester"),
        MatchEnd(60),
        StreamEnd(64),
    ]


class FakeDecoder:
    """Stands in for the demoparser2 adapter: replays the same events for every demo, raises for demos in `fail`."""

    def __init__(self, events=None, fail=()):
        self.events = events if events is not None else match_events()
        self.fail = set(fail)
        self.calls = []

    def __call__(self, source, handler):
        self.calls.append(Path(source))
        if Path(source).name in self.fail:
            raise ParseError("corrupt demo", filename=str(source))
        for event in self.events:
            handler(event)


@pytest.fixture
def computer():
    return MoveComputer()


@pytest.fixture
def demo_dir(tmp_path):
    """10 demos spread over nested directories, plus files that should be skipped."""
    root = tmp_path / "demos"
    (root / "nested" / "deeper").mkdir(parents=True)
    for i in range(10):
        parent = root if i < 4 else root / "nested" if i < 8 else root / "nested" / "deeper"
        (parent / f"demo_{i}.dem").write_bytes(b"PBDEMS2\x00")
    (root / "notes.txt").write_text("not a demo")
    (root / "nested" / "demo_0.dem.bak").write_bytes(b"")
    return root
