"""Pytest configuration and fixtures for pokeguess tests."""

import asyncio
import random
import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from pokeguess.errors import UpstreamError  # noqa: E402
from pokeguess.models import PokemonRecord, SpriteImage  # noqa: E402
from pokeguess.presenter import Presenter, SelectionEvent, TriggerContext  # noqa: E402

PLAYER_ID = "player-1"


def make_record(record_id: int) -> PokemonRecord:
    return PokemonRecord(
        id=record_id,
        name=f"mon-{record_id}",
        names=[{"name": f"monstre-{record_id}", "language": "fr"}],
    )


class FakeSource:
    """Deterministic stand-in for RecordSource."""

    def __init__(self, fail_ids=None, fail_sprites=False, duplicate_of=None, duplicates=0):
        if fail_ids is None:
            fail_ids = set()
        self.should_fail = fail_ids if callable(fail_ids) else fail_ids.__contains__
        self.fail_sprites = fail_sprites
        self.duplicate_of = duplicate_of  # Answer this id instead of the requested one
        self.duplicates = duplicates  # ...for this many calls (-1: forever)
        self.record_calls: list[int] = []
        self.sprite_calls: list[tuple[int, bool]] = []

    async def fetch_record(self, record_id: int) -> PokemonRecord:
        self.record_calls.append(record_id)
        await asyncio.sleep(0)
        if self.should_fail(record_id):
            raise UpstreamError("Not Found", status_code=404)
        if self.duplicate_of is not None and record_id != self.duplicate_of and self.duplicates != 0:
            self.duplicates -= 1
            return make_record(self.duplicate_of)
        return make_record(record_id)

    async def fetch_sprite(self, record_id: int, revealed: bool) -> SpriteImage:
        self.sprite_calls.append((record_id, revealed))
        if self.fail_sprites and revealed:
            raise UpstreamError("Internal Server Error", status_code=500)
        kind = "revealed" if revealed else "hidden"
        return SpriteImage(data=f"{kind}-{record_id}".encode())


class ScriptedSelection(SelectionEvent):
    def __init__(self, user_id: str, option_id):
        self.user_id = user_id
        self.option_id = str(option_id)
        self.responses: list[tuple[str, bool]] = []

    async def respond(self, text: str, private: bool = False) -> None:
        self.responses.append((text, private))


class ScriptedPresenter(Presenter):
    """Emits a fixed list of selections, then ends or waits forever."""

    def __init__(self, script=None, hang=False):
        self.events = [ScriptedSelection(user, option) for user, option in (script or [])]
        self.hang = hang
        self.published = []
        self.updates = []
        self.yielded = 0
        self.closed = False

    async def publish(self, content):
        self.published.append(content)
        return "message-1"

    async def selections(self, message, timeout):
        try:
            for event in self.events:
                self.yielded += 1
                yield event
            if self.hang:
                await asyncio.Event().wait()
        finally:
            self.closed = True

    async def update(self, message, content):
        self.updates.append(content)


@pytest.fixture
def fake_source():
    return FakeSource()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def make_trigger():
    def _make(presenter, player_id=PLAYER_ID):
        return TriggerContext(player_id=player_id, surface=presenter, channel_id="channel-9")

    return _make
