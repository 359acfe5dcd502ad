"""Shared test fixtures."""

import json
import time
from typing import Optional

import pytest

from feedboard.companion.store import CompanionStore
from feedboard.config import DashboardConfig
from feedboard.core.specs import GridPosition, WidgetSpec
from feedboard.render.panel import Panel


def make_spec(kind="clock", row=0, col=0, title=None, interval=None, **options):
    return WidgetSpec(
        kind=kind,
        title=title or f"{kind} {row},{col}",
        position=GridPosition(row, col),
        options=options,
        refresh_interval=interval,
    )


class FakeScreen:
    """Scripted stand-in for the terminal session."""

    def __init__(self, keys=(), size=(80, 24)):
        self.keys = list(keys)
        self.width, self.height = size
        self.frames: list[Panel] = []
        self.invalidated = 0

    def size(self):
        return self.width, self.height

    def read_key(self, timeout: float) -> Optional[str]:
        """Next scripted key; None entries wait out the timeout. Quits when the script ends."""
        if not self.keys:
            return "q"
        key = self.keys.pop(0)
        if key is None:
            time.sleep(timeout)
        return key

    def draw(self, frame: Panel) -> None:
        self.frames.append(frame)

    def invalidate(self) -> None:
        self.invalidated += 1

    @property
    def last_text(self) -> str:
        return self.frames[-1].render_plain() if self.frames else ""


@pytest.fixture
def spec_factory():
    return make_spec


@pytest.fixture
def companion_path(tmp_path):
    return tmp_path / "companion.json"


@pytest.fixture
def store(companion_path):
    return CompanionStore(companion_path, flush_interval=60)


@pytest.fixture
def config(companion_path):
    """Config with a clock and a companion, saving into tmp_path."""
    return DashboardConfig.from_dict(
        {
            "input_timeout": 0.01,
            "companion": {"path": str(companion_path)},
            "widgets": [
                {"type": "clock", "title": "Clock", "position": {"row": 0, "col": 0}},
                {"type": "creature", "title": "Pet", "position": {"row": 0, "col": 1}},
            ],
        }
    )


@pytest.fixture
def saved_companion(companion_path):
    """Write a level-3 companion save with a legacy cached outfit list."""
    data = {
        "species": "cat",
        "name": "Mochi",
        "level": 3,
        "xp": 40,
        "skill_points": 2,
        "unlocked_skills": ["quick_study"],
        "last_interaction": 1_700_000_000.0,
        "outfits": ["plain", "top hat", "crown"],
    }
    companion_path.write_text(json.dumps(data))
    return data


@pytest.fixture
def hn_top_ids():
    return [101, 102, 103]


@pytest.fixture
def hn_items():
    return {
        101: {"id": 101, "title": "Show HN: A terminal dashboard", "url": "https://example.com/a",
              "score": 120, "by": "alice", "descendants": 14},
        102: {"id": 102, "deleted": True},
        103: {"id": 103, "title": "Ask HN: Favourite fonts?", "score": 33, "by": "bob", "descendants": 51},
    }


@pytest.fixture
def yahoo_chart():
    def build(price, previous):
        return {"chart": {"result": [{"meta": {"regularMarketPrice": price, "chartPreviousClose": previous,
                                                "currency": "USD"}}], "error": None}}
    return build


RSS_DOC = b"""<?xml version="1.0"?>
<rss version="2.0"><channel><title>Example News</title>
<item><title>Older story</title><link>https://example.com/1</link>
<pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate></item>
<item><title>Newer story</title><link>https://example.com/2</link>
<pubDate>Tue, 02 Jan 2024 10:00:00 GMT</pubDate></item>
</channel></rss>"""

ATOM_DOC = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom"><title>Dev Blog</title>
<entry><title>Atom entry</title><link href="https://blog.example.com/x"/>
<updated>2024-01-01T12:00:00Z</updated></entry>
</feed>"""

RDF_DOC = b"""<?xml version="1.0"?>
<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#" xmlns="http://purl.org/rss/1.0/"
  xmlns:dc="http://purl.org/dc/elements/1.1/">
<channel rdf:about="https://weekly.example.org/"><title>RDF Weekly</title>
<link>https://weekly.example.org/</link></channel>
<item rdf:about="https://weekly.example.org/r1"><title>RDF item</title>
<link>https://weekly.example.org/r1</link><dc:date>2024-01-03T09:00:00Z</dc:date></item>
</rdf:RDF>"""


@pytest.fixture
def rss_doc():
    return RSS_DOC


@pytest.fixture
def atom_doc():
    return ATOM_DOC


@pytest.fixture
def rdf_doc():
    return RDF_DOC
