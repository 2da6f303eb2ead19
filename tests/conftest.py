"""Shared fixtures: synthetic home pages and a scripted ondemand fetcher."""

import asyncio
from typing import List, Optional, Sequence

import pytest

from client_transaction.config import TransactionSettings
from client_transaction.document import HomePageDocument

KEY = "AAECAwQFBgcICQoLDA0ODw=="
FRAME_ROW = [10, 20, 30, 40, 50, 60, 128, 5, 6, 7, 8]
# Nine character preamble, then curve segments separated by "C"
PATH_DATA = "M 10,30 C" + " ".join(str(value) for value in FRAME_ROW) + " C 1 2 3"
ONDEMAND_VERSION = "abc123"
ONDEMAND_URL = f"https://abs.twimg.com/responsive-web/client-web/ondemand.s.{ONDEMAND_VERSION}a.js"
# Offsets 0, 1, 2: row offset 0 and key byte offsets [1, 2]
ONDEMAND_SCRIPT = "var n=(e[0], 16),r=(e[1],16);return (t[2], 16)"


def build_markup(
    key: Optional[str] = KEY,
    path_data: Sequence[str] = (PATH_DATA,) * 4,
    version: Optional[str] = ONDEMAND_VERSION,
) -> str:
    head = []
    if key is not None:
        head.append(f'<meta name="twitter-site-verification" content="{key}"/>')
    if version is not None:
        head.append(f'<script>window.__SCRIPTS__={{"ondemand.s":"{version}","main":"f00"}}</script>')

    frames = []
    for index, d in enumerate(path_data):
        frames.append(
            f'<svg id="loading-x-anim-{index}"><g>'
            f'<path d="M0 0"></path><path d="{d}"></path>'
            f'</g></svg>'
        )
    return f"<html><head>{''.join(head)}</head><body>{''.join(frames)}</body></html>"


class FakeFetcher:
    """Async fetch stand-in that records calls."""

    def __init__(self, text: str = ONDEMAND_SCRIPT, delay: float = 0.0, errors: Optional[List[Exception]] = None):
        self.text = text
        self.delay = delay
        self.errors = list(errors or [])
        self.calls: List[str] = []
        self.cancelled = False
        self.closed = False

    async def __call__(self, url: str) -> str:
        self.calls.append(url)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.errors:
            raise self.errors.pop(0)
        return self.text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True


@pytest.fixture
def markup():
    return build_markup()


@pytest.fixture
def document(markup):
    return HomePageDocument(markup)


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def settings():
    return TransactionSettings()


@pytest.fixture
def fixed_random_byte():
    return lambda: 0x42
