import datetime
import logging
from functools import partial
from pathlib import PurePosixPath
from typing import Generator
from urllib.parse import parse_qs

import httpx
from pytest import Config, FixtureRequest, fixture

from etherpad_sync import (
    EtherpadGateway,
    Host,
    PadConfig,
    PadSync,
    StorageFailure,
    make_gateway,
)

logging.basicConfig(level=logging.WARNING)

API_KEY = "test-api-key"

NOW = datetime.datetime(2024, 3, 1, 12, 30, 5)
NOW_STR = "2024-03-01 12:30:05"

MARKERS = [
    "pad",
    "note_content",
    "unreachable",
]


def pytest_configure(config: Config) -> None:
    for marker in MARKERS:
        config.addinivalue_line("markers", marker)


@fixture(autouse=True)
def newline(request):
    """
    Print a newline and underline test name.
    """
    print("\n" + "-" * len(request.node.nodeid))


class MemoryHost(Host):
    """
    Host keeping notes in memory and recording user-facing side effects.
    """

    notes: dict[str, str]
    notices: list[str]
    opened_urls: list[str]
    fail_writes: bool
    reads: int

    def __init__(self):
        super().__init__()
        self.notes = {}
        self.notices = []
        self.opened_urls = []
        self.fail_writes = False
        self.reads = 0

    async def read(self, note: str) -> str:
        self.reads += 1
        if note not in self.notes:
            raise StorageFailure(note, "No such note")
        return self.notes[note]

    async def write(self, note: str, text: str):
        if self.fail_writes:
            raise StorageFailure(note, "Permission denied")
        if note not in self.notes:
            raise StorageFailure(note, "No such note")
        self.notes[note] = text

    def note_name(self, note: str) -> str:
        return PurePosixPath(note).stem

    def open_external(self, url: str):
        self.opened_urls.append(url)

    def notify(self, message: str):
        self.notices.append(message)


class FakeEtherpad:
    """
    Minimal in-memory implementation of the Etherpad HTTP API.
    """

    pads: dict[str, str]
    """
    Mapping of pad id to HTML content.
    """

    calls: list[tuple[str, dict[str, str]]]
    """
    Function name and form parameters of each call received.
    """

    def __init__(self, apikey: str = API_KEY):
        self.apikey = apikey
        self.pads = {}
        self.calls = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        function = request.url.path.rsplit("/", maxsplit=1)[-1]
        params = {
            k: v[0]
            for k, v in parse_qs(
                request.content.decode(), keep_blank_values=True
            ).items()
        }
        self.calls.append((function, params))

        if params.get("apikey") != self.apikey:
            return self._respond(4, "no or wrong API Key")

        pad_id = params.get("padID", "")

        match function:
            case "checkToken":
                return self._respond(0, "ok")
            case "createPad":
                if pad_id in self.pads:
                    return self._respond(1, "padID does already exist")
                self.pads[pad_id] = f"<p>{params.get('text', '')}</p>"
                return self._respond(0, "ok")
            case "getHTML":
                if pad_id not in self.pads:
                    return self._respond(1, "padID does not exist")
                html = f"<!DOCTYPE HTML><html><body>{self.pads[pad_id]}</body></html>"
                return self._respond(0, "ok", {"html": html})
            case _:
                return self._respond(3, "no such function")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def _respond(
        self, code: int, message: str, data: dict | None = None
    ) -> httpx.Response:
        return httpx.Response(
            200, json={"code": code, "message": message, "data": data}
        )


def unreachable_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


@fixture
def pulled_at() -> str:
    """
    Timestamp recorded by pulls in tests using the `sync` fixture.
    """
    return NOW_STR


@fixture
def config() -> PadConfig:
    return PadConfig(host="pads.example.com", port=9001, apikey=API_KEY)


@fixture
def etherpad(request: FixtureRequest) -> FakeEtherpad:
    """
    Fake Etherpad server, pre-populated with pads given by markers like:

    @mark.pad("My note", "<p>Hello</p>")
    """
    etherpad = FakeEtherpad()

    for marker in request.node.iter_markers("pad"):
        pad_id, html = marker.args
        etherpad.pads[pad_id] = html

    return etherpad


@fixture
def transport(
    request: FixtureRequest, etherpad: FakeEtherpad
) -> httpx.MockTransport:
    """
    Transport routed to fake Etherpad server, or failing to connect if
    marked with `@mark.unreachable`.
    """
    if request.node.get_closest_marker("unreachable"):
        return httpx.MockTransport(unreachable_handler)
    return etherpad.transport


@fixture
def gateway(config: PadConfig, transport: httpx.MockTransport) -> EtherpadGateway:
    return make_gateway(config, transport=transport)


@fixture
def host(request: FixtureRequest) -> MemoryHost:
    """
    In-memory host with a single note "notes/My note.md", content given by
    marker like:

    @mark.note_content("---\\netherpad_id: My note\\n---\\nBody\\n")
    """
    marker = request.node.get_closest_marker("note_content")

    host = MemoryHost()
    host.notes["notes/My note.md"] = marker.args[0] if marker else "Body\n"

    return host


@fixture
def sync(
    host: MemoryHost, config: PadConfig, transport: httpx.MockTransport
) -> Generator[PadSync, None, None]:
    yield PadSync(
        host,
        lambda: config,
        gateway_factory=partial(make_gateway, transport=transport),
        clock=lambda: NOW,
    )
