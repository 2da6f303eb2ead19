import asyncio
import logging
from functools import partial

import httpx
import pytest

from conftest import FakeFetcher, build_markup
from client_transaction import cli
from client_transaction.errors import HomePageUnavailable
from client_transaction.fetch import load_home_page
from client_transaction.resilience import initialize_with_retry
from client_transaction.signature import decode_transaction_id


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def home_page(tmp_path):
    page = tmp_path / "home.html"
    page.write_text(build_markup(), encoding="utf-8")
    return page


def test_cli_prints_transaction_ids(home_page, monkeypatch, capsys):
    fetcher = FakeFetcher()
    monkeypatch.setattr(cli, "build_fetcher", lambda settings: fetcher)

    exit_code = cli.main([
        "get", "/i/api/1.1/jot/client_event.json",
        "--html", str(home_page), "--time", "1000", "--count", "2", "--log-level", "WARNING",
    ])

    assert exit_code == 0
    lines = capsys.readouterr().out.split()
    assert len(lines) == 2
    for line in lines:
        _, payload = decode_transaction_id(line)
        assert payload[:16] == bytes(range(16))
    assert fetcher.closed


def test_cli_fetches_home_page_when_no_file(monkeypatch, capsys):
    fetcher = FakeFetcher()
    pages = {"https://x.com": build_markup()}

    async def fetch(url):
        if url in pages:
            return pages[url]
        return await fetcher(url)

    class Backend:
        async def __aenter__(self):
            return fetch

        async def __aexit__(self, *exc_info):
            return None

    monkeypatch.setattr(cli, "build_fetcher", lambda settings: Backend())
    assert cli.main(["POST", "/i/api/graphql/x/CreateTweet", "--log-level", "WARNING"]) == 0
    assert len(capsys.readouterr().out.split()) == 1
    assert len(fetcher.calls) == 1


def test_cli_reports_failure(tmp_path, monkeypatch, capsys):
    page = tmp_path / "home.html"
    page.write_text(build_markup(key=None), encoding="utf-8")
    monkeypatch.setattr(cli, "build_fetcher", lambda settings: FakeFetcher())

    exit_code = cli.main(["GET", "/p", "--html", str(page), "--log-level", "CRITICAL"])

    assert exit_code == 1
    assert capsys.readouterr().out == ""


def test_load_settings_applies_flags(tmp_path):
    config_file = tmp_path / "settings.yaml"
    config_file.write_text("fetch_timeout: 4\n", encoding="utf-8")
    args = cli.build_parser().parse_args([
        "GET", "/p", "--config", str(config_file), "--backend", "curl_cffi", "--json-logs",
    ])
    settings = cli.load_settings(args)
    assert settings.fetch_timeout == 4.0
    assert settings.fetch_backend == "curl_cffi"
    assert settings.json_logging is True


def test_cli_retries_initialization(home_page, monkeypatch, capsys):
    fetcher = FakeFetcher(errors=[ConnectionError("reset")])
    monkeypatch.setattr(cli, "build_fetcher", lambda settings: fetcher)
    monkeypatch.setattr(cli, "initialize_with_retry", partial(initialize_with_retry, min_wait=0, max_wait=0))

    exit_code = cli.main(["GET", "/p", "--html", str(home_page), "--retries", "2", "--log-level", "CRITICAL"])

    assert exit_code == 0
    assert len(capsys.readouterr().out.split()) == 1
    assert len(fetcher.calls) == 2


def test_cli_missing_html_file(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(cli, "build_fetcher", lambda settings: FakeFetcher())
    exit_code = cli.main(["GET", "/p", "--html", str(tmp_path / "nope.html"), "--log-level", "CRITICAL"])
    assert exit_code == 1
    assert capsys.readouterr().out == ""


def test_cli_home_page_network_error(monkeypatch, capsys):
    fetcher = FakeFetcher(errors=[httpx.ConnectError("no route")])
    monkeypatch.setattr(cli, "build_fetcher", lambda settings: fetcher)

    assert cli.main(["GET", "/x", "--log-level", "CRITICAL"]) == 1
    assert capsys.readouterr().out == ""
    assert fetcher.closed


def test_load_home_page_wraps_http_status_error():
    def handler(request):
        return httpx.Response(503, text="busy")

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            async def fetch(url):
                response = await client.get(url)
                response.raise_for_status()
                return response.text

            return await load_home_page(fetch, "https://x.com")

    with pytest.raises(HomePageUnavailable) as excinfo:
        asyncio.run(scenario())
    assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)


def test_cli_invalid_env_setting(monkeypatch, capsys):
    monkeypatch.setenv("CLIENT_TX_FETCH_TIMEOUT", "-1")
    monkeypatch.setattr(cli, "build_fetcher", lambda settings: FakeFetcher())
    assert cli.main(["GET", "/x", "--log-level", "CRITICAL"]) == 1
    assert capsys.readouterr().out == ""


@pytest.mark.parametrize("content", ["cdn_host: [unclosed\n", "- just\n- a list\n"])
def test_cli_invalid_config_file(tmp_path, content, capsys):
    config_file = tmp_path / "settings.yaml"
    config_file.write_text(content, encoding="utf-8")
    assert cli.main(["GET", "/x", "--config", str(config_file), "--log-level", "CRITICAL"]) == 1
    assert capsys.readouterr().out == ""


def test_cli_missing_config_file(tmp_path):
    assert cli.main(["GET", "/x", "--config", str(tmp_path / "none.yaml"), "--log-level", "CRITICAL"]) == 1
