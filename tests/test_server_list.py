import asyncio
import socket
from pathlib import Path

import aiohttp
import pytest
from aiohttp import web

from openrvs_beacon.servers.server_list import (
    ServerAddress,
    fetch_server_list,
    parse_registry_csv,
    parse_server_list,
    read_server_list,
)

REGISTRY_CSV = (
    "name,ip,port,mode\n"
    "Classic Maps | Terrorist Hunt,64.225.54.237,6776,coop\n"
    "PVP Server,64.225.54.237,6777,adver\n"
    "Broken Port,10.0.0.1,none,coop\n"
)


def _get_free_tcp_port() -> int:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


def test_beacon_port_is_offset_from_game_port() -> None:
    assert ServerAddress('64.225.54.237', 6776).beacon_port == 7776


def test_parse_server_list_skips_blank_and_comment_lines() -> None:
    text = "# RVSGaming.org\n64.225.54.237 6776\n\n  162.248.92.181   7778  \n"
    assert parse_server_list(text) == [
        ServerAddress('64.225.54.237', 6776),
        ServerAddress('162.248.92.181', 7778),
    ]


@pytest.mark.parametrize("text", ["64.225.54.237\n", "64.225.54.237 port\n"])
def test_parse_server_list_rejects_bad_lines(text: str) -> None:
    with pytest.raises(ValueError, match="line 1"):
        parse_server_list(text)


def test_read_server_list(tmp_path: Path) -> None:
    path = tmp_path / "servers.txt"
    path.write_text("64.225.54.237 6776\n64.225.54.237 6777\n", encoding="utf-8")

    servers = read_server_list(path)

    assert [s.beacon_port for s in servers] == [7776, 7777]


def test_read_missing_server_list(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        read_server_list(tmp_path / "missing.txt")


def test_parse_registry_csv_skips_header_and_bad_rows() -> None:
    assert parse_registry_csv(REGISTRY_CSV) == [
        ServerAddress('64.225.54.237', 6776),
        ServerAddress('64.225.54.237', 6777),
    ]


def test_parse_registry_csv_empty() -> None:
    assert parse_registry_csv("name,ip,port\n") == []


async def _serve(handler):
    app = web.Application()
    app.router.add_get('/servers', handler)
    runner = web.AppRunner(app)
    await runner.setup()
    port = _get_free_tcp_port()
    site = web.TCPSite(runner, '127.0.0.1', port)
    await site.start()
    return runner, f'http://127.0.0.1:{port}/servers'


def test_fetch_server_list() -> None:
    async def handle(request: web.Request) -> web.Response:
        return web.Response(text=REGISTRY_CSV)

    async def scenario():
        runner, url = await _serve(handle)
        try:
            return await fetch_server_list(url, timeout=2)
        finally:
            await runner.cleanup()

    servers = asyncio.run(scenario())

    assert servers == [
        ServerAddress('64.225.54.237', 6776),
        ServerAddress('64.225.54.237', 6777),
    ]


def test_fetch_server_list_error_status() -> None:
    async def handle(request: web.Request) -> web.Response:
        return web.Response(status=503, text="unavailable")

    async def scenario():
        runner, url = await _serve(handle)
        try:
            return await fetch_server_list(url, timeout=2)
        finally:
            await runner.cleanup()

    with pytest.raises(aiohttp.ClientResponseError):
        asyncio.run(scenario())
