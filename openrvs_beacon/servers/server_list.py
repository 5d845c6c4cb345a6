"""
Server list loading

Server lists name game servers by IP and GAME port. The beacon port to
query is derived from the game port.

Two sources are supported:
- A local text file with one "<ip> <port>" pair per line
- The OpenRVS registry, which serves CSV over HTTP
"""

import logging
from pathlib import Path
from typing import List, NamedTuple

import aiohttp
from aiohttp import ClientSession

from openrvs_beacon.config import config

logger = logging.getLogger(__name__)


class ServerAddress(NamedTuple):
    """An endpoint to check"""
    ip: str
    port: int  # This is the GAME SERVER port.

    @property
    def beacon_port(self) -> int:
        return self.port + config.BEACON_PORT_OFFSET


def parse_server_list(text: str) -> List[ServerAddress]:
    """
    Parse "<ip> <port>" lines.

    Blank lines and lines starting with '#' are skipped.

    Raises:
        ValueError: a line is missing its port or the port is not a number
    """
    servers = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue

        fields = line.split()
        if len(fields) < 2:
            raise ValueError(f"line {lineno}: expected '<ip> <port>', got {line!r}")
        try:
            port = int(fields[1])
        except ValueError:
            raise ValueError(f"line {lineno}: invalid port {fields[1]!r}") from None

        servers.append(ServerAddress(ip=fields[0], port=port))

    return servers


def read_server_list(path) -> List[ServerAddress]:
    """Read a server list file"""
    text = Path(path).read_text(encoding='utf-8')
    servers = parse_server_list(text)
    logger.info(f"[SERVERLIST] Loaded {len(servers)} server(s) from {path}")
    return servers


def parse_registry_csv(text: str) -> List[ServerAddress]:
    """
    Parse the registry CSV.

    Format (first row is a header):
        name,ip,port,...

    Rows with a bad port are logged and skipped.
    """
    servers = []
    lines = text.rstrip('\n').split('\n')
    for line in lines[1:]:
        fields = line.split(',')
        if len(fields) < 3:
            logger.warning(f"[SERVERLIST] Skipping short row: {line!r}")
            continue

        try:
            port = int(fields[2])
        except ValueError:
            logger.warning(f"[SERVERLIST] Skipping row with invalid port: {fields[2]!r}")
            continue

        servers.append(ServerAddress(ip=fields[1], port=port))

    return servers


async def fetch_server_list(url: str = None, timeout: float = None) -> List[ServerAddress]:
    """
    Fetch the server list from the OpenRVS registry

    Args:
        url: Registry URL (defaults to config)
        timeout: Request timeout in seconds (defaults to config)

    Raises:
        aiohttp.ClientError: request failed or returned an error status
    """
    url = url or config.SERVER_LIST_URL
    timeout = aiohttp.ClientTimeout(total=timeout or config.HTTP_TIMEOUT)

    async with ClientSession(timeout=timeout) as session:
        async with session.get(url) as resp:
            resp.raise_for_status()
            text = await resp.text()

    servers = parse_registry_csv(text)
    logger.info(f"[SERVERLIST] Fetched {len(servers)} server(s) from {url}")
    return servers
