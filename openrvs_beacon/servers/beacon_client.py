"""
OpenRVS Beacon Client

Requests server reports from Raven Shield game servers.

Protocol: UDP
Port: game server port + 1000 (default 7776)

Communication Flow:
1. Client sends the literal REPORT command
2. Server responds with a single beacon datagram
3. Client validates and decodes the beacon

Note that the port in question is the beacon port and not the game server
port. Each datagram is decoded on its own; oversized beacons truncated by the
network are not reassembled.
"""

import asyncio
import logging
import socket
from typing import List, NamedTuple, Optional

from openrvs_beacon.config import config
from openrvs_beacon.protocol.beacon_proto import (
    REPORT_COMMAND,
    parse_server_report,
    validate_beacon,
)
from openrvs_beacon.protocol.report import ServerReport
from openrvs_beacon.servers.server_list import ServerAddress

logger = logging.getLogger(__name__)


class QueryResult(NamedTuple):
    """Outcome of querying one server"""
    server: ServerAddress
    report: Optional[ServerReport] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BeaconClientProtocol(asyncio.DatagramProtocol):
    """UDP Protocol handler for a single REPORT request"""

    def __init__(self, response: asyncio.Future, command: bytes = REPORT_COMMAND):
        self.response = response
        self.command = command
        self.transport = None
        super().__init__()

    def connection_made(self, transport):
        self.transport = transport
        transport.sendto(self.command)

    def datagram_received(self, data, addr):
        """Keep the first datagram, ignore any after it."""
        if not self.response.done():
            self.response.set_result(data)

    def error_received(self, exc):
        if not self.response.done():
            self.response.set_exception(exc)

    def connection_lost(self, exc):
        if not self.response.done():
            self.response.set_exception(
                exc or ConnectionError('beacon connection closed before a response')
            )


async def get_server_report(ip: str, port: int, timeout: float = None) -> bytes:
    """
    Retrieve the raw report bytes from a server's beacon port.

    Args:
        ip: Server IPv4 address
        port: Beacon port (usually game port + 1000)
        timeout: Seconds to wait for the response (defaults to config)

    Returns:
        Beacon bytes with any NUL padding removed

    Raises:
        asyncio.TimeoutError: no response within the timeout
        OSError: the request could not be sent
        NotABeaconError: the response is not a beacon
    """
    if timeout is None:
        timeout = config.BEACON_TIMEOUT

    loop = asyncio.get_running_loop()
    response = loop.create_future()

    transport, _ = await loop.create_datagram_endpoint(
        lambda: BeaconClientProtocol(response),
        remote_addr=(ip, port),
        family=socket.AF_INET,
    )

    try:
        data = await asyncio.wait_for(response, timeout)
    finally:
        transport.close()

    logger.debug(f"[CLIENT] Received {len(data)} bytes from {ip}:{port}")

    # Remove empty bytes from the end of the buffer.
    data = data.rstrip(b'\x00')
    validate_beacon(data)

    return data


async def query_server(ip: str, port: int, timeout: float = None) -> ServerReport:
    """Request and decode one server's report"""
    data = await get_server_report(ip, port, timeout)
    return parse_server_report(ip, data)


async def _query_one(server: ServerAddress, timeout: float) -> QueryResult:
    try:
        report = await query_server(server.ip, server.beacon_port, timeout)
    except asyncio.TimeoutError as e:
        logger.error(f"[CLIENT] Timed out waiting for {server.ip}:{server.beacon_port}")
        return QueryResult(server, error=e)
    except Exception as e:
        logger.error(f"[CLIENT] Failed to query {server.ip}:{server.beacon_port}: {e}")
        return QueryResult(server, error=e)

    return QueryResult(server, report=report)


async def query_servers(servers: List[ServerAddress], timeout: float = None) -> List[QueryResult]:
    """
    Query many servers concurrently.

    Each server gets its own task and nothing is shared between them, so
    one server failing never affects the others.

    Args:
        servers: Servers to query
        timeout: Per-server timeout in seconds (defaults to config)

    Returns:
        One QueryResult per server, in input order
    """
    if timeout is None:
        timeout = config.BEACON_TIMEOUT

    logger.info(f"[CLIENT] Querying {len(servers)} server(s)")
    return list(await asyncio.gather(*(_query_one(s, timeout) for s in servers)))
