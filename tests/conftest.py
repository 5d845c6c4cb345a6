import asyncio

import pytest

# Captured from the Classic Maps Terrorist Hunt server. The pilcrow separators
# are sent as single latin-1 bytes.
CLASSIC_MAPS_BEACON = (
    "rvnshld 6776 KEYWORD  ¶P1 6776 ¶E1 Streets ¶I1 Classic Maps | Terrorist Hunt "
    "¶F1 RGM_TerroristHuntCoopMode ¶A1 8 ¶G1 0 ¶H1 1 ¶B1 0 ¶Q1 5 ¶R1 900 ¶S1 45 "
    "¶W1 1 ¶X1 1 ¶Y1 0 ¶Z1 0 ¶A2 0 ¶D2 PATCH 1.60 (build 412) ¶B2 1 ¶E2 0 ¶F2 0 "
    "¶G2 7776 ¶H2 35 ¶I2 0 ¶J2 1 ¶K2 1 ¶L2 RavenShield ¶L3 0 "
    "¶K1 /Streets/Training/Island_Dawn/Import_Export/Prison "
    "¶J1 /RGM_TerroristHuntCoopMode/RGM_TerroristHuntCoopMode/RGM_TerroristHuntCoopMode"
    "/RGM_TerroristHuntCoopMode/RGM_TerroristHuntCoopMode///////////////////////////"
).encode('latin-1')


@pytest.fixture
def classic_maps_beacon() -> bytes:
    return CLASSIC_MAPS_BEACON


class BeaconEmulator(asyncio.DatagramProtocol):
    """Local beacon port answering REPORT with a canned response."""

    def __init__(self, response: bytes) -> None:
        self.response = response
        self.requests = []
        self.transport = None

    def connection_made(self, transport) -> None:
        self.transport = transport

    def datagram_received(self, data, addr) -> None:
        self.requests.append(data)
        if data == b'REPORT' and self.response is not None:
            self.transport.sendto(self.response, addr)


async def start_emulator(response):
    """Start an emulator on a free localhost port; returns (transport, protocol, port)."""
    loop = asyncio.get_running_loop()
    transport, protocol = await loop.create_datagram_endpoint(
        lambda: BeaconEmulator(response),
        local_addr=('127.0.0.1', 0),
    )
    port = transport.get_extra_info('sockname')[1]
    return transport, protocol, port
