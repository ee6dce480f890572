"""UDP transport for RTP voice packets."""

from __future__ import annotations

import asyncio
import struct

from aelira.voice.crypto import VoiceCrypto

DISCOVERY_SIZE = 74
_DISCOVERY_REQUEST = 1
_DISCOVERY_LENGTH = 70
_RTP_VERSION = 0x80
_RTP_PAYLOAD_TYPE = 0x78
_SAMPLES_PER_FRAME = 960


def build_discovery_packet(ssrc: int) -> bytes:
    """Build the 74-byte IP discovery request for ``ssrc``."""
    head = struct.pack(">HHI", _DISCOVERY_REQUEST, _DISCOVERY_LENGTH, ssrc)
    return head + bytes(DISCOVERY_SIZE - len(head))


def parse_discovery_response(data: bytes) -> tuple[str, int]:
    """Extract the external (ip, port) from an IP discovery response."""
    data = bytes(data[:DISCOVERY_SIZE])
    if len(data) < 10:
        raise ValueError(f"discovery response too short: {len(data)} bytes")
    ip = data[8:-2].decode("utf-8").strip("\0")
    port = struct.unpack(">H", data[-2:])[0]
    return ip, port


class _UdpProtocol(asyncio.DatagramProtocol):
    def __init__(self) -> None:
        self.received: asyncio.Queue[bytes | Exception] = asyncio.Queue()

    def datagram_received(self, data: bytes, addr: tuple) -> None:
        self.received.put_nowait(data)

    def error_received(self, exc: Exception) -> None:
        self.received.put_nowait(exc)


class VoiceUdp:
    """A UDP socket bound to a voice server, with RTP counters."""

    def __init__(
        self,
        transport: asyncio.DatagramTransport,
        protocol: _UdpProtocol,
        destination: tuple[str, int],
        ssrc: int,
        sequence: int = 0,
        timestamp: int = 0,
        nonce: int = 0,
    ) -> None:
        self._transport = transport
        self._protocol = protocol
        self.destination = destination
        self.ssrc = ssrc
        self.sequence = sequence
        self.timestamp = timestamp
        self.nonce = nonce

    @classmethod
    async def open(cls, destination: tuple[str, int], ssrc: int) -> VoiceUdp:
        """Bind an ephemeral local socket that sends to ``destination``."""
        loop = asyncio.get_running_loop()
        transport, protocol = await loop.create_datagram_endpoint(
            _UdpProtocol, local_addr=("0.0.0.0", 0)
        )
        return cls(transport, protocol, tuple(destination), ssrc)

    async def discover_ip(self) -> tuple[str, int]:
        """Ask the voice server for this socket's external address."""
        self._transport.sendto(build_discovery_packet(self.ssrc), self.destination)
        item = await self._protocol.received.get()
        if isinstance(item, Exception):
            raise item
        return parse_discovery_response(item)

    def build_packet(self, payload: bytes, crypto: VoiceCrypto) -> bytes:
        """Build the encrypted RTP packet for the current counters."""
        header = struct.pack(
            ">BBHII", _RTP_VERSION, _RTP_PAYLOAD_TYPE, self.sequence, self.timestamp, self.ssrc
        )
        nonce_suffix = struct.pack(">I", self.nonce)
        encrypted = crypto.encrypt(payload, nonce_suffix + bytes(8), header)
        return header + encrypted + nonce_suffix

    async def send_opus(self, payload: bytes, crypto: VoiceCrypto) -> None:
        """Encrypt and send one Opus frame, then advance the counters."""
        packet = self.build_packet(payload, crypto)
        try:
            self._transport.sendto(packet, self.destination)
        except OSError:
            pass
        self.sequence = (self.sequence + 1) & 0xFFFF
        self.timestamp = (self.timestamp + _SAMPLES_PER_FRAME) & 0xFFFFFFFF
        self.nonce = (self.nonce + 1) & 0xFFFFFFFF

    def copy(self) -> VoiceUdp:
        """Share the socket but give the copy its own counters."""
        return VoiceUdp(
            self._transport,
            self._protocol,
            self.destination,
            self.ssrc,
            self.sequence,
            self.timestamp,
            self.nonce,
        )

    def close(self) -> None:
        self._transport.close()