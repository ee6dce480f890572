import asyncio
import struct

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from aelira.voice.crypto import VoiceCrypto
from aelira.voice.udp import (
    VoiceUdp,
    build_discovery_packet,
    parse_discovery_response,
)

KEY = bytes([7]) * 32


class _Collector(asyncio.DatagramProtocol):
    def __init__(self, reply=None):
        self.packets = asyncio.Queue()
        self.reply = reply
        self.transport = None

    def connection_made(self, transport):
        self.transport = transport

    def datagram_received(self, data, addr):
        self.packets.put_nowait(data)
        if self.reply is not None:
            self.transport.sendto(self.reply(data), addr)


async def _receiver(reply=None):
    loop = asyncio.get_running_loop()
    transport, protocol = await loop.create_datagram_endpoint(
        lambda: _Collector(reply), local_addr=("127.0.0.1", 0)
    )
    return transport, protocol, transport.get_extra_info("sockname")[:2]


def _discovery_response(ip, port):
    return struct.pack(">HHI", 2, 70, 1) + ip.encode().ljust(64, b"\0") + struct.pack(">H", port)


def _decrypt(packet):
    header, body, suffix = packet[:12], packet[12:-4], packet[-4:]
    return AESGCM(KEY).decrypt(suffix + bytes(8), body, header)


def test_discovery_packet_layout():
    packet = build_discovery_packet(0x01020304)
    assert len(packet) == 74
    assert packet[:8] == b"\x00\x01\x00\x46\x01\x02\x03\x04"
    assert packet[8:] == bytes(66)


def test_parse_discovery_response():
    response = _discovery_response("203.0.113.5", 50000)
    assert parse_discovery_response(response) == ("203.0.113.5", 50000)


def test_parse_discovery_response_too_short():
    with pytest.raises(ValueError):
        parse_discovery_response(b"\x00\x02")


@pytest.mark.asyncio
async def test_build_packet_header_and_payload():
    transport, _, addr = await _receiver()
    udp = await VoiceUdp.open(addr, 0x0A0B0C0D)
    try:
        packet = udp.build_packet(b"abc", VoiceCrypto(KEY))
        assert packet[:2] == b"\x80\x78"
        assert packet[8:12] == struct.pack(">I", 0x0A0B0C0D)
        assert packet[-4:] == struct.pack(">I", 0)
        assert _decrypt(packet) == b"abc"
    finally:
        udp.close()
        transport.close()


@pytest.mark.asyncio
async def test_send_opus_advances_counters_and_delivers():
    transport, collector, addr = await _receiver()
    udp = await VoiceUdp.open(addr, 5)
    crypto = VoiceCrypto(KEY)
    try:
        await udp.send_opus(b"one", crypto)
        await udp.send_opus(b"two", crypto)
        first = await asyncio.wait_for(collector.packets.get(), 2)
        second = await asyncio.wait_for(collector.packets.get(), 2)
        assert (_decrypt(first), _decrypt(second)) == (b"one", b"two")
        assert struct.unpack(">H", second[2:4])[0] == 1
        assert udp.sequence == 2
        assert udp.timestamp == 2 * 960
        assert udp.nonce == 2
    finally:
        udp.close()
        transport.close()


@pytest.mark.asyncio
async def test_counters_wrap():
    transport, _, addr = await _receiver()
    udp = await VoiceUdp.open(addr, 5)
    udp.sequence = 0xFFFF
    udp.nonce = 0xFFFFFFFF
    try:
        await udp.send_opus(b"x", VoiceCrypto(KEY))
        assert udp.sequence == 0
        assert udp.nonce == 0
    finally:
        udp.close()
        transport.close()


@pytest.mark.asyncio
async def test_copy_has_independent_counters():
    transport, _, addr = await _receiver()
    udp = await VoiceUdp.open(addr, 5)
    try:
        clone = udp.copy()
        await clone.send_opus(b"x", VoiceCrypto(KEY))
        assert clone.sequence == 1
        assert udp.sequence == 0
        assert clone.destination == udp.destination
    finally:
        udp.close()
        transport.close()


@pytest.mark.asyncio
async def test_discover_ip():
    transport, collector, addr = await _receiver(
        lambda data: _discovery_response("198.51.100.7", 40000)
    )
    udp = await VoiceUdp.open(addr, 99)
    try:
        result = await asyncio.wait_for(udp.discover_ip(), 2)
        assert result == ("198.51.100.7", 40000)
        request = collector.packets.get_nowait()
        assert request == build_discovery_packet(99)
    finally:
        udp.close()
        transport.close()