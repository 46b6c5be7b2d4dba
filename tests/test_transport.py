from __future__ import annotations

import asyncio
import logging

from coinfeed.transport import WebSocketTransport


class FakeConnection:
    def __init__(self, frames):
        self._frames = frames

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def _iter(self):
        for frame in self._frames:
            yield frame

    def __aiter__(self):
        return self._iter()


async def take(transport, url, count):
    frames = []
    stream = transport.receive(url)
    async for frame in stream:
        frames.append(frame)
        if len(frames) == count:
            break
    await stream.aclose()
    return frames


def test_reconnects_after_connection_error(monkeypatch, caplog):
    transport = WebSocketTransport(reconnect_delay=0)
    attempts = []

    def fake_connect(url, **kwargs):
        attempts.append(url)
        if len(attempts) == 1:
            raise OSError("connection refused")
        return FakeConnection([b'{"stream": "a"}', '{"stream": "b"}'])

    monkeypatch.setattr(transport, "_connect", fake_connect)

    with caplog.at_level(logging.WARNING, logger="coinfeed.transport"):
        frames = asyncio.run(take(transport, "wss://example/stream", 2))

    # bytes 帧统一解码为文本。
    assert frames == ['{"stream": "a"}', '{"stream": "b"}']
    assert attempts == ["wss://example/stream", "wss://example/stream"]
    assert "connection refused" in caplog.text


def test_reconnects_when_stream_ends(monkeypatch):
    transport = WebSocketTransport(reconnect_delay=0)
    batches = [["1"], [], ["2"]]

    def fake_connect(url, **kwargs):
        return FakeConnection(batches.pop(0))

    monkeypatch.setattr(transport, "_connect", fake_connect)
    monkeypatch.setattr("coinfeed.transport.jittered_sleep_seconds", lambda base: 0.0)

    assert asyncio.run(take(transport, "wss://example/stream", 2)) == ["1", "2"]
