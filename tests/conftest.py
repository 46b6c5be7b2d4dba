"""测试共用夹具：市场目录、适配器与内存回放传输。"""

from __future__ import annotations

import json

import pytest

from coinfeed import BinanceAdapter, Market


class ReplayTransport:
    """按顺序回放预置文本帧的传输实现。"""

    def __init__(self, frames):
        self.frames = list(frames)
        self.urls: list[str] = []

    async def receive(self, url: str):
        self.urls.append(url)
        for frame in self.frames:
            yield frame


def frame(channel: str, data: dict) -> str:
    """构造一帧 Binance 组合流消息。"""
    return json.dumps({"stream": channel, "data": data})


@pytest.fixture
def markets() -> list[Market]:
    return [
        Market(exchange="binance", market_type="spot", pair="BTC_USDT", id="BTCUSDT"),
        Market(exchange="binance", market_type="spot", pair="ETH_USDT", id="ETHUSDT"),
        Market(exchange="binance", market_type="swap", pair="BTC_USDT", id="BTCUSDT"),
        Market(exchange="okx", market_type="spot", pair="SOL_USDT", id="SOL-USDT"),
    ]


@pytest.fixture
def adapter(markets) -> BinanceAdapter:
    return BinanceAdapter(
        market_type="spot",
        channel_types=["bbo", "orderbook", "kline", "trade"],
        pairs=["BTC_USDT", "ETH_USDT"],
        markets=markets,
    )


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def make_frame():
    return frame


@pytest.fixture
def replay_transport():
    return ReplayTransport
