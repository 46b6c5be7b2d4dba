"""Binance 公共行情适配器。

支持频道类别：
- bbo (bookTicker)
- orderbook (depth 增量)
- kline (每个周期一个独立频道)
- trade (trade 或 aggTrade，两种消息结构)

说明：
- 订阅方式为组合流：`<endpoint>/stream?streams=a/b/c`，
  推送格式为 `{"stream": <频道名>, "data": <payload>}`。
- 归一化函数均为纯函数，不持有状态、不做 I/O，便于单测。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Literal

from .base import ExchangeAdapter
from ..errors import ConfigurationError, PayloadShapeError, UnknownChannelError
from ..markets import Market
from ..types import (
    BboEvent,
    ChannelType,
    KlineEvent,
    MarketType,
    OrderBookEvent,
    OrderItem,
    RawEnvelope,
    TradeEvent,
    UnifiedEvent,
)
from ..utils import as_decimal_str, now_ms, parse_float, parse_int, require

EXCHANGE_NAME = "binance"

# Binance 原生周期 -> 统一周期标签。原生写法大小写不统一（1M 为月），只能查表。
PERIOD_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "1m": "1m",
        "3m": "3m",
        "5m": "5m",
        "15m": "15m",
        "30m": "30m",
        "1h": "1H",
        "2h": "2H",
        "4h": "4H",
        "6h": "6H",
        "8h": "8H",
        "12h": "12H",
        "1d": "1D",
        "3d": "3D",
        "1w": "1W",
        "1M": "1M",
    }
)

# 不同市场类型对应不同 WS 域名。
WEBSOCKET_ENDPOINTS: Mapping[MarketType, str] = MappingProxyType(
    {
        "spot": "wss://stream.binance.com:9443",
        "swap": "wss://fstream.binance.com",
    }
)

KLINE_PREFIX = "kline_"

# 频道后缀 -> 频道类别（精确匹配部分）。
SUFFIX_TYPES: Mapping[str, ChannelType] = MappingProxyType(
    {
        "bookTicker": "bbo",
        "depth": "orderbook",
        "trade": "trade",
        "aggTrade": "trade",
    }
)

TradeStream = Literal["trade", "aggTrade"]


@dataclass(slots=True, frozen=True)
class TradeShape:
    """逐笔成交的一种消息结构。

    两种结构的方向字段一致（m），但成交 ID 字段与事件类型不同。
    """

    suffix: TradeStream
    event_type: str
    id_field: str


RAW_TRADE = TradeShape(suffix="trade", event_type="trade", id_field="t")
AGG_TRADE = TradeShape(suffix="aggTrade", event_type="aggTrade", id_field="a")

TRADE_SHAPES: Mapping[str, TradeShape] = MappingProxyType(
    {shape.suffix: shape for shape in (RAW_TRADE, AGG_TRADE)}
)


def _stream_suffix(channel: str) -> str:
    """取 `@` 之后的频道后缀。"""
    symbol, sep, suffix = channel.partition("@")
    if not sep or not symbol or not suffix:
        raise UnknownChannelError(channel)
    return suffix


def classify_channel(channel: str) -> ChannelType:
    """把 Binance 频道名归类。

    - `kline_<周期>` 按前缀匹配
    - 其余按后缀精确匹配，`trade` 与 `aggTrade` 都归为 trade
    """
    suffix = _stream_suffix(channel)
    if suffix.startswith(KLINE_PREFIX):
        return "kline"
    channel_type = SUFFIX_TYPES.get(suffix)
    if channel_type is None:
        raise UnknownChannelError(channel)
    return channel_type


def trade_shape(channel: str) -> TradeShape:
    """确定 trade 频道承载的是哪种消息结构。"""
    shape = TRADE_SHAPES.get(_stream_suffix(channel))
    if shape is None:
        raise UnknownChannelError(channel)
    return shape


def _check_event_type(data: dict[str, Any], expected: str, channel: str) -> None:
    event_type = require(data, "e", channel=channel)
    if event_type != expected:
        raise PayloadShapeError(
            f"事件类型不符，期望 {expected!r}",
            channel=channel,
            payload=data,
            event_type=event_type,
        )


def _envelope(channel: str, data: dict[str, Any]) -> dict[str, Any]:
    return {"stream": channel, "data": data}


def _raw_pair(data: dict[str, Any], raw_pair: str | None, channel: str) -> str:
    # 分发循环已解析过的 symbol 优先，单独调用时从 payload 取。
    if raw_pair is not None:
        return raw_pair
    return str(require(data, "s", channel=channel))


def normalize_bbo(
    data: dict[str, Any],
    pair: str,
    channel: str,
    market_type: MarketType,
    *,
    raw_pair: str | None = None,
) -> BboEvent:
    """bookTicker -> BboEvent。

    该频道 payload 不带事件时间，timestamp 为本地接收时间（不是交易所时间），
    因此与其他类别的时间戳不可混用做单调性假设。
    """
    return BboEvent(
        exchange=EXCHANGE_NAME,
        market_type=market_type,
        pair=pair,
        raw_pair=_raw_pair(data, raw_pair, channel),
        channel=channel,
        channel_type="bbo",
        timestamp=now_ms(),
        raw=_envelope(channel, data),
        bid_price=parse_float(require(data, "b", channel=channel), field="b", channel=channel),
        bid_quantity=parse_float(require(data, "B", channel=channel), field="B", channel=channel),
        ask_price=parse_float(require(data, "a", channel=channel), field="a", channel=channel),
        ask_quantity=parse_float(require(data, "A", channel=channel), field="A", channel=channel),
    )


def _parse_levels(levels: Any, *, side: str, channel: str) -> tuple[OrderItem, ...]:
    if not isinstance(levels, list):
        raise PayloadShapeError(f"{side} 不是数组", channel=channel, value=levels)
    items = []
    for level in levels:
        if not isinstance(level, (list, tuple)) or len(level) != 2:
            raise PayloadShapeError(
                f"{side} 档位必须是 [price, quantity]", channel=channel, value=level
            )
        price = parse_float(level[0], field=side, channel=channel)
        quantity = parse_float(level[1], field=side, channel=channel)
        items.append(OrderItem(price=price, quantity=quantity, cost=price * quantity))
    return tuple(items)


def normalize_orderbook(
    data: dict[str, Any],
    pair: str,
    channel: str,
    market_type: MarketType,
    *,
    raw_pair: str | None = None,
) -> OrderBookEvent:
    """depthUpdate -> OrderBookEvent（增量）。"""
    _check_event_type(data, "depthUpdate", channel)
    return OrderBookEvent(
        exchange=EXCHANGE_NAME,
        market_type=market_type,
        pair=pair,
        raw_pair=_raw_pair(data, raw_pair, channel),
        channel=channel,
        channel_type="orderbook",
        timestamp=parse_int(require(data, "E", channel=channel), field="E", channel=channel),
        raw=_envelope(channel, data),
        asks=_parse_levels(require(data, "a", channel=channel), side="a", channel=channel),
        bids=_parse_levels(require(data, "b", channel=channel), side="b", channel=channel),
        full=False,
    )


def normalize_kline(
    data: dict[str, Any],
    pair: str,
    channel: str,
    market_type: MarketType,
    *,
    raw_pair: str | None = None,
) -> KlineEvent:
    """kline -> KlineEvent。

    timestamp 取 K 线开始时间 `k.t`，不是事件推送时间 `E`。
    """
    kline = require(data, "k", channel=channel)
    if not isinstance(kline, dict):
        raise PayloadShapeError("k 不是对象", channel=channel, payload=data)

    interval = require(kline, "i", channel=channel)
    period = PERIOD_NAMES.get(interval)
    if period is None:
        raise PayloadShapeError(
            "未知 K 线周期", channel=channel, payload=data, interval=interval
        )

    def field(name: str) -> float:
        return parse_float(require(kline, name, channel=channel), field=f"k.{name}", channel=channel)

    return KlineEvent(
        exchange=EXCHANGE_NAME,
        market_type=market_type,
        pair=pair,
        raw_pair=_raw_pair(data, raw_pair, channel),
        channel=channel,
        channel_type="kline",
        timestamp=parse_int(require(kline, "t", channel=channel), field="k.t", channel=channel),
        raw=_envelope(channel, data),
        open=field("o"),
        high=field("h"),
        low=field("l"),
        close=field("c"),
        volume=field("v"),
        quote_volume=field("q"),
        period=period,
    )


def normalize_trade(
    data: dict[str, Any],
    pair: str,
    channel: str,
    market_type: MarketType,
    shape: TradeShape,
    *,
    raw_pair: str | None = None,
) -> TradeEvent:
    """trade / aggTrade -> TradeEvent。

    `m` 表示"买方是做市方"，取反后即"主动方是买方"。
    """
    _check_event_type(data, shape.event_type, channel)

    buyer_is_maker = require(data, "m", channel=channel)
    if not isinstance(buyer_is_maker, bool):
        raise PayloadShapeError("m 不是布尔值", channel=channel, payload=data)

    return TradeEvent(
        exchange=EXCHANGE_NAME,
        market_type=market_type,
        pair=pair,
        raw_pair=_raw_pair(data, raw_pair, channel),
        channel=channel,
        channel_type="trade",
        timestamp=parse_int(require(data, "T", channel=channel), field="T", channel=channel),
        raw=_envelope(channel, data),
        price=parse_float(require(data, "p", channel=channel), field="p", channel=channel),
        quantity=parse_float(require(data, "q", channel=channel), field="q", channel=channel),
        side=not buyer_is_maker,
        trade_id=as_decimal_str(
            require(data, shape.id_field, channel=channel),
            field=shape.id_field,
            channel=channel,
        ),
    )


class BinanceAdapter(ExchangeAdapter):
    """Binance 适配器实现。"""

    exchange = EXCHANGE_NAME
    supported_market_types = frozenset({"spot", "swap"})

    def __init__(
        self,
        *,
        market_type: MarketType,
        channel_types: Iterable[ChannelType],
        pairs: Iterable[str],
        markets: Iterable[Market],
        trade_stream: TradeStream = "aggTrade",
        logger: logging.Logger | None = None,
    ) -> None:
        if trade_stream not in TRADE_SHAPES:
            raise ConfigurationError(f"不支持的 trade_stream: {trade_stream}")
        self.trade_stream = trade_stream
        super().__init__(
            market_type=market_type,
            channel_types=channel_types,
            pairs=pairs,
            markets=markets,
            logger=logger,
        )

    def build_channels(self, channel_type: ChannelType, pair: str) -> list[str]:
        raw_pair = self.resolver.market_for_pair(pair).id.lower()
        if channel_type == "bbo":
            return [f"{raw_pair}@bookTicker"]
        if channel_type == "kline":
            return [f"{raw_pair}@{KLINE_PREFIX}{interval}" for interval in PERIOD_NAMES]
        if channel_type == "orderbook":
            return [f"{raw_pair}@depth"]
        if channel_type == "trade":
            return [f"{raw_pair}@{self.trade_stream}"]
        raise ConfigurationError(f"ChannelType {channel_type} is not supported for {self.exchange} yet")

    def classify(self, channel: str) -> ChannelType:
        return classify_channel(channel)

    def subscription_url(self) -> str:
        return f"{WEBSOCKET_ENDPOINTS[self.market_type]}/stream?streams={'/'.join(self.channels)}"

    def native_symbol(self, envelope: RawEnvelope) -> str:
        # 部分 payload 不带 s 时，退回频道名前缀。
        symbol = envelope.data.get("s")
        if isinstance(symbol, str) and symbol:
            return symbol
        return envelope.channel.partition("@")[0].upper()

    def normalize(
        self,
        channel_type: ChannelType,
        envelope: RawEnvelope,
        pair: str,
        raw_pair: str,
    ) -> UnifiedEvent:
        channel, data = envelope.channel, envelope.data
        if channel_type == "bbo":
            return normalize_bbo(data, pair, channel, self.market_type, raw_pair=raw_pair)
        if channel_type == "orderbook":
            return normalize_orderbook(data, pair, channel, self.market_type, raw_pair=raw_pair)
        if channel_type == "kline":
            return normalize_kline(data, pair, channel, self.market_type, raw_pair=raw_pair)
        if channel_type == "trade":
            return normalize_trade(
                data,
                pair,
                channel,
                self.market_type,
                trade_shape(channel),
                raw_pair=raw_pair,
            )
        raise UnknownChannelError(channel)
