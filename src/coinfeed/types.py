"""统一事件类型定义。

本文件只做一件事：
- 定义库对外暴露的标准事件结构（dataclass）。

设计原则：
1. 所有频道共享一组公共字段（BaseEvent）。
2. 每个频道在公共字段上扩展自身字段。
3. 数值字段统一解析为 float；成交 ID 保留十进制字符串，避免大整数精度丢失。
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal, TypeAlias

# 支持的交易所枚举。
ExchangeName: TypeAlias = Literal["binance"]

# 支持的市场类型枚举（swap 即永续合约）。
MarketType: TypeAlias = Literal["spot", "swap"]

# 支持的频道类别枚举。
ChannelType: TypeAlias = Literal["bbo", "orderbook", "kline", "trade"]


@dataclass(slots=True, frozen=True)
class RawEnvelope:
    """交易所推送的原始消息单元：频道名 + 未解析的 payload。"""

    channel: str
    data: dict[str, Any]


@dataclass(slots=True, frozen=True, kw_only=True)
class BaseEvent:
    """所有事件共享的基础字段。"""

    exchange: str
    market_type: MarketType
    # 统一交易对，例如 BTC_USDT。
    pair: str
    # 交易所原生 symbol，例如 BTCUSDT。
    raw_pair: str
    channel: str
    channel_type: ChannelType
    # 毫秒时间戳。BBO 为本地接收时间，其余为交易所时间。
    timestamp: int
    # 原始消息，便于排查与审计。
    raw: Any | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class BboEvent(BaseEvent):
    """最优档行情事件（best bid/ask）。"""

    bid_price: float
    bid_quantity: float
    ask_price: float
    ask_quantity: float


@dataclass(slots=True, frozen=True)
class OrderItem:
    """单个价格档位。"""

    price: float
    quantity: float
    cost: float


@dataclass(slots=True, frozen=True, kw_only=True)
class OrderBookEvent(BaseEvent):
    """盘口增量事件。"""

    asks: tuple[OrderItem, ...]
    bids: tuple[OrderItem, ...]
    # True 为全量快照，本适配器只输出增量。
    full: bool = False


@dataclass(slots=True, frozen=True, kw_only=True)
class KlineEvent(BaseEvent):
    """K 线事件，timestamp 为 K 线开始时间。"""

    open: float
    high: float
    low: float
    close: float
    volume: float
    quote_volume: float
    period: str


@dataclass(slots=True, frozen=True, kw_only=True)
class TradeEvent(BaseEvent):
    """逐笔成交事件。"""

    price: float
    quantity: float
    # True 表示主动方是买方。
    side: bool
    trade_id: str


# 统一事件联合类型，便于调用方做类型标注。
UnifiedEvent: TypeAlias = BboEvent | OrderBookEvent | KlineEvent | TradeEvent

# 下游回调签名：接收事件，不关心返回值。
MsgCallback: TypeAlias = Callable[[UnifiedEvent], None]

# 统一维护频道类别白名单，用于适配器入口校验。
SUPPORTED_CHANNEL_TYPES: tuple[ChannelType, ...] = (
    "bbo",
    "orderbook",
    "kline",
    "trade",
)
