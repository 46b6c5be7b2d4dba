"""coinfeed 顶层导出。

把交易所原生行情消息归一化为统一事件（BBO / 盘口增量 / K 线 / 逐笔成交）：

    await coinfeed.crawl(
        exchange="binance",
        market_type="spot",
        channel_types=["bbo", "trade"],
        pairs=["BTC_USDT"],
        markets=load_markets("markets.json"),
        msg_callback=print,
    )
"""

from __future__ import annotations

from collections.abc import Iterable

from .client import CoinFeed, default_msg_callback, event_to_dict
from .errors import (
    CoinFeedError,
    ConfigurationError,
    PayloadShapeError,
    UnknownChannelError,
    UnknownSymbolError,
)
from .exchanges import BinanceAdapter, ExchangeAdapter
from .markets import Market, SymbolResolver, load_markets
from .types import (
    BaseEvent,
    BboEvent,
    ChannelType,
    ExchangeName,
    KlineEvent,
    MarketType,
    MsgCallback,
    OrderBookEvent,
    OrderItem,
    RawEnvelope,
    TradeEvent,
    UnifiedEvent,
)

__version__ = "0.1.0"


async def crawl(
    *,
    exchange: ExchangeName,
    market_type: MarketType,
    channel_types: Iterable[ChannelType],
    pairs: Iterable[str],
    markets: Iterable[Market],
    msg_callback: MsgCallback = default_msg_callback,
    proxy: str | None = None,
) -> None:
    """顶层便捷入口。

    这是 `CoinFeed.crawl(...)` 的轻量包装，适合快速脚本使用。
    """
    client = CoinFeed(proxy=proxy)
    await client.crawl(
        exchange=exchange,
        market_type=market_type,
        channel_types=channel_types,
        pairs=pairs,
        markets=markets,
        msg_callback=msg_callback,
    )


__all__ = [
    "CoinFeed",
    "crawl",
    "default_msg_callback",
    "event_to_dict",
    "ExchangeAdapter",
    "BinanceAdapter",
    "Market",
    "SymbolResolver",
    "load_markets",
    "CoinFeedError",
    "ConfigurationError",
    "PayloadShapeError",
    "UnknownChannelError",
    "UnknownSymbolError",
    "BaseEvent",
    "UnifiedEvent",
    "BboEvent",
    "OrderBookEvent",
    "OrderItem",
    "KlineEvent",
    "TradeEvent",
    "RawEnvelope",
    "ExchangeName",
    "MarketType",
    "ChannelType",
    "MsgCallback",
]
