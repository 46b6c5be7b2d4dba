"""对外统一客户端：订阅 -> 分发 -> 回调。"""

from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import Iterable
from typing import Any

from .errors import ConfigurationError, PayloadShapeError
from .exchanges import BinanceAdapter, ExchangeAdapter
from .markets import Market
from .transport import Transport, WebSocketTransport
from .types import ChannelType, ExchangeName, MarketType, MsgCallback, UnifiedEvent


def event_to_dict(event: UnifiedEvent) -> dict[str, Any]:
    """把事件转换为普通 dict，便于序列化。"""
    return dataclasses.asdict(event)


def default_msg_callback(event: UnifiedEvent) -> None:
    """默认回调：每个事件输出一行 JSON。"""
    print(json.dumps(event_to_dict(event), ensure_ascii=False))


class CoinFeed:
    """统一的 asyncio 行情归一化客户端。

    说明：
    - 仅支持公共行情频道。
    - 连接与重连交给传输层，这里只负责按到达顺序逐条分发。
    - 回调在接收协程内同步执行，慢回调会直接拖慢该连接的吞吐。
    """

    def __init__(
        self,
        *,
        proxy: str | None = None,
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
        transport: Transport | None = None,
        raise_on_error: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger("coinfeed")
        self._transport = transport or WebSocketTransport(
            proxy=proxy,
            reconnect_delay=reconnect_delay,
            max_reconnect_delay=max_reconnect_delay,
            logger=self._logger,
        )
        self._raise_on_error = raise_on_error

    def build_adapter(
        self,
        *,
        exchange: ExchangeName,
        market_type: MarketType,
        channel_types: Iterable[ChannelType],
        pairs: Iterable[str],
        markets: Iterable[Market],
        **kwargs: Any,
    ) -> ExchangeAdapter:
        """根据交易所名选择适配器实现。"""
        if exchange == "binance":
            return BinanceAdapter(
                market_type=market_type,
                channel_types=channel_types,
                pairs=pairs,
                markets=markets,
                logger=self._logger.getChild(exchange),
                **kwargs,
            )
        raise ConfigurationError(f"不支持的交易所: {exchange}")

    async def run(self, adapter: ExchangeAdapter, msg_callback: MsgCallback) -> None:
        """消费传输层的文本帧并逐条分发，直到连接流结束。"""
        url = adapter.subscription_url()
        self._logger.info(
            "%s %s 订阅 %d 个频道", adapter.exchange, adapter.market_type, len(adapter.channels)
        )
        self._logger.debug("订阅地址: %s", url)

        async for frame in self._transport.receive(url):
            try:
                adapter.handle_message(frame, msg_callback)
            except PayloadShapeError as exc:
                if self._raise_on_error:
                    raise
                # 单条消息结构错误只丢弃该条，保留完整上下文用于排查。
                self._logger.exception("%s 消息结构错误，已丢弃: %s", adapter.exchange, exc)

    async def crawl(
        self,
        *,
        exchange: ExchangeName,
        market_type: MarketType,
        channel_types: Iterable[ChannelType],
        pairs: Iterable[str],
        markets: Iterable[Market],
        msg_callback: MsgCallback = default_msg_callback,
        **kwargs: Any,
    ) -> None:
        """构造适配器（配置错误在此直接抛出）并开始分发。"""
        adapter = self.build_adapter(
            exchange=exchange,
            market_type=market_type,
            channel_types=channel_types,
            pairs=pairs,
            markets=markets,
            **kwargs,
        )
        await self.run(adapter, msg_callback)
