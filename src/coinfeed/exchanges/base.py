"""交易所适配器抽象层。

职责：
1. 构造期统一校验：市场类型、频道类别、交易对。
2. 构造期一次性生成订阅频道列表与 symbol 索引，之后只读。
3. 统一分发入口 `dispatch(...)`：归类 -> 解析 symbol -> 归一化 -> 回调。
4. 具体交易所只需实现：
   - `build_channels(...)` / `classify(...)`（频道名编解码，互为逆运算）
   - `subscription_url(...)`
   - `normalize(...)`
"""

from __future__ import annotations

import abc
import json
import logging
from collections.abc import Iterable

from ..errors import ConfigurationError, PayloadShapeError, UnknownChannelError
from ..markets import Market, SymbolResolver
from ..types import (
    SUPPORTED_CHANNEL_TYPES,
    ChannelType,
    MarketType,
    MsgCallback,
    RawEnvelope,
    UnifiedEvent,
)
from ..utils import ensure_items


class ExchangeAdapter(abc.ABC):
    """所有交易所适配器的基类。"""

    exchange: str
    supported_market_types: frozenset[MarketType]

    def __init__(
        self,
        *,
        market_type: MarketType,
        channel_types: Iterable[ChannelType],
        pairs: Iterable[str],
        markets: Iterable[Market],
        logger: logging.Logger | None = None,
    ) -> None:
        if market_type not in self.supported_market_types:
            raise ConfigurationError(
                f"{self.exchange} 不支持的 market_type: {market_type}",
                {"supported": sorted(self.supported_market_types)},
            )
        self.market_type = market_type
        self.channel_types = tuple(ensure_items(channel_types, "channel_types"))
        for channel_type in self.channel_types:
            if channel_type not in SUPPORTED_CHANNEL_TYPES:
                raise ConfigurationError(f"不支持的频道类别: {channel_type}")
        self.pairs = tuple(ensure_items(pairs, "pairs"))
        self._logger = logger or logging.getLogger(f"coinfeed.{self.exchange}")

        self.resolver = SymbolResolver(
            exchange=self.exchange,
            market_type=market_type,
            pairs=self.pairs,
            markets=markets,
        )
        self.channels = self._build_all_channels()

    def _build_all_channels(self) -> tuple[str, ...]:
        """按 (频道类别, 交易对) 顺序生成完整订阅列表。"""
        channels: list[str] = []
        for channel_type in self.channel_types:
            for pair in self.pairs:
                channels.extend(self.build_channels(channel_type, pair))

        if not channels:
            raise ConfigurationError(f"{self.exchange} 订阅频道为空")
        # 除 K 线外，每个 (频道类别, 交易对) 恰好对应一个频道。
        if "kline" not in self.channel_types:
            expected = len(self.channel_types) * len(self.pairs)
            if len(channels) != expected:
                raise ConfigurationError(
                    f"{self.exchange} 频道数量不符",
                    {"expected": expected, "actual": len(channels)},
                )
        return tuple(channels)

    @abc.abstractmethod
    def build_channels(self, channel_type: ChannelType, pair: str) -> list[str]:
        """把 (频道类别, 交易对) 映射为交易所订阅频道名。"""
        raise NotImplementedError

    @abc.abstractmethod
    def classify(self, channel: str) -> ChannelType:
        """把交易所频道名归类为频道类别；无法识别时抛 UnknownChannelError。"""
        raise NotImplementedError

    @abc.abstractmethod
    def subscription_url(self) -> str:
        """生成一次性订阅全部频道的连接地址。"""
        raise NotImplementedError

    @abc.abstractmethod
    def normalize(
        self,
        channel_type: ChannelType,
        envelope: RawEnvelope,
        pair: str,
        raw_pair: str,
    ) -> UnifiedEvent:
        """把已归类、已解析 symbol 的 payload 转为统一事件。"""
        raise NotImplementedError

    @abc.abstractmethod
    def native_symbol(self, envelope: RawEnvelope) -> str:
        """从消息中取交易所原生 symbol。"""
        raise NotImplementedError

    def parse_envelope(self, payload: str | bytes) -> RawEnvelope:
        """解析一帧文本为 RawEnvelope。"""
        try:
            data = json.loads(payload)
        except ValueError as exc:
            raise PayloadShapeError(f"消息不是合法 JSON: {exc}", payload=payload) from exc
        if not isinstance(data, dict):
            raise PayloadShapeError("消息不是对象", payload=data)
        channel = data.get("stream")
        body = data.get("data")
        if not isinstance(channel, str) or not isinstance(body, dict):
            raise PayloadShapeError("消息缺少 stream/data 字段", payload=data)
        return RawEnvelope(channel=channel, data=body)

    def dispatch(self, envelope: RawEnvelope, callback: MsgCallback) -> UnifiedEvent | None:
        """处理单条消息。

        - 频道无法识别：记录日志并丢弃，返回 None。
        - 结构错误：关联整条消息后抛出，由调用方决定是否继续。
        """
        try:
            channel_type = self.classify(envelope.channel)
        except UnknownChannelError:
            self._logger.warning(
                "%s 无法识别的频道: %s, payload=%s",
                self.exchange,
                envelope.channel,
                envelope.data,
            )
            return None

        try:
            raw_pair = self.native_symbol(envelope)
            pair = self.resolver.resolve(raw_pair, channel=envelope.channel, payload=envelope.data)
            event = self.normalize(channel_type, envelope, pair, raw_pair)
        except PayloadShapeError as exc:
            # 字段级错误只知道出错的值，这里补上整条消息。
            exc.attach(channel=envelope.channel, payload=envelope.data)
            raise
        callback(event)
        return event

    def handle_message(self, payload: str | bytes, callback: MsgCallback) -> UnifiedEvent | None:
        """解析一帧文本并分发。"""
        return self.dispatch(self.parse_envelope(payload), callback)
