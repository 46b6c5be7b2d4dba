"""市场目录与 symbol 解析。

市场目录由外部维护（交易对 <-> 交易所原生 symbol 的映射），
本模块只持有按交易所、市场类型过滤后的只读视图。
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from .errors import ConfigurationError, UnknownSymbolError
from .types import MarketType


@dataclass(slots=True, frozen=True)
class Market:
    """单个交易所上的单个可交易品种。"""

    exchange: str
    market_type: MarketType
    # 统一交易对，例如 BTC_USDT。
    pair: str
    # 交易所原生 symbol，例如 BTCUSDT。
    id: str
    base: str | None = None
    quote: str | None = None
    active: bool = True


def load_markets(path: str | Path) -> list[Market]:
    """从 JSON 文件加载市场目录。

    文件内容为对象数组，字段与 `Market` 一致，例如：

        [{"exchange": "binance", "market_type": "spot",
          "pair": "BTC_USDT", "id": "BTCUSDT"}]
    """
    with open(path, encoding="utf-8") as f:
        rows = json.load(f)
    if not isinstance(rows, list):
        raise ConfigurationError("市场目录必须是 JSON 数组", {"path": str(path)})
    try:
        return [Market(**row) for row in rows]
    except TypeError as exc:
        raise ConfigurationError(f"市场目录字段不合法: {exc}", {"path": str(path)}) from exc


class SymbolResolver:
    """原生 symbol -> 统一交易对 的只读索引。

    构造时按交易所与市场类型过滤目录，并剔除已下线（active=False）的市场；
    请求的交易对缺失则直接失败。
    索引构建后不再修改，可在多个连接间共享。
    """

    def __init__(
        self,
        *,
        exchange: str,
        market_type: MarketType,
        pairs: Iterable[str],
        markets: Iterable[Market],
    ) -> None:
        self.exchange = exchange
        self.market_type = market_type

        candidates = [
            market
            for market in markets
            if market.active
            and market.market_type == market_type
            and market.exchange.lower() == exchange.lower()
        ]
        by_pair = {market.pair: market for market in candidates}

        index: dict[str, Market] = {}
        for pair in pairs:
            market = by_pair.get(pair)
            if market is None:
                raise ConfigurationError(
                    f"{exchange} {market_type} market does NOT have {pair}",
                    {"exchange": exchange, "market_type": market_type, "pair": pair},
                )
            index[market.id.upper()] = market

        self._by_pair: Mapping[str, Market] = MappingProxyType(
            {market.pair: market for market in index.values()}
        )
        self._index: Mapping[str, Market] = MappingProxyType(index)

    @property
    def index(self) -> Mapping[str, Market]:
        return self._index

    def market_for_pair(self, pair: str) -> Market:
        """按统一交易对取市场，仅覆盖构造时请求的交易对。"""
        try:
            return self._by_pair[pair]
        except KeyError:
            raise ConfigurationError(
                f"{pair} 不在已请求的交易对中",
                {"exchange": self.exchange, "market_type": self.market_type, "pair": pair},
            ) from None

    def resolve(
        self,
        raw_pair: str,
        *,
        channel: str | None = None,
        payload: object = None,
    ) -> str:
        """把原生 symbol 解析为统一交易对。

        未知 symbol 说明行情与目录不同步，必须显式失败而不是丢弃。
        """
        market = self._index.get(raw_pair.upper())
        if market is None:
            raise UnknownSymbolError(
                f"{self.exchange} {self.market_type} 未知 symbol: {raw_pair}",
                channel=channel,
                payload=payload,
                symbol=raw_pair,
            )
        return market.pair

    def __contains__(self, raw_pair: object) -> bool:
        return isinstance(raw_pair, str) and raw_pair.upper() in self._index

    def __len__(self) -> int:
        return len(self._index)
