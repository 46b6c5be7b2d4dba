"""交易所适配器聚合导出。"""

from .base import ExchangeAdapter
from .binance import BinanceAdapter

__all__ = ["ExchangeAdapter", "BinanceAdapter"]
