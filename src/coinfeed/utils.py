"""公共工具函数。

这个模块聚合了适配器会复用的通用逻辑：
- 时间获取
- 严格的数值/字段提取（失败即抛 PayloadShapeError，不做兜底）
- 重连抖动计算
"""

from __future__ import annotations

import math
import random
import time
from collections.abc import Iterable
from typing import Any, TypeVar

from .errors import ConfigurationError, PayloadShapeError

T = TypeVar("T")


def now_ms() -> int:
    """返回当前 Unix 时间戳（毫秒）。"""
    return int(time.time() * 1000)


def require(data: Any, key: str, *, channel: str | None = None) -> Any:
    """从 payload 中取必填字段，缺失时抛出结构错误。"""
    if not isinstance(data, dict):
        raise PayloadShapeError("payload 不是对象", channel=channel, payload=data)
    if key not in data or data[key] is None:
        raise PayloadShapeError(
            f"payload 缺少字段 {key!r}", channel=channel, payload=data, field=key
        )
    return data[key]


def parse_float(value: Any, *, field: str, channel: str | None = None) -> float:
    """把十进制字符串解析为 float。

    交易所价格/数量以字符串下发。非法文本（包括空串、布尔值、NaN）
    视为结构错误，而不是静默变成 0。
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise PayloadShapeError(
            f"字段 {field!r} 不是数值", channel=channel, field=field, value=value
        )
    try:
        number = float(value)
    except ValueError:
        raise PayloadShapeError(
            f"字段 {field!r} 无法解析为数值", channel=channel, field=field, value=value
        ) from None
    if not math.isfinite(number):
        raise PayloadShapeError(
            f"字段 {field!r} 不是有限数值", channel=channel, field=field, value=value
        )
    return number


def parse_int(value: Any, *, field: str, channel: str | None = None) -> int:
    """解析毫秒时间戳等整数字段。"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise PayloadShapeError(
            f"字段 {field!r} 不是整数", channel=channel, field=field, value=value
        )
    return value


def as_decimal_str(value: Any, *, field: str, channel: str | None = None) -> str:
    """把成交 ID 转为十进制字符串，保留超出 2**53 的精度。"""
    if isinstance(value, bool):
        raise PayloadShapeError(
            f"字段 {field!r} 不是整数", channel=channel, field=field, value=value
        )
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.isdigit():
        return value
    raise PayloadShapeError(
        f"字段 {field!r} 不是十进制整数", channel=channel, field=field, value=value
    )


def ensure_items(items: Iterable[T], name: str) -> list[T]:
    """确保列表非空，并过滤空值。"""
    result = [item for item in items if item]
    if not result:
        raise ConfigurationError(f"{name} 不能为空")
    return result


def jittered_sleep_seconds(base: float, ratio: float = 0.2) -> float:
    """给等待时长增加抖动，避免集群同时重连。"""
    if base <= 0:
        return 0.0
    delta = base * ratio
    return max(0.0, base + random.uniform(-delta, delta))
