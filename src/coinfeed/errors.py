"""异常定义。

两类致命错误需要区分：
- 构造期配置错误（ConfigurationError）：初始化直接失败。
- 单条消息结构错误（PayloadShapeError）：只影响当前消息。

频道无法识别（UnknownChannelError）属于多路复用连接上的预期噪声，
由分发循环记录日志后丢弃。
"""

from __future__ import annotations

from typing import Any


class CoinFeedError(Exception):
    """coinfeed 所有异常的基类。

    `details` 保存排查所需的上下文，会拼接进 `str()` 输出。
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(CoinFeedError, ValueError):
    """构造期错误：交易对不在目录中、频道类别或市场类型不受支持等。"""


class PayloadShapeError(CoinFeedError, ValueError):
    """单条消息结构不符合预期。"""

    def __init__(
        self,
        message: str,
        *,
        channel: str | None = None,
        payload: Any = None,
        **kwargs: Any,
    ) -> None:
        self.channel = channel
        self.payload = payload
        details = {"channel": channel, **kwargs}
        details = {k: v for k, v in details.items() if v is not None}
        if payload is not None:
            details["payload"] = payload
        super().__init__(message, details)

    def attach(self, *, channel: str, payload: Any) -> None:
        """关联所属的整条消息。

        字段级错误只携带出错片段（如 K 线的 `k` 对象），片段保留在 `fragment` 中。
        """
        if self.channel is None:
            self.channel = channel
            self.details["channel"] = channel
        if self.payload is not None and self.payload is not payload:
            self.details["fragment"] = self.payload
        self.payload = payload
        self.details["payload"] = payload


class UnknownSymbolError(PayloadShapeError):
    """原生 symbol 不在索引中，说明行情与市场目录不同步。"""


class UnknownChannelError(CoinFeedError, ValueError):
    """频道名无法归类。"""

    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__(f"Unknown channel: {channel}", {"channel": channel})
