"""WebSocket 传输层。

只负责"连接 + 接收文本帧"，不理解消息内容：
- 建立连接（代理、心跳参数统一封装）
- 断线自动重连（指数退避 + 抖动）

任何实现了 `receive(url)` 异步迭代器的对象都可以替换它，
例如测试中的内存回放传输。
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Protocol

import websockets

from .utils import jittered_sleep_seconds


class Transport(Protocol):
    """订阅并接收原始文本帧的通用接口。"""

    def receive(self, url: str) -> AsyncIterator[str]:
        ...


class WebSocketTransport:
    """基于 websockets 的默认传输实现。"""

    def __init__(
        self,
        *,
        proxy: str | None = None,
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._proxy = proxy
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay
        self._logger = logger or logging.getLogger("coinfeed.transport")

    async def receive(self, url: str) -> AsyncIterator[str]:
        """持续输出文本帧，连接异常时自动重连。

        重连后不做去重或补齐，顺序与交易所推送一致。
        """
        backoff = self._reconnect_delay
        while True:
            try:
                got_frame = False
                async with self._connect(url) as ws:
                    async for message in ws:
                        got_frame = True
                        # 一旦收到正常数据，就重置退避时间。
                        backoff = self._reconnect_delay
                        if isinstance(message, bytes):
                            message = message.decode("utf-8")
                        yield message

                if not got_frame:
                    self._logger.warning("%s 连接无数据返回，%.1fs 后重连", url, backoff)
            except asyncio.CancelledError:
                # 任务被上层取消时直接抛出，避免吞掉取消信号。
                raise
            except (OSError, websockets.WebSocketException) as exc:
                self._logger.warning("%s 连接异常: %s，%.1fs 后重连", url, exc, backoff)

            sleep_for = jittered_sleep_seconds(backoff)
            if sleep_for > 0:
                await asyncio.sleep(sleep_for)
            backoff = min(max(backoff, 0.1) * 2, self._max_reconnect_delay)

    def _connect(
        self,
        url: str,
        *,
        ping_interval: float | None = 20,
        ping_timeout: float | None = 20,
        max_size: int = 2**24,
    ):
        """统一 WS 连接参数封装。"""
        return websockets.connect(
            url,
            ping_interval=ping_interval,
            ping_timeout=ping_timeout,
            max_size=max_size,
            proxy=self._proxy,
        )
