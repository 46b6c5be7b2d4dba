"""Binance 行情归一化连通性测试脚本（真实联网）。

用法示例：
    python tests/test_binance_live.py
    python tests/test_binance_live.py --pair ETH_USDT --channel kline --limit 20
"""

from __future__ import annotations

import argparse
import asyncio

from coinfeed import CoinFeed, Market, UnifiedEvent, event_to_dict


class _LimitReached(Exception):
    pass


def parse_args() -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(description="测试 coinfeed 归一化 Binance 行情")
    parser.add_argument("--pair", default="BTC_USDT", help="统一交易对，默认 BTC_USDT")
    parser.add_argument("--market-type", default="spot", choices=["spot", "swap"])
    parser.add_argument(
        "--channel",
        default="trade",
        choices=["bbo", "orderbook", "kline", "trade"],
        help="频道类别，默认 trade",
    )
    parser.add_argument("--limit", type=int, default=10, help="获取条数上限，默认 10")
    parser.add_argument("--timeout", type=int, default=30, help="超时时间（秒），默认 30")
    parser.add_argument("--proxy", default=None, help="代理地址，例如 http://127.0.0.1:7890")
    return parser.parse_args()


async def run_test(
    *,
    pair: str,
    market_type: str,
    channel: str,
    limit: int,
    timeout: int,
    proxy: str | None,
) -> None:
    """执行一次真实订阅，收到 limit 条事件后退出。"""
    # 联网脚本不依赖外部目录，这里按 BTC_USDT -> BTCUSDT 规则临时构造。
    markets = [
        Market(
            exchange="binance",
            market_type=market_type,
            pair=pair,
            id=pair.replace("_", ""),
        )
    ]
    received: list[UnifiedEvent] = []

    def on_event(event: UnifiedEvent) -> None:
        received.append(event)
        print(event_to_dict(event) | {"raw": None})
        if len(received) >= limit:
            raise _LimitReached

    client = CoinFeed(proxy=proxy)
    task = client.crawl(
        exchange="binance",
        market_type=market_type,
        channel_types=[channel],
        pairs=[pair],
        markets=markets,
        msg_callback=on_event,
    )

    try:
        await asyncio.wait_for(task, timeout=timeout)
    except _LimitReached:
        print(f"测试完成：收到 {len(received)} 条 {channel} 事件")
    except asyncio.TimeoutError:
        print(f"测试超时：{timeout}s 内只收到 {len(received)} 条，请检查网络或稍后重试")


def main() -> None:
    """脚本主入口。"""
    args = parse_args()
    asyncio.run(
        run_test(
            pair=args.pair,
            market_type=args.market_type,
            channel=args.channel,
            limit=args.limit,
            timeout=args.timeout,
            proxy=args.proxy,
        )
    )


if __name__ == "__main__":
    main()
