from __future__ import annotations

import json

import pytest

from coinfeed import ConfigurationError, Market, SymbolResolver, UnknownSymbolError, load_markets


def test_resolve_native_symbol(markets):
    resolver = SymbolResolver(
        exchange="binance", market_type="spot", pairs=["BTC_USDT", "ETH_USDT"], markets=markets
    )
    assert resolver.resolve("BTCUSDT") == "BTC_USDT"
    assert resolver.resolve("ethusdt") == "ETH_USDT"
    assert len(resolver) == 2
    assert "BTCUSDT" in resolver


def test_missing_pair_fails_at_construction(markets):
    with pytest.raises(ConfigurationError, match="does NOT have ETH_USDT"):
        SymbolResolver(exchange="binance", market_type="swap", pairs=["ETH_USDT"], markets=markets)


def test_other_exchange_markets_are_ignored(markets):
    with pytest.raises(ConfigurationError):
        SymbolResolver(exchange="binance", market_type="spot", pairs=["SOL_USDT"], markets=markets)


def test_unrequested_symbol_is_unknown(markets):
    resolver = SymbolResolver(
        exchange="binance", market_type="spot", pairs=["BTC_USDT"], markets=markets
    )
    with pytest.raises(UnknownSymbolError) as exc_info:
        resolver.resolve("ETHUSDT", channel="ethusdt@depth", payload={"s": "ETHUSDT"})
    assert exc_info.value.channel == "ethusdt@depth"
    assert exc_info.value.payload == {"s": "ETHUSDT"}
    assert "ETHUSDT" in str(exc_info.value)


def test_index_is_read_only(markets):
    resolver = SymbolResolver(
        exchange="binance", market_type="spot", pairs=["BTC_USDT"], markets=markets
    )
    with pytest.raises(TypeError):
        resolver.index["XRPUSDT"] = None


def test_load_markets(tmp_path):
    path = tmp_path / "markets.json"
    path.write_text(
        json.dumps(
            [{"exchange": "binance", "market_type": "spot", "pair": "BTC_USDT", "id": "BTCUSDT"}]
        ),
        encoding="utf-8",
    )
    markets = load_markets(path)
    assert markets[0].id == "BTCUSDT"
    assert markets[0].active is True


def test_load_markets_rejects_unknown_fields(tmp_path):
    path = tmp_path / "markets.json"
    path.write_text(json.dumps([{"pair": "BTC_USDT", "symbol": "BTCUSDT"}]), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_markets(path)


def test_inactive_market_is_excluded(markets):
    delisted = markets + [
        Market(exchange="binance", market_type="spot", pair="LUNA_USDT", id="LUNAUSDT", active=False)
    ]
    with pytest.raises(ConfigurationError, match="LUNA_USDT"):
        SymbolResolver(exchange="binance", market_type="spot", pairs=["LUNA_USDT"], markets=delisted)


def test_inactive_duplicate_does_not_shadow_active_listing(markets):
    catalog = [
        Market(exchange="binance", market_type="spot", pair="BTC_USDT", id="BTCUSDT"),
        Market(exchange="binance", market_type="spot", pair="BTC_USDT", id="XBTUSDT", active=False),
    ]
    resolver = SymbolResolver(
        exchange="binance", market_type="spot", pairs=["BTC_USDT"], markets=catalog
    )
    assert "BTCUSDT" in resolver
    assert "XBTUSDT" not in resolver
