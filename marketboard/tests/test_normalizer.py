from __future__ import annotations

from marketboard.services.normalizer import (
    coin_from_coingecko,
    coin_from_coinpaprika,
    global_from_coingecko,
    global_from_coinpaprika,
    is_synthetic,
    normalize_coins,
    seed_coins,
)


def _gecko(symbol: str, name: str, price: float = 1.0, cap: float = 100.0, **extra) -> dict:
    row = {
        "id": name.lower().replace(" ", "-"),
        "symbol": symbol,
        "name": name,
        "image": f"https://img.example/{symbol}.png",
        "current_price": price,
        "total_volume": 10.0,
        "market_cap": cap,
        "price_change_percentage_24h": 2.5,
        "price_change_percentage_1h_in_currency": -0.1,
        "sparkline_in_7d": {"price": [1.0, 1.1, 1.2]},
    }
    row.update(extra)
    return row


def test_coingecko_row_maps_to_entity():
    coin = coin_from_coingecko(_gecko("btc", "Bitcoin", price=30000.0, cap=5e11))

    assert coin.symbol == "BTC"
    assert coin.name == "Bitcoin"
    assert coin.price == 30000.0
    assert coin.market_cap == 5e11
    assert coin.change_24h == 2.5
    assert coin.change_1h == -0.1
    assert coin.sparkline == [1.0, 1.1, 1.2]
    assert coin.image_url == "https://img.example/btc.png"
    assert coin.is_favorite is False
    assert coin.id and coin.id != "BTC"


def test_coingecko_optional_fields_default_to_zero():
    row = _gecko("eth", "Ethereum", market_cap=None, sparkline_in_7d=None, price_change_percentage_24h=None)
    coin = coin_from_coingecko(row)

    assert coin.market_cap == 0.0
    assert coin.sparkline == []
    assert coin.change_24h == 0.0


def test_coinpaprika_row_maps_to_entity():
    row = {
        "id": "btc-bitcoin",
        "symbol": "btc",
        "name": "Bitcoin",
        "quotes": {
            "USD": {
                "price": 27000.5,
                "volume_24h": 1.5e10,
                "market_cap": 5.2e11,
                "percent_change_1h": 0.2,
                "percent_change_24h": -1.3,
            }
        },
    }
    coin = coin_from_coinpaprika(row)

    assert coin.symbol == "BTC"
    assert coin.price == 27000.5
    assert coin.change_24h == -1.3
    assert coin.market_cap == 5.2e11
    assert coin.sparkline == []
    assert coin.image_url == "https://static.coinpaprika.com/coin/btc-bitcoin/logo.png"


def test_duplicate_symbols_keep_first_occurrence():
    rows = [
        _gecko("usdc", "USD Coin", price=1.0, cap=30.0),
        _gecko("btc", "Bitcoin", price=30000.0),
        _gecko("USDC", "USD Coin (old listing)", price=0.99, cap=1.0),
    ]
    coins = normalize_coins(rows, coin_from_coingecko)

    usdc = [c for c in coins if c.symbol == "USDC"]
    assert len(usdc) == 1
    assert usdc[0].name == "USD Coin"
    assert usdc[0].price == 1.0
    assert [c.symbol for c in coins] == ["USDC", "BTC"]


def test_synthetic_tokens_are_dropped_before_dedup():
    rows = [
        _gecko("eth", "Binance-Peg Ethereum"),
        _gecko("weth", "Wormhole Bridged WETH"),
        _gecko("eth", "Ethereum", price=1800.0),
        _gecko("usdc", "Bridged USDC (Polygon)"),
    ]
    coins = normalize_coins(rows, coin_from_coingecko)

    assert [c.symbol for c in coins] == ["ETH"]
    assert coins[0].name == "Ethereum"


def test_malformed_rows_are_dropped_not_fatal():
    rows = [
        _gecko("btc", "Bitcoin"),
        {"symbol": "bad"},  # no name
        _gecko("nop", "No Price", current_price=None),
        "not-a-dict",
        _gecko("", "Empty Symbol"),
        _gecko("eth", "Ethereum"),
    ]
    coins = normalize_coins(rows, coin_from_coingecko)

    assert [c.symbol for c in coins] == ["BTC", "ETH"]


def test_is_synthetic_is_case_insensitive():
    assert is_synthetic("BRIDGED USDT")
    assert is_synthetic("binance-peg Dogecoin")
    assert not is_synthetic("Bitcoin")


def test_seed_list_is_unique_and_non_empty():
    seeds = seed_coins()
    symbols = [c.symbol for c in seeds]
    assert symbols
    assert len(symbols) == len(set(symbols))


def test_global_from_coingecko_uses_vs_currency():
    data = {
        "active_cryptocurrencies": 10000,
        "markets": 900,
        "total_market_cap": {"usd": 1.2e12, "eur": 1.1e12},
        "total_volume": {"usd": 5e10},
        "market_cap_percentage": {"BTC": 48.1, "eth": 17.2},
        "market_cap_change_percentage_24h_usd": -0.8,
    }
    summary = global_from_coingecko(data)

    assert summary.total_market_cap == 1.2e12
    assert summary.total_volume == 5e10
    assert summary.market_cap_percentage == {"btc": 48.1, "eth": 17.2}
    assert summary.market_cap_change_percentage_24h == -0.8
    assert summary.active_cryptocurrencies == 10000


def test_global_from_coinpaprika_maps_flat_fields():
    data = {
        "market_cap_usd": 1.1e12,
        "volume_24h_usd": 4e10,
        "bitcoin_dominance_percentage": 50.2,
        "market_cap_change_24h": 1.4,
        "cryptocurrencies_number": 9000,
    }
    summary = global_from_coinpaprika(data)

    assert summary.total_market_cap == 1.1e12
    assert summary.market_cap_percentage == {"btc": 50.2}
    assert summary.market_cap_change_percentage_24h == 1.4
    assert summary.active_cryptocurrencies == 9000
