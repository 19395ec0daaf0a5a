# Flagship assets shown first under the default market-cap ordering.
PINNED_SYMBOLS = (
    "BTC",
    "ETH",
    "BNB",
    "XRP",
    "ADA",
    "DOGE",
    "MATIC",
    "SOL",
    "DOT",
    "LTC",
    "SHIB",
    "TRX",
    "AVAX",
    "LINK",
    "UNI",
    "BCH",
)

# Lower-cased name fragments that mark bridged/pegged copies of another asset.
SYNTHETIC_NAME_MARKERS = (
    "binance-peg",
    "bridged",
    "wormhole",
)

# Shown on a first run with no cache and no network.
SEED_COINS = [
    {
        "symbol": "BTC",
        "name": "Bitcoin",
        "price": 28000.0,
        "change_24h": -2.15,
        "change_1h": -0.30,
        "volume": 450_000_000.0,
        "market_cap": 500_000_000_000.0,
        "sparkline": [28000, 27950, 27980, 27890, 27850, 27820, 27800],
        "image_url": "https://www.cryptocompare.com/media/19633/btc.png",
    },
    {
        "symbol": "ETH",
        "name": "Ethereum",
        "price": 1800.0,
        "change_24h": 3.44,
        "change_1h": 0.50,
        "volume": 210_000_000.0,
        "market_cap": 200_000_000_000.0,
        "sparkline": [1790, 1795, 1802, 1808, 1805, 1810, 1807],
        "image_url": "https://www.cryptocompare.com/media/20646/eth.png",
    },
    {
        "symbol": "USDT",
        "name": "Tether",
        "price": 1.0,
        "change_24h": 0.0,
        "change_1h": 0.0,
        "volume": 300_000_000.0,
        "market_cap": 83_000_000_000.0,
        "sparkline": [1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0],
        "image_url": "https://www.cryptocompare.com/media/356512/usdt.png",
    },
    {
        "symbol": "BNB",
        "name": "BNB",
        "price": 330.0,
        "change_24h": -1.12,
        "change_1h": 0.05,
        "volume": 90_000_000.0,
        "market_cap": 51_000_000_000.0,
        "sparkline": [320, 321, 322, 319, 316, 315, 317],
        "image_url": "https://www.cryptocompare.com/media/1383963/bnb.png",
    },
    {
        "symbol": "XRP",
        "name": "XRP",
        "price": 0.46,
        "change_24h": 0.25,
        "change_1h": 0.10,
        "volume": 120_000_000.0,
        "market_cap": 24_000_000_000.0,
        "sparkline": [0.45, 0.46, 0.465, 0.467, 0.463, 0.460, 0.461],
        "image_url": "https://www.cryptocompare.com/media/34477776/xrp.png",
    },
    {
        "symbol": "ADA",
        "name": "Cardano",
        "price": 0.39,
        "change_24h": 1.25,
        "change_1h": 0.20,
        "volume": 65_000_000.0,
        "market_cap": 13_500_000_000.0,
        "sparkline": [0.38, 0.385, 0.390, 0.395, 0.392, 0.388, 0.389],
        "image_url": "https://www.cryptocompare.com/media/12318177/ada.png",
    },
    {
        "symbol": "DOGE",
        "name": "Dogecoin",
        "price": 0.08,
        "change_24h": -0.56,
        "change_1h": -0.10,
        "volume": 50_000_000.0,
        "market_cap": 11_000_000_000.0,
        "sparkline": [0.081, 0.080, 0.079, 0.078, 0.077, 0.078, 0.079],
        "image_url": "https://www.cryptocompare.com/media/19684/doge.png",
    },
    {
        "symbol": "SOL",
        "name": "Solana",
        "price": 22.0,
        "change_24h": -3.0,
        "change_1h": -0.40,
        "volume": 95_000_000.0,
        "market_cap": 9_000_000_000.0,
        "sparkline": [23.0, 22.8, 22.5, 22.3, 22.2, 22.1, 22.0],
        "image_url": "https://www.cryptocompare.com/media/356512/sol.png",
    },
]
