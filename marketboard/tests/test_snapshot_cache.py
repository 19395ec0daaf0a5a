from __future__ import annotations

from marketboard.models.market import CoinEntity, GlobalSummary
from marketboard.services.snapshot_cache import SnapshotCache


def _coins():
    return [
        CoinEntity(symbol="btc", name="Bitcoin", price=27000.0, market_cap=5e11, sparkline=[1.0, 2.0]),
        CoinEntity(symbol="eth", name="Ethereum", price=1600.0, market_cap=2e11, is_favorite=True),
    ]


def test_missing_files_load_as_none(tmp_path):
    cache = SnapshotCache(tmp_path / "never-written")
    assert cache.load_coins() is None
    assert cache.load_global() is None


def test_coins_snapshot_survives_a_restart(tmp_path):
    SnapshotCache(tmp_path).save_coins(_coins())

    loaded = SnapshotCache(tmp_path).load_coins()

    assert [c.symbol for c in loaded] == ["BTC", "ETH"]
    assert loaded[0].sparkline == [1.0, 2.0]
    assert loaded[1].is_favorite is True
    # no temp files left next to the snapshot
    assert sorted(p.name for p in tmp_path.iterdir()) == ["coins.json"]


def test_global_snapshot_is_stored_separately(tmp_path):
    cache = SnapshotCache(tmp_path)
    summary = GlobalSummary(
        total_market_cap=1.1e12,
        total_volume=4.2e10,
        market_cap_percentage={"btc": 48.5},
        market_cap_change_percentage_24h=-0.7,
        active_cryptocurrencies=9000,
    )

    assert cache.save_global(summary) is True
    assert cache.load_coins() is None

    loaded = cache.load_global()
    assert loaded.total_market_cap == summary.total_market_cap
    assert loaded.market_cap_percentage == {"btc": 48.5}


def test_corrupt_snapshot_is_ignored(tmp_path):
    (tmp_path / "coins.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "global.json").write_text('{"total_market_cap": "lots"}', encoding="utf-8")

    cache = SnapshotCache(tmp_path)
    assert cache.load_coins() is None
    assert cache.load_global() is None


def test_unwritable_cache_dir_reports_false(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    assert SnapshotCache(blocker / "sub").save_coins(_coins()) is False
