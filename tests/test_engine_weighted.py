import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from gacha_engine.engine import GachaEngine
from gacha_engine.errors import ItemNotFoundError, TierNotFoundError
from gacha_engine.models.gacha_models import (
    GachaItem,
    RarityPool,
    WeightedGachaEngineConfig,
)


def test_drop_rates_follow_weight_share_times_rarity_rate(weighted_engine):
    assert weighted_engine.get_item_drop_rate("ItemA") == pytest.approx(0.4)
    assert weighted_engine.get_item_drop_rate("ItemB") == pytest.approx(0.4)
    assert weighted_engine.get_item_drop_rate("ItemC") == pytest.approx(0.14)
    assert weighted_engine.get_item_drop_rate("ItemD") == pytest.approx(0.06)


def test_drop_rates_are_stable_across_repeated_queries(weighted_engine):
    first = weighted_engine.get_item_drop_rate("ItemD")
    for _ in range(5):
        assert weighted_engine.get_item_drop_rate("ItemD") == first


def test_unknown_item_raises(weighted_engine):
    with pytest.raises(ItemNotFoundError, match='Item "Unknown" not found'):
        weighted_engine.get_item_drop_rate("Unknown")


def test_unknown_item_raises_for_derived_queries(weighted_engine):
    with pytest.raises(ItemNotFoundError):
        weighted_engine.get_cumulative_probability_for_item("Unknown", 10)
    with pytest.raises(ItemNotFoundError):
        weighted_engine.get_rolls_for_target_probability("Unknown", 0.5)


def test_rarity_rates_sum_to_one(weighted_engine):
    total = sum(
        weighted_engine.get_rarity_probability(r) for r in ("common", "rare")
    )
    assert total == pytest.approx(1.0, abs=1e-9)
    assert weighted_engine.get_rarity_probability("rare") == 0.2


def test_unknown_rarity_raises(weighted_engine):
    with pytest.raises(TierNotFoundError):
        weighted_engine.get_rarity_probability("legendary")


def test_rate_up_items(weighted_engine):
    assert weighted_engine.get_rate_up_items() == ["ItemD"]


def test_rate_up_items_keep_declared_order():
    engine = GachaEngine({
        "mode": "weighted",
        "rarityRates": {"rare": 0.1, "common": 0.9},
        "pools": [
            {"rarity": "common", "items": [
                {"name": "C1", "weight": 1, "rateUp": True},
                {"name": "C2", "weight": 1},
            ]},
            {"rarity": "rare", "items": [
                {"name": "R1", "weight": 1, "rateUp": True},
                {"name": "R2", "weight": 1, "rateUp": True},
            ]},
        ],
    })
    assert engine.get_rate_up_items() == ["C1", "R1", "R2"]


def test_all_item_drop_rates(weighted_engine):
    infos = weighted_engine.get_all_item_drop_rates()

    assert [i.name for i in infos] == ["ItemA", "ItemB", "ItemC", "ItemD"]
    assert [i.rarity for i in infos] == ["common", "common", "rare", "rare"]
    assert sum(i.drop_rate for i in infos) == pytest.approx(1.0)


def test_zero_weight_item_has_exactly_zero_rate():
    engine = GachaEngine({
        "mode": "weighted",
        "rarity_rates": {"common": 1.0},
        "pools": [{"rarity": "common", "items": [
            {"name": "Real", "weight": 3},
            {"name": "Placeholder", "weight": 0},
        ]}],
    })

    assert engine.get_item_drop_rate("Placeholder") == 0
    assert engine.get_item_drop_rate("Real") == pytest.approx(1.0)
    assert [i.name for i in engine.get_all_item_drop_rates()] == ["Real", "Placeholder"]
    assert engine.get_rolls_for_target_probability("Placeholder", 0.5) == math.inf


def test_integer_weights_are_relative():
    engine = GachaEngine({
        "mode": "weighted",
        "rarity_rates": {"ssr": 0.03, "sr": 0.97},
        "pools": [
            {"rarity": "ssr", "items": [
                {"name": "Featured", "weight": 50, "rate_up": True},
                {"name": "Off1", "weight": 25},
                {"name": "Off2", "weight": 25},
            ]},
            {"rarity": "sr", "items": [{"name": "Filler", "weight": 7}]},
        ],
    })

    assert engine.get_item_drop_rate("Featured") == pytest.approx(0.015)
    assert engine.get_item_drop_rate("Off1") == pytest.approx(0.0075)
    assert engine.get_item_drop_rate("Filler") == pytest.approx(0.97)


def test_rates_are_always_probabilities(weighted_engine):
    for info in weighted_engine.get_all_item_drop_rates():
        assert 0 <= info.drop_rate <= 1


def test_accepts_model_instances():
    config = WeightedGachaEngineConfig(
        rarity_rates={"common": 1.0},
        pools=[RarityPool(rarity="common", items=[GachaItem(name="Only", weight=2.0)])],
    )
    engine = GachaEngine(config)

    assert engine.mode == "weighted"
    assert engine.config is config
    assert engine.get_item_drop_rate("Only") == pytest.approx(1.0)


def test_concurrent_rate_queries_agree(weighted_config):
    engine = GachaEngine(weighted_config)
    names = ["ItemA", "ItemB", "ItemC", "ItemD"] * 50

    with ThreadPoolExecutor(max_workers=8) as pool:
        rates = list(pool.map(engine.get_item_drop_rate, names))

    expected = {n: engine.get_item_drop_rate(n) for n in set(names)}
    assert all(rate == expected[name] for name, rate in zip(names, rates))
