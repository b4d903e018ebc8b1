from collections import Counter
from typing import Dict

from gacha_engine.logger import get_logger
from gacha_engine.models.gacha_models import SimulationResult
from gacha_engine.validation_rules import MAX_SIMULATIONS

logger = get_logger("gacha_engine.simulation")


def simulate_drops(engine, simulations: int) -> Dict[str, int]:
    """Roll ``simulations`` times and return count per dropped item."""
    if isinstance(simulations, bool) or not isinstance(simulations, int):
        raise ValueError("simulations must be an integer")
    if not 1 <= simulations <= MAX_SIMULATIONS:
        raise ValueError(f"simulations must be between 1 and {MAX_SIMULATIONS}")
    return dict(Counter(engine.roll(simulations)))


def build_simulation_result(engine, simulations: int) -> SimulationResult:
    counts = simulate_drops(engine, simulations)
    drop_info = engine.get_all_item_drop_rates()

    # every configured item, declared order, zero counts included
    item_counts = {info.name: counts.get(info.name, 0) for info in drop_info}

    rarity_counts: Dict[str, int] = {}
    for info in drop_info:
        rarity_counts[info.rarity] = rarity_counts.get(info.rarity, 0) + item_counts[info.name]

    rate_up = set(engine.get_rate_up_items())

    logger.info("Simulated %d rolls over %d items", simulations, len(item_counts))

    return SimulationResult(
        simulations=simulations,
        item_counts=item_counts,
        item_frequencies={name: count / simulations for name, count in item_counts.items()},
        rarity_distribution={
            rarity: round((count / simulations) * 100, 2)
            for rarity, count in rarity_counts.items()
        },
        rate_up_hits=sum(count for name, count in item_counts.items() if name in rate_up),
    )


def compare_to_expected(engine, result: SimulationResult) -> Dict[str, float]:
    """Observed frequency minus analytical drop rate, per item."""
    return {
        info.name: result.item_frequencies.get(info.name, 0.0) - info.drop_rate
        for info in engine.get_all_item_drop_rates()
    }
