import math
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple, Union

from gacha_engine.config_validator import AnyConfig, collect_config_errors, parse_config
from gacha_engine.errors import (
    ConfigurationError,
    ItemNotFoundError,
    TierNotFoundError,
    UnsupportedOperationError,
)
from gacha_engine.fixed_point import from_scaled, scaled_share, to_scaled
from gacha_engine.logger import get_logger
from gacha_engine.models.gacha_models import (
    GachaItem,
    ItemDropInfo,
    SimulationResult,
    WeightedGachaEngineConfig,
)
from gacha_engine.rng import RandomSource, get_rng
from gacha_engine.services.simulation_service import build_simulation_result
from gacha_engine.validation_rules import FLAT_RATE_LABEL, SCALE

logger = get_logger("gacha_engine.engine")


class _ScaledItem(NamedTuple):
    item: GachaItem
    rarity: str
    scaled_weight: int


class _ScaledPool(NamedTuple):
    rarity: str
    drawable: Tuple[Tuple[str, int], ...]  # (name, scaled weight), weight > 0 only
    scaled_total: int


class GachaEngine:
    """
    Tiered gacha drop engine.

    weighted:  drop rate = (item weight / pool weight) * rarity rate
    flatRate:  drop rate = item weight, taken as an absolute probability

    The config is validated once here and never changes afterwards. All
    cumulative sums used for sampling are integers in 1/SCALE units.
    """

    def __init__(
        self,
        config: Union[AnyConfig, Mapping[str, Any]],
        rng: Optional[RandomSource] = None,
        seed: Optional[int] = None,
    ):
        if rng is not None and seed is not None:
            raise ValueError("Pass either rng or seed, not both")

        try:
            config = parse_config(config)
            errors = collect_config_errors(config)
            if errors:
                raise errors[0]
        except ConfigurationError as e:
            logger.warning("Rejected gacha config: %s (at %s)", e, e.path or "$")
            raise

        self._config = config
        self._rng = rng if rng is not None else get_rng(seed)
        self._weighted = isinstance(config, WeightedGachaEngineConfig)

        # scaled drop rates by item name, filled lazily. Config is immutable so
        # a concurrent recompute writes the same value and needs no lock
        self._rate_cache: Dict[str, int] = {}

        self._items: Dict[str, _ScaledItem] = {}
        scaled_pools: List[_ScaledPool] = []
        for pool in config.pools:
            drawable = []
            for item in pool.items:
                scaled = to_scaled(item.weight)
                self._items[item.name] = _ScaledItem(item, pool.rarity, scaled)
                if scaled > 0:
                    drawable.append((item.name, scaled))
            scaled_pools.append(_ScaledPool(
                pool.rarity, tuple(drawable), sum(w for _, w in drawable)
            ))
        # rarities are unique in weighted mode, flat pools may share a label
        self._pools: Dict[str, _ScaledPool] = {p.rarity: p for p in scaled_pools}

        if self._weighted:
            self._tiers: Tuple[Tuple[str, int], ...] = tuple(
                (rarity, to_scaled(rate)) for rarity, rate in config.rarity_rates.items()
            )
            self._fallback_tier = next(rarity for rarity, rate in self._tiers if rate > 0)
        else:
            self._flat_entries: Tuple[Tuple[str, int], ...] = tuple(
                entry for pool in scaled_pools for entry in pool.drawable
            )

        logger.info(
            "GachaEngine ready: mode=%s pools=%d items=%d",
            config.mode, len(config.pools), len(self._items),
        )

    @property
    def config(self) -> AnyConfig:
        return self._config

    @property
    def mode(self) -> str:
        return self._config.mode

    # ============================================================
    # QUERIES
    # ============================================================

    def get_item_drop_rate(self, name: str) -> float:
        if not self._weighted:
            # unknown names are 0 here, unlike weighted mode which raises
            entry = self._items.get(name)
            return entry.item.weight if entry else 0.0

        entry = self._items.get(name)
        if entry is None:
            raise ItemNotFoundError(name)
        if entry.item.weight == 0:
            return 0.0

        scaled = self._rate_cache.get(name)
        if scaled is None:
            tier_rate = to_scaled(self._config.rarity_rates[entry.rarity])
            scaled = scaled_share(
                entry.scaled_weight, tier_rate, self._pools[entry.rarity].scaled_total
            )
            self._rate_cache[name] = scaled
        return from_scaled(scaled)

    def get_rarity_probability(self, rarity: str) -> float:
        if not self._weighted:
            raise UnsupportedOperationError(
                "Rarity rates are not defined for a flatRate config"
            )
        if rarity not in self._config.rarity_rates:
            raise TierNotFoundError(rarity)
        return self._config.rarity_rates[rarity]

    def get_cumulative_probability_for_item(self, name: str, rolls: int) -> float:
        """Chance of at least one ``name`` over ``rolls`` independent draws."""
        _require_count("rolls", rolls)
        return _cumulative(self.get_item_drop_rate(name), rolls)

    def get_rolls_for_target_probability(self, name: str, target: float) -> Union[int, float]:
        """
        Smallest number of rolls whose cumulative probability reaches ``target``.
        Returns ``math.inf`` when the item can never drop.
        """
        if math.isnan(target):
            raise ValueError("target must be a number")
        rate = self.get_item_drop_rate(name)

        if target <= 0:
            return 0
        if target >= 1:
            return 1
        if rate <= 0:
            return math.inf
        if rate >= 1:
            return 1

        rolls = max(1, math.ceil(math.log1p(-target) / math.log1p(-rate)))
        # closed form can be off by one ulp at exact boundaries
        for _ in range(2):
            if rolls > 1 and _cumulative(rate, rolls - 1) >= target:
                rolls -= 1
        for _ in range(2):
            if _cumulative(rate, rolls) < target:
                rolls += 1
        return rolls

    def get_rate_up_items(self) -> List[str]:
        return [
            item.name
            for pool in self._config.pools
            for item in pool.items
            if item.rate_up
        ]

    def get_all_item_drop_rates(self) -> List[ItemDropInfo]:
        return [
            ItemDropInfo(
                name=item.name,
                drop_rate=self.get_item_drop_rate(item.name),
                rarity=pool.rarity if self._weighted else FLAT_RATE_LABEL,
            )
            for pool in self._config.pools
            for item in pool.items
        ]

    # ============================================================
    # SAMPLING
    # ============================================================

    def roll(self, count: int = 1) -> List[str]:
        _require_count("count", count)
        draw = self._draw_weighted if self._weighted else self._draw_flat
        return [draw() for _ in range(count)]

    def simulate(self, simulations: int) -> SimulationResult:
        return build_simulation_result(self, simulations)

    def _draw_weighted(self) -> str:
        r = self._rng.randrange(SCALE)
        rarity = _walk(self._tiers, r)
        if rarity is None:
            logger.debug("Tier rates short of %d at r=%d, using '%s'", SCALE, r, self._fallback_tier)
            rarity = self._fallback_tier

        pool = self._pools[rarity]
        r = self._rng.randrange(pool.scaled_total)
        name = _walk(pool.drawable, r)
        if name is None:
            name = pool.drawable[0][0]
            logger.debug("Pool '%s' walk fell short at r=%d, using '%s'", rarity, r, name)
        return name

    def _draw_flat(self) -> str:
        r = self._rng.randrange(SCALE)
        name = _walk(self._flat_entries, r)
        if name is None:
            name = self._flat_entries[0][0]
            logger.debug("Flat rates short of %d at r=%d, using '%s'", SCALE, r, name)
        return name


# ============================================================
# Helpers
# ============================================================

def _walk(entries, r: int) -> Optional[str]:
    """First key whose running scaled total exceeds ``r``; None on shortfall."""
    running = 0
    for key, scaled in entries:
        running += scaled
        if running > r:
            return key
    return None


def _cumulative(rate: float, rolls: int) -> float:
    if rolls == 0 or rate <= 0:
        return 0.0
    if rate >= 1:
        return 1.0
    # log1p/expm1 keep precision for tiny rates, matching the inverse above
    return max(0.0, min(1.0, -math.expm1(rolls * math.log1p(-rate))))


def _require_count(label: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{label} must be an integer")
    if value < 0:
        raise ValueError(f"{label} must be >= 0")
