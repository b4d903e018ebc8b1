from typing import Any, Dict, List, Mapping, Union

from pydantic import TypeAdapter, ValidationError

from gacha_engine.errors import (
    ConfigurationError,
    DuplicateItemError,
    DuplicatePoolError,
    EmptyPoolError,
    InvalidTierRatesError,
    MalformedConfigurationError,
    MissingTierRateError,
    NegativeWeightError,
    ProbabilitySumError,
    ScalingOverflowError,
    UnpooledTierError,
    ZeroWeightPoolError,
)
from gacha_engine.fixed_point import to_scaled
from gacha_engine.models.gacha_models import (
    FlatRateGachaEngineConfig,
    GachaEngineConfig,
    WeightedGachaEngineConfig,
)
from gacha_engine.validation_rules import (
    FLAT_RATE_MODE,
    FLAT_RATE_SUM_EPSILON,
    TIER_RATE_SUM_EPSILON,
    WEIGHTED_MODE,
)

AnyConfig = Union[WeightedGachaEngineConfig, FlatRateGachaEngineConfig]

_config_adapter = TypeAdapter(GachaEngineConfig)


# ============================================================
# Parsing
# ============================================================

def parse_config(raw: Union[AnyConfig, Mapping[str, Any]]) -> AnyConfig:
    """Accept a config model as-is, or parse a plain mapping into one."""
    if isinstance(raw, (WeightedGachaEngineConfig, FlatRateGachaEngineConfig)):
        return raw
    try:
        return _config_adapter.validate_python(raw)
    except ValidationError as e:
        first = e.errors()[0]
        raise MalformedConfigurationError(
            f"{first['msg']} ({e.error_count()} problem(s))",
            _loc_to_path(first["loc"]),
        ) from e


def _loc_to_path(loc) -> str:
    path = "$"
    for i, part in enumerate(loc):
        # discriminated unions prefix the location with the mode tag
        if i == 0 and part in (WEIGHTED_MODE, FLAT_RATE_MODE):
            continue
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}"
    return path


# ============================================================
# Rule checks (construction order)
# ============================================================

def collect_config_errors(config: AnyConfig) -> List[ConfigurationError]:
    errors: List[ConfigurationError] = []
    weighted = isinstance(config, WeightedGachaEngineConfig)

    if weighted:
        errors.extend(_check_tier_rates(config))

    # ---- pools and items ----
    for p_idx, pool in enumerate(config.pools):
        if not pool.items:
            errors.append(EmptyPoolError(
                f"Pool '{pool.rarity}' has no items", f"$.pools[{p_idx}].items"
            ))

    seen_names: Dict[str, str] = {}
    for p_idx, pool in enumerate(config.pools):
        for i_idx, item in enumerate(pool.items):
            path = f"$.pools[{p_idx}].items[{i_idx}].name"
            if item.name in seen_names:
                errors.append(DuplicateItemError(
                    f"Item name '{item.name}' already used at {seen_names[item.name]}", path
                ))
            else:
                seen_names[item.name] = path

    for p_idx, pool in enumerate(config.pools):
        for i_idx, item in enumerate(pool.items):
            if item.weight < 0:
                errors.append(NegativeWeightError(
                    f"Item '{item.name}' has weight {item.weight}",
                    f"$.pools[{p_idx}].items[{i_idx}].weight",
                ))

    for p_idx, pool in enumerate(config.pools):
        if not pool.items:
            continue
        total = sum(item.weight for item in pool.items)
        if total <= 0 or not any(item.weight > 0 for item in pool.items):
            errors.append(ZeroWeightPoolError(
                f"Pool '{pool.rarity}' has no item with positive weight",
                f"$.pools[{p_idx}]",
            ))

    if not weighted:
        for p_idx, pool in enumerate(config.pools):
            for i_idx, item in enumerate(pool.items):
                if item.weight > 1:
                    errors.append(ProbabilitySumError(
                        f"Item '{item.name}' has probability {item.weight} above 1.0",
                        f"$.pools[{p_idx}].items[{i_idx}].weight",
                    ))
        total = sum(item.weight for pool in config.pools for item in pool.items)
        if abs(total - 1.0) > FLAT_RATE_SUM_EPSILON:
            errors.append(ProbabilitySumError(
                f"FlatRate item rates must sum to 1.0 (got {total})", "$.pools"
            ))

    errors.extend(_check_scaling(config))
    return errors


def _check_tier_rates(config: WeightedGachaEngineConfig) -> List[ConfigurationError]:
    errors: List[ConfigurationError] = []
    rates = config.rarity_rates

    missing = []
    for pool in config.pools:
        if pool.rarity not in rates and pool.rarity not in missing:
            missing.append(pool.rarity)
    if missing:
        errors.append(MissingTierRateError(
            f"Missing rarity rates for: {', '.join(missing)}", "$.rarity_rates"
        ))

    for rarity, rate in rates.items():
        if rate < 0 or rate > 1:
            errors.append(InvalidTierRatesError(
                f"Rate for '{rarity}' must be within [0, 1] (got {rate})",
                f"$.rarity_rates.{rarity}",
            ))
    total = sum(rates.values())
    if abs(total - 1.0) > TIER_RATE_SUM_EPSILON:
        errors.append(InvalidTierRatesError(
            f"Rarity rates must sum to 1.0 (got {total})", "$.rarity_rates"
        ))

    pooled = set()
    for p_idx, pool in enumerate(config.pools):
        if pool.rarity in pooled:
            errors.append(DuplicatePoolError(
                f"More than one pool for rarity '{pool.rarity}'", f"$.pools[{p_idx}].rarity"
            ))
        pooled.add(pool.rarity)

    for rarity, rate in rates.items():
        if rate > 0 and rarity not in pooled:
            errors.append(UnpooledTierError(
                f"Rarity '{rarity}' has rate {rate} but no pool to draw from",
                f"$.rarity_rates.{rarity}",
            ))
    return errors


def _check_scaling(config: AnyConfig) -> List[ConfigurationError]:
    errors: List[ConfigurationError] = []

    if isinstance(config, WeightedGachaEngineConfig):
        for rarity, rate in config.rarity_rates.items():
            try:
                to_scaled(rate, f"$.rarity_rates.{rarity}")
            except ScalingOverflowError as e:
                errors.append(e)

    for p_idx, pool in enumerate(config.pools):
        scaled_total = 0
        for i_idx, item in enumerate(pool.items):
            try:
                scaled = to_scaled(item.weight, f"$.pools[{p_idx}].items[{i_idx}].weight")
            except ScalingOverflowError as e:
                errors.append(e)
                continue
            if scaled > 0:
                scaled_total += scaled
        if pool.items and scaled_total == 0 and any(item.weight > 0 for item in pool.items):
            errors.append(ZeroWeightPoolError(
                f"Pool '{pool.rarity}' weights round to zero at 6 decimal digits",
                f"$.pools[{p_idx}]",
            ))
    return errors


# ============================================================
# Report (non-raising)
# ============================================================

def validate_config(raw: Any) -> Dict[str, Any]:
    errors: List[Dict[str, str]] = []
    warnings: List[Dict[str, str]] = []

    summary = {
        "mode": None,
        "pools": 0,
        "total_items": 0,
        "rarity_item_counts": {},
        "rate_up_items": [],
        "zero_weight_items": [],
    }

    try:
        config = parse_config(raw)
    except MalformedConfigurationError as e:
        # Structure is wrong, nothing else is safe to inspect
        for err in e.__cause__.errors():
            errors.append({
                "path": _loc_to_path(err["loc"]),
                "kind": e.kind,
                "message": err["msg"],
            })
        return {"valid": False, "errors": errors, "warnings": warnings, "summary": summary}

    summary["mode"] = config.mode
    summary["pools"] = len(config.pools)

    for p_idx, pool in enumerate(config.pools):
        summary["rarity_item_counts"][pool.rarity] = (
            summary["rarity_item_counts"].get(pool.rarity, 0) + len(pool.items)
        )
        for i_idx, item in enumerate(pool.items):
            summary["total_items"] += 1
            if item.rate_up:
                summary["rate_up_items"].append(item.name)
            if item.weight == 0:
                summary["zero_weight_items"].append(item.name)
                warnings.append({
                    "path": f"$.pools[{p_idx}].items[{i_idx}].weight",
                    "message": f"Item '{item.name}' has weight 0 and can never be drawn.",
                })

    if isinstance(config, WeightedGachaEngineConfig):
        for rarity, rate in config.rarity_rates.items():
            if rate == 0:
                warnings.append({
                    "path": f"$.rarity_rates.{rarity}",
                    "message": f"Rarity '{rarity}' has rate 0 and can never be drawn.",
                })

    errors.extend(err.as_dict() for err in collect_config_errors(config))

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "summary": summary,
    }
