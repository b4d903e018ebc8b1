from pydantic import BaseModel, Field
from typing import Annotated, Dict, List, Literal, Union


FROZEN_CONFIG = {
    "frozen": True,
    "extra": "forbid",
    "populate_by_name": True,
}


# -----------------------------
# CONFIGURATION
# -----------------------------

class GachaItem(BaseModel):
    model_config = FROZEN_CONFIG

    name: str = Field(..., description="Unique item name across every pool")
    weight: float = Field(
        ...,
        allow_inf_nan=False,
        description="Relative weight inside the pool (weighted mode) "
                    "or absolute probability (flatRate mode)",
    )
    rate_up: bool = Field(
        default=False,
        alias="rateUp",
        description="Informational rate-up marker, no effect on probability",
    )


class RarityPool(BaseModel):
    model_config = FROZEN_CONFIG

    rarity: str = Field(..., description="Rarity tier this pool belongs to")
    items: List[GachaItem] = Field(..., description="Items in declared order")


class WeightedGachaEngineConfig(BaseModel):
    """Tier rates times in-pool weight shares."""

    model_config = FROZEN_CONFIG

    mode: Literal["weighted"] = "weighted"
    rarity_rates: Dict[str, Annotated[float, Field(allow_inf_nan=False)]] = Field(
        ...,
        alias="rarityRates",
        description="Base probability per rarity tier. Must sum to 1.0",
    )
    pools: List[RarityPool]


class FlatRateGachaEngineConfig(BaseModel):
    """Every item weight is its absolute probability."""

    model_config = FROZEN_CONFIG

    mode: Literal["flatRate"] = "flatRate"
    pools: List[RarityPool]


GachaEngineConfig = Annotated[
    Union[WeightedGachaEngineConfig, FlatRateGachaEngineConfig],
    Field(discriminator="mode"),
]


# -----------------------------
# RESULTS
# -----------------------------

class ItemDropInfo(BaseModel):
    model_config = {"frozen": True}

    name: str
    drop_rate: float
    rarity: str


class SimulationResult(BaseModel):
    simulations: int
    item_counts: Dict[str, int] = Field(
        ..., description="Draw count per configured item, zero counts included"
    )
    item_frequencies: Dict[str, float]
    rarity_distribution: Dict[str, float] = Field(
        ..., description="Percent of draws per rarity, rounded to 2 decimals"
    )
    rate_up_hits: int = 0
