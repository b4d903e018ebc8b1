from typing import Optional


class GachaEngineError(Exception):
    """Base class for every error raised by the engine."""


# ============================================================
# CONFIGURATION ERRORS (construction time only)
# ============================================================

class ConfigurationError(GachaEngineError, ValueError):
    kind = "configuration error"

    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = path
        super().__init__(f"{self.kind}: {message}")

    def as_dict(self) -> dict:
        return {"path": self.path or "$", "kind": self.kind, "message": self.message}


class MalformedConfigurationError(ConfigurationError):
    kind = "malformed configuration"


class MissingTierRateError(ConfigurationError):
    kind = "missing tier rate"


class InvalidTierRatesError(ConfigurationError):
    kind = "invalid tier rates"


class UnpooledTierError(ConfigurationError):
    kind = "tier without pool"


class DuplicatePoolError(ConfigurationError):
    kind = "duplicate pool"


class EmptyPoolError(ConfigurationError):
    kind = "empty pool"


class DuplicateItemError(ConfigurationError):
    kind = "duplicate item name"


class NegativeWeightError(ConfigurationError):
    kind = "negative weight"


class ZeroWeightPoolError(ConfigurationError):
    kind = "zero-weight pool"


class ProbabilitySumError(ConfigurationError):
    kind = "probabilities do not sum to one"


class ScalingOverflowError(ConfigurationError):
    kind = "value too large for safe scaling"


# ============================================================
# QUERY ERRORS
# ============================================================

class ItemNotFoundError(GachaEngineError, LookupError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Item "{name}" not found')


class TierNotFoundError(GachaEngineError, LookupError):
    def __init__(self, rarity: str):
        self.rarity = rarity
        super().__init__(f'Rarity "{rarity}" not found')


class UnsupportedOperationError(GachaEngineError):
    pass
