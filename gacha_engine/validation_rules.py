WEIGHTED_MODE = "weighted"
FLAT_RATE_MODE = "flatRate"

# Rarity label reported for items of a flatRate config, which are not tier-scoped
FLAT_RATE_LABEL = "flatRate"

# Tolerances
TIER_RATE_SUM_EPSILON = 1e-10
FLAT_RATE_SUM_EPSILON = 1e-6

# Fixed-point domain: 6 decimal digits, kept inside float-exact integer range
SCALE = 1_000_000
MAX_SAFE_INTEGER = 2 ** 53 - 1

MAX_SIMULATIONS = 1_000_000
