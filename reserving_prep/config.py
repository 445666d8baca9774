"""
Configuration for the claims reserving preprocessing pipeline.

Defaults reproduce the demo population: 20 claims notified between
2020 and 2025, settling within six months to three years, with up to
twenty partial payments each.
"""

from datetime import date

# ---------------- Population & window ---------------- #

N_CLAIMS: int = 20

START_DATE: date = date(2020, 1, 1)
END_DATE: date = date(2025, 1, 1)

# Observation end used for inflation targets and training-row cutoffs
OBSERVATION_END: date = date(2025, 1, 1)


# ---------------- Claim lifetime ---------------- #

MIN_DUR_DAYS: int = 180
MAX_DUR_DAYS: int = 1095
MAX_PARTIALS: int = 20

# Accident happens 7-60 days before notification
ACCIDENT_LAG_MIN_DAYS: int = 7
ACCIDENT_LAG_SPAN_DAYS: int = 54

# Merge payments falling in the same calendar month
DEDUPE_MONTHLY: bool = True


# ---------------- Static covariates ---------------- #

POSTCODES = ["2000", "3000", "4000", "5000", "6000", "7000", "1000"]
CLAIM_TYPES = ["Motor", "Property", "Liability", "Workers Comp"]
REGIONS = ["Metro", "Regional", "Remote"]

CLAIM_ID_PREFIX: str = "CLM-"


# ---------------- Price index ---------------- #

PRICE_INDEX_BASE: float = 100.0
PRICE_INDEX_FLOOR: float = 60.0
PRICE_INDEX_DRIFT_MIN: float = 0.013
PRICE_INDEX_DRIFT_SPAN: float = 0.006
PRICE_INDEX_NOISE_SPAN: float = 0.008

# XORed into the shared seed for the price-index stream
PRICE_INDEX_SEED_SALT: int = 0x9E3779B9


# ---------------- Development quarters ---------------- #

DEV_QUARTER_CLAMP: int = 50
MAX_DEV_QUARTER_SPAN: int = 100
ONE_BASED_DEV_QUARTERS: bool = True


# ---------------- Dataset splits ---------------- #

TRAIN_CUT: date = date(2021, 6, 30)
VAL_CUT: date = date(2023, 6, 30)
TEST_CUT: date = date(2025, 1, 1)

# Fallback cutoffs when supplied values cannot be parsed
DEFAULT_CUTOFFS = (date(2021, 1, 1), date(2023, 1, 1), date(2025, 1, 1))

SPLIT_MODE: str = "notify_dup"


# ---------------- Training rows ---------------- #

# Simulated case estimates: error shrinks from 25% as the claim develops
ESTIMATE_BASE_ERROR: float = 0.25
ESTIMATE_ERROR_DECAY: float = 0.7

# Near-static demo covariate: legal representation becomes known after a lag
LEGAL_REP_LAG_QUARTERS: int = 2


# ---------------- Random seed ---------------- #

SEED_TEXT: str = "preprocessing-diagram"
