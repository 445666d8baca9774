"""
Schema definitions for the entities flowing through the reserving pipeline.

These schemas define the **contract** between:
- claim generation / external claim ingestion
- quarterly aggregation and liability calculation
- training-row construction and dataset splitting
- downstream exporters and renderers

Each list-of-records output can be flattened into a pandas DataFrame via
the ``*_to_frame`` helpers in the stage modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional


# ---------------- Claim ---------------- #

@dataclass
class Payment:
    date: date
    amount: float


@dataclass
class Claim:
    accident: Optional[date]
    notify: Optional[date]
    settlement: Optional[date]
    payments: Optional[List[Payment]] = field(default_factory=list)
    # claim_id / postcode / claim_type / region / policy_year
    static_covariates: Optional[Dict[str, Any]] = field(default_factory=dict)

    @property
    def claim_id(self) -> Optional[str]:
        if not self.static_covariates:
            return None
        return self.static_covariates.get("claim_id")

    @property
    def is_complete(self) -> bool:
        """True when every field needed for aggregation is present."""
        return (
            self.accident is not None
            and self.notify is not None
            and self.settlement is not None
            and self.payments is not None
            and self.static_covariates is not None
        )


# ---------------- Quarters ---------------- #

@dataclass(frozen=True)
class QuarterInfo:
    calendar_year: int
    calendar_quarter: int      # 1-4
    development_quarter: int   # offset from the reference quarter
    quarter_key: str           # "YYYYQn"


@dataclass(frozen=True)
class PriceAdjustment:
    target_quarter_key: str
    target_pi: Optional[float]
    source_quarter_key: str
    source_mid_pi: Optional[float]
    factor: float


@dataclass
class QuarterRecord:
    development_quarter: int
    calendar_year: int
    calendar_quarter: int
    quarter_key: str
    total_amount: float        # adjusted when inflation_adjusted, else nominal
    nominal_amount: float
    payment_count: int
    payments: List[Payment] = field(default_factory=list)
    inflation_adjusted: bool = False
    price_adjustment: Optional[PriceAdjustment] = None


@dataclass
class ClaimInfo:
    claim_id: str
    static_covariates: Dict[str, Any]
    accident_date: Optional[date]
    notify_date: Optional[date]
    settlement_date: Optional[date]
    accident_quarter: str
    notify_quarter: str
    notify_lag: int            # quarters between accident and notification


@dataclass
class ClaimPanel:
    """Quarterly development panel for a single claim."""
    claim_info: ClaimInfo
    quarters: List[QuarterRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.quarters


# ---------------- Price index ---------------- #

@dataclass(frozen=True)
class PriceIndexPoint:
    date: date                 # first day of the quarter
    quarter_key: str
    index: float               # end-of-quarter reading


@dataclass
class PriceIndexSeries:
    series: List[PriceIndexPoint]
    index_map: Dict[str, float]


# ---------------- Covariate histories ---------------- #

@dataclass
class CovariateHistory:
    """
    Time-indexed optional values of a near-static covariate.

    Attributes:
        values: development quarter -> value (None while not yet known)
    """
    values: Dict[int, Optional[Any]] = field(default_factory=dict)

    def latest(self, dev_quarter: int) -> Optional[Any]:
        """Latest non-missing value at or before ``dev_quarter``."""
        for dq in sorted(self.values, reverse=True):
            if dq > dev_quarter:
                continue
            value = self.values[dq]
            if value is not None:
                return value
        return None


# ---------------- Training rows ---------------- #

@dataclass
class TrainingRow:
    claim_id: str
    development_quarter: int
    quarter_key: str
    covariates: Dict[str, Any]
    inc_mean: float
    inc_max: float
    inc_sd: float
    inc_sum: float
    cum_paid_last: float
    outstanding_estimate_last: float
    target: float              # true outstanding liability at the cutoff
    is_zero_target: bool


# ---------------- Dataset splits ---------------- #

@dataclass
class DatasetRow:
    claim: Claim
    partition: str             # train / val / test / post
    is_censored: bool
    observed_end: Optional[date]
    is_duplicate: bool = False
    has_duplicate: bool = False
    link_from: Optional[int] = None    # index of the origin row for duplicates
    leak_until: Optional[date] = None  # duplicate overlaps origin up to here
    is_unused: bool = False            # settles on or after the test cutoff


@dataclass(frozen=True)
class Cutoffs:
    """Ordered split cutoffs: train <= val <= test."""
    train: date
    val: date
    test: date
