"""
Ultimate claim size and outstanding liability per development quarter.

    Ultimate           = sum of (adjusted) quarterly amounts over the claim's life
    CumulativeToDate(k) = sum of amounts for development quarters <= k
    Outstanding(k)     = max(0, Ultimate - CumulativeToDate(k))

Ultimate is taken as the last running cumulative sum, so Outstanding at the
final development quarter is exactly zero.
"""

from __future__ import annotations

import re
from typing import List

import numpy as np
import pandas as pd

from . import config
from .rng import MASK32, Mulberry32
from .schemas import QuarterRecord


def cumulative_paid(quarters: List[QuarterRecord]) -> List[float]:
    """Running total of ``total_amount`` in panel order."""
    out = []
    running = 0.0
    for q in quarters:
        running += q.total_amount
        out.append(running)
    return out


def ultimate(quarters: List[QuarterRecord]) -> float:
    cum = cumulative_paid(quarters)
    return cum[-1] if cum else 0.0


def cumulative_to_date(quarters: List[QuarterRecord], dev_quarter: int) -> float:
    """Cumulative paid through development quarter ``dev_quarter`` (inclusive)."""
    running = 0.0
    for q in quarters:
        if q.development_quarter <= dev_quarter:
            running += q.total_amount
    return running


def outstanding(quarters: List[QuarterRecord], dev_quarter: int) -> float:
    return max(0.0, ultimate(quarters) - cumulative_to_date(quarters, dev_quarter))


def outstanding_series(quarters: List[QuarterRecord]) -> List[float]:
    """Outstanding liability after each quarter of the panel."""
    cum = cumulative_paid(quarters)
    ult = cum[-1] if cum else 0.0
    return [max(0.0, ult - c) for c in cum]


def _claim_number(claim_id: str) -> int:
    digits = re.sub(r"\D", "", claim_id or "")
    return int(digits) if digits and int(digits) > 0 else 1


def incurred_estimates(true_outstanding: List[float], claim_id: str) -> List[float]:
    """Simulated case estimates of the outstanding liability.

    The estimate for quarter index ``i`` of ``L`` carries a uniform relative
    error of up to ``25% * (1 - 0.7 * (i + 1) / L)``, drawn from a stream
    seeded with ``claim_number * 1000 + i``. Estimates never go below zero.
    """
    n = len(true_outstanding)
    claim_no = _claim_number(claim_id)
    out = []
    for i, true_val in enumerate(true_outstanding):
        progress = (i + 1) / max(1, n)
        base_error = config.ESTIMATE_BASE_ERROR * (1 - progress * config.ESTIMATE_ERROR_DECAY)
        rand = Mulberry32((claim_no * 1000 + i) & MASK32)
        error_factor = 1 + base_error * (2 * rand() - 1)
        out.append(max(0.0, true_val * error_factor))
    return out


def liability_table(quarters: List[QuarterRecord], claim_id: str = "") -> pd.DataFrame:
    """Per-quarter paid, cumulative, outstanding and simulated case estimate."""
    cum = np.array(cumulative_paid(quarters), dtype=float)
    remaining = outstanding_series(quarters)
    return pd.DataFrame(
        {
            "development_quarter": [q.development_quarter for q in quarters],
            "quarter_key": [q.quarter_key for q in quarters],
            "nominal_amount": [q.nominal_amount for q in quarters],
            "adjusted_amount": [q.total_amount for q in quarters],
            "cumulative_paid": cum,
            "ultimate": np.full(len(quarters), cum[-1] if len(cum) else 0.0),
            "outstanding": remaining,
            "incurred_estimate": incurred_estimates(remaining, claim_id),
        }
    )
