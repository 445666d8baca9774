"""
Training rows for an individual-claims reserving model.

A claim contributes one row per development quarter k in which it is
observable: from its notification quarter up to the earlier of its
settlement quarter and the observation cutoff. Each row carries only what
was known at k:

- static covariates (claim type, region, policy year ...)
- near-static covariates as their latest known value at or before k
- summaries of the inflation-adjusted payment history up to k
- the latest simulated case estimate of the outstanding liability

The target is the true outstanding liability at k. Rows whose target
rounds to 0.00 are flagged; dropping them is left to
``training_rows_to_frame``.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from . import config
from .aggregation import aggregate_claim_to_quarters
from .liability import cumulative_paid, incurred_estimates, outstanding_series
from .quarters import quarter_info
from .schemas import Claim, ClaimPanel, CovariateHistory, TrainingRow

AMOUNT_FEATURES = [
    "inc_mean",
    "inc_max",
    "inc_sd",
    "inc_sum",
    "cum_paid_last",
    "outstanding_estimate_last",
]

CATEGORICAL_FEATURES = ["postcode", "claim_type", "region", "legal_rep"]


def is_zero_target(target: float) -> bool:
    """True when ``target`` rounds (half up) to 0.00 at two decimals."""
    return math.floor(target * 100 + 0.5) == 0


def series_stats(values: List[float]) -> Dict[str, float]:
    """Mean, max, sample standard deviation and sum of a short series."""
    if not values:
        return {"mean": 0.0, "max": 0.0, "sd": 0.0, "sum": 0.0}
    arr = np.asarray(values, dtype=float)
    return {
        "mean": float(arr.mean()),
        "max": float(arr.max()),
        "sd": float(arr.std(ddof=1)) if arr.size > 1 else 0.0,
        "sum": float(arr.sum()),
    }


def demo_covariate_histories(claim: Claim, panel: ClaimPanel) -> Dict[str, CovariateHistory]:
    """Illustrative near-static histories over the panel's development quarters.

    Postcode is known from the notification quarter; legal representation
    becomes known ``config.LEGAL_REP_LAG_QUARTERS`` quarters later.
    """
    if panel.is_empty:
        return {}
    dev_qs = [q.development_quarter for q in panel.quarters]
    first, last = min(dev_qs), max(dev_qs)

    notify_dq = quarter_info(claim.notify, claim.accident).development_quarter
    postcode_from = max(first, notify_dq)
    legal_rep_from = min(last, postcode_from + config.LEGAL_REP_LAG_QUARTERS)

    postcode = claim.static_covariates.get("postcode")
    return {
        "postcode": CovariateHistory({dq: (postcode if dq >= postcode_from else None) for dq in dev_qs}),
        "legal_rep": CovariateHistory({dq: ("Yes" if dq >= legal_rep_from else None) for dq in dev_qs}),
    }


def training_row_count(claim: Claim, observation_end: date) -> int:
    """max(0, min(settlement dev q, observation dev q) - notify dev q + 1)."""
    if not claim.is_complete:
        return 0
    notify_dq = quarter_info(claim.notify, claim.accident).development_quarter
    settle_dq = quarter_info(claim.settlement, claim.accident).development_quarter
    obs_dq = quarter_info(observation_end, claim.accident).development_quarter
    return max(0, min(settle_dq, obs_dq) - notify_dq + 1)


def generate_training_rows(
    claim: Claim,
    observation_end: date = config.OBSERVATION_END,
    price_index_map: Optional[Dict[str, float]] = None,
    one_based: bool = False,
    covariate_histories: Optional[Dict[str, CovariateHistory]] = None,
) -> List[TrainingRow]:
    """Emit one training row per observable development quarter of ``claim``.

    Args:
        claim: Claim with its full payment history.
        observation_end: Data cutoff; also the inflation target quarter.
        price_index_map: quarter_key -> end-of-quarter index (None = nominal).
        one_based: Label development quarters from 1.
        covariate_histories: Near-static covariates keyed by name, indexed
            by zero-based development quarter. Defaults to the demo
            histories from ``demo_covariate_histories``.

    Returns:
        Rows ordered by development quarter; empty for malformed claims and
        for claims not yet notified at the cutoff.
    """
    panel = aggregate_claim_to_quarters(claim, False, observation_end, price_index_map)
    if panel.is_empty:
        return []

    notify_dq = quarter_info(claim.notify, claim.accident).development_quarter
    settle_dq = quarter_info(claim.settlement, claim.accident).development_quarter
    obs_dq = quarter_info(observation_end, claim.accident).development_quarter
    last_dq = min(settle_dq, obs_dq)
    first_dq = max(notify_dq, panel.quarters[0].development_quarter)
    if last_dq < first_dq:
        return []

    if covariate_histories is None:
        covariate_histories = demo_covariate_histories(claim, panel)

    quarters = panel.quarters
    increments = [q.total_amount for q in quarters]
    cumulative = cumulative_paid(quarters)
    true_outstanding = outstanding_series(quarters)
    estimates = incurred_estimates(true_outstanding, panel.claim_info.claim_id)
    position = {q.development_quarter: i for i, q in enumerate(quarters)}

    static = {k: v for k, v in claim.static_covariates.items() if k != "claim_id"}
    offset = 1 if one_based else 0
    rows: List[TrainingRow] = []

    for k in range(first_dq, last_dq + 1):
        idx = position[k]
        stats = series_stats(increments[: idx + 1])
        target = true_outstanding[idx]

        covariates = dict(static)
        for name, history in covariate_histories.items():
            covariates[name] = history.latest(k)

        rows.append(
            TrainingRow(
                claim_id=panel.claim_info.claim_id,
                development_quarter=k + offset,
                quarter_key=quarters[idx].quarter_key,
                covariates=covariates,
                inc_mean=stats["mean"],
                inc_max=stats["max"],
                inc_sd=stats["sd"],
                inc_sum=stats["sum"],
                cum_paid_last=cumulative[idx],
                outstanding_estimate_last=estimates[idx],
                target=target,
                is_zero_target=is_zero_target(target),
            )
        )
    return rows


def generate_training_set(
    claims: List[Claim],
    observation_end: date = config.OBSERVATION_END,
    price_index_map: Optional[Dict[str, float]] = None,
    one_based: bool = False,
) -> List[TrainingRow]:
    rows: List[TrainingRow] = []
    for claim in claims:
        rows.extend(generate_training_rows(claim, observation_end, price_index_map, one_based))
    return rows


def training_rows_to_frame(rows: List[TrainingRow], drop_zero_targets: bool = False) -> pd.DataFrame:
    """Flatten training rows; covariates become columns.

    Args:
        drop_zero_targets: Discard rows flagged ``is_zero_target``.
    """
    records = []
    for r in rows:
        if drop_zero_targets and r.is_zero_target:
            continue
        records.append(
            {
                "claim_id": r.claim_id,
                "development_quarter": r.development_quarter,
                "quarter_key": r.quarter_key,
                **r.covariates,
                "inc_mean": r.inc_mean,
                "inc_max": r.inc_max,
                "inc_sd": r.inc_sd,
                "inc_sum": r.inc_sum,
                "cum_paid_last": r.cum_paid_last,
                "outstanding_estimate_last": r.outstanding_estimate_last,
                "target": r.target,
                "is_zero_target": r.is_zero_target,
            }
        )
    return pd.DataFrame(records)


def prepare_model_inputs(frame: pd.DataFrame) -> pd.DataFrame:
    """Neural-network preprocessing: log1p on amounts, one-hot categoricals.

    Missing categorical values get their own ``<name>_NA`` indicator column.
    The target column is left untransformed.
    """
    out = frame.copy()
    for col in AMOUNT_FEATURES:
        if col in out.columns:
            out[col] = np.log1p(out[col].clip(lower=0))

    cats = [c for c in CATEGORICAL_FEATURES if c in out.columns]
    for col in cats:
        out[col] = out[col].astype(object).where(out[col].notna(), "NA").astype(str)
    return pd.get_dummies(out, columns=cats, prefix=cats, dtype=int)
