"""
Quarterly aggregation of a claim's payments into a development panel.

Payments are bucketed by calendar quarter and laid out on the claim's
development axis (quarters since the accident quarter). Every development
quarter from accident to settlement gets exactly one record, including
quarters without payments.

Inflation adjustment (when an observation end date is supplied):

    factor(q) = PI_eoq[target] / PI_mid[q]

where ``target`` is the observation end's calendar quarter and
``PI_mid[q] = sqrt(PI_eoq[q-1] * PI_eoq[q])``. Missing index entries give a
factor of 1.0; a non-finite factor leaves the nominal amount unchanged.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Dict, List, Optional

import pandas as pd

from . import config
from .generators import build_mid_quarter_index
from .quarters import parse_quarter_key, quarter_info, shift_quarter_key
from .schemas import Claim, ClaimInfo, ClaimPanel, PriceAdjustment, QuarterRecord


def _invalid_panel() -> ClaimPanel:
    info = ClaimInfo(
        claim_id="INVALID",
        static_covariates={},
        accident_date=None,
        notify_date=None,
        settlement_date=None,
        accident_quarter="2020Q1",
        notify_quarter="2020Q1",
        notify_lag=0,
    )
    return ClaimPanel(claim_info=info, quarters=[])


def _adjust(
    nominal: float,
    source_key: str,
    target_key: str,
    index_map: Optional[Dict[str, float]],
    mid_map: Optional[Dict[str, float]],
) -> tuple[float, PriceAdjustment]:
    target_pi = index_map.get(target_key) if index_map else None
    source_mid = mid_map.get(source_key) if mid_map else None

    factor = (target_pi / source_mid) if (target_pi and source_mid) else 1.0
    adjusted = nominal * factor if math.isfinite(factor) else nominal

    return adjusted, PriceAdjustment(
        target_quarter_key=target_key,
        target_pi=target_pi,
        source_quarter_key=source_key,
        source_mid_pi=source_mid,
        factor=factor,
    )


def aggregate_claim_to_quarters(
    claim: Optional[Claim],
    one_based: bool = False,
    observation_end: Optional[date] = None,
    price_index_map: Optional[Dict[str, float]] = None,
) -> ClaimPanel:
    """Aggregate a claim's payments into a contiguous quarterly panel.

    Args:
        claim: Claim to aggregate. Malformed claims yield an empty panel.
        one_based: Label development quarters from 1 instead of 0. Only
            the label changes; bucket membership and order do not.
        observation_end: Target date for inflation adjustment. When None,
            amounts stay nominal.
        price_index_map: quarter_key -> end-of-quarter index.

    Returns:
        ClaimPanel with one QuarterRecord per development quarter in
        [accident quarter, settlement quarter]. The panel has no quarters
        when the claim is malformed, settles before its accident quarter,
        or spans more than ``config.MAX_DEV_QUARTER_SPAN`` quarters.
    """
    if claim is None or not claim.is_complete:
        return _invalid_panel()

    accident_q = quarter_info(claim.accident, claim.accident)
    notify_q = quarter_info(claim.notify, claim.accident)
    settlement_q = quarter_info(claim.settlement, claim.accident)

    info = ClaimInfo(
        claim_id=claim.claim_id or "INVALID",
        static_covariates=dict(claim.static_covariates),
        accident_date=claim.accident,
        notify_date=claim.notify,
        settlement_date=claim.settlement,
        accident_quarter=accident_q.quarter_key,
        notify_quarter=notify_q.quarter_key,
        notify_lag=notify_q.development_quarter - accident_q.development_quarter,
    )

    start_dq = accident_q.development_quarter
    end_dq = settlement_q.development_quarter
    if end_dq < start_dq or end_dq - start_dq > config.MAX_DEV_QUARTER_SPAN:
        return ClaimPanel(claim_info=info, quarters=[])

    # Bucket payments by development quarter
    buckets: Dict[int, List] = {}
    for p in claim.payments:
        dq = quarter_info(p.date, claim.accident).development_quarter
        buckets.setdefault(dq, []).append(p)

    adjusting = observation_end is not None
    target_key = quarter_info(observation_end, claim.accident).quarter_key if adjusting else None
    mid_map = build_mid_quarter_index(price_index_map) if adjusting else None

    offset = 1 if one_based else 0
    quarters: List[QuarterRecord] = []

    for dq in range(start_dq, end_dq + 1):
        key = shift_quarter_key(accident_q.quarter_key, dq)
        year, quarter = parse_quarter_key(key)
        payments = buckets.get(dq, [])
        nominal = float(sum(p.amount for p in payments))

        total = nominal
        adjustment = None
        if adjusting and payments:
            total, adjustment = _adjust(nominal, key, target_key, price_index_map, mid_map)

        quarters.append(
            QuarterRecord(
                development_quarter=dq + offset,
                calendar_year=year,
                calendar_quarter=quarter,
                quarter_key=key,
                total_amount=total,
                nominal_amount=nominal,
                payment_count=len(payments),
                payments=list(payments),
                inflation_adjusted=adjusting,
                price_adjustment=adjustment,
            )
        )

    return ClaimPanel(claim_info=info, quarters=quarters)


def aggregate_claims(
    claims: List[Claim],
    one_based: bool = False,
    observation_end: Optional[date] = None,
    price_index_map: Optional[Dict[str, float]] = None,
) -> List[ClaimPanel]:
    return [
        aggregate_claim_to_quarters(c, one_based, observation_end, price_index_map)
        for c in claims
    ]


def panel_to_frame(panels: ClaimPanel | List[ClaimPanel]) -> pd.DataFrame:
    """Flatten one or more panels into a long quarterly DataFrame."""
    if isinstance(panels, ClaimPanel):
        panels = [panels]

    columns = [
        "claim_id",
        "development_quarter",
        "calendar_year",
        "calendar_quarter",
        "quarter_key",
        "nominal_amount",
        "total_amount",
        "payment_count",
        "inflation_adjusted",
        "adjustment_factor",
    ]
    rows = []
    for panel in panels:
        for q in panel.quarters:
            rows.append(
                {
                    "claim_id": panel.claim_info.claim_id,
                    "development_quarter": q.development_quarter,
                    "calendar_year": q.calendar_year,
                    "calendar_quarter": q.calendar_quarter,
                    "quarter_key": q.quarter_key,
                    "nominal_amount": q.nominal_amount,
                    "total_amount": q.total_amount,
                    "payment_count": q.payment_count,
                    "inflation_adjusted": q.inflation_adjusted,
                    "adjustment_factor": q.price_adjustment.factor if q.price_adjustment else 1.0,
                }
            )
    return pd.DataFrame(rows, columns=columns)
