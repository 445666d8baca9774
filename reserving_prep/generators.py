"""
Synthetic data generators for the reserving preprocessing pipeline.

Design goals:
- Bit-reproducible: the same seed text and parameters give an identical
  claim population and price index on every run.
- Claim timelines respect accident <= notify <= settlement, with payments
  strictly after notification and no later than settlement.
- The price index drifts upwards by roughly 1.6% per quarter with light
  noise, so inflation adjustment has a visible effect over a few years.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from . import config
from .quarters import (
    add_days,
    days_between,
    month_key,
    parse_maybe_date,
    prev_quarter_key,
    quarter_key,
    quarter_range,
    to_date,
)
from .rng import MASK32, Mulberry32, resolve_seed
from .schemas import Claim, Payment, PriceIndexPoint, PriceIndexSeries


# ---------------- Payment helpers ---------------- #

def normalize_payments(
    payments: Iterable[Payment],
    notify: date,
    settlement: date,
    dedupe_monthly: bool,
) -> List[Payment]:
    """Keep payments in (notify, settlement], sort by date, optionally merge by month.

    Monthly merging sums the amounts of every payment in a calendar month
    into the earliest payment of that month.
    """
    kept = sorted(
        (p for p in payments if notify < p.date <= settlement),
        key=lambda p: p.date,
    )
    if not dedupe_monthly:
        return [Payment(p.date, p.amount) for p in kept]

    merged: Dict[int, Payment] = {}
    for p in kept:
        key = month_key(p.date)
        if key in merged:
            merged[key].amount += p.amount
        else:
            merged[key] = Payment(p.date, p.amount)
    return list(merged.values())


# ---------------- Claims ---------------- #

def generate_claims(
    n: int = config.N_CLAIMS,
    start_date: date = config.START_DATE,
    end_date: date = config.END_DATE,
    min_dur_days: int = config.MIN_DUR_DAYS,
    max_dur_days: int = config.MAX_DUR_DAYS,
    max_partials: int = config.MAX_PARTIALS,
    seed: str | int = config.SEED_TEXT,
    dedupe_monthly: bool = config.DEDUPE_MONTHLY,
) -> List[Claim]:
    """Generate a synthetic claim population.

    Draw order per claim (one Mulberry32 stream for the whole population):
    accident lag, notify offset, duration, payment count, then a (day offset,
    amount) pair per payment, then postcode, claim type and region.

    Returns:
        Claims sorted by notification date (ties keep generation order).
    """
    if n < 0:
        raise ValueError(f"Population size must be non-negative, got {n}")

    start_date = to_date(start_date)
    end_date = to_date(end_date)
    rand = Mulberry32(resolve_seed(seed))

    total_days = max(1, days_between(start_date, end_date))
    latest_notify = max(0, total_days - min_dur_days)
    dur_span = max(1, max_dur_days - min_dur_days + 1)

    claims: List[Claim] = []
    for i in range(n):
        accident_lag = config.ACCIDENT_LAG_MIN_DAYS + rand.randint_below(
            config.ACCIDENT_LAG_SPAN_DAYS
        )
        notify = add_days(start_date, rand.randint_below(latest_notify))
        accident = add_days(notify, -accident_lag)

        dur = min_dur_days + rand.randint_below(dur_span)
        settlement = min(add_days(notify, dur), end_date)

        k = rand.randint_below(max_partials + 1)
        if days_between(notify, settlement) < 2:
            k = 0

        raw_payments = []
        span_days = max(1, days_between(notify, settlement))
        for _ in range(k):
            paid_on = add_days(notify, rand.randint_below(span_days))
            amount = 1 + rand.randint_below(9)
            raw_payments.append(Payment(paid_on, float(amount)))

        payments = normalize_payments(raw_payments, notify, settlement, dedupe_monthly)

        static_covariates = {
            "claim_id": f"{config.CLAIM_ID_PREFIX}{i + 1:04d}",
            "postcode": rand.choice(config.POSTCODES),
            "claim_type": rand.choice(config.CLAIM_TYPES),
            "region": rand.choice(config.REGIONS),
            "policy_year": accident.year,
        }

        claims.append(
            Claim(
                accident=accident,
                notify=notify,
                settlement=settlement,
                payments=payments,
                static_covariates=static_covariates,
            )
        )

    claims.sort(key=lambda c: c.notify)
    return claims


def claims_from_records(
    records: Iterable[Dict[str, Any]],
    start_date: date = config.START_DATE,
    dedupe_monthly: bool = config.DEDUPE_MONTHLY,
) -> List[Claim]:
    """Build claims from externally supplied records (e.g. parsed JSON).

    Each record needs ``notify`` and ``settlement``; numbers are read as day
    offsets from ``start_date``. Optional keys:
    - ``accident``: defaults to 30 days before notification
    - ``payments``: list of ``{"date", "amount"}``
    - ``partials``: payment dates without amounts; each is booked at 5,000
      and a 10,000 final payment is added at settlement
    Records without a usable notify or settlement date are skipped.
    """
    start_date = to_date(start_date)
    claims: List[Claim] = []

    for i, rec in enumerate(records):
        notify = parse_maybe_date(rec.get("notify"), start_date)
        settlement = parse_maybe_date(rec.get("settlement"), start_date)
        if notify is None or settlement is None:
            continue
        accident = parse_maybe_date(rec.get("accident"), start_date) or add_days(notify, -30)

        if rec.get("payments") is not None:
            raw = []
            for p in rec["payments"]:
                paid_on = parse_maybe_date(p.get("date"), start_date)
                if paid_on is not None:
                    raw.append(Payment(paid_on, float(p.get("amount", 0.0))))
        else:
            partials = [parse_maybe_date(p, start_date) for p in rec.get("partials") or []]
            raw = [Payment(d, 5000.0) for d in partials if d is not None]
            raw.append(Payment(settlement, 10000.0))

        payments = normalize_payments(raw, notify, settlement, dedupe_monthly)

        static_covariates = {
            "claim_id": rec.get("claim_id") or f"CUSTOM{i + 1}",
            "postcode": rec.get("postcode", "2000"),
            "claim_type": rec.get("claim_type", "Motor"),
            "region": rec.get("region", "Metro"),
            "policy_year": accident.year,
        }
        claims.append(Claim(accident, notify, settlement, payments, static_covariates))

    claims.sort(key=lambda c: c.notify)
    return claims


def claims_to_frame(claims: List[Claim]) -> pd.DataFrame:
    """One row per claim with dates, covariates and payment totals."""
    rows = []
    for c in claims:
        payments = c.payments or []
        rows.append(
            {
                **(c.static_covariates or {}),
                "accident_date": c.accident,
                "notify_date": c.notify,
                "settlement_date": c.settlement,
                "payment_count": len(payments),
                "paid_amount": float(sum(p.amount for p in payments)),
            }
        )
    return pd.DataFrame(rows)


def payments_to_frame(claims: List[Claim]) -> pd.DataFrame:
    rows = [
        {"claim_id": c.claim_id, "payment_date": p.date, "amount": p.amount}
        for c in claims
        for p in (c.payments or [])
    ]
    return pd.DataFrame(rows, columns=["claim_id", "payment_date", "amount"])


# ---------------- Price index ---------------- #

def generate_price_index(
    start_date: date = config.START_DATE,
    end_date: date = config.END_DATE,
    seed: str | int = config.SEED_TEXT,
) -> PriceIndexSeries:
    """Quarterly price index, one end-of-quarter reading per calendar quarter.

    Starting from the base of 100, every quarter (the first included) is
    scaled by ``1 + drift + noise`` with drift in [1.3%, 1.9%] and noise in
    [-0.4%, +0.4%], floored at 60. Each quarter consumes two draws
    (drift, then noise).

    Returns:
        PriceIndexSeries with the ordered points and a quarter_key -> index map.
    """
    rand = Mulberry32((resolve_seed(seed) ^ config.PRICE_INDEX_SEED_SALT) & MASK32)

    series: List[PriceIndexPoint] = []
    index_map: Dict[str, float] = {}
    level = config.PRICE_INDEX_BASE

    for q in quarter_range(to_date(start_date), to_date(end_date)):
        drift = config.PRICE_INDEX_DRIFT_MIN + rand() * config.PRICE_INDEX_DRIFT_SPAN
        noise = (rand() - 0.5) * config.PRICE_INDEX_NOISE_SPAN
        level = max(config.PRICE_INDEX_FLOOR, level * (1 + drift + noise))

        key = quarter_key(q)
        series.append(PriceIndexPoint(date=q, quarter_key=key, index=level))
        index_map[key] = level

    return PriceIndexSeries(series=series, index_map=index_map)


def build_mid_quarter_index(index_map: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
    """Mid-quarter index: ``sqrt(eoq[q-1] * eoq[q])``.

    Readings are treated as quarter averages, so payments made mid-quarter
    are valued at the geometric midpoint between consecutive readings. The
    first quarter has no predecessor and keeps its own reading.
    """
    if index_map is None:
        return None
    mid: Dict[str, float] = {}
    for key in sorted(index_map):
        eoq = index_map[key]
        prev = index_map.get(prev_quarter_key(key))
        if prev and eoq:
            mid[key] = math.sqrt(prev * eoq)
        else:
            mid[key] = eoq
    return mid


def price_index_to_frame(price_index: PriceIndexSeries) -> pd.DataFrame:
    mid = build_mid_quarter_index(price_index.index_map) or {}
    return pd.DataFrame(
        {
            "quarter_start": [p.date for p in price_index.series],
            "quarter_key": [p.quarter_key for p in price_index.series],
            "index": [p.index for p in price_index.series],
            "mid_index": [mid.get(p.quarter_key) for p in price_index.series],
        },
        columns=["quarter_start", "quarter_key", "index", "mid_index"],
    )
