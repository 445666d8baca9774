"""
Train / validation / test splitting of claims, with censoring.

Partitions are defined by three ordered cutoffs (train <= val <= test):

    date <  train          -> train
    train <= date < val    -> val
    val   <= date < test   -> test
    date >= test           -> post   (outside the observation window)

Split policies:
- "notify":      partition by notification date; a claim whose settlement
                 falls after its partition's cutoff is censored there.
- "settlement":  partition by settlement date; never censored.
- "notify_dup":  "notify" plus leakage duplication. A censored train claim
                 settling in (train, val] is duplicated, uncensored, into
                 val; a censored val claim settling in (val, test] is
                 duplicated into test. The duplicate overlaps its origin
                 up to the origin's cutoff (``leak_until``).

Under every policy a claim settling on or after the test cutoff is flagged
``is_unused``: it keeps its partition but its outcome is not fully observed
in the window.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd

from . import config
from .quarters import add_days, clamp_date, days_between, to_date
from .schemas import Claim, Cutoffs, DatasetRow

PARTITIONS = ("train", "val", "test", "post")
SPLIT_MODES = ("notify", "settlement", "notify_dup")


# ---------------- Cutoffs ---------------- #

def normalize_cutoffs(
    train_cut: Any,
    val_cut: Any,
    test_cut: Any,
    start_date: date = config.START_DATE,
    end_date: date = config.END_DATE,
) -> Cutoffs:
    """Clamp the three cutoffs into the window and sort them.

    If any cutoff cannot be parsed, ``config.DEFAULT_CUTOFFS`` (clamped)
    are used instead.
    """
    start_date, end_date = to_date(start_date), to_date(end_date)
    parsed = [to_date(c) for c in (train_cut, val_cut, test_cut)]
    if any(c is None for c in parsed):
        parsed = list(config.DEFAULT_CUTOFFS)
    ordered = sorted(clamp_date(c, start_date, end_date) for c in parsed)
    return Cutoffs(train=ordered[0], val=ordered[1], test=ordered[2])


def suggest_cutoffs(
    claims: List[Claim],
    start_date: date = config.START_DATE,
    observation_end: date = config.OBSERVATION_END,
) -> Cutoffs:
    """Cutoffs placing roughly 60% / 20% / 20% of claims by notification date.

    The train and val cutoffs sit midway between the notify dates either
    side of the 60% and 80% ranks; the test cutoff is the observation end.
    With fewer than two notified claims the train and val cutoffs fall at
    60% and 80% of the days from ``start_date`` to ``observation_end``.
    """
    start_date, observation_end = to_date(start_date), to_date(observation_end)
    notify_dates = sorted(c.notify for c in claims if c.notify is not None)
    n = len(notify_dates)
    if n < 2:
        total = days_between(start_date, observation_end)
        return Cutoffs(
            train=add_days(start_date, math.floor(0.6 * total)),
            val=add_days(start_date, math.floor(0.8 * total)),
            test=observation_end,
        )

    def clamp_idx(i: int) -> int:
        return min(max(i, 0), n - 2)

    def midpoint(i: int) -> date:
        a, b = notify_dates[i], notify_dates[i + 1]
        return a + (b - a) / 2

    # half-up rounding of the 60% / 80% ranks
    k60 = clamp_idx(int(0.6 * n + 0.5) - 1)
    k80 = clamp_idx(int(0.8 * n + 0.5) - 1)
    if k80 <= k60:
        k80 = clamp_idx(k60 + 1)

    return Cutoffs(
        train=clamp_date(midpoint(k60), start_date, observation_end),
        val=clamp_date(midpoint(k80), start_date, observation_end),
        test=observation_end,
    )


# ---------------- Partitioning ---------------- #

def partition_for(d: date, cutoffs: Cutoffs) -> str:
    if d < cutoffs.train:
        return "train"
    if d < cutoffs.val:
        return "val"
    if d < cutoffs.test:
        return "test"
    return "post"


def partition_cutoff(partition: str, cutoffs: Cutoffs) -> date:
    """Observation cutoff of a partition; post rows are cut at the test cutoff."""
    if partition == "train":
        return cutoffs.train
    if partition == "val":
        return cutoffs.val
    return cutoffs.test


def _duplicate_target(row: DatasetRow, cutoffs: Cutoffs) -> Optional[tuple[str, date]]:
    """Partition and leak boundary for a leakage duplicate of ``row``, if any."""
    if not row.is_censored:
        return None
    settled = row.claim.settlement
    if row.partition == "train" and cutoffs.train < settled <= cutoffs.val:
        return "val", cutoffs.train
    if row.partition == "val" and cutoffs.val < settled <= cutoffs.test:
        return "test", cutoffs.val
    return None


def build_dataset_rows(
    claims: List[Claim],
    cutoffs: Cutoffs,
    mode: str = config.SPLIT_MODE,
) -> List[DatasetRow]:
    """Assign every claim to a partition under the chosen split policy.

    Args:
        claims: Claims, usually sorted by notification date.
        cutoffs: Ordered split cutoffs.
        mode: One of ``SPLIT_MODES``.

    Returns:
        Rows in claim order; a leakage duplicate directly follows its
        origin row and points back to it via ``link_from``.
    """
    if mode not in SPLIT_MODES:
        raise ValueError(f"Unknown split mode {mode!r}; expected one of {SPLIT_MODES}")

    rows: List[DatasetRow] = []
    for claim in claims:
        if claim.notify is None or claim.settlement is None:
            continue

        unused = claim.settlement >= cutoffs.test
        if mode == "settlement":
            rows.append(
                DatasetRow(
                    claim=claim,
                    partition=partition_for(claim.settlement, cutoffs),
                    is_censored=False,
                    observed_end=None,
                    is_unused=unused,
                )
            )
            continue

        partition = partition_for(claim.notify, cutoffs)
        cutoff = partition_cutoff(partition, cutoffs)
        primary = DatasetRow(
            claim=claim,
            partition=partition,
            is_censored=claim.settlement > cutoff,
            observed_end=cutoff,
            is_unused=unused,
        )
        primary_idx = len(rows)
        rows.append(primary)

        if mode != "notify_dup":
            continue
        target = _duplicate_target(primary, cutoffs)
        if target is None:
            continue
        dup_partition, leak_until = target
        primary.has_duplicate = True
        rows.append(
            DatasetRow(
                claim=claim,
                partition=dup_partition,
                is_censored=False,
                observed_end=None,
                is_duplicate=True,
                link_from=primary_idx,
                leak_until=leak_until,
                is_unused=unused,
            )
        )
    return rows


def dataset_rows_to_frame(rows: List[DatasetRow]) -> pd.DataFrame:
    columns = [
        "claim_id",
        "notify_date",
        "settlement_date",
        "partition",
        "is_censored",
        "observed_end",
        "is_duplicate",
        "has_duplicate",
        "link_from",
        "leak_until",
        "is_unused",
    ]
    records = [
        {
            "claim_id": r.claim.claim_id,
            "notify_date": r.claim.notify,
            "settlement_date": r.claim.settlement,
            "partition": r.partition,
            "is_censored": r.is_censored,
            "observed_end": r.observed_end,
            "is_duplicate": r.is_duplicate,
            "has_duplicate": r.has_duplicate,
            "link_from": r.link_from,
            "leak_until": r.leak_until,
            "is_unused": r.is_unused,
        }
        for r in rows
    ]
    return pd.DataFrame(records, columns=columns)


def partition_summary(rows: List[DatasetRow]) -> Dict[str, Dict[str, int]]:
    """Row, censored, duplicate and unused counts per partition."""
    summary = {p: {"rows": 0, "censored": 0, "duplicates": 0, "unused": 0} for p in PARTITIONS}
    for r in rows:
        s = summary[r.partition]
        s["rows"] += 1
        s["censored"] += int(r.is_censored)
        s["duplicates"] += int(r.is_duplicate)
        s["unused"] += int(r.is_unused)
    return summary
