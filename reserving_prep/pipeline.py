"""
End-to-end recomputation of every pipeline output from one parameter set.

Any parameter change means calling ``run_pipeline`` again; all stages are
pure functions of the parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from . import config
from .aggregation import aggregate_claims
from .generators import build_mid_quarter_index, generate_claims, generate_price_index
from .quarters import to_date
from .rng import resolve_seed
from .schemas import Claim, ClaimPanel, Cutoffs, DatasetRow, PriceIndexSeries, TrainingRow
from .splits import build_dataset_rows, normalize_cutoffs
from .training import generate_training_set


@dataclass
class PipelineResult:
    claims: List[Claim]
    price_index: PriceIndexSeries
    mid_index: Dict[str, float]
    panels: List[ClaimPanel]
    training_rows: List[TrainingRow]
    cutoffs: Cutoffs
    dataset_rows: List[DatasetRow]


def run_pipeline(
    n: int = config.N_CLAIMS,
    start_date: date = config.START_DATE,
    end_date: date = config.END_DATE,
    min_dur_days: int = config.MIN_DUR_DAYS,
    max_dur_days: int = config.MAX_DUR_DAYS,
    max_partials: int = config.MAX_PARTIALS,
    seed: str | int = config.SEED_TEXT,
    dedupe_monthly: bool = config.DEDUPE_MONTHLY,
    observation_end: Optional[date] = None,
    train_cut: date = config.TRAIN_CUT,
    val_cut: date = config.VAL_CUT,
    test_cut: date = config.TEST_CUT,
    split_mode: str = config.SPLIT_MODE,
    one_based: bool = config.ONE_BASED_DEV_QUARTERS,
) -> PipelineResult:
    """Generate claims and the price index, then derive every downstream view.

    The claim stream and the price-index stream share one seed; the index
    stream is salted so the two are independent. ``observation_end``
    defaults to the window end.
    """
    start_date, end_date = to_date(start_date), to_date(end_date)
    observation_end = to_date(observation_end) or end_date
    seed_value = resolve_seed(seed)

    claims = generate_claims(
        n=n,
        start_date=start_date,
        end_date=end_date,
        min_dur_days=min_dur_days,
        max_dur_days=max_dur_days,
        max_partials=max_partials,
        seed=seed_value,
        dedupe_monthly=dedupe_monthly,
    )
    price_index = generate_price_index(start_date, end_date, seed_value)
    index_map = price_index.index_map

    panels = aggregate_claims(claims, one_based, observation_end, index_map)
    training_rows = generate_training_set(claims, observation_end, index_map, one_based)

    cutoffs = normalize_cutoffs(train_cut, val_cut, test_cut, start_date, end_date)
    dataset_rows = build_dataset_rows(claims, cutoffs, split_mode)

    return PipelineResult(
        claims=claims,
        price_index=price_index,
        mid_index=build_mid_quarter_index(index_map),
        panels=panels,
        training_rows=training_rows,
        cutoffs=cutoffs,
        dataset_rows=dataset_rows,
    )
