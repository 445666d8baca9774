"""
reserving_prep - claim timelines to reserving-model training data.
"""

from .rng import hash_seed, mulberry32, Mulberry32

from .quarters import (
    quarter_info,
    quarter_key,
    prev_quarter_key,
    next_quarter_key,
)

from .schemas import (
    Payment,
    Claim,
    QuarterInfo,
    QuarterRecord,
    ClaimInfo,
    ClaimPanel,
    PriceIndexSeries,
    CovariateHistory,
    TrainingRow,
    DatasetRow,
    Cutoffs,
)

from .generators import (
    generate_claims,
    claims_from_records,
    generate_price_index,
    build_mid_quarter_index,
)

from .aggregation import aggregate_claim_to_quarters
from .liability import ultimate, cumulative_to_date, outstanding, outstanding_series
from .training import generate_training_rows, training_rows_to_frame
from .splits import build_dataset_rows, normalize_cutoffs, suggest_cutoffs
from .pipeline import PipelineResult, run_pipeline

__all__ = [
    # Random streams
    "hash_seed",
    "mulberry32",
    "Mulberry32",
    # Quarters
    "quarter_info",
    "quarter_key",
    "prev_quarter_key",
    "next_quarter_key",
    # Schemas
    "Payment",
    "Claim",
    "QuarterInfo",
    "QuarterRecord",
    "ClaimInfo",
    "ClaimPanel",
    "PriceIndexSeries",
    "CovariateHistory",
    "TrainingRow",
    "DatasetRow",
    "Cutoffs",
    # Generators
    "generate_claims",
    "claims_from_records",
    "generate_price_index",
    "build_mid_quarter_index",
    # Pipeline stages
    "aggregate_claim_to_quarters",
    "ultimate",
    "cumulative_to_date",
    "outstanding",
    "outstanding_series",
    "generate_training_rows",
    "training_rows_to_frame",
    "build_dataset_rows",
    "normalize_cutoffs",
    "suggest_cutoffs",
    "PipelineResult",
    "run_pipeline",
]
