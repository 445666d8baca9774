"""Shared fixtures for the reserving preprocessing tests."""

from datetime import date

import pytest

from reserving_prep.generators import generate_claims, generate_price_index
from reserving_prep.schemas import Claim, Payment


def make_claim(accident, notify, settlement, payments=(), claim_id="CLM-0001", **covariates):
    static = {"claim_id": claim_id, "postcode": "2000", "claim_type": "Motor", "region": "Metro"}
    static.update(covariates)
    return Claim(
        accident=accident,
        notify=notify,
        settlement=settlement,
        payments=[Payment(d, float(a)) for d, a in payments],
        static_covariates=static,
    )


@pytest.fixture
def claim_factory():
    return make_claim


@pytest.fixture
def reference_claims():
    """Small fixed population used for exact-value checks."""
    return generate_claims(
        n=3,
        start_date=date(2020, 1, 1),
        end_date=date(2025, 1, 1),
        min_dur_days=180,
        max_dur_days=1095,
        max_partials=5,
        seed="preprocessing-diagram",
        dedupe_monthly=True,
    )


@pytest.fixture
def reference_index():
    return generate_price_index(date(2020, 1, 1), date(2025, 1, 1), "preprocessing-diagram")


@pytest.fixture
def population():
    return generate_claims(
        n=200,
        start_date=date(2020, 1, 1),
        end_date=date(2025, 1, 1),
        min_dur_days=180,
        max_dur_days=1095,
        max_partials=20,
        seed="population",
    )
