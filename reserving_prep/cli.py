"""
Command-line entry point for exporting a locked reserving training dataset.

Usage (from project root):

    python -m reserving_prep.cli

This script:
1) Runs the preprocessing pipeline with the parameters in ``config``
2) Writes CSV snapshots (claims, payments, price index, quarterly panel,
   training rows, dataset splits) to disk
3) Produces a cryptographic dataset manifest to lock the snapshot
"""

from pathlib import Path
import json
import hashlib
import datetime
import platform

from . import config
from .aggregation import panel_to_frame
from .generators import claims_to_frame, payments_to_frame, price_index_to_frame
from .pipeline import run_pipeline
from .splits import dataset_rows_to_frame, partition_summary
from .training import training_rows_to_frame


# -------------------------------------------------------------------
# Output location
# -------------------------------------------------------------------

DATA_DIR = Path(__file__).resolve().parents[1] / "data" / "processed"


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------

def file_hash(path: Path) -> str:
    """Compute SHA-256 hash of a file (streaming-safe)."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


# -------------------------------------------------------------------
# Main entrypoint
# -------------------------------------------------------------------

def main(data_dir: Path | None = None) -> Path:
    data_dir = Path(data_dir) if data_dir is not None else DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)

    print("▶ Running claims reserving preprocessing pipeline...")

    result = run_pipeline(observation_end=config.OBSERVATION_END)

    # ---------------- Write datasets ---------------- #

    frames = {
        "claims.csv": claims_to_frame(result.claims),
        "payments.csv": payments_to_frame(result.claims),
        "price_index.csv": price_index_to_frame(result.price_index),
        "quarterly_panel.csv": panel_to_frame(result.panels),
        "training_rows.csv": training_rows_to_frame(result.training_rows),
        "dataset_splits.csv": dataset_rows_to_frame(result.dataset_rows),
    }
    paths = {name: data_dir / name for name in frames}

    for name, frame in frames.items():
        frame.to_csv(paths[name], index=False)

    print(f"✔ Data written to {data_dir}")

    # ---------------- Build dataset manifest ---------------- #

    manifest = {
        "dataset_version": "v1.0",
        "generated_at_utc": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "generator_entrypoint": "reserving_prep.cli",
        "generator_function": "run_pipeline",
        "python_version": platform.python_version(),
        "platform": platform.platform(),
        "seed_text": config.SEED_TEXT,
        "parameters": {
            "n_claims": config.N_CLAIMS,
            "start_date": config.START_DATE.isoformat(),
            "end_date": config.END_DATE.isoformat(),
            "observation_end": config.OBSERVATION_END.isoformat(),
            "min_dur_days": config.MIN_DUR_DAYS,
            "max_dur_days": config.MAX_DUR_DAYS,
            "max_partials": config.MAX_PARTIALS,
            "dedupe_monthly": config.DEDUPE_MONTHLY,
            "one_based_dev_quarters": config.ONE_BASED_DEV_QUARTERS,
            "split_mode": config.SPLIT_MODE,
            "cutoffs": {
                "train": result.cutoffs.train.isoformat(),
                "val": result.cutoffs.val.isoformat(),
                "test": result.cutoffs.test.isoformat(),
            },
        },
        "row_counts": {name: len(frame) for name, frame in frames.items()},
        "file_hashes_sha256": {
            name: file_hash(path) for name, path in paths.items()
        },
    }

    manifest_path = data_dir / "dataset_manifest.json"
    with open(manifest_path, "w") as f:
        json.dump(manifest, f, indent=2)

    print("✔ Dataset manifest written")
    print(f"✔ Manifest path: {manifest_path}")

    # ---------------- Quick dataset sanity ---------------- #

    training = frames["training_rows.csv"]
    if len(training) > 0:
        zero_share = training["is_zero_target"].mean()
        print(f"ℹ Training rows with zero target (flagged for discard): {zero_share:.2%}")

    for partition, counts in partition_summary(result.dataset_rows).items():
        print(
            f"ℹ {partition:>5}: {counts['rows']} rows, "
            f"{counts['censored']} censored, {counts['duplicates']} duplicates, "
            f"{counts['unused']} unused"
        )

    print("✅ Dataset export complete and LOCKED")
    return manifest_path


# -------------------------------------------------------------------
# CLI hook
# -------------------------------------------------------------------

if __name__ == "__main__":
    main()
