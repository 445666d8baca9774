"""
End-to-end tests: pipeline recomputation and the dataset export CLI.
"""

import json
from datetime import date

import pandas as pd
import pytest

from reserving_prep import cli, config
from reserving_prep.pipeline import run_pipeline


class TestRunPipeline:
    """All outputs derive from one parameter set."""

    def test_deterministic(self):
        a = run_pipeline(n=15, seed="pipeline")
        b = run_pipeline(n=15, seed="pipeline")
        assert a.claims == b.claims
        assert a.price_index == b.price_index
        assert a.training_rows == b.training_rows
        assert a.dataset_rows == b.dataset_rows

    def test_reference_defaults(self):
        result = run_pipeline(
            n=3, max_partials=5, seed="preprocessing-diagram", one_based=False
        )
        assert [c.claim_id for c in result.claims] == ["CLM-0001", "CLM-0002", "CLM-0003"]
        assert result.cutoffs.train == config.TRAIN_CUT
        panel = result.panels[1]
        assert panel.quarters[1].total_amount == pytest.approx(14.560080113365576, rel=1e-12)

    def test_parameter_change_recomputes(self):
        small = run_pipeline(n=5, seed="pipeline")
        large = run_pipeline(n=25, seed="pipeline")
        assert len(small.panels) == 5
        assert len(large.panels) == 25
        assert len(large.dataset_rows) >= 25

    def test_unsorted_cutoffs_are_normalised(self):
        result = run_pipeline(
            n=5, train_cut=date(2024, 1, 1), val_cut=date(2021, 1, 1), test_cut=date(2022, 1, 1)
        )
        assert result.cutoffs.train < result.cutoffs.val < result.cutoffs.test

    def test_mid_index_covers_every_quarter(self):
        result = run_pipeline(n=2)
        assert set(result.mid_index) == set(result.price_index.index_map)

    def test_one_based_panels(self):
        result = run_pipeline(n=4, one_based=True)
        for panel in result.panels:
            assert panel.quarters[0].development_quarter == 1
        assert min(r.development_quarter for r in result.training_rows) >= 1


class TestExportCli:
    """CSV snapshots plus a hash manifest."""

    def test_writes_files_and_manifest(self, tmp_path, capsys):
        manifest_path = cli.main(tmp_path)

        assert manifest_path == tmp_path / "dataset_manifest.json"
        manifest = json.loads(manifest_path.read_text())

        expected = {
            "claims.csv",
            "payments.csv",
            "price_index.csv",
            "quarterly_panel.csv",
            "training_rows.csv",
            "dataset_splits.csv",
        }
        assert set(manifest["file_hashes_sha256"]) == expected
        for name, digest in manifest["file_hashes_sha256"].items():
            assert (tmp_path / name).exists()
            assert cli.file_hash(tmp_path / name) == digest

        assert manifest["seed_text"] == config.SEED_TEXT
        assert manifest["parameters"]["n_claims"] == config.N_CLAIMS
        assert manifest["row_counts"]["claims.csv"] == config.N_CLAIMS

        claims = pd.read_csv(tmp_path / "claims.csv")
        assert len(claims) == config.N_CLAIMS

        out = capsys.readouterr().out
        assert "Dataset export complete" in out

    def test_snapshot_is_reproducible(self, tmp_path):
        first = json.loads(cli.main(tmp_path / "a").read_text())
        second = json.loads(cli.main(tmp_path / "b").read_text())
        assert first["file_hashes_sha256"] == second["file_hashes_sha256"]
