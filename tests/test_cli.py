"""
Integration Tests - full report run from a tracts CSV
=====================================================
"""

import typing
from pathlib import Path
from typing import Optional

import pandas as pd
import pytest

from gini_report import cli
from gini_report.config import ReportConfig


def test_parse_args_defaults(monkeypatch):
    monkeypatch.setenv("CENSUS_API_KEY", "from-env")
    config = cli.parse_args([])
    assert config.year == ReportConfig().year
    assert config.survey == "acs5"
    assert config.api_key == "from-env"
    assert config.engine == "pymc"
    assert config.tracts_csv is None


def test_tracts_csv_is_optional_path():
    hints = typing.get_type_hints(ReportConfig)
    assert hints["tracts_csv"] == Optional[Path]
    assert ReportConfig().tracts_csv is None


def test_parse_args_overrides():
    config = cli.parse_args(["--engine", "mixedlm", "--api-key", "k", "--tracts-csv", "t.csv",
                             "--level", "0.9", "--output-dir", "out"])
    assert config.engine == "mixedlm"
    assert config.api_key == "k"
    assert config.tracts_csv == Path("t.csv")
    assert config.level == 0.9
    assert config.output_dir == Path("out")


@pytest.mark.parametrize("level", ["0", "1.5"])
def test_parse_args_rejects_bad_level(level):
    with pytest.raises(SystemExit):
        cli.parse_args(["--level", level])


def test_run_report_from_csv(tracts_with_tiny_county, tmp_path):
    csv_path = tmp_path / "tracts.csv"
    tracts_with_tiny_county.to_csv(csv_path, index=False)
    out_dir = tmp_path / "report"
    config = ReportConfig(tracts_csv=csv_path, output_dir=out_dir, engine="mixedlm", highlight=3)

    outputs = cli.run_report(config)

    html = outputs["html"].read_text(encoding="utf-8")
    assert "Pooling across counties" in html
    assert "The sign reverses once counties are held fixed" in html
    assert html.count("data:image/png;base64,") == 6
    assert "OLS Regression Results" in html

    est = pd.read_csv(outputs["csv"])
    n_counties = tracts_with_tiny_county["county"].nunique()
    assert len(est) == 3 * n_counties
    assert set(est["method"]) == {"County Average", "Fixed Effects Model", "Multilevel Model"}
    for key in ("value_vs_gini", "causal_dag", "simpson", "county_means", "comparison", "shrinkage"):
        assert outputs[key].exists()


def test_run_report_needs_two_counties(tracts, tmp_path):
    csv_path = tmp_path / "one.csv"
    tracts[tracts["county"] == "Kern"].to_csv(csv_path, index=False)
    with pytest.raises(RuntimeError, match="at least two counties"):
        cli.run_report(ReportConfig(tracts_csv=csv_path, output_dir=tmp_path / "r", engine="mixedlm"))
