"""
Unit Tests - Charts
===================

Each chart function writes a non-empty PNG and closes its figure.
"""

import matplotlib.pyplot as plt
import pytest

from gini_report import estimates, plots, regression

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def fits(tracts):
    return {
        "pooled": regression.fit_pooled(tracts),
        "slopes": regression.county_slopes(tracts),
        "means": regression.county_means(tracts),
    }


@pytest.fixture
def comparison(tracts_with_tiny_county):
    return estimates.compare_estimates(
        estimates.county_averages(tracts_with_tiny_county),
        estimates.fixed_effects_estimates(tracts_with_tiny_county),
        estimates.multilevel_estimates(tracts_with_tiny_county, engine="mixedlm"),
    )


def assert_png(path):
    assert path.exists()
    assert path.read_bytes()[:8] == PNG_MAGIC
    assert plt.get_fignums() == []


def test_value_vs_gini(tracts, fits, tmp_path):
    assert_png(plots.plot_value_vs_gini(tracts, fits["pooled"], tmp_path / "scatter.png"))


def test_simpson(tracts, fits, tmp_path):
    assert_png(plots.plot_simpson(tracts, fits["pooled"], fits["slopes"], tmp_path / "simpson.png", highlight=3))


def test_simpson_without_slopes(tracts, fits, tmp_path):
    empty = regression.county_slopes(tracts, min_tracts=10_000)
    assert_png(plots.plot_simpson(tracts, fits["pooled"], empty, tmp_path / "simpson_empty.png"))


def test_county_means(fits, tmp_path):
    assert_png(plots.plot_county_means(fits["means"], tmp_path / "means.png"))


def test_causal_dag(tmp_path):
    assert_png(plots.plot_causal_dag(tmp_path / "nested" / "dag.png"))


def test_county_comparison_with_nan_bounds(comparison, tmp_path):
    comparison.loc[comparison.index[0], ["lower", "upper"]] = float("nan")
    assert_png(plots.plot_county_comparison(comparison, tmp_path / "comparison.png"))


def test_county_comparison_label_follows_level(comparison, tmp_path, monkeypatch):
    labels = []

    def _record(fig, output_path):
        labels.append(fig.axes[0].get_xlabel())
        plt.close(fig)
        return output_path
    monkeypatch.setattr(plots, "save_chart", _record)
    plots.plot_county_comparison(comparison, tmp_path / "comparison.png", level=0.5)
    assert labels == ["Gini Index (50% interval)"]


def test_shrinkage(comparison, tracts_with_tiny_county, tmp_path):
    shrink = estimates.shrinkage_table(comparison)
    assert_png(plots.plot_shrinkage(shrink, tracts_with_tiny_county["gini"].mean(), tmp_path / "shrink.png"))
