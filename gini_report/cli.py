#!/usr/bin/env python3
"""Build the California tract inequality report.

Steps:
1. Load ACS tract data (Gini Index, median home value) from cache, Census API or CSV
2. Pooled vs fixed-effects regression (Simpson's-paradox-like reversal)
3. County inequality by three methods: average, fixed effects, multilevel
4. Charts + report.html + county_estimates.csv in the output directory

Usage:
  Optionally set CENSUS_API_KEY in environment.
  Run: gini-report --output-dir report
"""

import argparse
from pathlib import Path

from . import acs, estimates, plots, regression, report
from .config import CACHE_PATH, METHOD_AVERAGE, ReportConfig, api_key_from_env


def _fmt_summary(s):
    lines = [
        f"Pooled slope: {s['pooled_slope']:+.4f} Gini per $100k "
        f"(95% CI {s['pooled_lower']:+.4f} to {s['pooled_upper']:+.4f}).",
        f"Within-county (fixed-effects) slope: {s['within_slope']:+.4f} Gini per $100k "
        f"(95% CI {s['within_lower']:+.4f} to {s['within_upper']:+.4f}).",
    ]
    if s["reversal"]:
        lines.append("The sign reverses once counties are held fixed: the pooled association is driven by "
                     "differences between counties, not by tracts within a county.")
    else:
        lines.append("Pooled and within-county slopes share a sign; pooling changes the magnitude only.")
    if s["n_counties_fit"]:
        lines.append(f"{s['share_within_sign']:.0%} of the {s['n_counties_fit']} counties fit separately "
                     f"have a slope with the within-county sign.")
    return " ".join(lines)


def run_report(config):
    """Run the full workflow. Returns dict of output paths."""
    out_dir = Path(config.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    # Step 1: tract data
    print("Step 1: Loading tract data...")
    if config.tracts_csv:
        tracts = acs.load_tracts_csv(config.tracts_csv)
    else:
        tracts = acs.load_tracts(year=config.year, survey=config.survey, api_key=config.api_key or None,
                                 cache_path=config.cache_path, refresh=config.refresh)
    if tracts["county"].nunique() < 2:
        raise RuntimeError(f"Need tracts from at least two counties; got {tracts['county'].nunique()}")

    # Step 2: pooled vs within-county
    print("\nStep 2: Pooled vs fixed-effects regression...")
    pooled = regression.fit_pooled(tracts)
    fixed = regression.fit_fixed_effects(tracts)
    slopes = regression.county_slopes(tracts, min_tracts=config.min_county_tracts)
    means = regression.county_means(tracts)
    simpson = regression.simpson_summary(pooled, fixed, slopes)
    print(f"  Pooled slope = {simpson['pooled_slope']:+.4f}, within-county slope = {simpson['within_slope']:+.4f}"
          f" (reversal: {simpson['reversal']})")

    # Step 3: county estimates
    print("\nStep 3: County inequality estimates...")
    avg = estimates.county_averages(tracts, level=config.level)
    fe = estimates.fixed_effects_estimates(tracts, level=config.level)
    ml = estimates.fit_multilevel(tracts, level=config.level, engine=config.engine, draws=config.draws,
                                  tune=config.tune, chains=config.chains, cores=config.cores,
                                  sampler=config.sampler, random_seed=config.seed)
    comparison = estimates.compare_estimates(avg, fe, ml["estimates"])
    shrink = estimates.shrinkage_table(comparison)
    csv_path = out_dir / "county_estimates.csv"
    comparison.to_csv(csv_path, index=False)
    print(f"  Saved: {csv_path}")

    # Step 4: charts and report
    print("\nStep 4: Charts and report...")
    figs = {
        "value_vs_gini": plots.plot_value_vs_gini(tracts, pooled, out_dir / "value_vs_gini.png"),
        "causal_dag": plots.plot_causal_dag(out_dir / "causal_dag.png"),
        "simpson": plots.plot_simpson(tracts, pooled, slopes, out_dir / "simpson_counties.png",
                                      highlight=config.highlight),
        "county_means": plots.plot_county_means(means, out_dir / "county_means.png"),
        "comparison": plots.plot_county_comparison(comparison, out_dir / "county_comparison.png",
                                                    level=config.level),
        "shrinkage": plots.plot_shrinkage(shrink, float(tracts["gini"].mean()), out_dir / "shrinkage.png"),
    }

    source = f"CSV {config.tracts_csv}" if config.tracts_csv else f"ACS {config.year} {config.survey} (Census Data API)"
    ml_label = "pymc " + config.sampler.upper() if ml["engine"] == "pymc" else "statsmodels MixedLM (REML)"
    wide = (comparison.pivot_table(index="county", columns="method", values="estimate", aggfunc="first")
            .reset_index().rename_axis(columns=None))
    wide = wide.merge(means[["county", "n_tracts"]], on="county", how="left")
    wide = wide.sort_values(METHOD_AVERAGE if METHOD_AVERAGE in wide.columns else "county")
    sections = [
        report.section(
            "Data",
            f"Source: {source}. {len(tracts):,} census tracts in {tracts['county'].nunique()} counties "
            f"with a valid Gini Index and median home value. Home values are scaled to $100,000 units.",
        ),
        report.section(
            "Median home value and inequality",
            "Each point is a census tract. The line is an ordinary least squares fit that pools all tracts.",
            figure=figs["value_vs_gini"],
            html_blocks=[pooled.summary().as_html()],
        ),
        report.section(
            "Causal assumptions",
            "County shapes both housing markets and income distributions, so it confounds the "
            "home value → Gini relationship. Conditioning on county removes that path.",
            figure=figs["causal_dag"],
        ),
        report.section("Pooling across counties", _fmt_summary(simpson), figure=figs["simpson"]),
        report.section(
            "Between-county relationship",
            "County averages of tract values. The pooled slope mixes this between-county pattern "
            "with the within-county one.",
            figure=figs["county_means"],
        ),
        report.section(
            "Fixed-effects regression",
            "Tract Gini on scaled home value with one indicator per county.",
            html_blocks=[fixed.summary().as_html()],
        ),
        report.section(
            "County inequality: three estimators",
            f"County Average: raw mean with a t-interval. Fixed Effects Model: one OLS coefficient per county. "
            f"Multilevel Model ({ml_label}): county intercepts drawn from a common distribution "
            f"(mu = {ml['hyper']['mu']:.4f}, between-county sd = {ml['hyper']['tau']:.4f}, "
            f"within-county sd = {ml['hyper']['sigma']:.4f}). Intervals are {config.level:.0%}.",
            figure=figs["comparison"],
            html_blocks=[report.estimates_table_html(wide)],
        ),
        report.section(
            "Partial pooling",
            "Counties with few tracts move furthest toward the statewide mean under the multilevel model.",
            figure=figs["shrinkage"],
            html_blocks=[report.estimates_table_html(shrink.head(15))],
        ),
    ]
    html_path = report.write_report(out_dir / "report.html",
                                    "Home Values and Income Inequality in California Census Tracts", sections)
    print("\nReport complete.")
    return {"html": html_path, "csv": csv_path, **figs}


def parse_args(argv=None):
    defaults = ReportConfig()
    ap = argparse.ArgumentParser(description="Home value vs income inequality report for California census tracts.")
    ap.add_argument("--year", type=int, default=defaults.year, help="ACS end year.")
    ap.add_argument("--survey", type=str, default=defaults.survey, help="ACS survey (tracts: acs5 only).")
    ap.add_argument("--api-key", type=str, default=None, help="Census API key (default: $CENSUS_API_KEY).")
    ap.add_argument("--tracts-csv", type=str, default=None, help="Read tracts from CSV instead of the API.")
    ap.add_argument("--cache", type=str, default=str(CACHE_PATH), help="Path to the ACS JSON cache.")
    ap.add_argument("--refresh", action="store_true", help="Ignore the cache and re-fetch.")
    ap.add_argument("--output-dir", type=str, default=str(defaults.output_dir))
    ap.add_argument("--engine", choices=["pymc", "mixedlm"], default=defaults.engine)
    ap.add_argument("--sampler", choices=["nuts", "smc"], default=defaults.sampler)
    ap.add_argument("--draws", type=int, default=defaults.draws)
    ap.add_argument("--tune", type=int, default=defaults.tune)
    ap.add_argument("--chains", type=int, default=defaults.chains)
    ap.add_argument("--cores", type=int, default=defaults.cores)
    ap.add_argument("--seed", type=int, default=defaults.seed)
    ap.add_argument("--level", type=float, default=defaults.level, help="Interval level, e.g. 0.95.")
    ap.add_argument("--highlight", type=int, default=defaults.highlight,
                    help="Number of largest counties drawn in the within-county chart.")
    args = ap.parse_args(argv)
    if not 0 < args.level < 1:
        ap.error("--level must be between 0 and 1")
    return ReportConfig(
        year=args.year, survey=args.survey,
        api_key=args.api_key if args.api_key is not None else api_key_from_env(),
        tracts_csv=Path(args.tracts_csv) if args.tracts_csv else None,
        cache_path=Path(args.cache), refresh=args.refresh, output_dir=Path(args.output_dir),
        level=args.level, engine=args.engine, sampler=args.sampler, draws=args.draws, tune=args.tune,
        chains=args.chains, cores=args.cores, seed=args.seed, highlight=args.highlight,
    )


def main(argv=None):
    run_report(parse_args(argv))


if __name__ == "__main__":
    main()

"""MIT License

Creative Commons CC-BY-SA 4.0 2026 Diego Aguilar-Canabal"""
