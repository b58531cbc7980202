"""Linear models of tract Gini Index on median home value, with and without county indicators.

The pooled fit mixes between-county and within-county variation; adding county
fixed effects keeps only the within-county relationship. When the two slopes
have opposite signs the data show a Simpson's-paradox-like reversal.
"""

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf

POOLED_FORMULA = "gini ~ home_value_100k"
FIXED_EFFECTS_FORMULA = "gini ~ home_value_100k + C(county)"
SLOPE_TERM = "home_value_100k"


def fit_pooled(tracts):
    """OLS of gini on scaled home value, all counties pooled."""
    return smf.ols(POOLED_FORMULA, data=tracts).fit()


def fit_fixed_effects(tracts):
    """OLS of gini on scaled home value with one indicator per county."""
    if tracts["county"].nunique() < 2:
        raise ValueError("Fixed-effects regression needs tracts from at least two counties")
    return smf.ols(FIXED_EFFECTS_FORMULA, data=tracts).fit()


def county_slopes(tracts, min_tracts=10):
    """Separate OLS slope per county (counties with at least min_tracts tracts).

    Returns:
        DataFrame with columns: county, n_tracts, intercept, slope, slope_lower, slope_upper
    """
    rows = []
    for county, grp in tracts.groupby("county", sort=True):
        x = grp["home_value_100k"].to_numpy(dtype=np.float64)
        y = grp["gini"].to_numpy(dtype=np.float64)
        if len(grp) < min_tracts or np.std(x) <= 0:
            continue
        fit = sm.OLS(y, sm.add_constant(x)).fit()
        ci = fit.conf_int()
        rows.append({
            "county": county, "n_tracts": len(grp),
            "intercept": float(fit.params[0]), "slope": float(fit.params[1]),
            "slope_lower": float(ci[1, 0]), "slope_upper": float(ci[1, 1]),
        })
    return pd.DataFrame(rows, columns=["county", "n_tracts", "intercept", "slope", "slope_lower", "slope_upper"])


def county_means(tracts):
    """County-level mean home value and Gini (one row per county)."""
    return (tracts.groupby("county", sort=True)
            .agg(n_tracts=("gini", "size"),
                 home_value_100k=("home_value_100k", "mean"),
                 gini=("gini", "mean"))
            .reset_index())


def simpson_summary(pooled, fixed, slopes=None):
    """Compare the pooled slope with the within-county (fixed-effects) slope."""
    pooled_slope = float(pooled.params[SLOPE_TERM])
    within_slope = float(fixed.params[SLOPE_TERM])
    within_ci = fixed.conf_int().loc[SLOPE_TERM]
    pooled_ci = pooled.conf_int().loc[SLOPE_TERM]
    summary = {
        "pooled_slope": pooled_slope,
        "pooled_lower": float(pooled_ci[0]),
        "pooled_upper": float(pooled_ci[1]),
        "pooled_pvalue": float(pooled.pvalues[SLOPE_TERM]),
        "within_slope": within_slope,
        "within_lower": float(within_ci[0]),
        "within_upper": float(within_ci[1]),
        "within_pvalue": float(fixed.pvalues[SLOPE_TERM]),
        "reversal": bool(np.sign(pooled_slope) != np.sign(within_slope)),
        "n_counties_fit": 0,
        "share_within_sign": np.nan,
    }
    if slopes is not None and len(slopes) > 0:
        same_sign = np.sign(slopes["slope"].to_numpy()) == np.sign(within_slope)
        summary["n_counties_fit"] = int(len(slopes))
        summary["share_within_sign"] = float(same_sign.mean())
    return summary

"""MIT License

Creative Commons CC-BY-SA 4.0 2026 Diego Aguilar-Canabal"""
