"""County-level Gini Index by three estimation strategies.

- County Average: raw mean of tract Gini per county with a t-interval
- Fixed Effects Model: OLS with one indicator per county (no information sharing)
- Multilevel Model: varying-intercept model that partially pools counties toward
  the statewide mean (pymc; statsmodels MixedLM as frequentist engine / fallback)

Every function returns a new DataFrame with columns:
county, n_tracts, estimate, lower, upper, method
"""

import numpy as np
import pandas as pd
import pymc as pm
import statsmodels.formula.api as smf
from pymc.exceptions import SamplingError
from pymc.sampling.parallel import ParallelSamplingError
from scipy import stats as scipy_stats

from .config import METHOD_AVERAGE, METHOD_FIXED, METHOD_MULTILEVEL

AGGREGATE_COLUMNS = ["county", "n_tracts", "estimate", "lower", "upper", "method"]


def _tract_counts(tracts):
    return tracts.groupby("county", sort=True)["gini"].size().rename("n_tracts")


def county_averages(tracts, level=0.95):
    """Raw mean Gini per county, mean ± t(n-1) * sd / sqrt(n). Single-tract counties get NaN bounds."""
    agg = tracts.groupby("county", sort=True)["gini"].agg(["mean", "std", "size"])
    n = agg["size"].to_numpy()
    se = agg["std"].to_numpy() / np.sqrt(n)
    with np.errstate(invalid="ignore"):
        t_crit = np.where(n > 1, scipy_stats.t.ppf((1 + level) / 2, np.maximum(n - 1, 1)), np.nan)
    half = t_crit * se
    return pd.DataFrame({
        "county": agg.index.to_numpy(),
        "n_tracts": n.astype(np.int64),
        "estimate": agg["mean"].to_numpy(),
        "lower": agg["mean"].to_numpy() - half,
        "upper": agg["mean"].to_numpy() + half,
        "method": METHOD_AVERAGE,
    }, columns=AGGREGATE_COLUMNS)


def _county_from_term(term):
    """'C(county)[Los Angeles]' → 'Los Angeles'."""
    return term[len("C(county)["):-1] if term.startswith("C(county)[") else term


def fixed_effects_estimates(tracts, level=0.95):
    """One coefficient per county from OLS gini ~ 0 + C(county); bounds from conf_int."""
    if len(tracts) <= tracts["county"].nunique():
        raise ValueError("Fixed-effects estimates need more tracts than counties (no residual degrees of freedom)")
    fit = smf.ols("gini ~ 0 + C(county)", data=tracts).fit()
    ci = fit.conf_int(alpha=1 - level)
    counts = _tract_counts(tracts)
    counties = [_county_from_term(t) for t in fit.params.index]
    return pd.DataFrame({
        "county": counties,
        "n_tracts": counts.reindex(counties).to_numpy(dtype=np.int64),
        "estimate": fit.params.to_numpy(),
        "lower": ci[0].to_numpy(),
        "upper": ci[1].to_numpy(),
        "method": METHOD_FIXED,
    }, columns=AGGREGATE_COLUMNS)


def _sample_pymc(y, county_idx, n_counties, draws, tune, chains, cores, sampler, random_seed, progressbar):
    """Non-centered varying-intercept model. Returns (county_samples [n_samples, n_counties], hyper_samples)."""
    with pm.Model():
        mu = pm.Normal("mu", mu=float(np.mean(y)), sigma=0.5)
        tau = pm.HalfNormal("tau", sigma=0.2)
        z_county = pm.Normal("z_county", mu=0, sigma=1, shape=n_counties)
        a_county = pm.Deterministic("a_county", mu + tau * z_county)
        sigma = pm.HalfNormal("sigma", sigma=0.2)
        pm.Normal("gini", mu=a_county[county_idx], sigma=sigma, observed=y)
        if sampler == "smc":
            idata = pm.sample_smc(draws=draws, chains=chains, cores=cores, random_seed=random_seed,
                                  progressbar=progressbar, compute_convergence_checks=False)
        else:
            idata = pm.sample(draws=draws, tune=tune, chains=chains, cores=cores, random_seed=random_seed,
                              target_accept=0.9, progressbar=progressbar, compute_convergence_checks=False)
    county_samples = idata.posterior["a_county"].values.reshape(-1, n_counties)
    hyper = {name: idata.posterior[name].values.flatten() for name in ("mu", "tau", "sigma")}
    return county_samples, hyper


def _fit_mixedlm(tracts, counties, level):
    """statsmodels MixedLM with a random county intercept; conditional modes (BLUPs) with normal bounds."""
    fit = smf.mixedlm("gini ~ 1", data=tracts, groups=tracts["county"]).fit(reml=True)
    intercept = float(fit.fe_params["Intercept"])
    intercept_var = float(fit.bse_fe["Intercept"]) ** 2
    z_crit = scipy_stats.norm.ppf((1 + level) / 2)
    estimate, lower, upper = [], [], []
    for county in counties:
        effect = float(fit.random_effects[county].iloc[0])
        cond_var = float(np.asarray(fit.random_effects_cov[county])[0, 0])
        half = z_crit * np.sqrt(max(cond_var, 0.0) + intercept_var)
        estimate.append(intercept + effect)
        lower.append(intercept + effect - half)
        upper.append(intercept + effect + half)
    hyper = {
        "mu": intercept,
        "tau": float(np.sqrt(max(float(fit.cov_re.iloc[0, 0]), 0.0))),
        "sigma": float(np.sqrt(fit.scale)),
    }
    return np.array(estimate), np.array(lower), np.array(upper), hyper


def fit_multilevel(tracts, level=0.95, engine="pymc", draws=1000, tune=1000, chains=4, cores=4,
                   sampler="nuts", random_seed=None, progressbar=True):
    """Partial-pooling county estimates.

    Args:
        tracts: Tract records (county, gini)
        level: Interval level (central posterior interval for pymc, normal interval for MixedLM)
        engine: 'pymc' (Bayesian, MCMC/SMC) or 'mixedlm' (statsmodels REML)
        sampler: 'nuts' (pm.sample) or 'smc' (pm.sample_smc); pymc only

    Returns:
        dict(estimates=DataFrame, engine=str, hyper=dict of mu/tau/sigma summaries, samples=array or None)
    """
    if engine not in ("pymc", "mixedlm"):
        raise ValueError(f"Unknown multilevel engine {engine!r}; expected 'pymc' or 'mixedlm'")
    if sampler not in ("nuts", "smc"):
        raise ValueError(f"Unknown sampler {sampler!r}; expected 'nuts' or 'smc'")
    codes, counties = pd.factorize(tracts["county"], sort=True)
    counties = list(counties)
    counts = _tract_counts(tracts).reindex(counties).to_numpy(dtype=np.int64)
    y = tracts["gini"].to_numpy(dtype=np.float64)

    samples = None
    if engine == "pymc":
        print(f"    [MULTILEVEL] pymc {sampler.upper()} on {len(y):,} tracts across {len(counties)} counties")
        try:
            samples, hyper_samples = _sample_pymc(y, codes, len(counties), draws, tune, chains, cores,
                                                  sampler, random_seed, progressbar)
            tail = (1 - level) / 2 * 100
            estimate = samples.mean(axis=0)
            lower = np.percentile(samples, tail, axis=0)
            upper = np.percentile(samples, 100 - tail, axis=0)
            hyper = {name: float(v.mean()) for name, v in hyper_samples.items()}
            print(f"    [MULTILEVEL] Sampling succeeded ({samples.shape[0]:,} posterior draws)")
        except (ValueError, FloatingPointError, SamplingError, ParallelSamplingError) as e:
            print(f"    [MULTILEVEL] Sampling failed ({e}); falling back to MixedLM")
            engine = "mixedlm"
    if engine == "mixedlm":
        print(f"    [MULTILEVEL] MixedLM (REML) on {len(y):,} tracts across {len(counties)} counties")
        estimate, lower, upper, hyper = _fit_mixedlm(tracts, counties, level)
        samples = None

    print(f"    [MULTILEVEL] mu = {hyper['mu']:.4f}, tau (between-county sd) = {hyper['tau']:.4f}, "
          f"sigma (within-county sd) = {hyper['sigma']:.4f}")
    estimates = pd.DataFrame({
        "county": counties,
        "n_tracts": counts,
        "estimate": estimate,
        "lower": lower,
        "upper": upper,
        "method": METHOD_MULTILEVEL,
    }, columns=AGGREGATE_COLUMNS)
    return {"estimates": estimates, "engine": engine, "hyper": hyper, "samples": samples}


def multilevel_estimates(tracts, level=0.95, engine="pymc", draws=1000, tune=1000, chains=4, cores=4,
                         sampler="nuts", random_seed=None, progressbar=True):
    """County aggregates from the partial-pooling model (see fit_multilevel)."""
    return fit_multilevel(tracts, level=level, engine=engine, draws=draws, tune=tune, chains=chains, cores=cores,
                          sampler=sampler, random_seed=random_seed, progressbar=progressbar)["estimates"]


def compare_estimates(*frames):
    """Stack county aggregates from several methods into one long DataFrame."""
    frames = [f for f in frames if f is not None and len(f) > 0]
    if not frames:
        return pd.DataFrame(columns=AGGREGATE_COLUMNS)
    return pd.concat(frames, ignore_index=True)[AGGREGATE_COLUMNS]


def shrinkage_table(comparison):
    """Per county: raw average, multilevel estimate and how far partial pooling moved it.

    Returns:
        DataFrame with columns: county, n_tracts, raw_average, multilevel, shift
        sorted by n_tracts ascending (smallest counties shrink most).
    """
    wide = comparison.pivot_table(index="county", columns="method", values="estimate", aggfunc="first")
    if METHOD_AVERAGE not in wide.columns or METHOD_MULTILEVEL not in wide.columns:
        raise ValueError(f"Shrinkage table needs both '{METHOD_AVERAGE}' and '{METHOD_MULTILEVEL}' estimates")
    counts = comparison.groupby("county")["n_tracts"].first()
    out = pd.DataFrame({
        "county": wide.index.to_numpy(),
        "n_tracts": counts.reindex(wide.index).to_numpy(dtype=np.int64),
        "raw_average": wide[METHOD_AVERAGE].to_numpy(),
        "multilevel": wide[METHOD_MULTILEVEL].to_numpy(),
    })
    out["shift"] = out["multilevel"] - out["raw_average"]
    return out.sort_values(["n_tracts", "county"]).reset_index(drop=True)

"""MIT License

Creative Commons CC-BY-SA 4.0 2026 Diego Aguilar-Canabal"""
