"""Load ACS census tract data for California: Gini Index and median home value.

Uses the Census Data API (one call for all CA tracts) and caches the raw
response to JSON so repeated report runs do not hit the API.
"""

import json
import re
from datetime import datetime, timedelta
from pathlib import Path

import pandas as pd
import requests

from .config import (
    ACS_SURVEY,
    ACS_VARIABLES,
    ACS_YEAR,
    CACHE_MAX_AGE_DAYS,
    CACHE_PATH,
    CENSUS_API_BASE,
    HOME_VALUE_SCALE,
    STATE_FIPS,
    SUPPRESSION_CODES,
)

TRACT_COLUMNS = ["geoid", "county", "gini", "median_home_value", "home_value_100k"]

# "Census Tract 4001; Alameda County; California" (2022+) or the older comma form
COUNTY_FROM_NAME_RE = re.compile(r"[;,]\s*([^;,]+?)\s+County\s*(?:[;,]|$)", re.I)


def fetch_acs(year=ACS_YEAR, survey=ACS_SURVEY, variables=None, geography="tract",
              state=STATE_FIPS, api_key=None):
    """GET one ACS table from the Census Data API. Returns the raw DataFrame (all string columns).

    First row of the JSON payload is the header, rest is data.
    """
    variables = list(variables or ACS_VARIABLES)
    url = f"{CENSUS_API_BASE}/{year}/acs/{survey}"
    params = {
        "get": ",".join(["NAME"] + variables),
        "for": f"{geography}:*",
        "in": f"state:{state}",
    }
    if api_key:
        params["key"] = api_key
    resp = requests.get(url, params=params, timeout=60)
    if not resp.ok:
        print(f"  Census API Error {resp.status_code}: {resp.text[:500]}")
        print(f"  Request was: {url} {params.get('get')} for={params['for']} in={params['in']}")
    resp.raise_for_status()
    data = resp.json() if resp.text else None
    if not data or len(data) < 2:
        raise RuntimeError(f"Census API returned no data for {url} ({geography}, state {state})")
    return pd.DataFrame(data[1:], columns=data[0])


def _read_cache(cache_path, year, survey):
    """Return cached raw DataFrame if fresh and for the same year/survey, else None."""
    if not cache_path.exists():
        return None
    with open(cache_path) as f:
        cache = json.load(f)
    cache_age = datetime.now() - datetime.fromisoformat(cache.get("cached_at", "1970-01-01"))
    if cache_age >= timedelta(days=CACHE_MAX_AGE_DAYS):
        return None
    if cache.get("year") != year or cache.get("survey") != survey:
        return None
    return pd.DataFrame(cache["data"])


def _write_cache(cache_path, df_raw, year, survey):
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    with open(cache_path, "w") as f:
        json.dump({
            "cached_at": datetime.now().isoformat(),
            "year": year,
            "survey": survey,
            "data": df_raw.to_dict(orient="list"),
        }, f)
    print(f"  Cached ACS tract data to {cache_path}")


def load_tracts(year=ACS_YEAR, survey=ACS_SURVEY, api_key=None, cache_path=CACHE_PATH, refresh=False):
    """Load cleaned California tract records (cache or API).

    Args:
        year: ACS end year (e.g. 2022 for the 2018-2022 5-year survey)
        survey: ACS survey; tract geography is only published by 'acs5'
        api_key: Optional Census API key (increases rate limits)
        cache_path: Path to cache JSON file
        refresh: Ignore an existing cache and re-fetch

    Returns:
        DataFrame with columns: geoid, county, gini, median_home_value, home_value_100k
    """
    if survey != "acs5":
        raise ValueError(f"Tract-level estimates are only published in the 5-year ACS (got survey={survey!r})")
    cache_path = Path(cache_path)
    df_raw = None if refresh else _read_cache(cache_path, year, survey)
    if df_raw is not None:
        print(f"  Loading ACS tract data from cache ({cache_path.name})...")
    else:
        print(f"  Fetching ACS {year} {survey} tract data from Census API...")
        df_raw = fetch_acs(year=year, survey=survey, api_key=api_key)
        print(f"  ACS: {len(df_raw):,} tracts returned")
        _write_cache(cache_path, df_raw, year, survey)
    return clean_tracts(df_raw)


def load_tracts_csv(path):
    """Load tracts from a CSV with raw API columns, or already-clean tract columns."""
    df = pd.read_csv(path, dtype=str)
    print(f"  Tracts CSV: {len(df):,} rows loaded from {path}")
    if set(TRACT_COLUMNS[:4]).issubset(df.columns):
        df = df.rename(columns={"gini": "B19083_001E", "median_home_value": "B25077_001E", "county": "county_name"})
    return clean_tracts(df)


def county_from_name(name):
    """Extract county name from a tract NAME: 'Census Tract 4001; Alameda County; California' → 'Alameda'."""
    if pd.isna(name):
        return None
    m = COUNTY_FROM_NAME_RE.search(str(name))
    return m.group(1).strip() if m else None


def _build_geoid(df):
    """11-digit tract FIPS: state (2) + county (3) + tract (6)."""
    if {"state", "county", "tract"}.issubset(df.columns):
        return (df["state"].astype(str).str.zfill(2) + df["county"].astype(str).str.zfill(3)
                + df["tract"].astype(str).str.zfill(6))
    if "geoid" in df.columns:
        return df["geoid"].astype(str).str.replace(r"\D", "", regex=True).str.zfill(11)
    return pd.Series([None] * len(df), index=df.index, dtype=object)


def clean_tracts(df_raw):
    """Build tract records from raw ACS columns. Returns a new DataFrame.

    Transformation pipeline: numeric coercion → suppression codes to NaN → drop missing /
    out-of-range values → derive county and scaled home value.
    """
    missing = [c for c in ACS_VARIABLES if c not in df_raw.columns]
    if missing:
        raise ValueError(f"ACS data missing expected columns {missing}; got: {list(df_raw.columns)}")

    df = df_raw.copy()
    df["geoid"] = _build_geoid(df)
    if "NAME" in df.columns:
        county_name = df["NAME"].map(county_from_name)
    elif "county_name" in df.columns:
        county_name = df["county_name"]
    else:
        raise ValueError("ACS data needs a NAME column to assign tracts to counties")
    df = df.drop(columns=["county"], errors="ignore").assign(county=county_name)

    df = df.rename(columns=ACS_VARIABLES)
    for col in ACS_VARIABLES.values():
        values = pd.to_numeric(df[col], errors="coerce")
        df[col] = values.mask(values.isin(SUPPRESSION_CODES))

    n_total = len(df)
    valid = (
        df["county"].notna()
        & df["gini"].between(0, 1)
        & df["median_home_value"].notna() & (df["median_home_value"] > 0)
    )
    df = df[valid].copy()
    df["home_value_100k"] = df["median_home_value"] / HOME_VALUE_SCALE
    df = df[TRACT_COLUMNS].sort_values(["county", "geoid"]).reset_index(drop=True)
    print(f"  Tracts: {len(df):,} of {n_total:,} with valid Gini and home value "
          f"({df['county'].nunique()} counties)")
    return df

"""MIT License

Creative Commons CC-BY-SA 4.0 2026 Diego Aguilar-Canabal"""
