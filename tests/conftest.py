"""
Shared fixtures: synthetic California-like tracts with a built-in Simpson reversal.

Between counties, richer counties are more unequal (+0.03 Gini per $100k);
within each county, higher-value tracts are less unequal (-0.02 Gini per $100k).
"""
import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

COUNTY_CENTERS = {
    "Alameda": 8.0,
    "Fresno": 2.5,
    "Kern": 1.5,
    "Los Angeles": 6.5,
    "Sacramento": 4.0,
    "San Diego": 5.5,
}
WITHIN_SLOPE = -0.02
BETWEEN_SLOPE = 0.03


def make_tracts(n_per_county=40, seed=11, extra=None):
    rng = np.random.default_rng(seed)
    rows = []
    for c_idx, (county, center) in enumerate(COUNTY_CENTERS.items()):
        x = center + rng.normal(0, 0.5, n_per_county)
        gini = 0.30 + BETWEEN_SLOPE * center + WITHIN_SLOPE * (x - center) + rng.normal(0, 0.005, n_per_county)
        for i in range(n_per_county):
            rows.append({
                "geoid": f"06{c_idx * 2 + 1:03d}{i + 100:06d}",
                "county": county,
                "gini": gini[i],
                "median_home_value": x[i] * 100_000,
                "home_value_100k": x[i],
            })
    for row in extra or []:
        rows.append(row)
    return pd.DataFrame(rows)


@pytest.fixture
def tracts():
    return make_tracts()


@pytest.fixture
def tracts_with_tiny_county():
    """Adds a 2-tract county with extreme Gini (a noisy small-sample estimate)."""
    extra = [
        {"geoid": "06003000100", "county": "Alpine", "gini": 0.70, "median_home_value": 400_000.0,
         "home_value_100k": 4.0},
        {"geoid": "06003000200", "county": "Alpine", "gini": 0.66, "median_home_value": 420_000.0,
         "home_value_100k": 4.2},
    ]
    return make_tracts(extra=extra)


@pytest.fixture
def census_payload():
    """Census Data API JSON: header row, then data rows (all strings)."""
    return [
        ["NAME", "B19083_001E", "B25077_001E", "state", "county", "tract"],
        ["Census Tract 4001; Alameda County; California", "0.4512", "1250000", "06", "001", "400100"],
        ["Census Tract 4002; Alameda County; California", "0.3987", "980000", "06", "001", "400200"],
        ["Census Tract 9800; Alameda County; California", "-666666666", "-666666666", "06", "001", "980000"],
        ["Census Tract 10.01; Fresno County; California", "0.5021", "215000", "06", "019", "001001"],
        ["Census Tract 11, Fresno County, California", "0.4700", "-999999999", "06", "019", "001100"],
        ["Census Tract 1; San Luis Obispo County; California", "0.4100", "800000", "06", "079", "000100"],
    ]
