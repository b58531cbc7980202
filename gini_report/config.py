import os
from dataclasses import dataclass
from pathlib import Path

# Census Data API (anonymous requests allowed; a key raises rate limits)
CENSUS_API_BASE = "https://api.census.gov/data"
CENSUS_API_KEY_ENV = "CENSUS_API_KEY"
ACS_YEAR = 2022
ACS_SURVEY = "acs5"
STATE_FIPS = "06"  # California

# B19083_001E = Gini Index of income inequality, B25077_001E = Median home value
ACS_VARIABLES = {
    "B19083_001E": "gini",
    "B25077_001E": "median_home_value",
}

# Census suppression codes to replace with NaN
SUPPRESSION_CODES = [-666666666, -999999999, -888888888, -555555555]

HOME_VALUE_SCALE = 100_000

CACHE_PATH = Path(__file__).resolve().parent / "acs_tract_cache.json"
CACHE_MAX_AGE_DAYS = 365

# Estimation method labels (county aggregates)
METHOD_AVERAGE = "County Average"
METHOD_FIXED = "Fixed Effects Model"
METHOD_MULTILEVEL = "Multilevel Model"
METHODS = [METHOD_AVERAGE, METHOD_FIXED, METHOD_MULTILEVEL]

# Color scheme (colorblind-friendly)
COLORS = {
    'blue': '#4472C4',
    'orange': '#ED7D31',
    'purple': '#7030A0',
    'gray': '#808080',
    'green': '#70AD47',
    'red': '#C00000',
    'teal': '#00B0F0',
    'brown': '#997300',
}
METHOD_COLORS = {
    METHOD_AVERAGE: COLORS['orange'],
    METHOD_FIXED: COLORS['blue'],
    METHOD_MULTILEVEL: COLORS['purple'],
}


@dataclass(frozen=True)
class ReportConfig:
    # Data
    year: int = ACS_YEAR
    survey: str = ACS_SURVEY
    api_key: str = ""
    tracts_csv: Path | None = None
    cache_path: Path = CACHE_PATH
    refresh: bool = False

    # Output
    output_dir: Path = Path("report")

    # Estimation
    level: float = 0.95
    engine: str = "pymc"
    sampler: str = "nuts"
    draws: int = 1000
    tune: int = 1000
    chains: int = 4
    cores: int = 4
    seed: int = 7

    # Simpson plot: number of largest counties to highlight
    highlight: int = 6
    min_county_tracts: int = 10


def api_key_from_env():
    """Return the Census API key from the environment, or empty string."""
    return os.environ.get(CENSUS_API_KEY_ENV, "").strip()

"""MIT License

Creative Commons CC-BY-SA 4.0 2026 Diego Aguilar-Canabal"""
