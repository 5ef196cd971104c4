"""
Run parameters loaded from configs/params.yml.

Values in the YAML file override the in-code defaults section by section
(nested dicts are merged, lists and scalars are replaced).
"""

import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union

from precinct_typology.io_utils import read_yaml
from precinct_typology.paths import PARAMS_FILE

DEFAULT_PARAMS: Dict[str, Any] = {
    "source": {
        "name": "NYPD Shooting Incident Data (Historic)",
        "url": "https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD",
        "timeout_seconds": 300,
    },
    "columns": {
        "group_key": "precinct",
        "location": "location_desc",
        "hour": "occur_hour",
    },
    "categorization": {
        "missing_tokens": ["(null)", "NONE"],
        # Applied in order; a later matching rule overwrites an earlier one.
        "location_rules": [
            {"label": "RESIDENCE", "patterns": ["DWELL", "HOUS", "APT"]},
            {"label": "BUSINESS", "patterns": [
                "STORE", "GROCERY", "BODEGA", "SUPERMARKET", "RESTAURANT", "DINER",
                "FAST FOOD", "SALON", "BOUTIQUE", "MERCHANT", "GAS STATION",
                "COMMERCIAL", "FACTORY", "WAREHOUSE", "DRY CLEANER", "HOTEL",
            ]},
            {"label": "BUSINESS", "patterns": ["BAR", "CLUB", "LOUNGE"]},
            {"label": "SERVICE", "patterns": [
                "ATM", "BANK", "CHECK CASH", "HOSPITAL", "DOCTOR", "SCHOOL",
                "GYM", "STORAGE", "SHELTER", "CHURCH",
            ]},
        ],
        "time_bins": [
            {"name": "DAWN", "start": 0, "end": 6},
            {"name": "MORNING", "start": 6, "end": 12},
            {"name": "AFTERNOON", "start": 12, "end": 18},
            {"name": "NIGHT", "start": 18, "end": 24},
        ],
    },
    "pruning": {
        "statistic": "median_low",
        "threshold": 0.0,
    },
    "clustering": {
        "k_min": 1,
        "k_max": 10,
        "k": 2,
        "n_init": 10,
        "max_iter": 300,
    },
    "random_seeds": {
        "clustering": 12345,
    },
    "figures": {
        "dpi": 150,
        "top_n_locations": 15,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_params(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load run parameters, falling back to defaults for anything not set.

    Args:
        path: YAML file to read. Defaults to configs/params.yml; a missing
              default file yields the defaults unchanged.

    Returns:
        Parameter dictionary with every section present.
    """
    if path is None:
        path = PARAMS_FILE
        if not Path(path).exists():
            return copy.deepcopy(DEFAULT_PARAMS)
    return _merge(DEFAULT_PARAMS, read_yaml(path))
