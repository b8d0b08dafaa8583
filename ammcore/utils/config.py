"""Global configuration settings."""

import copy
from typing import Dict, Any


_DEFAULTS: Dict[str, Any] = {
    # Default pool parameters
    "defaults": {
        "v3_fee_tiers": [100, 500, 3000, 10000],  # 0.01%, 0.05%, 0.3%, 1%
        "v3_tick_spacing": {100: 1, 500: 10, 3000: 60, 10000: 200},
        "stableswap_fee": 4_000_000,  # 0.04% of 1e10
        "stableswap_admin_fee": 5_000_000_000,  # 50% of the swap fee
    },
    # Amplification ramp policy
    "ramp": {
        "min_ramp_time": 86400,  # seconds
        "max_a": 10**6,
        "max_a_change": 10,
    },
    # Plotting settings
    "plotting": {
        "theme": "plotly_dark",
        "width": 1200,
        "height": 600,
    },
}


class Config:
    """
    Global configuration for ammcore.

    Holds defaults only. Solver iteration limits and tolerances are part of
    the numeric contract and are not configurable.
    """

    _config: Dict[str, Any] = copy.deepcopy(_DEFAULTS)

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        keys = key.split(".")
        value = cls._config
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k, default)
            else:
                return default
        return value

    @classmethod
    def set(cls, key: str, value: Any) -> None:
        """Set configuration value."""
        keys = key.split(".")
        config = cls._config
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    @classmethod
    def reset(cls) -> None:
        """Reset to default configuration."""
        cls._config = copy.deepcopy(_DEFAULTS)
