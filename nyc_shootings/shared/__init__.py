from nyc_shootings.shared.config import Settings, get_config, get_dataset_config

__all__ = [
    "get_config",
    "get_dataset_config",
    "Settings",
]
