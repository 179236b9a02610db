import os
from pathlib import Path
from typing import Optional

import yaml

OUTPUT_FORMATS = ("markdown", "json")

DEFAULT_CONFIG: dict = {
    "output": None,  # None = print to stdout
    "download_images": True,
    "include_reviews": True,
    "format": "markdown",
    "force_api": False,
    "force_gh": False,
    "verbose": False,
}


def load_config(config_path: str = ".prsnap.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prsnap.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    if config["format"] not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown output format: {config['format']!r}. Choose 'markdown' or 'json'.")

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config
