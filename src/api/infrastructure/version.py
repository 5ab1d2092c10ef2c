"""Version management for the Grantline API.

Reads the installed distribution's metadata, falling back to the
repository's pyproject.toml when running from a source checkout.
"""

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION_NAME = "grantline-api"


def get_version() -> str:
    """Get the application version.

    Returns:
        Version string (e.g., "0.1.0")
    """
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        # src/api/infrastructure/version.py -> repository root
        pyproject_path = Path(__file__).resolve().parents[3] / "pyproject.toml"

        with open(pyproject_path, "rb") as f:
            pyproject_data = tomllib.load(f)

        return pyproject_data["project"]["version"]


__version__ = get_version()
