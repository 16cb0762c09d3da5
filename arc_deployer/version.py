"""
Version information for the arc deployer.
"""
import importlib.metadata
import pathlib

import tomli

DISTRIBUTION = "arc-deployer"
FALLBACK_VERSION = "0.3.0"


def _pyproject_version() -> str:
    pyproject = pathlib.Path(__file__).resolve().parent.parent / "pyproject.toml"
    with pyproject.open("rb") as f:
        return tomli.load(f)["project"]["version"]


def get_version() -> str:
    """Installed distribution version, else the source checkout's pyproject.toml"""
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        pass
    try:
        return _pyproject_version()
    except (OSError, KeyError, tomli.TOMLDecodeError):
        return FALLBACK_VERSION


__version__ = get_version()
