"""
Project-level scanners for repo_analyzer.

These scanners read information that is not a code entity: environment
variables, configuration files and declared dependencies.
"""

from repo_analyzer.scanners.config_files import ConfigFileScanner
from repo_analyzer.scanners.dependencies import DependenciesScanner, DependencyScan
from repo_analyzer.scanners.env import EnvScanner, EnvUsage

__all__ = [
    "ConfigFileScanner",
    "DependenciesScanner",
    "DependencyScan",
    "EnvScanner",
    "EnvUsage",
]
