"""
Store Review Insights Orchestrator Module
=========================================

Process-level plumbing shared by the API and the CLI.

Components:
    - setup_logging: console/JSON/rotating-file logging
    - log_duration: timing of fetches and analytics
    - CLI: command-line interface (python -m src.orchestrator.cli)
"""

from .logging_config import JSONFormatter, log_duration, setup_logging

__all__ = [
    "JSONFormatter",
    "log_duration",
    "setup_logging",
]
