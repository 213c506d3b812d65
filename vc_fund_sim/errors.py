"""errors.py — Exceptions raised by vc_fund_sim."""
from __future__ import annotations


class ConfigurationError(ValueError):
    """A fund configuration or distribution parameter set is invalid."""
