"""Equity compensation planning engine: vesting, tax and exercise analysis for ISO/NSO/RSU grants."""

__version__ = "0.1.0"
