"""Normalization of stored grant records and tax settings."""

from equityplan.ingestion.grants import load_grants, normalize_grant, normalize_tax_settings

__all__ = ["load_grants", "normalize_grant", "normalize_tax_settings"]
