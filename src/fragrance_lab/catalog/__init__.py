"""
Essential oil reference data.
"""
from .oil_catalog import OilCatalog, find_mentions

__all__ = ["OilCatalog", "find_mentions"]
