"""
spac_os

SPAC OS: multi-tenant deal-lifecycle API (SPACs, targets, documents, SEC filings, exports).
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
