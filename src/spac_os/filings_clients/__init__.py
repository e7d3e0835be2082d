"""
spac_os.filings_clients

Clients for external filing data sources.

Responsibilities:
- Wrap upstream HTTP APIs (SEC EDGAR) behind a small typed interface.
- Translate upstream failures into typed errors the API layer can map to statuses.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services depend on this boundary, never on raw HTTP calls.
