"""
spac_os.services

Service layer.

Responsibilities:
- Own transaction boundaries: a mutation and its audit record commit together.
- Apply the tenant access guard before any read or write.
- Translate upstream client failures into application errors.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services take sessions and clients as constructor arguments so tests can drive them directly.
