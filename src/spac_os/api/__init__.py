"""
spac_os.api

HTTP surface of SPAC OS.

Responsibilities:
- FastAPI app factory, error mapping and router modules.
- Request/response models and dependency wiring.
"""

# Package marker.
