"""
spac_os.cache

Process-local caching package.

Responsibilities:
- Time-boxed, size-bounded key/value cache for upstream lookups.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Instances are constructed in the app factory and injected; there is no module-level cache.
