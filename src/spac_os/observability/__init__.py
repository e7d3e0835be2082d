"""
spac_os.observability

Observability package.

Responsibilities:
- structlog configuration with credential redaction.
- Per-request context (request id, caller, tenant) on every log line.
"""

# Package marker.
