"""
spac_os.db

Persistence package (SQLAlchemy 2 async ORM).

Responsibilities:
- Tenant-scoped models with soft deletes, plus the audit trail.
- Engine/session setup and the service-owned transaction scope.
- Repositories (one per aggregate).
"""

# Package marker.
