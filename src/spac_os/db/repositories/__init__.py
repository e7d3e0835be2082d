"""
spac_os.db.repositories

Tenant-aware data access, one module per aggregate.

Responsibilities:
- Hide SQLAlchemy statements behind small async repository classes.
- Exclude soft-deleted rows unless a method says otherwise.
"""


# --- Module Notes -----------------------------------------------------------
# Repositories add/flush but never commit; services own the transaction.
