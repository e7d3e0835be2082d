"""
spac_os.auth

Who is calling, and which tenants they may act on.

Responsibilities:
- Issue and validate bearer JWTs (`jwt`).
- Resolve the caller into a `Principal` (`deps`).
- Check organization membership and role on every tenant-scoped call (`guard`).
"""
