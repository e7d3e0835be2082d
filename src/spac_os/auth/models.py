"""
spac_os.auth.models

The authenticated caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Identity only. Tenant roles are looked up per request by
    `spac_os.auth.guard.AccessGuard` and never carried here.
    """

    subject: str

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> Principal:
        subject = str(claims.get("sub") or "").strip()
        if not subject:
            raise ValueError("token subject is empty")
        return cls(subject=subject)
