"""Authenticated session context consumed by the HTTP adapters."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class AuthContext:
    """Credentials of the current principal.

    Session management lives outside this package; the context only carries what
    the snapshot and stream requests need to present.
    """

    access_token: str | None = None
    cookies: Mapping[str, str] = field(default_factory=dict)

    def headers(self) -> dict[str, str]:
        """Return request headers for this session."""

        token = (self.access_token or "").strip()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}


__all__ = ["AuthContext"]
