from __future__ import annotations

from skillforge.api.v1.endpoints import ai, auth, contents, plans, users

__all__ = ["ai", "auth", "contents", "plans", "users"]
