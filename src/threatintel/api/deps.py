"""
Request dependencies shared by the routers.

Authentication itself is external: an upstream proxy is trusted to set
X-User-Id (and optionally X-User-Role). No header means "no identity", which
each store operation handles explicitly (reject, or act as SYSTEM_IDENTITY).
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status

from threatintel.models.common import Identity, Role


def get_identity(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Optional[Identity]:
    if not x_user_id:
        return None
    try:
        role = Role(x_user_role.lower()) if x_user_role else Role.USER
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown role '{x_user_role}'",
        )
    return Identity(user_id=x_user_id, role=role)
