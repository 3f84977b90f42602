"""
Shared API dependencies.

Authentication happens upstream. The gateway forwards the
authenticated user's id in the X-User-Id header, and every
mutating endpoint records it as the acting user.
"""

from fastapi import Header, HTTPException, status


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return x_user_id.strip()
