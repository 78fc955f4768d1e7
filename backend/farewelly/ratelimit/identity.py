from typing import Optional

from fastapi import Request


def resolve_identity(req: Request) -> str:
    """
    Precedence:
    1) authenticated profile id stored on request.state.user_id
    2) client IP
    """
    user_id: Optional[str] = getattr(req.state, "user_id", None)
    if user_id:
        return f"user:{user_id}"

    client = getattr(req, "client", None)
    ip = getattr(client, "host", None) if client else None
    if not ip:
        ip = req.headers.get("x-forwarded-for", "unknown")
    return f"ip:{ip}"
