"""
Request-scoped FastAPI dependencies: identity, roles and the mandatory content gate
"""
import logging
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from intranet.database import get_db
from intranet.models import Profile
from intranet.services.compliance_service import compliance_service

logger = logging.getLogger(__name__)

MANDATORY_CONTENT_ROUTE = "/conteudos-obrigatorios"

MANAGER_ROLES = ("admin", "gestor_setor")


def get_current_user(
    x_user_id: str = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db)
) -> Profile:
    """Resolve the authenticated user forwarded by the identity proxy"""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")

    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid X-User-Id header")

    user = db.query(Profile).filter(Profile.id == user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Unknown or inactive user")

    return user


def require_admin(user: Profile = Depends(get_current_user)) -> Profile:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin role required")
    return user


def require_manager(user: Profile = Depends(get_current_user)) -> Profile:
    if user.role not in MANAGER_ROLES:
        raise HTTPException(status_code=403, detail="Manager role required")
    return user


def enforce_mandatory_content(
    request: Request,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> None:
    """
    Gate applied to every router except the mandatory content workflow

    Raises:
        HTTPException: 403 while the user has a pending item and blocking is on
    """
    status = compliance_service.get_status(db, user)
    request.state.compliance = status

    if status.blocks:
        logger.info(f"Blocked {request.url.path} for user {user.id}: content {status.pending_content_id} pending")
        raise HTTPException(
            status_code=403,
            detail={
                "error": "mandatory_content_pending",
                "content_id": str(status.pending_content_id),
                "redirect_to": MANDATORY_CONTENT_ROUTE
            }
        )
