import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, joinedload

from .database import get_db
from .models import RoleType, User
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer()


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, resolved once per request and passed into services"""

    user_id: int
    email: str
    role: RoleType
    doctor_id: Optional[int] = None  # set for doctors
    assistant_id: Optional[int] = None  # set for assistants
    assistant_doctor_id: Optional[int] = None  # doctor an assistant is assigned to

    @property
    def is_admin(self) -> bool:
        return self.role == RoleType.ADMIN

    def acts_for_doctor(self, doctor_id: int) -> bool:
        """True when the caller is that doctor or one of their assistants"""
        if self.role == RoleType.DOCTOR:
            return self.doctor_id == doctor_id
        if self.role == RoleType.ASSISTANT:
            return self.assistant_doctor_id == doctor_id
        return False


def build_principal(user: User) -> Principal:
    try:
        role = RoleType(user.role)
    except ValueError:
        logger.error(f"❌ User {user.id} has unknown role '{user.role}'")
        raise HTTPException(status_code=403, detail="Unknown user role")

    doctor_id = user.doctor.id if role == RoleType.DOCTOR and user.doctor else None
    assistant = user.assistant if role == RoleType.ASSISTANT else None
    active_assistant = assistant if assistant and assistant.is_active else None

    return Principal(
        user_id=user.id,
        email=user.email,
        role=role,
        doctor_id=doctor_id,
        assistant_id=active_assistant.id if active_assistant else None,
        assistant_doctor_id=active_assistant.doctor_id if active_assistant else None,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from a bearer JWT"""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    payload = verify_jwt_token(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(payload.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = (
        db.query(User)
        .options(joinedload(User.doctor), joinedload(User.assistant))
        .filter(User.id == int(user_id))
        .first()
    )
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")

    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def get_current_principal(user: User = Depends(get_current_user)) -> Principal:
    return build_principal(user)


def require_roles(*roles: RoleType):
    """
    Dependency factory restricting a route to the given roles.

    Example usage:
        @router.post("", dependencies=...)
        async def create(principal: Principal = Depends(require_roles(RoleType.ADMIN))):
            ...
    """
    allowed = set(roles)

    async def role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed:
            logger.warning(
                f"⚠️ Access denied for user {principal.user_id}: role={principal.role.value}, "
                f"required={[r.value for r in roles]}"
            )
            raise HTTPException(status_code=403, detail="Insufficient role for this operation")
        if principal.role == RoleType.DOCTOR and principal.doctor_id is None:
            raise HTTPException(status_code=403, detail="Doctor profile not found")
        if principal.role == RoleType.ASSISTANT and principal.assistant_id is None:
            raise HTTPException(status_code=403, detail="Active assistant profile not found")
        return principal

    return role_checker
