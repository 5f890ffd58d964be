import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, model_validator
from sqlalchemy.orm import Session

from ..auth import clear_admin_session, get_current_user, set_admin_session
from ..database import get_db
from ..email_service import mask_email
from ..errors import AppError
from ..models import User
from ..rate_limiter import create_rate_limiter
from ..security_utils import verify_password_bcrypt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Authentication"])

# Rate limiter for login attempts: 10 per 15 minutes per IP
rate_limit_login = create_rate_limiter(
    limit=10,
    window_seconds=900,
    key_prefix="admin_login",
    use_ip=True,
    message="Too many login attempts, please try again later.",
)


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def check_required(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not data.get("email") or not data.get("password"):
            raise ValueError("Email and password are required.")
        return data


@router.post("/login")
async def login(
    data: LoginRequest,
    response: Response,
    _: None = Depends(rate_limit_login),
    db: Session = Depends(get_db),
):
    """Verify admin credentials and start a two hour cookie session"""
    email = data.email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password_bcrypt(data.password, user.password_hash):
        logger.warning(f"🔒 Failed admin login for {mask_email(email)}")
        raise AppError(401, "Invalid credentials.", "UNAUTHORIZED")

    set_admin_session(response, user)
    logger.info(f"✅ Admin logged in: {mask_email(user.email)}")
    return {"success": True, "name": user.name}


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return {"id": current_user.id, "name": current_user.name, "email": current_user.email}


@router.post("/logout")
async def logout(response: Response):
    clear_admin_session(response)
    return {"success": True, "message": "Logged out successfully."}
