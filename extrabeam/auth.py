import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import SUPABASE_JWT_AUDIENCE, SUPABASE_JWT_SECRET
from .database import get_db
from .models import PROFILE_ROLES, Profile

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def verify_supabase_token(token: str) -> dict:
    """
    Verify a Supabase access token (HS256 signed with the project JWT secret).
    Returns the decoded claims or raises a 401.
    """
    if not SUPABASE_JWT_SECRET:
        logger.error("❌ SUPABASE_JWT_SECRET not configured")
        raise HTTPException(status_code=401, detail="Authentication not configured")

    try:
        claims = jwt.decode(
            token,
            SUPABASE_JWT_SECRET,
            algorithms=["HS256"],
            audience=SUPABASE_JWT_AUDIENCE,
        )
    except ExpiredSignatureError as e:
        logger.warning("⚠️ Token expired")
        raise HTTPException(status_code=401, detail="Token expired") from e
    except JWTError as e:
        logger.warning(f"⚠️ Invalid token: {e}")
        raise HTTPException(status_code=401, detail="Invalid token") from e

    if not claims.get("sub"):
        logger.warning("⚠️ Token missing subject")
        raise HTTPException(status_code=401, detail="Invalid token")

    return claims


def _profile_from_claims(claims: dict) -> Profile:
    """
    Initial profile for a new subject. The role is read from app_metadata, which
    only the server can write; admin is never granted from a token.
    """
    metadata = claims.get("user_metadata") or {}
    role = (claims.get("app_metadata") or {}).get("role") or "client"
    if role not in PROFILE_ROLES or role == "admin":
        role = "client"
    return Profile(
        id=claims["sub"],
        email=claims.get("email"),
        role=role,
        first_name=metadata.get("first_name"),
        last_name=metadata.get("last_name"),
        slug=metadata.get("slug"),
    )


def get_or_create_profile(db: Session, claims: dict) -> Profile:
    """Find the profile for the token subject, creating it on first sight"""
    profile = db.query(Profile).filter(Profile.id == claims["sub"]).first()
    if profile:
        return profile

    profile = _profile_from_claims(claims)
    try:
        db.add(profile)
        db.commit()
        db.refresh(profile)
        logger.info(f"✅ Created profile {profile.id} (role={profile.role})")
        return profile
    except IntegrityError:
        # Concurrent first request for the same subject
        db.rollback()
        profile = db.query(Profile).filter(Profile.id == claims["sub"]).first()
        if profile:
            return profile
        raise HTTPException(status_code=409, detail="Profile creation conflict") from None
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Failed to create profile for {claims['sub']}: {e}")
        raise HTTPException(status_code=500, detail="Failed to load user profile") from e


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Profile:
    claims = verify_supabase_token(credentials.credentials)
    return get_or_create_profile(db, claims)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db),
) -> Optional[Profile]:
    """Current user for public endpoints: None when no bearer token is sent"""
    if not credentials:
        return None
    claims = verify_supabase_token(credentials.credentials)
    return get_or_create_profile(db, claims)


def require_roles(*roles: str):
    """Dependency factory restricting an endpoint to the given profile roles"""

    async def dependency(user: Profile = Depends(get_current_user)) -> Profile:
        if user.role not in roles:
            logger.warning(f"🚫 User {user.id} with role {user.role} denied (needs {roles})")
            raise HTTPException(status_code=403, detail="Accès refusé")
        return user

    return dependency


get_client_user = require_roles("client")
