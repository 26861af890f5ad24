import logging
from typing import Any, Dict, Optional

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import get_settings
from database import create_document, now_utc
from errors import DuplicateEmail, InvalidCredentials, NotFound, WeakPassword
from schemas import User
from security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


def public_user(doc: Dict[str, Any]) -> Dict[str, Any]:
    """User summary returned to clients. Never includes the password hash."""
    return {"id": doc["_id"], "email": doc["email"], "fullName": doc.get("full_name") or ""}


def _session_payload(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {"token": create_access_token(doc["_id"]), "user": public_user(doc)}


def sign_up(db: Database, email: str, password: str, full_name: str = "") -> Dict[str, Any]:
    if db["user"].find_one({"email": email}):
        raise DuplicateEmail()
    user = User(email=email, password_hash=hash_password(password), full_name=full_name or "")
    try:
        doc = create_document(db, "user", user.model_dump())
    except DuplicateKeyError:
        # Lost a race with a concurrent signup for the same email.
        raise DuplicateEmail()
    logger.info("User registered id=%s", doc["_id"])
    return _session_payload(doc)


def log_in(db: Database, email: str, password: str) -> Dict[str, Any]:
    user = db["user"].find_one({"email": email})
    if not user or not verify_password(password, user.get("password_hash", "")):
        logger.info("Rejected login attempt")
        raise InvalidCredentials()
    logger.info("User logged in id=%s", user["_id"])
    return _session_payload(user)


def change_password(db: Database, user_id: str, new_password: Optional[str]) -> Dict[str, str]:
    min_length = get_settings().password_min_length
    if not new_password or len(new_password) < min_length:
        raise WeakPassword(f"Password must be at least {min_length} characters")
    result = db["user"].update_one(
        {"_id": user_id},
        {"$set": {"password_hash": hash_password(new_password), "updated_at": now_utc()}},
    )
    if result.matched_count == 0:
        raise NotFound("User not found")
    logger.info("Password updated for user id=%s", user_id)
    return {"message": "Password updated"}
