from datetime import datetime

import structlog
from sqlalchemy import insert, select, update

from shopsmart.core.exceptions import AccountDeactivated, InvalidCredentials, ValidationError
from shopsmart.core.security import dummy_verify, generate_token, hash_password, verify_password
from shopsmart.db.gateway import Database
from shopsmart.models.user import User, UserSession
from shopsmart.schemas.user import UserRegister

logger = structlog.get_logger()

# Everything a client may see about a user; the password hash is never selected.
PUBLIC_USER_COLUMNS = (
    User.user_id,
    User.full_name,
    User.email,
    User.phone,
    User.date_of_birth,
    User.gender,
    User.is_active,
    User.is_verified,
    User.last_login,
    User.created_at,
)


def get_public_user(db: Database, user_id: int):
    return db.fetch_one(select(*PUBLIC_USER_COLUMNS).where(User.user_id == user_id))


def register_user(db: Database, user_in: UserRegister) -> dict:
    """Create an unverified account and return it without credentials."""
    existing_user = db.fetch_one(select(User.user_id).where(User.email == user_in.email))
    if existing_user:
        raise ValidationError("Email already registered")

    user_id = db.insert(
        insert(User).values(
            full_name=user_in.full_name,
            email=user_in.email,
            password_hash=hash_password(user_in.password),
            phone=user_in.phone,
            date_of_birth=user_in.date_of_birth,
            gender=user_in.gender,
            email_verification_token=generate_token(),
            is_active=True,
            is_verified=False,
            created_at=datetime.utcnow(),
        )
    )

    logger.info("user_registered", user_id=user_id)
    return get_public_user(db, user_id)


def authenticate(db: Database, email: str, password: str) -> dict:
    """Return the public user for valid credentials.

    Unknown email and wrong password raise the same error after the same
    amount of hashing work. The active flag is only revealed to callers
    who already proved the password.
    """
    user = db.fetch_one(
        select(User.user_id, User.password_hash, User.is_active).where(User.email == email)
    )

    if not user:
        dummy_verify()
        raise InvalidCredentials()

    if not verify_password(password, user["password_hash"]):
        raise InvalidCredentials()

    if not user["is_active"]:
        raise AccountDeactivated()

    return get_public_user(db, user["user_id"])


def record_login(
    db: Database,
    user: dict,
    session_id: str,
    ip_address: str = None,
    user_agent: str = None,
) -> dict:
    """Stamp last_login and write the session audit row."""
    now = datetime.utcnow()
    with db.transaction():
        db.update(update(User).where(User.user_id == user["user_id"]).values(last_login=now))
        db.insert(
            insert(UserSession).values(
                session_id=session_id,
                user_id=user["user_id"],
                ip_address=(ip_address or "unknown")[:45],
                user_agent=(user_agent or "unknown")[:500],
                created_at=now,
            )
        )

    logger.info("login_succeeded", user_id=user["user_id"])
    return {**user, "last_login": now}
