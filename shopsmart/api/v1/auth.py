from fastapi import APIRouter, Depends, Request, status

from shopsmart.api.deps import get_client_ip, get_database
from shopsmart.core.config import settings
from shopsmart.core.exceptions import failure_message
from shopsmart.core.rate_limiter import limiter
from shopsmart.db.gateway import Database
from shopsmart.schemas.user import UserLogin, UserRegister
from shopsmart.services.auth_service import authenticate, record_login, register_user
from shopsmart.services.identity import end_user_session, new_session_id, start_user_session
from shopsmart.utils.response import success

router = APIRouter()


@router.post(
    "/register",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Register user account",
    description="""
Creates a new user account.

Validation:
1. full_name, email, password and confirm_password are required
2. Password needs 8+ characters with an uppercase letter, a lowercase letter and a digit
3. Email must be unique
4. Password is hashed before persistence and never returned
""",
    responses={
        201: {"description": "Registration successful"},
        400: {"description": "Validation error or email already registered"},
    },
)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def register(request: Request, user_in: UserRegister, db: Database = Depends(get_database)):
    with failure_message("Registration failed. Please try again."):
        user = register_user(db, user_in)
    return success(
        data={
            "user": user,
            "message": "Registration successful! Please check your email to verify your account.",
        },
        message="User registered successfully",
    )


@router.post(
    "/login",
    response_model=dict,
    summary="Login user",
    description="""
Authenticates a user and binds the server-side session to the account.

Behavior:
1. Validates credentials (same error for unknown email and wrong password)
2. Ensures user is active
3. Rotates the session identifier and records a login audit row
""",
    responses={
        200: {"description": "Login successful"},
        400: {"description": "Invalid credentials or account deactivated"},
    },
)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def login(request: Request, credentials: UserLogin, db: Database = Depends(get_database)):
    with failure_message("Login failed. Please try again."):
        user = authenticate(db, credentials.email, credentials.password)

        session_id = new_session_id()
        user = record_login(
            db,
            user,
            session_id,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )

    # The cookie only carries the account once the login is persisted.
    start_user_session(request.session, user, session_id)

    return success(
        data={
            "user": user,
            "session_id": session_id,
            "message": "Login successful",
        },
        message="Login successful",
    )


@router.post("/logout", response_model=dict)
def logout(request: Request):
    end_user_session(request.session)
    return success(message="Logout successful")
