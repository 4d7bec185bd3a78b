"""
LocalBiz Backend — Auth Service
=================================

What:  Registration, login, email checks, profile lookup and bearer sessions.
How:   Accounts hold a passlib hash of the password; a successful login
       issues an opaque token stored in `auth_sessions`. The consumer
       profile (`users`) or business document (`businesses`) shares the
       account id.
Who:   Called by routes/auth.py and by the session dependency in
       dependencies.py.

Validation:
    Every rule raises ValidationError with the message the registration and
    login forms show, checked in the order listed on each method. Emails are
    compared case-insensitively.

Brute-force protection:
    Failed logins are tracked per email in a sliding window. Once
    `login_max_attempts` failures fall inside `login_lockout_window`
    seconds, further attempts for that email get 429 until the oldest
    failure ages out. A successful login clears the record.
"""

import logging
import re
import secrets
import time
from collections import defaultdict
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from localbiz.config import settings
from localbiz.exceptions import (
    AuthenticationError,
    DatabaseError,
    LocalBizError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
    ValidationError,
)
from localbiz.models.account import Account, AuthSession
from localbiz.models.business import Business
from localbiz.models.common import as_utc, utcnow
from localbiz.models.user import User
from localbiz.schemas.auth import (
    BusinessRegisterResponse,
    CheckEmailResponse,
    LoginResponse,
    LoginUser,
    RegisteredBusiness,
    RegisteredUser,
    SessionResponse,
    SessionToken,
    UserProfile,
    UserRegisterResponse,
)
from localbiz.schemas.business import BusinessDocument
from localbiz.services.file_service import PROFILE_PICTURES, file_service

logger = logging.getLogger(__name__)

# ── Password hashing ──────────────────────────────────────────────────────
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# ── Validation patterns ───────────────────────────────────────────────────
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
NAME_PATTERN = re.compile(r"[a-zA-Z\s]+")
HAS_LETTER = re.compile(r"[a-zA-Z]")
HAS_DIGIT = re.compile(r"\d")

MIN_PASSWORD_LENGTH = 6


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email) is not None


def normalize_email(email: str) -> str:
    return email.strip().lower()


class LoginAttemptTracker:
    """
    Per-email sliding window of failed login timestamps.

    In-memory and per process, like the request rate limiter. Emails whose
    newest failure has left the window are swept out at most once per
    window, on the next recorded failure.
    """

    def __init__(self):
        self._failures: Dict[str, List[float]] = defaultdict(list)
        self._last_sweep = 0.0

    def _recent(self, key: str, now: float) -> List[float]:
        window_start = now - settings.login_lockout_window
        recent = [ts for ts in self._failures.get(key, []) if ts > window_start]
        if recent:
            self._failures[key] = recent
        else:
            self._failures.pop(key, None)
        return recent

    def _sweep(self, now: float) -> None:
        window_start = now - settings.login_lockout_window
        stale = [key for key, stamps in self._failures.items() if not stamps or stamps[-1] <= window_start]
        for key in stale:
            del self._failures[key]
        self._last_sweep = now
        if stale:
            logger.debug("Swept %d expired login records, %d remain", len(stale), len(self._failures))

    def check(self, key: str) -> None:
        """Raise RateLimitExceededError while the email is locked out."""
        now = time.time()
        recent = self._recent(key, now)
        if len(recent) >= settings.login_max_attempts:
            retry_after = int(recent[0] + settings.login_lockout_window - now) + 1
            logger.warning("Login locked out for %s (%d recent failures)", key, len(recent))
            raise RateLimitExceededError(
                retry_after=retry_after,
                message="Too many login attempts. Please try again later",
            )

    def record_failure(self, key: str) -> None:
        now = time.time()
        self._failures[key].append(now)
        if now - self._last_sweep >= settings.login_lockout_window:
            self._sweep(now)

    def __len__(self) -> int:
        return len(self._failures)

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self._failures.clear()
        else:
            self._failures.pop(key, None)


class AuthService:
    """
    Account lifecycle and session management.

    Responsibilities:
        - register_user() / register_business(): validated sign-up
        - check_email(): availability check for the registration form
        - login() / logout(): credential check and bearer sessions
        - resolve_session(): token → account, used by every protected route
        - get_user_info() / session_info(): profile lookups
    """

    def __init__(self):
        self.login_attempts = LoginAttemptTracker()

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _get_account_by_email(self, db: AsyncSession, email: str) -> Optional[Account]:
        result = await db.execute(select(Account).where(Account.email == normalize_email(email)))
        return result.scalar_one_or_none()

    async def _create_account(
        self, db: AsyncSession, email: str, password: str, account_type: str
    ) -> Account:
        if await self._get_account_by_email(db, email) is not None:
            raise ValidationError(message="Email already in use", field="email")

        account = Account(
            email=normalize_email(email),
            password_hash=pwd_context.hash(password),
            account_type=account_type,
        )
        db.add(account)
        await db.flush()
        return account

    async def load_profile(
        self, db: AsyncSession, account_id: str
    ) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
        """
        Return (user_type, profile dict) for an account, consumer first.

        (None, None) when neither a consumer profile nor a business exists.
        """
        user = await db.get(User, account_id)
        if user is not None:
            return "user", UserProfile.from_model(user).model_dump(by_alias=True, mode="json")
        business = await db.get(Business, account_id)
        if business is not None:
            return "business", BusinessDocument.from_model(business).model_dump(by_alias=True, mode="json")
        return None, None

    # ── Registration ──────────────────────────────────────────────────────

    def validate_user_registration(
        self,
        first_name: Optional[str],
        last_name: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> None:
        """
        Consumer sign-up rules, in order:
            1. all four fields present
            2. first and last name: ≥ 2 characters after trimming, letters and spaces only
            3. email format
            4. password ≥ 6 characters
        """
        if not first_name or not last_name or not email or not password:
            raise ValidationError(message="All fields are required")

        if len(first_name.strip()) < 2 or not NAME_PATTERN.fullmatch(first_name):
            raise ValidationError(
                message="First name must be at least 2 characters and contain only letters",
                field="firstName",
            )

        if len(last_name.strip()) < 2 or not NAME_PATTERN.fullmatch(last_name):
            raise ValidationError(
                message="Last name must be at least 2 characters and contain only letters",
                field="lastName",
            )

        if not is_valid_email(email):
            raise ValidationError(message="Invalid email format", field="email")

        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                message="Password must be at least 6 characters long", field="password"
            )

    async def register_user(
        self,
        db: AsyncSession,
        first_name: Optional[str],
        last_name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        profile_pic: Optional[Tuple[bytes, Optional[str], Optional[str]]] = None,
    ) -> UserRegisterResponse:
        """
        Create a consumer account and profile.

        Args:
            profile_pic: Optional (content, filename, content_type) of the
                         uploaded picture.

        Raises:
            ValidationError: a rule failed, or the email is already in use
            DatabaseError: persisting the account failed
        """
        self.validate_user_registration(first_name, last_name, email, password)

        extension = None
        if profile_pic is not None:
            content, filename, content_type = profile_pic
            extension = file_service.validate_image(
                content,
                filename,
                content_type,
                type_message="Profile picture must be a valid image (JPEG, PNG, or WebP)",
                size_message="Profile picture must be less than 5MB",
                field="profilePic",
            )

        profile_pic_url: Optional[str] = None
        try:
            account = await self._create_account(db, email, password, "user")

            if profile_pic is not None:
                profile_pic_url = await file_service.store_image(
                    PROFILE_PICTURES, account.id, profile_pic[0], extension
                )

            user = User(
                id=account.id,
                email=email,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                profile_pic_url=profile_pic_url,
                user_type="user",
            )
            db.add(user)
            await db.flush()

        except LocalBizError:
            if profile_pic_url:
                await file_service.delete_by_url(profile_pic_url)
            raise
        except Exception as e:
            if profile_pic_url:
                await file_service.delete_by_url(profile_pic_url)
            logger.error("User registration failed: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("Registered user %s", account.id)
        return UserRegisterResponse(
            user=RegisteredUser(
                uid=account.id,
                first_name=user.first_name,
                last_name=user.last_name,
                email=email,
                profile_pic_url=profile_pic_url,
            )
        )

    async def register_business(
        self,
        db: AsyncSession,
        business_name: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> BusinessRegisterResponse:
        """
        Create a business owner account and an unverified business document.

        Rules, in order: all fields present; trimmed name 2..100 characters;
        email format; password ≥ 6 characters with a letter and a digit.
        """
        if not business_name or not email or not password:
            raise ValidationError(message="All fields are required")

        name = business_name.strip()
        if len(name) < 2:
            raise ValidationError(
                message="Business name must be at least 2 characters long", field="businessName"
            )
        if len(name) > 100:
            raise ValidationError(
                message="Business name must not exceed 100 characters", field="businessName"
            )

        if not is_valid_email(email):
            raise ValidationError(message="Invalid email format", field="email")

        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                message="Password must be at least 6 characters long", field="password"
            )
        if not HAS_LETTER.search(password) or not HAS_DIGIT.search(password):
            raise ValidationError(
                message="Password must contain at least one letter and one number",
                field="password",
            )

        try:
            account = await self._create_account(db, email, password, "business")
            now = utcnow()
            business = Business(
                id=account.id,
                email=email,
                business_name=name,
                user_type="business",
                verified=False,
                images=[],
                services=[],
                created_at=now,
                updated_at=now,
            )
            db.add(business)
            await db.flush()
        except LocalBizError:
            raise
        except Exception as e:
            logger.error("Business registration failed: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("Registered business %s (%s)", account.id, name)
        return BusinessRegisterResponse(
            business=RegisteredBusiness(uid=account.id, business_name=name, email=email, verified=False)
        )

    async def check_email(self, db: AsyncSession, email: Optional[str]) -> CheckEmailResponse:
        if not email:
            raise ValidationError(message="Email is required", field="email")
        if not is_valid_email(email.strip()):
            raise ValidationError(message="Invalid email format", field="email")

        if await self._get_account_by_email(db, email) is not None:
            return CheckEmailResponse(exists=True, message="Email is already registered")
        return CheckEmailResponse(exists=False, message="Email is available")

    # ── Login & Sessions ──────────────────────────────────────────────────

    async def login(
        self, db: AsyncSession, email: Optional[str], password: Optional[str]
    ) -> LoginResponse:
        """
        Verify credentials and issue a bearer session.

        Raises:
            ValidationError: missing fields or malformed email (400)
            RateLimitExceededError: too many recent failures for the email (429)
            AuthenticationError: unknown email or wrong password (401)
            PermissionDeniedError: the account is disabled (403)
            NotFoundError: the account has no profile (404)
        """
        if not email or not password:
            raise ValidationError(message="Email and password are required")
        if not is_valid_email(email):
            raise ValidationError(message="Invalid email format", field="email")

        key = normalize_email(email)
        self.login_attempts.check(key)

        account = await self._get_account_by_email(db, key)
        if account is None or not pwd_context.verify(password, account.password_hash):
            self.login_attempts.record_failure(key)
            raise AuthenticationError(message="Invalid email or password")

        if account.disabled:
            raise PermissionDeniedError(message="This account has been disabled")

        self.login_attempts.reset(key)

        _, profile = await self.load_profile(db, account.id)
        if profile is None:
            raise NotFoundError(resource="user", resource_id=account.id, message="User data not found")

        session = await self.create_session(db, account)
        logger.info("Account %s logged in", account.id)

        return LoginResponse(
            user=LoginUser(uid=account.id, email=account.email, user_data=profile),
            session=SessionToken(token=session.token, expires_at=as_utc(session.expires_at)),
        )

    async def create_session(self, db: AsyncSession, account: Account) -> AuthSession:
        now = utcnow()
        session = AuthSession(
            token=secrets.token_urlsafe(32),
            account_id=account.id,
            created_at=now,
            expires_at=now + timedelta(hours=settings.session_ttl_hours),
        )
        account.last_login_at = now
        db.add(session)
        await db.flush()
        return session

    async def resolve_session(self, db: AsyncSession, token: Optional[str]) -> Account:
        """
        Return the account behind a bearer token.

        Expired sessions are deleted on sight.

        Raises:
            AuthenticationError: missing, unknown or expired token
            PermissionDeniedError: the account was disabled after login
        """
        if not token:
            raise AuthenticationError()

        session = await db.get(AuthSession, token)
        if session is None:
            raise AuthenticationError(message="Invalid or expired session")

        if as_utc(session.expires_at) <= utcnow():
            # Committed here: the request session rolls back on the error below
            await db.delete(session)
            await db.commit()
            raise AuthenticationError(message="Invalid or expired session")

        account = await db.get(Account, session.account_id)
        if account is None:
            raise AuthenticationError(message="Invalid or expired session")
        if account.disabled:
            raise PermissionDeniedError(message="This account has been disabled")
        return account

    async def logout(self, db: AsyncSession, token: str) -> None:
        await db.execute(delete(AuthSession).where(AuthSession.token == token))

    async def session_info(self, db: AsyncSession, account: Account) -> SessionResponse:
        user_type, profile = await self.load_profile(db, account.id)
        return SessionResponse(
            uid=account.id,
            email=account.email,
            user_type=user_type or account.account_type,
            user_data=profile,
        )

    # ── Lookup ────────────────────────────────────────────────────────────

    async def get_user_info(self, db: AsyncSession, user_id: str) -> Dict[str, Any]:
        """
        Public profile lookup: business document first, then consumer
        profile, then the bare account email.

        Returns a flat dict `{success, userType, ...profile}`.
        """
        if not user_id:
            raise ValidationError(message="User ID is required")

        business = await db.get(Business, user_id)
        if business is not None:
            profile = BusinessDocument.from_model(business).model_dump(by_alias=True, mode="json")
            return {"success": True, "userType": "business", **profile}

        user = await db.get(User, user_id)
        if user is not None:
            profile = UserProfile.from_model(user).model_dump(by_alias=True, mode="json")
            return {"success": True, "userType": "user", **profile}

        account = await db.get(Account, user_id)
        if account is not None:
            return {"success": True, "userType": "user", "email": account.email}

        raise NotFoundError(resource="user", resource_id=user_id, message="User not found")


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
