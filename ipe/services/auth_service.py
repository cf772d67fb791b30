"""Authentication gate: password hashing, bearer tokens and caller context.

Provides:
- Password hashing/verification (passlib)
- JWT issue/verify (python-jose, HS256)
- Login and password change against the users table
- CallerContext: the explicit identity object handed to every service call
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from ipe.models.user import Role, User
from ipe.services.config import Settings
from ipe.services.errors import AuthenticationError, DataValidationError, NotFoundError
from ipe.services.payment_status import Clock, utc_now

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256", "bcrypt"],
    deprecated="auto",
)


@dataclass(frozen=True)
class CallerContext:
    """Authenticated caller, resolved from the bearer token only."""

    caller_id: int
    role: Role
    email: str = ""

    @property
    def is_owner(self) -> bool:
        return self.role is Role.OWNER


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Unknown or malformed hash format
        return False


class TokenService:
    """Issue and verify signed access tokens."""

    def __init__(self, settings: Settings, clock: Clock = utc_now):
        self.secret = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.lifetime = timedelta(days=settings.jwt_expire_days)
        self.clock = clock

    def issue(self, user: User) -> str:
        """Create an access token carrying user id, email and role."""
        now = self.clock()
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
            "iat": int(now.timestamp()),
            "exp": int((now + self.lifetime).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> CallerContext:
        """Decode a token into a CallerContext.

        Raises:
            AuthenticationError: signature invalid, token expired or claims malformed
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"Rejected access token: {e}")
            raise AuthenticationError("Invalid or expired token") from e

        try:
            return CallerContext(
                caller_id=int(payload["sub"]),
                role=Role(payload["role"]),
                email=payload.get("email", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Access token with malformed claims: {e}")
            raise AuthenticationError("Invalid or expired token") from e


class AuthService:
    """Login and password management."""

    def __init__(self, db: Session, tokens: TokenService):
        self.db = db
        self.tokens = tokens

    def get_by_email(self, email: str) -> User | None:
        return self.db.execute(
            select(User).where(User.email == email.strip().lower())
        ).scalar_one_or_none()

    def login(self, email: str, password: str) -> tuple[User, str]:
        """Check credentials and issue a token.

        Returns:
            (user, access_token)

        Raises:
            DataValidationError: email or password missing
            AuthenticationError: unknown email or wrong password
        """
        if not email or not password:
            raise DataValidationError("Email and password are required")

        user = self.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", email)
            raise AuthenticationError("Invalid credentials")

        logger.info("User %s logged in as %s", user.id, user.role.value)
        return user, self.tokens.issue(user)

    def change_password(self, caller: CallerContext, current: str, new: str) -> None:
        """Replace the caller's password after checking the current one."""
        if not current or not new:
            raise DataValidationError("Current and new password are required")
        if len(new) < MIN_PASSWORD_LENGTH:
            raise DataValidationError(
                f"New password must have at least {MIN_PASSWORD_LENGTH} characters"
            )

        user = self.db.get(User, caller.caller_id)
        if user is None:
            raise NotFoundError("User not found")
        if not verify_password(current, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        user.password_hash = hash_password(new)
        self.db.commit()
        logger.info("User %s changed password", user.id)


__all__ = [
    "AuthService",
    "CallerContext",
    "MIN_PASSWORD_LENGTH",
    "TokenService",
    "hash_password",
    "verify_password",
]
