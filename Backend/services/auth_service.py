"""
Password hashing and signed identity tokens.
"""
from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError
from passlib.context import CryptContext

from config import DEFAULT_BCRYPT_ROUNDS
from models.user import TokenData
from services.errors import InvalidToken, ExpiredToken

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=DEFAULT_BCRYPT_ROUNDS,
)


def configure_password_hashing(rounds: int) -> None:
    """Set the bcrypt work factor for new hashes. Existing hashes still verify."""
    pwd_context.update(bcrypt__rounds=rounds)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognized or corrupt hash
        return False


class TokenService:
    """
    Issues and verifies stateless bearer tokens.

    Tokens carry the owner id (``sub``), the email and an absolute expiry.
    Nothing is stored server-side, so a token stays valid until it expires.
    """

    def __init__(self, secret: str, algorithm: str = "HS256",
                 expires_in: timedelta = timedelta(days=7)):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in

    def issue(self, owner_id: str, email: str, now: datetime | None = None) -> str:
        """
        Create a signed token for the given owner.

        Args:
            owner_id: Identifier of the authenticated user
            email: The user's email, embedded for convenience
            now: Issuance time; defaults to the current UTC time

        Returns:
            Encoded JWT string
        """
        issued_at = now or datetime.now(timezone.utc)
        expires_at = issued_at + self.expires_in
        payload = {
            "sub": str(owner_id),
            "email": email,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str, now: datetime | None = None) -> TokenData:
        """
        Check the signature and expiry of a token.

        Raises:
            InvalidToken: Bad signature or malformed payload
            ExpiredToken: The current time is at or past the expiry
        """
        try:
            # Expiry is checked below so that ``now`` can be supplied
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            raise InvalidToken("Invalid token")

        owner_id = payload.get("sub")
        email = payload.get("email")
        expiry = payload.get("exp")
        if not owner_id or not email or not isinstance(expiry, (int, float)):
            raise InvalidToken("Invalid token")

        current = now or datetime.now(timezone.utc)
        if current.timestamp() >= expiry:
            raise ExpiredToken("Token has expired")

        return TokenData(owner_id=owner_id, email=email)
