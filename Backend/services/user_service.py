"""
Registration, login and profile management on top of the users collection.
"""
import re
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Tuple

from bson import ObjectId
from pymongo import ReturnDocument
from pydantic import ValidationError as PydanticValidationError

from db.database import DatabaseClient
from models.user import (
    UserCreate,
    UserUpdate,
    UserResponse,
    UserSummary,
    UserStats,
    ProfileTheme,
    ProfileVisibility,
)
from services.auth_service import TokenService, get_password_hash, verify_password
from services.errors import (
    ValidationError,
    WeakPassword,
    DuplicateIdentity,
    InvalidCredentials,
    NotFound,
    DUPLICATE_IDENTITY_MESSAGE,
    format_validation_error,
    handle_store_errors,
)
from services.event_service import EventService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MAX_SEARCH_LIMIT = 50
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
USER_NOT_FOUND_MESSAGE = "User not found"


def utcnow() -> datetime:
    """Current UTC time as stored by MongoDB (naive, millisecond precision)."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _to_document(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert validated model values into BSON-friendly values."""
    doc = {}
    for key, value in fields.items():
        if isinstance(value, (ProfileTheme, ProfileVisibility)):
            value = value.value
        elif isinstance(value, date) and not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)
        doc[key] = value
    return doc


def _user_out(doc: Mapping[str, Any]) -> UserResponse:
    data = {k: v for k, v in doc.items() if k not in ("_id", "hashed_password")}
    birth_date = data.get("birth_date")
    if isinstance(birth_date, datetime):
        data["birth_date"] = birth_date.date()
    for key in ("created_at", "updated_at"):
        if isinstance(data.get(key), datetime) and data[key].tzinfo is None:
            data[key] = data[key].replace(tzinfo=timezone.utc)
    return UserResponse(id=str(doc["_id"]), **data)


def _object_id(owner_id: str) -> ObjectId:
    if not ObjectId.is_valid(owner_id):
        raise NotFound(USER_NOT_FOUND_MESSAGE)
    return ObjectId(owner_id)


class UserService:
    """
    Orchestrates the credential store and the token service.

    Account deletion cascades: the owner's events are removed together with
    the user record.
    """

    def __init__(self, database: DatabaseClient, token_service: TokenService,
                 event_service: EventService):
        self.database = database
        self.token_service = token_service
        self.event_service = event_service

    @property
    def users(self):
        return self.database.users

    def _identity_taken(self, email: str | None, username: str | None,
                        exclude_id: ObjectId | None = None) -> bool:
        clauses = []
        if email:
            clauses.append({"email": email})
        if username:
            clauses.append({"username": username})
        if not clauses:
            return False
        query: Dict[str, Any] = {"$or": clauses}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        return self.users.find_one(query) is not None

    @handle_store_errors
    def register(self, data: UserCreate | Mapping[str, Any]) -> Tuple[UserResponse, str]:
        """
        Create an account and issue a token for it.

        Raises:
            ValidationError: Missing or malformed fields
            WeakPassword: Password shorter than six characters
            DuplicateIdentity: Email or username already on file
        """
        try:
            user_data = UserCreate.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(format_validation_error(e))

        if len(user_data.password) < MIN_PASSWORD_LENGTH:
            raise WeakPassword(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        email = user_data.email.lower()
        if self._identity_taken(email, user_data.username):
            raise DuplicateIdentity(DUPLICATE_IDENTITY_MESSAGE)

        now = utcnow()
        fields = user_data.model_dump(exclude={"password", "email", "username"}, exclude_none=True)
        user_doc = {
            "email": email,
            "hashed_password": get_password_hash(user_data.password),
            "profile_theme": ProfileTheme.default.value,
            "profile_visibility": ProfileVisibility.public.value,
            "email_notifications": True,
            "sms_notifications": False,
            "is_verified": False,
            **_to_document(fields),
            "created_at": now,
            "updated_at": now,
        }
        # Omitted rather than null so the sparse unique index ignores it
        if user_data.username:
            user_doc["username"] = user_data.username

        result = self.users.insert_one(user_doc)
        user_doc["_id"] = result.inserted_id
        logger.info(f"Registered user {result.inserted_id}")

        token = self.token_service.issue(str(result.inserted_id), email)
        return _user_out(user_doc), token

    @handle_store_errors
    def login(self, email: str, password: str) -> Tuple[UserResponse, str]:
        """
        Authenticate by email and password.

        An unknown email and a wrong password produce the same error.
        """
        user = self.users.find_one({"email": (email or "").strip().lower()})
        if not user or not verify_password(password or "", user.get("hashed_password", "")):
            logger.info("Failed login attempt")
            raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)

        token = self.token_service.issue(str(user["_id"]), user["email"])
        return _user_out(user), token

    @handle_store_errors
    def get_profile(self, owner_id: str) -> UserResponse:
        user = self.users.find_one({"_id": _object_id(owner_id)})
        if not user:
            raise NotFound(USER_NOT_FOUND_MESSAGE)
        return _user_out(user)

    @handle_store_errors
    def update_profile(self, owner_id: str, fields: UserUpdate | Mapping[str, Any]) -> UserResponse:
        """
        Apply a partial profile update.

        Email and username are re-checked against every other account.
        Passwords are not changed here; see ``change_password``.
        """
        oid = _object_id(owner_id)
        try:
            update = UserUpdate.model_validate(fields)
        except PydanticValidationError as e:
            raise ValidationError(format_validation_error(e))

        changes = update.model_dump(exclude_unset=True)
        for required in ("first_name", "last_name", "email"):
            if required in changes and changes[required] is None:
                raise ValidationError(f"{required} cannot be empty")
        # Usernames and preference flags can be changed but not removed
        for keep in ("username", "profile_theme", "profile_visibility",
                     "email_notifications", "sms_notifications"):
            if keep in changes and changes[keep] is None:
                del changes[keep]
        if changes.get("email"):
            changes["email"] = changes["email"].lower()

        if self._identity_taken(changes.get("email"), changes.get("username"), exclude_id=oid):
            raise DuplicateIdentity("Email or username is already taken")

        changes = _to_document(changes)
        changes["updated_at"] = utcnow()
        user = self.users.find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not user:
            raise NotFound(USER_NOT_FOUND_MESSAGE)
        return _user_out(user)

    @handle_store_errors
    def delete_account(self, owner_id: str) -> int:
        """
        Remove the account and every event it owns.

        Returns:
            Number of events deleted with the account
        """
        result = self.users.delete_one({"_id": _object_id(owner_id)})
        if result.deleted_count == 0:
            raise NotFound(USER_NOT_FOUND_MESSAGE)
        removed = self.event_service.delete_all_for_owner(owner_id)
        logger.info(f"Deleted user {owner_id} and {removed} owned events")
        return removed

    @handle_store_errors
    def change_password(self, owner_id: str, current_password: str, new_password: str) -> None:
        oid = _object_id(owner_id)
        user = self.users.find_one({"_id": oid})
        if not user:
            raise NotFound(USER_NOT_FOUND_MESSAGE)
        if not verify_password(current_password or "", user.get("hashed_password", "")):
            raise InvalidCredentials("Current password is incorrect")
        if len(new_password or "") < MIN_PASSWORD_LENGTH:
            raise WeakPassword(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        self.users.update_one(
            {"_id": oid},
            {"$set": {"hashed_password": get_password_hash(new_password), "updated_at": utcnow()}},
        )
        logger.info(f"Password changed for user {owner_id}")

    @handle_store_errors
    def search_users(self, query: str, limit: int = 10) -> List[UserSummary]:
        """
        Case-insensitive search over username, first and last name.

        Private profiles are never returned.
        """
        query = (query or "").strip()
        if not query:
            return []
        limit = max(1, min(int(limit), MAX_SEARCH_LIMIT))
        pattern = {"$regex": re.escape(query), "$options": "i"}
        cursor = self.users.find(
            {
                "$or": [
                    {"username": pattern},
                    {"first_name": pattern},
                    {"last_name": pattern},
                ],
                "profile_visibility": {"$ne": ProfileVisibility.private.value},
            },
            {"first_name": 1, "last_name": 1, "username": 1, "profile_picture": 1},
        ).limit(limit)
        return [
            UserSummary(
                id=str(doc["_id"]),
                first_name=doc.get("first_name", ""),
                last_name=doc.get("last_name", ""),
                username=doc.get("username"),
                profile_picture=doc.get("profile_picture"),
            )
            for doc in cursor
        ]

    @handle_store_errors
    def get_stats(self, owner_id: str) -> UserStats:
        user = self.get_profile(owner_id)
        return UserStats(
            member_since=user.created_at,
            last_updated=user.updated_at,
            is_verified=user.is_verified,
            profile_complete=bool(
                user.first_name and user.last_name and user.username and user.profile_picture
            ),
        )
