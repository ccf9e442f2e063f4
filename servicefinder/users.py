"""User accounts: model, in-memory repository and service."""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Protocol

from .passwords import check_password, hash_password


class Role(str, Enum):
    PROVIDER = "provider"
    CUSTOMER = "customer"


@dataclass
class ProviderProfile:
    bio: str = ""
    phone: str = ""
    expertise: str = ""
    city: str = ""
    district: str = ""


@dataclass
class User:
    id: str
    name: str
    email: str
    password_hash: str
    role: Role
    provider: Optional[ProviderProfile] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class UserError(Exception):
    """Base class for user errors."""


class EmailTakenError(UserError):
    def __init__(self, message: str = "email already in use") -> None:
        super().__init__(message)


class UserNotFoundError(UserError):
    def __init__(self, message: str = "user not found") -> None:
        super().__init__(message)


class UnauthorizedError(UserError):
    def __init__(self, message: str = "unauthorized") -> None:
        super().__init__(message)


class ValidationError(UserError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"validation error: {detail}")
        self.detail = detail


class PasswordHasher(Protocol):
    def hash(self, plain: str) -> str: ...

    def compare(self, hashed: str, plain: str) -> bool: ...


class PlainHasher:
    """Stores passwords as given; the default when no hasher is chosen."""

    def hash(self, plain: str) -> str:
        if not isinstance(plain, str):
            raise TypeError("password must be a string")
        stored = plain
        return stored

    def compare(self, hashed: str, plain: str) -> bool:
        return hashed == plain


class BcryptHasher:
    """Hashes passwords with bcrypt."""

    def hash(self, plain: str) -> str:
        return hash_password(plain)

    def compare(self, hashed: str, plain: str) -> bool:
        return check_password(hashed, plain)


class UserRepository:
    """Keeps users in memory, handing out copies."""

    def __init__(self) -> None:
        self._by_id: dict[str, User] = {}

    def create(self, user: User) -> None:
        if any(stored.email == user.email for stored in self._by_id.values()):
            raise EmailTakenError()
        self._by_id[user.id] = copy.deepcopy(user)

    def by_email(self, email: str) -> User:
        for stored in self._by_id.values():
            if stored.email == email:
                return copy.deepcopy(stored)
        raise UserNotFoundError()

    def by_id(self, user_id: str) -> User:
        try:
            return copy.deepcopy(self._by_id[user_id])
        except KeyError:
            raise UserNotFoundError() from None

    def update(self, user: User) -> None:
        if user.id not in self._by_id:
            raise UserNotFoundError()
        self._by_id[user.id] = copy.deepcopy(user)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserService:
    """Registration, authentication and provider profiles."""

    def __init__(
        self,
        repo: UserRepository,
        hasher: Optional[PasswordHasher] = None,
        now: Optional[Callable[[], datetime]] = None,
        idgen: Optional[Callable[[], str]] = None,
    ) -> None:
        self._repo = repo
        self._hasher = hasher if hasher is not None else PlainHasher()
        self._now = now or _utc_now
        self._idgen = idgen or (lambda: str(uuid.uuid4()))

    def register(self, name: str, email: str, password: str, role: str) -> User:
        name = name.strip()
        email = email.strip().lower()
        role = role.strip().lower()

        if not name:
            raise ValidationError("name is required")
        if "@" not in email:
            raise ValidationError("invalid email")
        if len(password.encode("utf-8")) < 8:
            raise ValidationError("password must be at least 8 characters")
        if role not in (Role.PROVIDER.value, Role.CUSTOMER.value):
            raise ValidationError("role must be 'provider' or 'customer")

        try:
            self._repo.by_email(email)
        except UserNotFoundError:
            pass
        else:
            raise EmailTakenError()

        user = User(
            id=self._idgen(),
            name=name,
            email=email,
            password_hash=self._hasher.hash(password),
            role=Role(role),
            created_at=self._now(),
            updated_at=self._now(),
        )
        self._repo.create(user)
        return user

    def authenticate(self, email: str, password: str) -> User:
        email = email.strip().lower()
        try:
            user = self._repo.by_email(email)
        except UserError:
            raise UnauthorizedError() from None
        if not self._hasher.compare(user.password_hash, password):
            raise UnauthorizedError()
        return user

    def update_provider_profile(self, user_id: str, profile: ProviderProfile) -> User:
        user = self._repo.by_id(user_id)
        if user.role is not Role.PROVIDER:
            raise UnauthorizedError()
        if not (profile.phone.strip() and profile.city.strip() and profile.district.strip()):
            raise UserError("phone, city and district are required")
        user.provider = ProviderProfile(
            bio=profile.bio.strip(),
            phone=profile.phone.strip(),
            expertise=profile.expertise.strip(),
            city=profile.city.strip(),
            district=profile.district.strip(),
        )
        user.updated_at = self._now()
        self._repo.update(user)
        return user

    def get_name_by_id(self, user_id: str) -> str:
        return self._repo.by_id(user_id).name

    def by_id(self, user_id: str) -> User:
        return self._repo.by_id(user_id)