"""Service postings: model, in-memory repository and service."""

from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Protocol


class ProviderDirectory(Protocol):
    """Looks up a provider's display name."""

    def get_name_by_id(self, provider_id: str) -> str: ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Posting:
    id: str
    provider_id: str
    provider_name: str
    title: str
    description: str
    price: int
    category: str
    city: str
    district: str
    archived: bool = False
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)


class PostingError(Exception):
    """Base class for posting errors."""


class PostingNotFoundError(PostingError):
    def __init__(self, message: str = "posting not found") -> None:
        super().__init__(message)


class ForbiddenError(PostingError):
    def __init__(self, message: str = "forbidden") -> None:
        super().__init__(message)


class InvalidFieldsError(PostingError):
    def __init__(self, message: str = "missing required fields") -> None:
        super().__init__(message)


class PostingRepository:
    """Keeps postings in memory, handing out copies."""

    def __init__(self) -> None:
        self._by_id: dict[str, Posting] = {}

    def create(self, posting: Posting) -> None:
        self._by_id[posting.id] = dataclasses.replace(posting)

    def update(self, posting: Posting) -> None:
        if posting.id not in self._by_id:
            raise PostingNotFoundError()
        self._by_id[posting.id] = dataclasses.replace(posting)

    def by_id(self, posting_id: str) -> Posting:
        try:
            return dataclasses.replace(self._by_id[posting_id])
        except KeyError:
            raise PostingNotFoundError() from None

    def list_by_provider(self, provider_id: str) -> list[Posting]:
        return [dataclasses.replace(p) for p in self._by_id.values() if p.provider_id == provider_id]

    def list_public(self) -> list[Posting]:
        return [dataclasses.replace(p) for p in self._by_id.values() if not p.archived]


_TEXT_FIELDS = ("title", "description", "category", "city", "district")


class PostingService:
    """Creating, editing, archiving and listing postings."""

    def __init__(
        self,
        repo: PostingRepository,
        providers: ProviderDirectory,
        now: Optional[Callable[[], datetime]] = None,
        idgen: Optional[Callable[[], str]] = None,
    ) -> None:
        self._repo = repo
        self._providers = providers
        self._now = now or _utc_now
        self._idgen = idgen or (lambda: str(uuid.uuid4()))

    def create(
        self,
        provider_id: str,
        title: str,
        description: str,
        price: int,
        category: str,
        city: str,
        district: str,
    ) -> Posting:
        texts = (title, description, category, city, district)
        if price <= 0 or any(not text.strip() for text in texts):
            raise InvalidFieldsError()
        try:
            provider_name = self._providers.get_name_by_id(provider_id)
        except Exception as err:
            raise InvalidFieldsError() from err

        posting = Posting(
            id=self._idgen(),
            provider_id=provider_id,
            provider_name=provider_name,
            title=title.strip(),
            description=description.strip(),
            price=price,
            category=category.strip(),
            city=city.strip(),
            district=district.strip(),
            created_at=self._now(),
            updated_at=self._now(),
        )
        self._repo.create(posting)
        return posting

    def update(self, provider_id: str, posting_id: str, patch: Optional[Mapping[str, Any]]) -> Posting:
        posting = self._repo.by_id(posting_id)
        if posting.provider_id != provider_id:
            raise ForbiddenError()
        patch = patch or {}

        for name in _TEXT_FIELDS:
            value = patch.get(name)
            if isinstance(value, str):
                setattr(posting, name, value.strip())

        price = patch.get("price")
        if isinstance(price, (int, float)) and not isinstance(price, bool):
            if price <= 0:
                raise PostingError("price must be > 0")
            posting.price = int(price)

        posting.updated_at = self._now()
        self._repo.update(posting)
        return posting

    def archive(self, provider_id: str, posting_id: str) -> None:
        posting = self._repo.by_id(posting_id)
        if posting.provider_id != provider_id:
            raise ForbiddenError()
        posting.archived = True
        posting.updated_at = self._now()
        self._repo.update(posting)

    def get_public(self, posting_id: str) -> Posting:
        posting = self._repo.by_id(posting_id)
        if posting.archived:
            raise PostingNotFoundError()
        return posting

    def list_mine(self, provider_id: str) -> list[Posting]:
        return self._repo.list_by_provider(provider_id)

    def list_public(self) -> list[Posting]:
        return self._repo.list_public()