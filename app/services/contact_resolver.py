"""
app/services/contact_resolver.py

Resolve free-text contact names from imported rows to contact ids.

One resolver serves one batch. Its cache is keyed by (tenant_id, exact
input) and guarded by a lock held across lookup and creation, so two rows
naming the same new person create exactly one contact even when rows are
resolved from several threads.
"""

from __future__ import annotations

import logging
import threading

from sqlalchemy.exc import SQLAlchemyError

from app.domain.errors import ContactResolutionError
from app.domain.import_models import ResolvedContactRef
from app.logging_utils import log_event
from app.repositories.contact_repository import ContactRepository

logger = logging.getLogger(__name__)


def split_name(name: str) -> tuple[str, str]:
    """
    Split on whitespace into (first token, remaining tokens).
    """

    tokens = name.split()
    if not tokens:
        return "", ""
    return tokens[0], " ".join(tokens[1:])


class ContactResolver:
    """
    Per-batch find-or-create for contacts named in imported rows.
    """

    def __init__(self, repository: ContactRepository, tenant_id: int) -> None:
        self._repository = repository
        self._tenant_id = tenant_id
        self._cache: dict[tuple[int, str], ResolvedContactRef] = {}
        self._lock = threading.Lock()
        self._uncommitted_ids: set[int] = set()
        self.created_count = 0

    def resolve(self, name: str) -> ResolvedContactRef:
        """
        Return the contact for `name`, creating a minimal one if needed.

        Only the first call that creates a contact reports created=True.
        Raises ContactResolutionError when the name is blank or the store
        rejects the lookup or insert.
        """

        if not name or not name.strip():
            raise ContactResolutionError(name=name or "", reason="contact name is empty")

        key = (self._tenant_id, name)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

            resolved = self._find_or_create(name)
            if resolved.created:
                self._uncommitted_ids.add(resolved.contact_id)
            self._cache[key] = ResolvedContactRef(contact_id=resolved.contact_id, created=False)
            return resolved

    def mark_committed(self) -> None:
        """Contacts created so far are durable; stop tracking them."""
        with self._lock:
            self._uncommitted_ids.clear()

    def forget_created(self) -> int:
        """
        Evict cache entries pointing at contacts created since the last
        commit. Call after a rollback so later rows create them again.
        Returns the number of contacts forgotten.
        """

        with self._lock:
            forgotten = len(self._uncommitted_ids)
            if not forgotten:
                return 0
            self._cache = {
                key: ref
                for key, ref in self._cache.items()
                if ref.contact_id not in self._uncommitted_ids
            }
            self.created_count -= forgotten
            self._uncommitted_ids.clear()
        logger.info("Forgot %s contact(s) lost to a rollback tenant=%s", forgotten, self._tenant_id)
        return forgotten

    def _find_or_create(self, name: str) -> ResolvedContactRef:
        try:
            existing = self._repository.find_by_name(tenant_id=self._tenant_id, name=name)
            if existing is not None:
                return ResolvedContactRef(contact_id=existing.id, created=False)

            first_name, last_name = split_name(name)
            contact = self._repository.create(
                tenant_id=self._tenant_id,
                first_name=first_name,
                last_name=last_name,
            )
        except SQLAlchemyError as exc:
            logger.warning("Contact resolution failed tenant=%s name=%r: %s", self._tenant_id, name, exc)
            raise ContactResolutionError(name=name, reason=exc.__class__.__name__) from exc

        self.created_count += 1
        log_event(
            logger,
            logging.INFO,
            "contact_created",
            tenant_id=self._tenant_id,
            contact_id=contact.id,
        )
        return ResolvedContactRef(contact_id=contact.id, created=True)
