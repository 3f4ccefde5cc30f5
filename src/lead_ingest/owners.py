"""Responsible-user resolution for new deals.

A listing reference is resolved through the listings entity: explicit owner id,
then the owner's name (every first/last split, then a fuzzy search), then the
agent email. Phone numbers are matched against users' personal mobile.
Anything that finds nobody resolves to the configured default user.
"""

import logging
from typing import Any, Literal, Optional

from lead_ingest.crm.base import CrmClient
from lead_ingest.errors import CrmOperationError
from lead_ingest.models.settings import ListingFields, OwnerPolicy

logger = logging.getLogger(__name__)

LookupKind = Literal["reference", "phone"]


def name_splits(full_name: str) -> list[tuple[str, str]]:
    """
    All (first, last) interpretations of a name, shortest first name first.
    "Ana Maria Lopez" -> [("Ana", "Maria Lopez"), ("Ana Maria", "Lopez")]
    """
    parts = full_name.split()
    return [(" ".join(parts[:i]), " ".join(parts[i:])) for i in range(1, len(parts))]


class OwnerResolver:
    """Resolves a CRM user id from a listing reference or a phone number."""

    def __init__(
        self,
        crm: CrmClient,
        *,
        default_user_id: int,
        excluded_user_ids: Optional[list[int]] = None,
        listing_fields: Optional[ListingFields] = None,
        placeholder_user_id: Optional[int] = None,
        policy: OwnerPolicy = OwnerPolicy.KEEP,
    ):
        self._crm = crm
        self.default_user_id = default_user_id
        self._excluded = list(excluded_user_ids or [])
        self._fields = listing_fields or ListingFields()
        self._placeholder = placeholder_user_id
        self._policy = policy

    def resolve(self, key: str, kind: LookupKind) -> int:
        """Resolve a user id; never returns None."""
        if kind == "phone":
            return self.find_user({"%PERSONAL_MOBILE": key}) or self.default_user_id
        if kind == "reference":
            return self._resolve_reference(key)
        raise ValueError(f"Unknown lookup kind: {kind}")

    def resolve_receiver(self, phone: str) -> int:
        """Phone-based resolution for call receivers, honoring the placeholder policy."""
        user_id = self.resolve(phone, "phone")
        if (
            self._policy == OwnerPolicy.REPLACE_PLACEHOLDER
            and self._placeholder is not None
            and user_id == self._placeholder
        ):
            logger.info("Receiver %s resolved to placeholder user %s; using default", phone, user_id)
            return self.default_user_id
        return user_id

    def find_user(self, filter: dict[str, Any]) -> Optional[int]:
        """First active, non-system user matching filter; None on miss or error."""
        query = {**filter, "ACTIVE": "Y", "!ID": self._excluded}
        try:
            return self._crm.lookup_user(query)
        except CrmOperationError as e:
            logger.warning("User lookup failed for %s: %s", filter, e)
            return None

    def _resolve_reference(self, reference: str) -> int:
        f = self._fields
        try:
            listing = self._crm.lookup_listing(
                {f.reference: reference},
                select=[f.reference, f.agent_email, f.owner_name, f.owner_id],
            )
        except CrmOperationError as e:
            logger.warning("Listing lookup failed for reference %s: %s", reference, e)
            return self.default_user_id

        if not listing:
            logger.info("No listing found with reference %s", reference)
            return self.default_user_id

        owner_id = listing.get(f.owner_id)
        if owner_id is not None and str(owner_id).strip().isdigit() and int(owner_id) > 0:
            return int(owner_id)

        owner_name = (listing.get(f.owner_name) or "").strip()
        if owner_name:
            user_id = self._find_by_name(owner_name)
            if user_id:
                return user_id
            logger.info("No user matches listing owner %r (reference %s)", owner_name, reference)

        agent_email = (listing.get(f.agent_email) or "").strip()
        if agent_email:
            user_id = self.find_user({"EMAIL": agent_email})
            if user_id:
                return user_id
            logger.info("No user matches agent email %s (reference %s)", agent_email, reference)
        else:
            logger.info("No agent email on listing %s", reference)

        return self.default_user_id

    def _find_by_name(self, full_name: str) -> Optional[int]:
        for first, last in name_splits(full_name):
            user_id = self.find_user({"%NAME": first, "%LAST_NAME": last})
            if user_id:
                return user_id
        return self.find_user({"%FIND": full_name})
