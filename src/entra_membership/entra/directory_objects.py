"""Resolve paginated directory object listings to object IDs."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from msgraph.generated.models.directory_object import DirectoryObject
from msgraph.generated.models.group import Group
from msgraph.generated.models.service_principal import ServicePrincipal
from msgraph.generated.models.user import User

from entra_membership.entra.errors import DirectoryListingError

logger = logging.getLogger(__name__)


class DirectoryObjectKind(Enum):
    """Kinds of directory objects that can be group members or owners."""

    USER = "user"
    GROUP = "group"
    SERVICE_PRINCIPAL = "servicePrincipal"


# Possible members are users, groups or service principals
_KINDS_BY_TYPE: tuple[tuple[type[DirectoryObject], DirectoryObjectKind], ...] = (
    (User, DirectoryObjectKind.USER),
    (Group, DirectoryObjectKind.GROUP),
    (ServicePrincipal, DirectoryObjectKind.SERVICE_PRINCIPAL),
)


@dataclass(frozen=True)
class DirectoryEntry:
    """A recognized member or owner of a group."""

    kind: DirectoryObjectKind
    id: str


def to_directory_entry(obj: DirectoryObject) -> DirectoryEntry | None:
    """Classify a Graph directory object.

    Args:
        obj: Object returned by a members or owners listing

    Returns:
        DirectoryEntry, or None for object types we don't handle or objects without an ID
    """
    for model, kind in _KINDS_BY_TYPE:
        if isinstance(obj, model):
            if not obj.id:
                return None
            return DirectoryEntry(kind=kind, id=obj.id)
    return None


async def directory_object_ids(page: Any, request_builder: Any, group_id: str) -> list[str]:
    """Collect the IDs of every recognized object across all pages.

    Args:
        page: First page of a members/owners listing (has ``value`` and ``odata_next_link``)
        request_builder: Request builder the listing came from, used to follow next links
        group_id: Group being listed, for error messages

    Returns:
        Object IDs in listing order

    Raises:
        DirectoryListingError: If fetching a subsequent page fails
    """
    ids: list[str] = []
    while page is not None:
        for obj in page.value or []:
            entry = to_directory_entry(obj)
            if entry is None:
                logger.debug(
                    f"Skipping unrecognized directory object {getattr(obj, 'odata_type', None)} "
                    f"in group {group_id}"
                )
                continue
            ids.append(entry.id)

        next_link = page.odata_next_link
        if not next_link:
            break
        try:
            page = await request_builder.with_url(next_link).get()
        except Exception as e:
            raise DirectoryListingError(
                f"during pagination of directory objects for Azure AD Group with ID "
                f"{group_id!r}: {e}",
                group_id,
            ) from e

    return ids
