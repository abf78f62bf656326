"""Composite IDs for group members and owners.

A member (or owner) of a group is addressed by a single string of the form::

    {group_object_id}/{kind}/{member_object_id}

where both object IDs are UUIDs and ``kind`` is ``member`` or ``owner``.
Callers may persist these strings, so the format must stay stable.
"""

from dataclasses import dataclass
from uuid import UUID

from entra_membership.entra.errors import InvalidGroupMemberIdError

MEMBER = "member"
OWNER = "owner"

_SEPARATOR = "/"


def _is_uuid(value: str) -> bool:
    # Only the dashed 8-4-4-4-12 form Graph returns; no braces, urn prefix or bare hex
    if len(value) != 36:
        return False
    try:
        return str(UUID(value)) == value.lower()
    except ValueError:
        return False


@dataclass(frozen=True)
class GroupMemberId:
    """A group ID and a member (or owner) ID bundled as one reference."""

    group_id: str
    member_id: str
    kind: str = MEMBER

    def __str__(self) -> str:
        return encode(self.group_id, self.member_id, self.kind)

    @classmethod
    def from_ids(cls, group_id: str, member_id: str, kind: str = MEMBER) -> "GroupMemberId":
        """Build an ID, validating both components."""
        return decode(encode(group_id, member_id, kind), kind)

    @classmethod
    def parse(cls, value: str, expected_kind: str = MEMBER) -> "GroupMemberId":
        """Parse an encoded ID string."""
        return decode(value, expected_kind)


def encode(group_id: str, member_id: str, kind: str = MEMBER) -> str:
    """Encode a group ID, relation kind and member ID as one string.

    Args:
        group_id: Object ID of the group
        member_id: Object ID of the member or owner
        kind: Relation kind, ``member`` or ``owner``

    Returns:
        The ``{group_id}/{kind}/{member_id}`` string

    Raises:
        InvalidGroupMemberIdError: If either ID is not a UUID or kind is invalid
    """
    value = _SEPARATOR.join((group_id, kind, member_id))
    if not kind or _SEPARATOR in kind:
        raise InvalidGroupMemberIdError(value, f"invalid kind {kind!r}")
    if not _is_uuid(group_id):
        raise InvalidGroupMemberIdError(value, f"group ID {group_id!r} isn't a valid UUID")
    if not _is_uuid(member_id):
        raise InvalidGroupMemberIdError(value, f"{kind} ID {member_id!r} isn't a valid UUID")
    return value


def decode(value: str, expected_kind: str = MEMBER) -> GroupMemberId:
    """Parse a ``{group_id}/{kind}/{member_id}`` string.

    Args:
        value: The encoded ID
        expected_kind: Kind the middle segment must equal

    Returns:
        GroupMemberId with the parsed components

    Raises:
        InvalidGroupMemberIdError: If the string is malformed or of another kind
    """
    parts = value.split(_SEPARATOR)
    if len(parts) != 3:
        raise InvalidGroupMemberIdError(
            value, "should be in the format {groupId}/{kind}/{memberId}"
        )

    group_id, kind, member_id = parts
    if not kind:
        raise InvalidGroupMemberIdError(value, "kind should not be blank")
    if kind != expected_kind:
        raise InvalidGroupMemberIdError(
            value, f"kind was expected to be {expected_kind!r}, got {kind!r}"
        )
    if not _is_uuid(group_id):
        raise InvalidGroupMemberIdError(value, f"group ID {group_id!r} isn't a valid UUID")
    if not _is_uuid(member_id):
        raise InvalidGroupMemberIdError(value, f"{kind} ID {member_id!r} isn't a valid UUID")

    return GroupMemberId(group_id=group_id, member_id=member_id, kind=kind)
