"""Exceptions raised by Entra group membership operations."""


class EntraMembershipError(Exception):
    """Base class for all group membership errors."""


class InvalidGroupMemberIdError(EntraMembershipError, ValueError):
    """A composite group member ID could not be built or parsed."""

    def __init__(self, value: str, reason: str) -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"unable to parse group member ID {value!r}: {reason}")


class DirectoryListingError(EntraMembershipError):
    """Listing or paginating the members/owners of a group failed."""

    def __init__(self, message: str, group_id: str) -> None:
        self.group_id = group_id
        super().__init__(message)


class MembershipMutationError(EntraMembershipError):
    """Adding or removing a member/owner failed after all attempts."""

    def __init__(self, message: str, group_id: str, object_id: str, relation: str) -> None:
        self.group_id = group_id
        self.object_id = object_id
        self.relation = relation
        super().__init__(message)


class BatchMutationError(EntraMembershipError):
    """A sequential add of several members/owners stopped at the first failure."""

    def __init__(self, message: str, group_id: str, relation: str) -> None:
        self.group_id = group_id
        self.relation = relation
        super().__init__(message)


class ConvergenceTimeoutError(EntraMembershipError):
    """A change never became visible within the polling budget."""

    def __init__(self, target: object, attempts: int, group_id: str | None = None) -> None:
        self.target = target
        self.attempts = attempts
        self.group_id = group_id
        where = f" in Azure AD Group with ID {group_id!r}" if group_id else ""
        super().__init__(
            f"timed out waiting for {target!r} to become visible{where} after {attempts} attempts"
        )


class GroupLookupError(EntraMembershipError):
    """Searching for groups by display name failed."""

    def __init__(self, message: str, display_name: str) -> None:
        self.display_name = display_name
        super().__init__(message)


class GroupNotFoundError(GroupLookupError):
    """No group with exactly the requested display name exists."""


class AmbiguousGroupError(GroupLookupError):
    """More groups than allowed matched the display name filter."""

    def __init__(self, message: str, display_name: str, count: int) -> None:
        self.count = count
        super().__init__(message, display_name)


class DuplicateGroupNameError(EntraMembershipError):
    """A group with the requested display name already exists."""

    def __init__(self, display_name: str, object_id: str) -> None:
        self.display_name = display_name
        self.object_id = object_id
        super().__init__(
            f"existing Azure AD Group with name {display_name!r} "
            f"(ObjID: {object_id!r}) was found and duplicate names are not allowed"
        )
