"""Entra ID group membership and ownership operations.

Adds and removes go through Graph's ``$ref`` endpoints. Entra ID is eventually
consistent, so after a member mutation succeeds the manager re-lists the group
until the change is visible before returning.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from kiota_abstractions.base_request_configuration import RequestConfiguration
from msgraph import GraphServiceClient
from msgraph.generated.groups.groups_request_builder import GroupsRequestBuilder
from msgraph.generated.models.group import Group
from msgraph.generated.models.reference_create import ReferenceCreate
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from entra_membership.core.config import MembershipConfig, MutationPolicy
from entra_membership.core.msgraph_client import get_graph_client
from entra_membership.entra.convergence import Sleep, wait_for_list_add, wait_for_list_remove
from entra_membership.entra.directory_objects import directory_object_ids
from entra_membership.entra.errors import (
    AmbiguousGroupError,
    BatchMutationError,
    ConvergenceTimeoutError,
    DirectoryListingError,
    DuplicateGroupNameError,
    GroupLookupError,
    GroupNotFoundError,
    MembershipMutationError,
)
from entra_membership.entra.member_ids import MEMBER, OWNER

logger = logging.getLogger(__name__)

DIRECTORY_OBJECTS_URL = "https://graph.microsoft.com/v1.0/directoryObjects"

GROUP_SELECT = [
    "id",
    "displayName",
    "description",
    "mail",
    "mailEnabled",
    "securityEnabled",
    "groupTypes",
]


@dataclass
class EntraGroup:
    """Represents an Entra ID group."""

    id: str
    display_name: str
    description: str | None
    mail: str | None
    mail_enabled: bool
    security_enabled: bool
    group_types: list[str]


def _to_entra_group(group: Group) -> EntraGroup:
    return EntraGroup(
        id=group.id or "",
        display_name=group.display_name or "",
        description=group.description,
        mail=group.mail,
        mail_enabled=group.mail_enabled or False,
        security_enabled=group.security_enabled or False,
        group_types=group.group_types or [],
    )


def display_name_filter(display_name: str) -> str:
    """Build an OData filter matching a display name exactly."""
    escaped = display_name.replace("'", "''")
    return f"displayName eq '{escaped}'"


class GroupMembershipManager:
    """Manage members and owners of Entra ID groups."""

    def __init__(
        self,
        client: GraphServiceClient | None = None,
        config: MembershipConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the membership manager.

        Args:
            client: Graph client to use. Built from environment credentials if None.
            config: Retry and polling settings. Defaults are used if None.
            sleep: Coroutine used for every backoff and poll delay
        """
        self.client: GraphServiceClient = client or get_graph_client()
        self.config = config or MembershipConfig()
        self._sleep = sleep

    async def _list_relation(self, group_id: str, relation: str) -> list[str]:
        group = self.client.groups.by_group_id(group_id)
        request_builder = group.members if relation == MEMBER else group.owners

        try:
            page = await request_builder.get()
        except Exception as e:
            raise DirectoryListingError(
                f"listing existing group {relation}s from Azure AD Group with ID "
                f"{group_id!r}: {e}",
                group_id,
            ) from e

        ids = await directory_object_ids(page, request_builder, group_id)
        logger.debug(f"{len(ids)} {relation}s in Azure AD group with ID: {group_id!r}")
        return ids

    async def list_members(self, group_id: str) -> list[str]:
        """Get the object IDs of all members of a group.

        Args:
            group_id: The group ID

        Returns:
            Member object IDs (users, groups and service principals) in listing order

        Raises:
            DirectoryListingError: If listing or pagination fails
        """
        return await self._list_relation(group_id, MEMBER)

    async def list_owners(self, group_id: str) -> list[str]:
        """Get the object IDs of all owners of a group.

        Raises:
            DirectoryListingError: If listing or pagination fails
        """
        return await self._list_relation(group_id, OWNER)

    def _log_retry(self, action: str) -> Callable[[RetryCallState], None]:
        def log(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                f"{action} failed (attempt {retry_state.attempt_number}): {error}; retrying"
            )

        return log

    async def _mutate(
        self,
        group_id: str,
        object_id: str,
        relation: str,
        policy: MutationPolicy,
        call: Callable[[], Awaitable[object]],
        removing: bool = False,
    ) -> None:
        """Issue a mutation with retries, then optionally wait for it to be visible.

        Args:
            group_id: Group being changed
            object_id: Member or owner being added/removed
            relation: ``member`` or ``owner``
            policy: Retry and confirmation settings
            call: Coroutine function issuing the Graph request
            removing: Wait for absence instead of presence when confirming

        Raises:
            MembershipMutationError: If every attempt failed
            ConvergenceTimeoutError: If the change never became visible
            DirectoryListingError: If a confirmation listing failed
        """
        verb = "removing" if removing else "adding"
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(Exception),
            stop=stop_after_attempt(policy.attempts),
            wait=wait_fixed(policy.delay),
            sleep=self._sleep,
            before_sleep=self._log_retry(f"{verb.capitalize()} {relation} {object_id}"),
        )
        try:
            await retrying(call)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            raise MembershipMutationError(
                f"{verb} group {relation} {object_id!r} "
                f"{'from' if removing else 'to'} Azure AD Group with ID {group_id!r}: "
                f"{last_error}",
                group_id,
                object_id,
                relation,
            ) from last_error

        if not policy.confirm:
            return

        poll = self.config.poll
        wait = wait_for_list_remove if removing else wait_for_list_add
        try:
            await wait(
                object_id,
                lambda: self._list_relation(group_id, relation),
                attempts=poll.attempts,
                delay=poll.delay,
                timeout=poll.timeout,
                sleep=self._sleep,
            )
        except ConvergenceTimeoutError as e:
            raise ConvergenceTimeoutError(e.target, e.attempts, group_id) from e

    def _reference(self, object_id: str) -> ReferenceCreate:
        return ReferenceCreate(odata_id=f"{DIRECTORY_OBJECTS_URL}/{object_id}")

    async def add_member(self, group_id: str, member_id: str) -> None:
        """Add a member to a group and wait until the listing shows it.

        Args:
            group_id: The group ID
            member_id: Object ID of the user, group or service principal to add

        Raises:
            MembershipMutationError: If the add failed on every attempt
            ConvergenceTimeoutError: If the member never appeared in the listing
        """
        logger.debug(f"Adding member with id {member_id!r} to Azure AD group with id {group_id!r}")
        members = self.client.groups.by_group_id(group_id).members
        await self._mutate(
            group_id,
            member_id,
            MEMBER,
            self.config.members,
            lambda: members.ref.post(self._reference(member_id)),
        )
        logger.info(f"Added member {member_id} to group {group_id}")

    async def add_owner(self, group_id: str, owner_id: str) -> None:
        """Add an owner to a group.

        With the default configuration this is a single attempt and does not
        wait for the owner to appear in the listing.

        Raises:
            MembershipMutationError: If the add failed
        """
        logger.debug(f"Adding owner with id {owner_id!r} to Azure AD group with id {group_id!r}")
        owners = self.client.groups.by_group_id(group_id).owners
        await self._mutate(
            group_id,
            owner_id,
            OWNER,
            self.config.owners,
            lambda: owners.ref.post(self._reference(owner_id)),
        )
        logger.info(f"Added owner {owner_id} to group {group_id}")

    async def remove_member(self, group_id: str, member_id: str) -> None:
        """Remove a member from a group and wait until the listing no longer shows it.

        Raises:
            MembershipMutationError: If the removal failed on every attempt
            ConvergenceTimeoutError: If the member never disappeared from the listing
        """
        logger.debug(
            f"Removing member with id {member_id!r} from Azure AD group with id {group_id!r}"
        )
        members = self.client.groups.by_group_id(group_id).members
        await self._mutate(
            group_id,
            member_id,
            MEMBER,
            self.config.members,
            lambda: members.by_directory_object_id(member_id).ref.delete(),
            removing=True,
        )
        logger.info(f"Removed member {member_id} from group {group_id}")

    async def remove_owner(self, group_id: str, owner_id: str) -> None:
        """Remove an owner from a group."""
        logger.debug(
            f"Removing owner with id {owner_id!r} from Azure AD group with id {group_id!r}"
        )
        owners = self.client.groups.by_group_id(group_id).owners
        await self._mutate(
            group_id,
            owner_id,
            OWNER,
            self.config.owners,
            lambda: owners.by_directory_object_id(owner_id).ref.delete(),
            removing=True,
        )
        logger.info(f"Removed owner {owner_id} from group {group_id}")

    async def _add_all(
        self,
        group_id: str,
        object_ids: list[str],
        relation: str,
        add: Callable[[str, str], Awaitable[None]],
    ) -> None:
        # Sequential on purpose; earlier additions are not rolled back on failure
        for object_id in object_ids:
            try:
                await add(group_id, object_id)
            except Exception as e:
                raise BatchMutationError(
                    f"while adding {relation}s to Azure AD Group with ID {group_id!r}: {e}",
                    group_id,
                    relation,
                ) from e

    async def add_members(self, group_id: str, member_ids: list[str]) -> None:
        """Add several members one at a time, stopping at the first failure.

        Raises:
            BatchMutationError: Wrapping the first failed add
        """
        await self._add_all(group_id, member_ids, MEMBER, self.add_member)

    async def add_owners(self, group_id: str, owner_ids: list[str]) -> None:
        """Add several owners one at a time, stopping at the first failure.

        Raises:
            BatchMutationError: Wrapping the first failed add
        """
        await self._add_all(group_id, owner_ids, OWNER, self.add_owner)

    async def _groups_matching(self, display_name: str) -> list[Group]:
        name_filter = display_name_filter(display_name)
        query_params = GroupsRequestBuilder.GroupsRequestBuilderGetQueryParameters(
            filter=name_filter,
            select=GROUP_SELECT,
        )
        config = RequestConfiguration(query_parameters=query_params)

        try:
            result = await self.client.groups.get(request_configuration=config)
        except Exception as e:
            raise GroupLookupError(
                f"unable to list Groups with filter {name_filter!r}: {e}", display_name
            ) from e

        return list(result.value or []) if result else []

    async def find_by_display_name(self, display_name: str) -> EntraGroup | None:
        """Find a group whose display name equals ``display_name`` exactly.

        The server-side filter may match case-insensitively, so results are
        compared again here.

        Args:
            display_name: The display name to search for

        Returns:
            The first exact match, or None if there is none

        Raises:
            GroupLookupError: If the search request failed
        """
        for group in await self._groups_matching(display_name):
            if group.display_name == display_name:
                return _to_entra_group(group)
        return None

    async def get_by_display_name(self, display_name: str, max_matches: int = 1) -> EntraGroup:
        """Get the single group with the given display name.

        Args:
            display_name: The display name to search for
            max_matches: Most filter results tolerated. Pass 2 for the legacy loose bound.

        Returns:
            The matching group

        Raises:
            GroupLookupError: If the search request failed
            GroupNotFoundError: If nothing matches exactly
            AmbiguousGroupError: If more than ``max_matches`` groups matched
        """
        name_filter = display_name_filter(display_name)
        groups = await self._groups_matching(display_name)

        if not groups:
            raise GroupNotFoundError(f"found no AD Groups matching {name_filter!r}", display_name)
        if len(groups) > max_matches:
            raise AmbiguousGroupError(
                f"found {len(groups)} AD Groups matching {name_filter!r}",
                display_name,
                len(groups),
            )

        group = groups[0]
        if group.display_name is None:
            raise GroupNotFoundError(
                f"nil DisplayName for AD Groups matching {name_filter!r}", display_name
            )
        if group.display_name != display_name:
            raise GroupNotFoundError(
                f"display name for AD Groups matching {name_filter!r} does not match "
                f"({group.display_name!r} != {display_name!r})",
                display_name,
            )

        return _to_entra_group(group)

    async def check_name_availability(self, display_name: str) -> None:
        """Ensure no group already uses ``display_name``.

        Raises:
            DuplicateGroupNameError: If a group with that exact name exists
            GroupLookupError: If the search request failed
        """
        existing = await self.find_by_display_name(display_name)
        if existing is not None:
            raise DuplicateGroupNameError(display_name, existing.id)
