"""CLI script to inspect and change Entra ID group members and owners."""

import argparse
import asyncio
import logging
import sys

from entra_membership.core.config import load_membership_config
from entra_membership.entra.errors import EntraMembershipError
from entra_membership.entra.member_ids import MEMBER, OWNER, GroupMemberId
from entra_membership.entra.membership import GroupMembershipManager

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def _manager() -> GroupMembershipManager:
    return GroupMembershipManager(config=load_membership_config())


async def run_list(group_id: str, relation: str) -> int:
    """List the members or owners of a group.

    Args:
        group_id: The group ID
        relation: ``member`` or ``owner``

    Returns:
        Exit code
    """
    manager = _manager()
    if relation == MEMBER:
        ids = await manager.list_members(group_id)
    else:
        ids = await manager.list_owners(group_id)

    logger.info(f"{len(ids)} {relation}s in group {group_id}")
    for object_id in ids:
        print(object_id)
    return 0


async def run_add(group_id: str, relation: str, object_ids: list[str]) -> int:
    """Add members or owners to a group, one at a time.

    Returns:
        Exit code
    """
    # Reject malformed IDs before anything is written to the directory
    references = [
        GroupMemberId.from_ids(group_id, object_id, relation) for object_id in object_ids
    ]

    manager = _manager()
    if relation == MEMBER:
        await manager.add_members(group_id, object_ids)
    else:
        await manager.add_owners(group_id, object_ids)

    for reference in references:
        print(reference)
    logger.info(f"Added {len(object_ids)} {relation}(s) to group {group_id}")
    return 0


async def run_check_name(display_name: str) -> int:
    """Check that no group already uses a display name."""
    await _manager().check_name_availability(display_name)
    logger.info(f"Display name {display_name!r} is available")
    return 0


async def run_find(display_name: str, strict: bool) -> int:
    """Find a group by exact display name."""
    manager = _manager()
    if strict:
        group = await manager.get_by_display_name(display_name)
    else:
        group = await manager.find_by_display_name(display_name)
        if group is None:
            logger.info(f"No group named {display_name!r}")
            return 1

    print(f"{group.id}\t{group.display_name}")
    return 0


def run_parse_id(value: str, kind: str) -> int:
    """Parse a composite ``{groupId}/{kind}/{memberId}`` reference."""
    member_id = GroupMemberId.parse(value, kind)
    print(f"group_id: {member_id.group_id}")
    print(f"{kind}_id: {member_id.member_id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Manage members and owners of Entra ID groups",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (
        ("list-members", "List member object IDs of a group"),
        ("list-owners", "List owner object IDs of a group"),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("group_id", help="Group object ID")

    for command, help_text in (
        ("add-members", "Add members to a group and wait until they are visible"),
        ("add-owners", "Add owners to a group"),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("group_id", help="Group object ID")
        sub.add_argument("object_ids", nargs="+", help="Object IDs to add")

    check = subparsers.add_parser("check-name", help="Fail if a group with this name exists")
    check.add_argument("display_name")

    find = subparsers.add_parser("find", help="Find a group by exact display name")
    find.add_argument("display_name")
    find.add_argument(
        "--strict",
        action="store_true",
        help="Fail unless exactly one group matches",
    )

    parse_id = subparsers.add_parser("parse-id", help="Parse a composite member/owner ID")
    parse_id.add_argument("value")
    parse_id.add_argument("--kind", choices=[MEMBER, OWNER], default=MEMBER)

    return parser


async def dispatch(args: argparse.Namespace) -> int:
    """Run the selected subcommand, mapping membership errors to exit code 1."""
    try:
        if args.command == "list-members":
            return await run_list(args.group_id, MEMBER)
        if args.command == "list-owners":
            return await run_list(args.group_id, OWNER)
        if args.command == "add-members":
            return await run_add(args.group_id, MEMBER, args.object_ids)
        if args.command == "add-owners":
            return await run_add(args.group_id, OWNER, args.object_ids)
        if args.command == "check-name":
            return await run_check_name(args.display_name)
        if args.command == "find":
            return await run_find(args.display_name, args.strict)
        if args.command == "parse-id":
            return run_parse_id(args.value, args.kind)
    except EntraMembershipError as e:
        logger.error(str(e))
        return 1
    except ValueError as e:
        # Missing credentials or bad settings
        logger.error(f"Configuration error: {e}")
        return 1

    logger.error(f"Unknown command: {args.command}")
    return 1


def main():
    """CLI entry point."""
    args = build_parser().parse_args()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    sys.exit(asyncio.run(dispatch(args)))


if __name__ == "__main__":
    main()
