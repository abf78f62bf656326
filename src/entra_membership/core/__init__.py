"""Core utilities for Entra group membership management."""

from entra_membership.core.config import (
    MembershipConfig,
    MutationPolicy,
    PollPolicy,
    get_graph_credentials,
    load_membership_config,
)
from entra_membership.core.msgraph_client import get_graph_client

__all__ = [
    "MembershipConfig",
    "MutationPolicy",
    "PollPolicy",
    "get_graph_client",
    "get_graph_credentials",
    "load_membership_config",
]
