"""Configuration loading utilities."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Defaults for the add/remove retry loop and the convergence poller
DEFAULT_MEMBER_ADD_ATTEMPTS = 11  # 1 attempt + 10 retries
DEFAULT_MEMBER_ADD_DELAY = 2.0
DEFAULT_OWNER_ADD_ATTEMPTS = 1
DEFAULT_POLL_ATTEMPTS = 150
DEFAULT_POLL_DELAY = 2.0
DEFAULT_POLL_TIMEOUT = 300.0

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def get_graph_credentials() -> tuple[str, str, str]:
    """Get MS Graph API credentials from environment.

    Returns:
        Tuple of (tenant_id, client_id, client_secret)

    Raises:
        ValueError: If any required credential is not set
    """
    load_dotenv()

    tenant_id = os.getenv("MS_GRAPH_TENANT_ID")
    client_id = os.getenv("MS_GRAPH_CLIENT_ID")
    client_secret = os.getenv("MS_GRAPH_CLIENT_SECRET")

    if not tenant_id or not client_id or not client_secret:
        raise ValueError(
            "MS Graph credentials not set. Required: "
            "MS_GRAPH_TENANT_ID, MS_GRAPH_CLIENT_ID, MS_GRAPH_CLIENT_SECRET"
        )

    return tenant_id, client_id, client_secret


@dataclass(frozen=True)
class MutationPolicy:
    """How a membership mutation is retried and confirmed.

    Attributes:
        attempts: Total number of calls to make (1 means no retry)
        delay: Seconds to sleep between attempts
        confirm: Poll the listing until the change is visible
    """

    attempts: int = 1
    delay: float = 0.0
    confirm: bool = False


@dataclass(frozen=True)
class PollPolicy:
    """Budget for waiting on an eventually consistent listing."""

    attempts: int = DEFAULT_POLL_ATTEMPTS
    delay: float = DEFAULT_POLL_DELAY
    timeout: float | None = DEFAULT_POLL_TIMEOUT


@dataclass(frozen=True)
class MembershipConfig:
    """Retry and convergence settings for group membership operations."""

    members: MutationPolicy = MutationPolicy(
        attempts=DEFAULT_MEMBER_ADD_ATTEMPTS,
        delay=DEFAULT_MEMBER_ADD_DELAY,
        confirm=True,
    )
    owners: MutationPolicy = MutationPolicy(attempts=DEFAULT_OWNER_ADD_ATTEMPTS)
    poll: PollPolicy = PollPolicy()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be true or false, got {raw!r}")


def load_membership_config() -> MembershipConfig:
    """Load membership retry/poll settings from environment.

    Environment variables:
        ENTRA_MEMBER_ADD_ATTEMPTS: Total add/remove attempts for members (default 11)
        ENTRA_MEMBER_ADD_DELAY: Seconds between member attempts (default 2)
        ENTRA_OWNER_ADD_ATTEMPTS: Total add/remove attempts for owners (default 1)
        ENTRA_OWNER_CONFIRM: Poll owner listing after a mutation (default false)
        ENTRA_POLL_ATTEMPTS: Maximum listings while waiting (default 150)
        ENTRA_POLL_DELAY: Seconds between listings (default 2)
        ENTRA_POLL_TIMEOUT: Overall wait budget in seconds (default 300)

    Returns:
        MembershipConfig with values from environment or defaults

    Raises:
        ValueError: If a variable is set to an invalid value
    """
    load_dotenv()

    members = MutationPolicy(
        attempts=_env_int("ENTRA_MEMBER_ADD_ATTEMPTS", DEFAULT_MEMBER_ADD_ATTEMPTS),
        delay=_env_float("ENTRA_MEMBER_ADD_DELAY", DEFAULT_MEMBER_ADD_DELAY),
        confirm=True,
    )
    owner_attempts = _env_int("ENTRA_OWNER_ADD_ATTEMPTS", DEFAULT_OWNER_ADD_ATTEMPTS)
    owners = MutationPolicy(
        attempts=owner_attempts,
        # Owners share the member delay when retries are enabled
        delay=members.delay if owner_attempts > 1 else 0.0,
        confirm=_env_bool("ENTRA_OWNER_CONFIRM", False),
    )
    poll = PollPolicy(
        attempts=_env_int("ENTRA_POLL_ATTEMPTS", DEFAULT_POLL_ATTEMPTS),
        delay=_env_float("ENTRA_POLL_DELAY", DEFAULT_POLL_DELAY),
        timeout=_env_float("ENTRA_POLL_TIMEOUT", DEFAULT_POLL_TIMEOUT),
    )

    return MembershipConfig(members=members, owners=owners, poll=poll)
