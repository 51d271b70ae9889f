"""Resource key constructors for every ledger resource the cache holds.

Keep resource type names here only; the invalidation graph and the service
layer both build keys through these helpers so reads and invalidations can
never disagree on a key's spelling.
"""

from ledger_cache.entities import KeyPattern, ResourceKey

TEAMS = "teams"
TEAM = "team"
TEAM_MEMBERS = "team-members"
TEAM_EXPENSES = "team-expenses"
TEAM_BALANCES = "team-balances"
MY_BALANCE = "my-balance"
TEAM_APPROVALS = "team-approvals"

# Resource types scoped to a single team (first param is the team id).
TEAM_SCOPED = (TEAM, TEAM_MEMBERS, TEAM_EXPENSES, TEAM_BALANCES, MY_BALANCE, TEAM_APPROVALS)

# Base keys read by the cross-team aggregate views.
ALL_EXPENSES = KeyPattern(TEAM_EXPENSES)
ALL_BALANCES = KeyPattern(MY_BALANCE)


def teams() -> ResourceKey:
    return ResourceKey(TEAMS)


def team(team_id: str) -> ResourceKey:
    return ResourceKey(TEAM, (str(team_id),))


def team_members(team_id: str) -> ResourceKey:
    return ResourceKey(TEAM_MEMBERS, (str(team_id),))


def team_expenses(team_id: str) -> ResourceKey:
    return ResourceKey(TEAM_EXPENSES, (str(team_id),))


def team_balances(team_id: str) -> ResourceKey:
    return ResourceKey(TEAM_BALANCES, (str(team_id),))


def my_balance(team_id: str) -> ResourceKey:
    """Key of the current user's net balance within a team."""
    return ResourceKey(MY_BALANCE, (str(team_id),))


def team_approvals(team_id: str) -> ResourceKey:
    return ResourceKey(TEAM_APPROVALS, (str(team_id),))


def parse(text: str) -> ResourceKey | KeyPattern:
    """Parse the string form of a key or pattern.

    ``"teams"`` and ``"team-expenses(t1)"`` give keys, ``"team-expenses(*)"``
    gives a wildcard pattern.

    Raises:
        ValueError: If the text is not a well-formed key
    """
    text = text.strip()
    if not text:
        raise ValueError("Empty resource key")
    if "(" not in text:
        return ResourceKey(text)
    if not text.endswith(")"):
        raise ValueError(f"Malformed resource key: {text!r}")
    resource, _, rest = text.partition("(")
    inner = rest[:-1]
    if inner == "*":
        return KeyPattern(resource)
    params = tuple(part.strip() for part in inner.split(",")) if inner else ()
    return ResourceKey(resource, params)
