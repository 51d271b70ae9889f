"""Resource keys and key patterns."""

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class ResourceKey:
    """Stable identifier of one cached server resource.

    Two keys are equal exactly when they address the same cache slot.

    Attributes:
        resource: Resource type, e.g. "team-expenses"
        params: Positional parameters, e.g. the team id
    """

    resource: str
    params: tuple[str, ...] = ()

    def __str__(self) -> str:
        if not self.params:
            return self.resource
        return f"{self.resource}({','.join(self.params)})"


@dataclass(frozen=True)
class KeyPattern:
    """Matches resource keys by type, optionally pinned to exact parameters.

    ``KeyPattern("team-expenses")`` matches every team's expense list;
    ``KeyPattern("team-expenses", ("t1",))`` matches only team t1's.
    """

    resource: str
    params: tuple[str, ...] | None = None

    def matches(self, key: ResourceKey) -> bool:
        if key.resource != self.resource:
            return False
        return self.params is None or key.params == self.params

    def __str__(self) -> str:
        if self.params is None:
            return f"{self.resource}(*)"
        return str(ResourceKey(self.resource, self.params))


@dataclass(frozen=True)
class KeyTemplate:
    """Resource key parameterized by named mutation parameters.

    Example:
        ```python
        template = KeyTemplate("team-expenses", ("team_id",))
        template.resolve({"team_id": "t1"})  # ResourceKey("team-expenses", ("t1",))
        ```
    """

    resource: str
    param_names: tuple[str, ...] = ()

    def resolve(self, params: Mapping[str, Any]) -> ResourceKey:
        """Build the concrete key for a mutation's parameters.

        Raises:
            ValueError: If a required parameter is missing
        """
        missing = [name for name in self.param_names if params.get(name) is None]
        if missing:
            raise ValueError(f"Missing parameter(s) {missing} for key {self.resource}")
        return ResourceKey(self.resource, tuple(str(params[name]) for name in self.param_names))

    def __str__(self) -> str:
        if not self.param_names:
            return self.resource
        return f"{self.resource}({','.join(self.param_names)})"
