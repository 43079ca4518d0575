from __future__ import annotations

from typing import Callable

from routespec.grammar.parser import RoutePath

NamingRule = Callable[[str], str]


def default_companion_name(base_name: str) -> str:
    # list_users -> openapi_add_operation_for_list_users_
    return f"openapi_add_operation_for_{base_name}_"


def operation_id(path: RoutePath) -> str:
    """`users::list` -> `users_list`. No case change, no truncation."""
    return "_".join(path.segments)


def companion_path(path: RoutePath, naming_rule: NamingRule = default_companion_name) -> RoutePath:
    """Swap only the last segment for the registration function's name."""
    return path.with_base_name(naming_rule(path.base_name))
