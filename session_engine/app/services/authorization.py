"""
Authorization predicates

An is_authorized predicate receives the session context plus whatever
arguments the handler passed to ctx.authorize(...) and returns a bool.
"""

from typing import TYPE_CHECKING, Any, Iterable, Set

if TYPE_CHECKING:
    from session_engine.app.services.session_context import SessionContext


def _flatten_roles(args: Iterable[Any]) -> Set[str]:
    roles = set()
    for arg in args:
        if arg is None:
            continue
        if isinstance(arg, str):
            roles.add(arg)
        else:
            roles.update(arg)
    return roles


def simple_roles_is_authorized(ctx: "SessionContext", *args: Any) -> bool:
    """
    Role check against public data.

    With no arguments any authenticated session is authorized. Otherwise
    the requested roles must intersect publicData.role / publicData.roles.
    """
    public_data = ctx.public_data
    if "role" in public_data and "roles" in public_data:
        raise ValueError("publicData must not contain both 'role' and 'roles'")

    requested = _flatten_roles(args)
    if not requested:
        return True

    if "roles" in public_data:
        held = set(public_data["roles"] or [])
    elif public_data.get("role") is not None:
        held = {public_data["role"]}
    else:
        held = set()

    return bool(requested & held)
