"""
Role/module capability table.

can() is a pure lookup over an explicit table so that every gate in the
service asks the same question the same way. The table maps
(role, module) -> set of allowed actions.
"""

from typing import Dict, FrozenSet, Mapping, Tuple

ROLES = ("super_admin", "company_admin", "manager", "cashier", "user")

MODULES = (
    "inventory",
    "sales",
    "finance",
    "hr",
    "crm",
    "suppliers",
    "analytics",
    "settings",
)

ACTIONS = ("view", "create", "edit", "delete")

PermissionTable = Mapping[Tuple[str, str], FrozenSet[str]]

_ALL = frozenset(ACTIONS)


def _build_defaults() -> Dict[Tuple[str, str], FrozenSet[str]]:
    table: Dict[Tuple[str, str], FrozenSet[str]] = {}

    for module in MODULES:
        table[("company_admin", module)] = _ALL

    for module in MODULES:
        if module == "settings":
            table[("manager", module)] = frozenset({"view"})
        elif module in ("finance", "hr"):
            table[("manager", module)] = frozenset({"view", "create", "edit"})
        else:
            table[("manager", module)] = _ALL

    table[("cashier", "inventory")] = frozenset({"view"})
    table[("cashier", "sales")] = frozenset({"view", "create"})
    table[("cashier", "crm")] = frozenset({"view", "create"})

    table[("user", "inventory")] = frozenset({"view"})
    table[("user", "sales")] = frozenset({"view"})

    return table


DEFAULT_PERMISSIONS: Dict[Tuple[str, str], FrozenSet[str]] = _build_defaults()


def can(table: PermissionTable, role: str | None, module: str, action: str) -> bool:
    """
    Check whether role may perform action on module.

    super_admin is always allowed. Unknown roles, modules or actions are denied.

    Example:
        >>> can(DEFAULT_PERMISSIONS, "cashier", "sales", "create")
        True
        >>> can(DEFAULT_PERMISSIONS, "cashier", "settings", "view")
        False
    """
    if role == "super_admin":
        return True
    if role not in ROLES or module not in MODULES or action not in ACTIONS:
        return False
    return action in table.get((role, module), frozenset())


def merge_rows(base: PermissionTable, rows) -> Dict[Tuple[str, str], FrozenSet[str]]:
    """
    Overlay stored permission rows on a base table.

    rows are objects with role, module, can_view, can_create, can_edit,
    can_delete; a stored row replaces the whole (role, module) entry.
    """
    merged = dict(base)
    for row in rows:
        allowed = {action for action in ACTIONS if getattr(row, f"can_{action}", False)}
        merged[(row.role, row.module)] = frozenset(allowed)
    return merged
