# lims/core/permissions.py

from enum import Enum

from lims.models.users import UserRole


class Capability(str, Enum):
    MANAGE_USERS = "MANAGE_USERS"
    MANAGE_INVENTORY = "MANAGE_INVENTORY"
    RECORD_TRANSACTIONS = "RECORD_TRANSACTIONS"
    VIEW_REPORTS = "VIEW_REPORTS"


ROLE_CAPABILITIES = {
    UserRole.ADMIN: frozenset(Capability),
    UserRole.LAB_TECHNICIAN: frozenset({
        Capability.MANAGE_INVENTORY,
        Capability.RECORD_TRANSACTIONS,
        Capability.VIEW_REPORTS,
    }),
    UserRole.RESEARCHER: frozenset({
        Capability.RECORD_TRANSACTIONS,
        Capability.VIEW_REPORTS,
    }),
    UserRole.MANUFACTURING_ENGINEER: frozenset({
        Capability.RECORD_TRANSACTIONS,
    }),
    UserRole.USER: frozenset({
        Capability.RECORD_TRANSACTIONS,
    }),
}


def capabilities_for(role) -> frozenset:
    try:
        return ROLE_CAPABILITIES[UserRole(role)]
    except ValueError:
        return frozenset()


def has_capability(role, capability: Capability) -> bool:
    return capability in capabilities_for(role)
