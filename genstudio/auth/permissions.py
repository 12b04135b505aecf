from genstudio.core.errors import PermissionDenied

MEMBER = "member"
ADMIN = "admin"

GENERATE = "generate"
VIEW_ACCOUNTS = "accounts.view"
MANAGE_SUBSCRIPTIONS = "subscriptions.manage"
DELETE_ACCOUNTS = "accounts.delete"

ROLE_CAPABILITIES = {
    MEMBER: frozenset({GENERATE}),
    ADMIN: frozenset({GENERATE, VIEW_ACCOUNTS, MANAGE_SUBSCRIPTIONS, DELETE_ACCOUNTS}),
}


def role_of(profile: dict | None) -> str:
    return (profile or {}).get("role") or MEMBER


def has_capability(profile: dict | None, capability: str) -> bool:
    return capability in ROLE_CAPABILITIES.get(role_of(profile), frozenset())


def ensure_capability(profile: dict | None, capability: str):
    if not has_capability(profile, capability):
        raise PermissionDenied("You do not have permission to perform this action")
