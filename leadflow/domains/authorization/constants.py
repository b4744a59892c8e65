# leadflow/domains/authorization/constants.py
from enum import Enum

SUPER_ADMIN_ROLE_NAME = "super_admin"


class Table:
    PERMISSIONS = "permissions"
    ROLES = "dynamic_roles"
    ROLE_PERMISSIONS = "role_permissions"
    USER_ROLES = "user_dynamic_roles"
    PAGE_VISIBILITY = "page_visibility"
    PHONE_VISIBILITY = "phone_visibility_settings"


class KnownPermission(str, Enum):
    """
    Permission names the CRM checks for.

    Permissions themselves are catalog rows; these are only the names that
    application code refers to. Pattern: RESOURCE_ACTION -> "resource.action".
    """

    CLICK_TO_CALL = "click_to_call"  # Dial a lead from the browser
    IMPORT_CSV = "import.csv"  # Bulk import leads
    LEADS_VIEW = "leads.view"
    LEADS_DELETE = "leads.delete"
    ROLES_MANAGE = "roles.manage"  # Create roles, edit grants and page visibility
    USERS_MANAGE = "users.manage"  # Assign roles to users
    SETTINGS_BRANDING = "settings.branding"
    SETTINGS_TELEPHONY = "settings.telephony"
    SETTINGS_PHONE_VISIBILITY = "settings.phone_visibility"


# (path, label) for every navigable page
SYSTEM_PAGES: tuple[tuple[str, str], ...] = (
    ("/", "Dashboard"),
    ("/leads", "Leads"),
    ("/pipeline", "Pipeline"),
    ("/contacts", "Contacts"),
    ("/import", "Import Leads"),
    ("/reports", "Reports"),
    ("/users", "Users"),
    ("/groups", "Groups"),
    ("/settings", "Settings"),
)

# Seeded for every new organization
DEFAULT_ORG_ROLES: tuple[dict[str, object], ...] = (
    {"name": "admin", "display_name": "Admin", "is_org_admin": True},
    {"name": "manager", "display_name": "Manager", "is_org_admin": False},
    {"name": "agent", "display_name": "Agent", "is_org_admin": False},
)
