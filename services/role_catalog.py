"""
Role catalog: role name -> default dashboard sections.

Pure data. The defaults are copied onto an account when it is approved;
editing this table later does not touch accounts approved before.
"""
from typing import Dict, List, NamedTuple, Tuple


class Section(NamedTuple):
    name: str
    display_name: str
    description: str


class CatalogEntry(NamedTuple):
    name: str
    description: str
    sections: Tuple[str, ...]


OVERVIEW = "overview"
USER_MANAGEMENT = "user_management"
PENDING_REQUESTS = "pending_requests"
SYSTEM_HEALTH = "system_health"
RISK_MANAGEMENT = "risk_management"
REPORTS = "reports"
SETTINGS = "settings"
AUDIT_LOGS = "audit_logs"

SECTIONS: Dict[str, Section] = {
    s.name: s
    for s in (
        Section(OVERVIEW, "Overview", "Dashboard overview and summary"),
        Section(USER_MANAGEMENT, "User Management", "Manage system users"),
        Section(PENDING_REQUESTS, "Pending Requests", "View and approve user requests"),
        Section(SYSTEM_HEALTH, "System Health", "System monitoring and health"),
        Section(RISK_MANAGEMENT, "Risk Management", "Risk assessment and management"),
        Section(REPORTS, "Reports", "Generate and view reports"),
        Section(SETTINGS, "Settings", "System configuration"),
        Section(AUDIT_LOGS, "Audit Logs", "System activity logs"),
    )
}

ROLE_CATALOG: Dict[str, CatalogEntry] = {
    e.name: e
    for e in (
        CatalogEntry("SystemAdmin", "Full system administrator with all permissions",
                     tuple(SECTIONS)),
        CatalogEntry("Admin", "Administrator with user management permissions",
                     (OVERVIEW, USER_MANAGEMENT, PENDING_REQUESTS, SYSTEM_HEALTH)),
        CatalogEntry("CEO", "Chief Executive Officer with strategic oversight",
                     (OVERVIEW, RISK_MANAGEMENT, REPORTS)),
        CatalogEntry("Risk Owner", "Risk owner with risk management permissions",
                     (OVERVIEW, RISK_MANAGEMENT, REPORTS)),
        CatalogEntry("Auditor", "Auditor with read-only access to specific sections",
                     (OVERVIEW, RISK_MANAGEMENT, REPORTS, AUDIT_LOGS)),
        CatalogEntry("User", "Standard user with basic access",
                     (OVERVIEW, RISK_MANAGEMENT)),
    )
}


def default_sections(role_name: str) -> List[str]:
    # roles missing from the catalog get nothing; the approver picks by hand
    entry = ROLE_CATALOG.get(role_name)
    return list(entry.sections) if entry else []


def unknown_sections(sections) -> List[str]:
    return [s for s in sections if s not in SECTIONS]
