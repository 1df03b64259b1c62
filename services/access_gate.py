import logging

from models.user import Account, AccessStatus

logger = logging.getLogger(__name__)


def can_access(account: Account, section: str) -> bool:
    """True when the account is approved and the section is in its granted snapshot.

    The role is deliberately not consulted: an approver may have narrowed
    or widened the role's defaults, and catalog edits made after approval
    do not apply to existing accounts.
    """
    if account is None or account.effective_status is not AccessStatus.APPROVED:
        return False
    return section in (account.granted_sections or [])


def accessible_sections(account: Account) -> list:
    if account is None or account.effective_status is not AccessStatus.APPROVED:
        return []
    return list(account.granted_sections or [])
