# leadflow/domains/authorization/dependencies.py
from uuid import UUID

from fastapi import Depends

from leadflow.core.database import RowGateway, get_gateway
from leadflow.domains.auth.dependencies import get_current_user_id
from leadflow.domains.authorization.service import AuthorizationService
from leadflow.shared.notifications import CollectingNotifier


async def get_authorization_service(
    org_id: UUID,
    user_id: str = Depends(get_current_user_id),
    gateway: RowGateway = Depends(get_gateway),
) -> AuthorizationService:
    """
    Build and load the caller's authorization for the organization in the path.

    Loads the user's role and the tenant's visibility rules, not the catalog.
    """
    service = AuthorizationService(
        gateway, user_id, str(org_id), notifier=CollectingNotifier()
    )
    await service.load()
    return service


async def get_global_authorization_service(
    user_id: str = Depends(get_current_user_id),
    gateway: RowGateway = Depends(get_gateway),
) -> AuthorizationService:
    """Authorization outside any tenant; only the bypass role resolves here."""
    service = AuthorizationService(
        gateway, user_id, None, notifier=CollectingNotifier()
    )
    await service.load()
    return service
