from fastapi import Depends
from storefront.errors import AuthorizationError
from storefront.schemas.user_schemas import Principal
from storefront.utils.token import get_current_principal


def ensure_admin(principal: Principal) -> None:
    if not principal.is_admin:
        raise AuthorizationError("Admin access required")


def require_admin(principal: Principal = Depends(get_current_principal)):
    ensure_admin(principal)
    return principal
