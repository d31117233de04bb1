from fastapi import Request

from evcharge.auth.security import ADMIN_ROLE, USER_ROLE, token_role, verify_access_token
from evcharge.services.accounts import AccountService
from evcharge.services.booking import BookingService
from evcharge.services.errors import Forbidden, NotAuthenticated
from evcharge.services.stations import StationService


def _token_from(request: Request) -> str:
    # Bearer en cabecera; si no, cookie de sesión
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip()
    return request.cookies.get("access_token") or ""


def get_current_user_id(request: Request) -> str:
    user_id = verify_access_token(_token_from(request), USER_ROLE)
    if not user_id:
        raise NotAuthenticated()
    return user_id


def require_admin(request: Request) -> str:
    token = _token_from(request)
    admin = verify_access_token(token, ADMIN_ROLE)
    if admin:
        return admin
    # token válido de otro rol: autenticado pero sin permiso
    if token_role(token):
        raise Forbidden()
    raise NotAuthenticated()


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking_service


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


def get_station_service(request: Request) -> StationService:
    return request.app.state.station_service
