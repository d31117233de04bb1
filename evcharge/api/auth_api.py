from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from evcharge.api.deps import get_account_service
from evcharge.auth.security import cookie_settings
from evcharge.services.accounts import AccountService


router = APIRouter()


class RegisterBody(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginBody(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


@router.post("/user/register", status_code=201, tags=["auth"])  # /api/user/register
def register(body: RegisterBody, response: Response, accounts: AccountService = Depends(get_account_service)):
    user, token = accounts.register(body.name, body.email, body.password)
    response.set_cookie("access_token", token, **cookie_settings())
    return {
        "success": True,
        "message": "Registro completado",
        "token": token,
        "user": {"id": user.id, "name": user.name, "email": user.email},
    }


@router.post("/user/login", tags=["auth"])  # /api/user/login
def login(body: LoginBody, response: Response, accounts: AccountService = Depends(get_account_service)):
    user, token = accounts.login(body.email, body.password)
    response.set_cookie("access_token", token, **cookie_settings())
    return {
        "success": True,
        "message": "Login correcto",
        "token": token,
        "user": {"id": user.id, "name": user.name, "email": user.email},
    }


@router.post("/admin/login", tags=["auth"])  # /api/admin/login
def login_admin(body: LoginBody, response: Response, accounts: AccountService = Depends(get_account_service)):
    token = accounts.login_admin(body.email, body.password)
    response.set_cookie("access_token", token, **cookie_settings())
    return {"success": True, "message": "Login de admin correcto", "token": token}


@router.post("/user/logout", tags=["auth"])  # /api/user/logout
def logout(response: Response):
    response.delete_cookie("access_token", path=cookie_settings()["path"])
    return {"success": True}
