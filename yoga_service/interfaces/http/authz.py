from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ...domain.entities import ROLE_ADMIN, ROLE_INSTRUCTOR, User
from ...domain.errors import Forbidden, TokenInvalid, Unauthenticated, Unauthorized
from ...infrastructure.db import get_db
from ...infrastructure.repositories import UserRepository
from ...infrastructure.security import token_service

# auto_error=False: отсутствие заголовка — это 401, а не 403 от HTTPBearer
bearer = HTTPBearer(auto_error=False)


def get_claims(creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> dict:
    if creds is None or not creds.credentials:
        raise Unauthenticated()
    try:
        return token_service.verify(creds.credentials)
    except TokenInvalid:
        raise Forbidden()


def get_user_email(claims: dict = Depends(get_claims)) -> str:
    return claims["email"]


def check_role(user: User | None, role: str) -> User:
    # пользователя могли удалить после выдачи токена
    if user is None or user.role != role:
        raise Unauthorized()
    return user


def require_role(role: str):
    def dependency(claims: dict = Depends(get_claims), db: Session = Depends(get_db)) -> User:
        return check_role(UserRepository(db).get_by_email(claims["email"]), role)
    dependency.__name__ = f"require_{role}"
    return dependency


require_admin = require_role(ROLE_ADMIN)
require_instructor = require_role(ROLE_INSTRUCTOR)
