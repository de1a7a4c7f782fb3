from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt, JWTError

from ..config import settings
from ..domain.errors import TokenInvalid

# зарегистрированные клеймы, которые добавляет сам сервис
_SERVICE_CLAIMS = ("exp",)

# остальные зарегистрированные клеймы jose проверяет при decode;
# из клиентских данных их не подписываем
RESERVED_CLAIMS = ("iat", "nbf", "sub", "aud", "iss", "jti", "at_hash")


class TokenService:
    """Выдаёт и проверяет подписанные токены с ограниченным сроком жизни.

    Состояния нет: проверка — это подпись + срок действия. Отзыва токенов нет,
    единственный способ инвалидировать токен — дождаться истечения срока.
    """

    def __init__(self, secret: str | None = None, algorithm: str | None = None,
                 ttl: timedelta | None = None):
        self.secret = secret or settings.SECRET_KEY
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.ttl = ttl or timedelta(hours=settings.TOKEN_TTL_HOURS)

    def issue(self, claims: dict[str, Any], now: datetime | None = None) -> str:
        if not claims.get("email"):
            raise TokenInvalid("Token claims must contain email")
        reserved = sorted(k for k in claims if k in RESERVED_CLAIMS)
        if reserved:
            raise TokenInvalid(f"Reserved claims are not allowed: {', '.join(reserved)}")
        issued_at = now or datetime.now(timezone.utc)
        payload = {k: v for k, v in claims.items() if k not in _SERVICE_CLAIMS}
        payload["exp"] = issued_at + self.ttl
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        """Возвращает клеймы без exp или кидает TokenInvalid."""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise TokenInvalid() from e
        if not payload.get("email"):
            raise TokenInvalid("No email in token")
        return {k: v for k, v in payload.items() if k not in _SERVICE_CLAIMS}


token_service = TokenService()


def create_access_token(claims: dict[str, Any]) -> str:
    return token_service.issue(claims)


def decode_token(token: str) -> dict[str, Any]:
    return token_service.verify(token)
