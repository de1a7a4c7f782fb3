from fastapi import APIRouter, Depends, Request
from slowapi import Limiter

from ....infrastructure.security import create_access_token
from ....config import settings
from ..schemas import TokenReq, TokenResp

router = APIRouter(tags=["auth"])

def get_limiter(request: Request) -> Limiter:
    return request.app.state.limiter

def _set_token_impl(request: Request, payload: TokenReq) -> TokenResp:
    # в токен кладём всё, что прислал клиент про пользователя
    return TokenResp(token=create_access_token(payload.model_dump(mode="json")))

@router.post("/api/set-token", response_model=TokenResp)
def set_token(
    request: Request,
    payload: TokenReq,
    limiter: Limiter = Depends(get_limiter),
):
    limited_func = limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")(_set_token_impl)
    return limited_func(request, payload)
