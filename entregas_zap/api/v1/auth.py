"""Auth API - Login opens a dashboard session"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.api.deps import get_dashboard, get_registry, get_session_token, http_error
from entregas_zap.domain.entities import AuthUser
from entregas_zap.domain.exceptions import DomainError
from entregas_zap.infrastructure.database import get_session
from entregas_zap.workflows.auth import login as login_user
from entregas_zap.workflows.dashboard import Dashboard, SessionRegistry

router = APIRouter()


class LoginRequest(BaseModel):
    cpf: str
    senha: str


class LoginResponse(BaseModel):
    session_id: str
    user: AuthUser


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    session: AsyncSession = Depends(get_session),
    registry: SessionRegistry = Depends(get_registry),
):
    """Check credentials and load the user's dashboard"""
    try:
        user = await login_user(session, credentials.cpf, credentials.senha)
    except DomainError as e:
        raise http_error(e)

    dashboard = Dashboard(user)
    await dashboard.load(session)
    return LoginResponse(session_id=registry.open(dashboard), user=user)


@router.post("/logout", status_code=204)
async def logout(
    token: str = Depends(get_session_token),
    registry: SessionRegistry = Depends(get_registry),
):
    registry.close(token)
    return None


@router.get("/me", response_model=AuthUser)
async def me(dashboard: Dashboard = Depends(get_dashboard)):
    return dashboard.user
