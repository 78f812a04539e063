"""Shared router dependencies"""
from typing import Dict, Optional, Type

from fastapi import Depends, Header, HTTPException, Request

from entregas_zap.config import settings
from entregas_zap.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BusyError,
    DomainError,
    MissingIdentifierError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from entregas_zap.infrastructure.storage import SupabaseStorageClient, get_storage_client
from entregas_zap.infrastructure.webhook import WebhookClient, get_webhook_client
from entregas_zap.workflows.dashboard import Dashboard, SessionRegistry
from entregas_zap.workflows.queue import SendQueue

ERROR_STATUS: Dict[Type[DomainError], int] = {
    ValidationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
    MissingIdentifierError: 409,
    BusyError: 409,
    PersistenceError: 502,
}


def http_error(error: DomainError) -> HTTPException:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_session_token(x_session_id: str = Header(..., description="Dashboard session token from /auth/login")) -> str:
    return x_session_id


def get_dashboard(
    token: str = Depends(get_session_token),
    registry: SessionRegistry = Depends(get_registry),
) -> Dashboard:
    """Dashboard of the logged-in user (401 when the token is unknown)"""
    try:
        return registry.get(token)
    except AuthenticationError as e:
        raise http_error(e)


def get_webhook() -> WebhookClient:
    return get_webhook_client()


def get_storage() -> Optional[SupabaseStorageClient]:
    if not settings.supabase_url or not settings.supabase_service_key:
        return None
    return get_storage_client()


def get_send_queue() -> SendQueue:
    return SendQueue(settings.send_delay_seconds)


def get_reminder_queue() -> SendQueue:
    return SendQueue(settings.reminder_delay_seconds)


def get_broadcast_queue() -> SendQueue:
    return SendQueue(settings.broadcast_delay_seconds)
