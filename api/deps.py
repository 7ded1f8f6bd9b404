from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from config import settings
from exceptions import AuthenticationError
from services.auth import AdminCredentials, authenticate
from services.intake import RequestIntake
from services.store import RecordStore
from services.sync import ViewSynchronizer

_basic = HTTPBasic()

MSG_STORE_UNAVAILABLE = "Storage is unavailable, please try again"


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_synchronizer(request: Request) -> ViewSynchronizer:
    return request.app.state.synchronizer


def get_intake(store: RecordStore = Depends(get_store)) -> RequestIntake:
    return RequestIntake(store)


def get_admin_credentials() -> AdminCredentials:
    return AdminCredentials(email=settings.admin_email, password=settings.admin_password)


def require_admin(
    credentials: HTTPBasicCredentials = Depends(_basic),
    expected: AdminCredentials = Depends(get_admin_credentials),
) -> str:
    try:
        authenticate(credentials.username, credentials.password, expected)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=401,
            detail={"reason": e.reason, "message": e.message},
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
