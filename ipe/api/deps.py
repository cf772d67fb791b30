"""FastAPI dependencies: sessions, services and the authenticated caller."""

from fastapi import Depends, UploadFile
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ipe.models.user import User
from ipe.services import get_db
from ipe.services.auth_service import AuthService, CallerContext, TokenService
from ipe.services.config import Settings, get_settings
from ipe.services.dashboard_service import DashboardService
from ipe.services.errors import AuthenticationError
from ipe.services.file_store import FileStore, FileUpload
from ipe.services.party_service import PartyService
from ipe.services.payable_service import PayableService
from ipe.services.payment_status import Clock, utc_now
from ipe.services.property_service import PropertyService
from ipe.services.setup_service import SetupService

bearer = HTTPBearer(auto_error=False)


def get_clock() -> Clock:
    """Source of "now" for services; overridden in tests."""
    return utc_now


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings)


def get_file_store(
    db: Session = Depends(get_db), settings: Settings = Depends(get_settings)
) -> FileStore:
    return FileStore(db, settings.upload_dir)


def get_caller(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    tokens: TokenService = Depends(get_token_service),
    db: Session = Depends(get_db),
) -> CallerContext:
    """Resolve the caller from the bearer token.

    The role never comes from the request. A token whose role no longer
    matches the stored user (e.g. after a party kind change) is rejected.
    """
    if creds is None or (creds.scheme or "").lower() != "bearer":
        raise AuthenticationError("Bearer token required")
    caller = tokens.verify(creds.credentials)
    user = db.get(User, caller.caller_id)
    if user is None:
        raise AuthenticationError("User no longer exists")
    if user.role is not caller.role:
        raise AuthenticationError("Role changed since login; please log in again")
    return caller


def get_auth_service(
    db: Session = Depends(get_db), tokens: TokenService = Depends(get_token_service)
) -> AuthService:
    return AuthService(db, tokens)


def get_payable_service(
    db: Session = Depends(get_db),
    files: FileStore = Depends(get_file_store),
    clock: Clock = Depends(get_clock),
) -> PayableService:
    return PayableService(db, files, clock)


def get_party_service(
    db: Session = Depends(get_db),
    files: FileStore = Depends(get_file_store),
    settings: Settings = Depends(get_settings),
) -> PartyService:
    return PartyService(db, files, settings.initial_password)


def get_property_service(
    db: Session = Depends(get_db), files: FileStore = Depends(get_file_store)
) -> PropertyService:
    return PropertyService(db, files)


def get_dashboard_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> DashboardService:
    return DashboardService(db, clock)


def get_setup_service(
    db: Session = Depends(get_db), settings: Settings = Depends(get_settings)
) -> SetupService:
    return SetupService(db, settings.initial_password)


async def read_upload(upload: UploadFile | None) -> FileUpload | None:
    """Read a multipart file into a FileUpload (None when absent or empty)."""
    if upload is None or not upload.filename:
        return None
    content = await upload.read()
    return FileUpload(
        filename=upload.filename,
        content=content,
        content_type=upload.content_type or "application/octet-stream",
    )


async def read_uploads(uploads: list[UploadFile] | None) -> list[FileUpload]:
    result = []
    for upload in uploads or []:
        item = await read_upload(upload)
        if item is not None:
            result.append(item)
    return result
