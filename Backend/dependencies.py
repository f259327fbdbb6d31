from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from database import get_db
from services.auth_gate import AuthenticationFailed, decode_session_token
from services.notifications import SqlNotificationQueue
from services.reminders import ReminderScheduler
from services.storage import DoseHistoryLog, DoseRecorder, ReactiveRepository
from services.store import SqlKeyValueStore

_bearer = HTTPBearer(auto_error=False)


def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> dict:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unlock the app first",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_session_token(credentials.credentials)
    except AuthenticationFailed as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_store(db: Session = Depends(get_db)) -> SqlKeyValueStore:
    return SqlKeyValueStore(db)


def get_repository(store: SqlKeyValueStore = Depends(get_store)) -> ReactiveRepository:
    return ReactiveRepository(store)


def get_history(store: SqlKeyValueStore = Depends(get_store)) -> DoseHistoryLog:
    return DoseHistoryLog(store)


def get_recorder(
    history: DoseHistoryLog = Depends(get_history),
    repository: ReactiveRepository = Depends(get_repository),
) -> DoseRecorder:
    return DoseRecorder(history, repository)


def get_scheduler(db: Session = Depends(get_db)) -> ReminderScheduler:
    return ReminderScheduler(SqlNotificationQueue(db))
