from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends

from config import LOCAL_TIMEZONE
from dependencies import get_current_session, get_history, get_recorder, get_repository, get_scheduler
from schemas.reactive import DoseHistory, DoseRecordRequest
from services.reminders import ReminderScheduler
from services.storage import DoseHistoryLog, DoseRecorder, ReactiveRepository

router = APIRouter(
    prefix="/doses",
    tags=["Dose History"],
    dependencies=[Depends(get_current_session)],
)


@router.get("/", response_model=list[DoseHistory])
def list_doses(history: DoseHistoryLog = Depends(get_history)):
    return history.get_all()


@router.get("/today", response_model=list[DoseHistory])
def todays_doses(history: DoseHistoryLog = Depends(get_history)):
    return history.get_today()


@router.post("/", response_model=DoseHistory, status_code=201)
def record_dose(
    data: DoseRecordRequest,
    recorder: DoseRecorder = Depends(get_recorder),
    repository: ReactiveRepository = Depends(get_repository),
    scheduler: ReminderScheduler = Depends(get_scheduler),
):
    timestamp = data.timestamp or datetime.now(ZoneInfo(LOCAL_TIMEZONE)).isoformat()
    dose = recorder.record(data.reactive_id, data.taken, timestamp)
    if data.taken:
        # Supply may have crossed the refill threshold.
        reactive = repository.get(data.reactive_id)
        if reactive:
            scheduler.resync(reactive)
    return dose
