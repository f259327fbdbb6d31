import uuid

from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_current_session, get_repository, get_scheduler
from schemas.reactive import Reactive, ReactiveIn
from services.reminders import ReminderScheduler
from services.storage import ReactiveRepository

router = APIRouter(
    prefix="/reactives",
    tags=["Reactives"],
    dependencies=[Depends(get_current_session)],
)


@router.get("/", response_model=list[Reactive], response_model_exclude_none=True)
def list_reactives(repository: ReactiveRepository = Depends(get_repository)):
    return repository.list()


@router.post("/", response_model=Reactive, response_model_exclude_none=True, status_code=201)
def create_reactive(
    data: ReactiveIn,
    repository: ReactiveRepository = Depends(get_repository),
    scheduler: ReminderScheduler = Depends(get_scheduler),
):
    reactive = data.to_reactive(data.id or uuid.uuid4().hex[:12])
    if not repository.add_if_absent(reactive):
        raise HTTPException(status_code=409, detail="Reactive id already exists")
    scheduler.resync(reactive)
    return reactive


@router.put("/{reactive_id}", response_model=Reactive, response_model_exclude_none=True)
def update_reactive(
    reactive_id: str,
    data: ReactiveIn,
    repository: ReactiveRepository = Depends(get_repository),
    scheduler: ReminderScheduler = Depends(get_scheduler),
):
    if not repository.get(reactive_id):
        raise HTTPException(status_code=404, detail="Reactive not found")
    reactive = data.to_reactive(reactive_id)
    repository.update(reactive)
    scheduler.resync(reactive)
    return reactive


@router.delete("/{reactive_id}")
def delete_reactive(
    reactive_id: str,
    repository: ReactiveRepository = Depends(get_repository),
    scheduler: ReminderScheduler = Depends(get_scheduler),
):
    repository.delete(reactive_id)
    scheduler.cancel_reminders(reactive_id)
    return {"message": "Reactive removed"}


@router.post("/{reactive_id}/refill", response_model=Reactive, response_model_exclude_none=True)
def refill_reactive(
    reactive_id: str,
    repository: ReactiveRepository = Depends(get_repository),
    scheduler: ReminderScheduler = Depends(get_scheduler),
):
    reactive = repository.refill(reactive_id)
    if reactive is None:
        raise HTTPException(status_code=404, detail="Reactive not found")
    scheduler.resync(reactive)
    return reactive
