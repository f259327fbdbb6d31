from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_session, get_scheduler
from schemas.notification import ScheduledNotificationOut
from services.notifications import SqlNotificationQueue
from services.reminders import ReminderScheduler

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
    dependencies=[Depends(get_current_session)],
)


@router.get("/scheduled", response_model=list[ScheduledNotificationOut])
def list_scheduled(db: Session = Depends(get_db)):
    return [
        ScheduledNotificationOut(
            identifier=r.identifier,
            title=r.content.title,
            body=r.content.body,
            data=r.content.data,
            repeats=bool(r.trigger and r.trigger.repeats),
            hour=r.trigger.hour if r.trigger else None,
            minute=r.trigger.minute if r.trigger else None,
            next_fire_at=r.next_fire_at,
        )
        for r in SqlNotificationQueue(db).get_all_scheduled()
    ]


@router.delete("/reactive/{reactive_id}")
def cancel_reactive_reminders(reactive_id: str, scheduler: ReminderScheduler = Depends(get_scheduler)):
    canceled = scheduler.cancel_reminders(reactive_id)
    return {"canceled": canceled}
