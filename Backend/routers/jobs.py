import hmac

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from config import JOB_RUN_KEY
from database import get_db
from services.notifications import SqlNotificationQueue, deliver_due

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.get("/deliver-reminders")
def deliver_reminders(
    request: Request,
    key: str = Query(default=""),
    db: Session = Depends(get_db),
):
    """External scheduler hook: presents every reminder that is due."""
    if not JOB_RUN_KEY:
        raise HTTPException(status_code=503, detail="JOB_RUN_KEY is not configured")
    if not hmac.compare_digest(key, JOB_RUN_KEY):
        raise HTTPException(status_code=401, detail="Invalid job key")
    count = deliver_due(SqlNotificationQueue(db), request.app.state.notification_handler)
    return {"ok": True, "delivered_notifications": count}
