from fastapi import APIRouter, Depends

from dependencies import get_current_session, get_store
from services.storage import clear_all_data
from services.store import SqlKeyValueStore

router = APIRouter(prefix="/data", tags=["Data"], dependencies=[Depends(get_current_session)])


@router.delete("")
def clear_data(store: SqlKeyValueStore = Depends(get_store)):
    """Remove every reactive and the whole dose history."""
    clear_all_data(store)
    return {"message": "All data cleared"}
