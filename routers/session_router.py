from fastapi import APIRouter, HTTPException

from models.common_models import SessionResponse
from models.session_models import SessionData
from services.session_service import create_session, delete_session, get_session, to_session_data

router = APIRouter(prefix="/api/session", tags=["session"])

@router.post("/create", response_model=SessionResponse)
def create():
    session = create_session()
    return SessionResponse(session_id=session.session_id, message="Session created successfully")

@router.delete("/{session_id}")
def delete(session_id: str):
    delete_session(session_id)
    return {"message": "Session deleted successfully"}

@router.get("/{session_id}/status", response_model=SessionData)
def status(session_id: str):
    session = get_session(session_id, touch=False)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return to_session_data(session)
