from fastapi import APIRouter, UploadFile, File, Form, HTTPException

from models.common_models import UploadResponse
from services.file_upload_service import read_uploaded_csv
from services.csv_loader_service import load_csv_for_session
from services.session_service import get_session, update_session_meta

router = APIRouter(prefix="/api", tags=["upload"])

@router.post("/upload", response_model=UploadResponse)
def upload_csv(file: UploadFile = File(...), session_id: str = Form("")):
    session = get_session(session_id)
    if not session:
        raise HTTPException(status_code=400, detail="Invalid session: session not found")

    try:
        content = read_uploaded_csv(file)
        table = load_csv_for_session(session.session_id, session.table_name, content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    update_session_meta(session.session_id, "file_name", file.filename)

    return UploadResponse(
        message="File uploaded successfully",
        filename=file.filename,
        rows=table.n_rows,
        columns=table.columns,
        table=table.table_name,
        session_id=session.session_id,
    )
