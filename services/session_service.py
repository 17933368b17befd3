import uuid
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import text

from config import SESSION_TTL_HOURS, table_name_for
from database import SessionLocal, engine
from models.session_db_model import SessionDB
from models.session_models import SessionData
from services.query_cache import clear_session_cache

logger = logging.getLogger(__name__)


def to_session_data(session: SessionDB) -> SessionData:
    return SessionData(
        id=session.session_id,
        table_name=session.table_name,
        created_at=session.created_at,
        last_used=session.last_used,
    )


def _is_expired(session: SessionDB, now: datetime) -> bool:
    return now - session.last_used > timedelta(hours=SESSION_TTL_HOURS)


def create_session() -> SessionDB:
    cleanup_expired_sessions()

    session_id = uuid.uuid4().hex
    now = datetime.now()
    db = SessionLocal()
    try:
        session = SessionDB(
            session_id=session_id,
            table_name=table_name_for(session_id),
            created_at=now,
            last_used=now,
            meta={},
        )
        db.add(session)
        db.commit()
        db.refresh(session)
        logger.info("Created session %s", session_id)
        return session
    finally:
        db.close()


def get_session(session_id: str, touch: bool = True) -> Optional[SessionDB]:
    """
    Look up a live session. Expired sessions are purged and reported as
    missing; a hit refreshes last_used unless touch is False.
    """
    if not session_id:
        return None

    now = datetime.now()
    db = SessionLocal()
    try:
        session = db.query(SessionDB).filter(SessionDB.session_id == session_id).first()
        if session is None:
            return None
        expired = _is_expired(session, now)
        if not expired and touch:
            session.last_used = now
            db.commit()
            db.refresh(session)
    finally:
        db.close()

    if expired:
        delete_session(session_id)
        return None
    return session


def update_session_meta(session_id: str, key: str, value):
    db = SessionLocal()
    try:
        session = db.query(SessionDB).filter(SessionDB.session_id == session_id).first()
        if session:
            session.meta = {**(session.meta or {}), key: value}
            db.commit()
        return session
    finally:
        db.close()


def delete_session(session_id: str) -> None:
    db = SessionLocal()
    try:
        db.query(SessionDB).filter(SessionDB.session_id == session_id).delete()
        db.commit()
    finally:
        db.close()

    drop_session_table(session_id)
    clear_session_cache(session_id)
    logger.info("Deleted session %s", session_id)


def drop_session_table(session_id: str) -> None:
    with engine.begin() as conn:
        conn.execute(text(f'DROP TABLE IF EXISTS "{table_name_for(session_id)}"'))


def cleanup_expired_sessions() -> int:
    now = datetime.now()
    db = SessionLocal()
    try:
        expired = [s.session_id for s in db.query(SessionDB).all() if _is_expired(s, now)]
    finally:
        db.close()

    for session_id in expired:
        delete_session(session_id)
    return len(expired)
