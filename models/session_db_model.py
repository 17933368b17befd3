from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON
from database import Base

class SessionDB(Base):
    __tablename__ = "sessions"

    session_id = Column(String, primary_key=True, index=True)
    table_name = Column(String, nullable=False)
    file_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    last_used = Column(DateTime, default=datetime.now)
    meta = Column(JSON, default=dict)
