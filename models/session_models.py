from datetime import datetime
from pydantic import BaseModel

class SessionData(BaseModel):
    id: str
    user_id: str = ""
    table_name: str      # always data_<id>
    created_at: datetime
    last_used: datetime
