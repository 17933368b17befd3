import io
import logging
from typing import List

import pandas as pd
from pydantic import BaseModel

from database import engine
from services.query_cache import clear_session_cache

logger = logging.getLogger(__name__)


class TableInfo(BaseModel):
    table_name: str
    n_rows: int
    columns: List[str]


def load_csv_for_session(session_id: str, table_name: str, content: bytes) -> TableInfo:
    """
    Parse the CSV and (re)create the session table from it.
    Anything cached for the session is dropped, since it describes the old table.
    """
    try:
        df = pd.read_csv(io.BytesIO(content))
    except pd.errors.EmptyDataError:
        raise ValueError("CSV file is empty")
    except (pd.errors.ParserError, UnicodeDecodeError):
        raise ValueError("Failed to read CSV file")

    df.columns = [str(c).strip() for c in df.columns]
    if len(df.columns) == 0:
        raise ValueError("CSV file is empty")

    clear_session_cache(session_id)
    df.to_sql(table_name, engine, if_exists="replace", index=False)

    logger.info("Loaded %d rows x %d columns into %s", df.shape[0], df.shape[1], table_name)
    return TableInfo(
        table_name=table_name,
        n_rows=int(df.shape[0]),
        columns=list(df.columns),
    )
