import logging
from typing import Optional, Union

import requests

from client.api_client import BackendClient, error_message
from client.errors import (
    EmptyQueryError,
    NoActiveSessionError,
    QueryExecutionError,
    SessionExpiredError,
)
from client.query_history import QueryHistory
from client.session_manager import SessionManager
from client.single_flight import SingleFlight
from client.sql_alias import rewrite_table_alias
from config import PREVIEW_ROW_LIMIT
from models.common_models import NaturalResponse, QueryResponse, SchemaResponse
from models.query_models import QueryHistoryItem, QueryMode, QueryResult, ReplaySelection

logger = logging.getLogger(__name__)

INVALID_SESSION_PREFIX = "Invalid session"


class QueryDispatcher:
    """
    Routes a query to the SQL or natural-language endpoint and folds both
    response shapes into one QueryResult.

    `result` holds the last successful result and is only replaced by another
    success; `error` holds the message of the last failure.
    """

    def __init__(self, api: BackendClient, sessions: SessionManager, history: QueryHistory):
        self._api = api
        self._sessions = sessions
        self._history = history
        self._flight = SingleFlight("Query")
        self.mode = QueryMode.SQL
        self.result: Optional[QueryResult] = None
        self.error: Optional[str] = None

    @property
    def in_flight(self) -> bool:
        return self._flight.busy

    def set_mode(self, mode: Union[QueryMode, str]) -> None:
        self.mode = QueryMode(mode)

    def toggle_mode(self) -> QueryMode:
        self.mode = QueryMode.NATURAL if self.mode == QueryMode.SQL else QueryMode.SQL
        return self.mode

    def replay(self, index: int) -> ReplaySelection:
        """Put a past query back in front of the user without running it."""
        selection = self._history.select_for_replay(index)
        self.mode = selection.mode
        return selection

    def reset(self) -> None:
        self.result = None
        self.error = None

    # ---------- dispatch ----------
    def dispatch(self, query_text: str, mode: Optional[Union[QueryMode, str]] = None) -> QueryResult:
        mode = QueryMode(mode) if mode is not None else self.mode

        if not query_text or not query_text.strip():
            raise EmptyQueryError("Enter a query first")
        session_id = self._sessions.session_id
        if not self._sessions.is_active or session_id is None:
            raise NoActiveSessionError("No active session. Upload a CSV file first.")

        with self._flight.claim():
            try:
                result = self._send(query_text, mode, session_id)
            except QueryExecutionError as e:
                self.error = e.message
                raise

            self.result = result
            self.error = None
            self._sessions.touch()
            self._history.append(
                QueryHistoryItem(
                    type=mode,
                    query=query_text,
                    generated_sql=result.generated_sql,
                    row_count=result.row_count,
                    runtime=result.runtime,
                )
            )
            return result

    def _send(self, query_text: str, mode: QueryMode, session_id: str) -> QueryResult:
        if mode == QueryMode.NATURAL:
            logger.info("Dispatching natural-language query for session %s", session_id)
            resp = self._call(self._api.natural, query_text.strip(), session_id)
            body = _parse(NaturalResponse, resp)
            result = QueryResult(
                rows=body.data,
                row_count=body.row_count,
                runtime=body.runtime,
                cached=body.cached,
                generated_sql=body.generated_sql,
                explanation=body.explanation,
            )
        else:
            sql = rewrite_table_alias(query_text.strip(), self._sessions.table_name)
            logger.info("Dispatching SQL for session %s: %s", session_id, sql)
            resp = self._call(self._api.query, sql, session_id)
            body = _parse(QueryResponse, resp)
            result = QueryResult(
                rows=body.data,
                row_count=body.row_count,
                runtime=body.runtime,
                cached=body.cached,
            )

        logger.info("Query returned %d rows in %s%s", result.row_count, result.runtime,
                    " (cached)" if result.cached else "")
        return result

    def _call(self, endpoint, payload: str, session_id: str):
        try:
            resp = endpoint(payload, session_id)
        except requests.RequestException as e:
            logger.error("Query request failed: %s", e)
            raise QueryExecutionError("Failed to execute query. Please try again.") from e

        if resp.status_code == 200:
            return resp

        msg = error_message(resp)
        if resp.status_code == 400 and msg.startswith(INVALID_SESSION_PREFIX):
            self._sessions.expire()
            raise SessionExpiredError(
                "Your session has expired. Upload the file again to continue.", resp.status_code
            )

        generated_sql = None
        try:
            body = resp.json()
            if isinstance(body, dict):
                generated_sql = body.get("generated_sql")
        except ValueError:
            pass
        logger.warning("Query failed (%s): %s", resp.status_code, msg)
        raise QueryExecutionError(f"Query failed: {msg}", resp.status_code, generated_sql)

    # ---------- read-only helpers ----------
    def load_preview(self, limit: int = PREVIEW_ROW_LIMIT) -> QueryResult:
        """
        First rows of the session table, for the "current data" panel.
        Does not touch `result`, `error` or the history.
        """
        session_id = self._sessions.session_id
        if not self._sessions.is_active or session_id is None:
            raise NoActiveSessionError("No active session. Upload a CSV file first.")

        sql = f"SELECT * FROM {self._sessions.table_name} LIMIT {int(limit)}"
        resp = self._call(self._api.query, sql, session_id)
        body = _parse(QueryResponse, resp)
        return QueryResult(rows=body.data, row_count=body.row_count, runtime=body.runtime, cached=body.cached)

    def fetch_schema(self) -> str:
        session_id = self._sessions.session_id
        if not self._sessions.is_active or session_id is None:
            raise NoActiveSessionError("No active session. Upload a CSV file first.")

        try:
            resp = self._api.schema(session_id)
        except requests.RequestException as e:
            raise QueryExecutionError(f"Failed to load schema: {e}") from e
        if resp.status_code != 200:
            raise QueryExecutionError(f"Failed to load schema: {error_message(resp)}", resp.status_code)
        return _parse(SchemaResponse, resp).table_schema


def _parse(model, resp):
    try:
        return model.model_validate(resp.json())
    except ValueError as e:
        raise QueryExecutionError("Backend returned an invalid response", resp.status_code) from e
