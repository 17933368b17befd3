import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

import requests

from client.api_client import BackendClient, error_message
from client.errors import SessionCreationError, SessionTerminationError
from config import table_name_for
from models.common_models import SessionResponse
from models.session_models import SessionData

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Sole owner of the session identity the client holds.

    The id and the active flag only ever change together, under one lock,
    through activate / end_session / expire. Everyone else reads through the
    accessors.
    """

    def __init__(self, api: BackendClient):
        self._api = api
        self._lock = threading.Lock()
        self._session_id: Optional[str] = None
        self._active = False
        self._created_at: Optional[datetime] = None
        self._last_used: Optional[datetime] = None
        self._end_callbacks: List[Callable[[], None]] = []
        self._activate_callbacks: List[Callable[[], None]] = []
        # Set by end_session when the server-side delete did not go through
        self.last_termination_error: Optional[SessionTerminationError] = None

    # ---------- accessors ----------
    @property
    def session_id(self) -> Optional[str]:
        with self._lock:
            return self._session_id

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._active and self._session_id is not None

    @property
    def table_name(self) -> Optional[str]:
        sid = self.session_id
        return table_name_for(sid) if sid else None

    @property
    def session(self) -> Optional[SessionData]:
        with self._lock:
            if not self._active or self._session_id is None:
                return None
            return SessionData(
                id=self._session_id,
                table_name=table_name_for(self._session_id),
                created_at=self._created_at,
                last_used=self._last_used,
            )

    def on_end(self, callback: Callable[[], None]) -> None:
        """Run callback every time the held session ends or expires."""
        self._end_callbacks.append(callback)

    def on_activate(self, callback: Callable[[], None]) -> None:
        """Run callback every time a new session becomes the held one."""
        self._activate_callbacks.append(callback)

    # ---------- operations ----------
    def create_session(self) -> str:
        """
        Ask the backend for a new session. Local state is not touched; the
        caller commits the id with activate() once the bind succeeded.
        """
        try:
            resp = self._api.create_session()
        except requests.RequestException as e:
            logger.error("Session creation failed: %s", e)
            raise SessionCreationError(f"Backend unavailable: {e}") from e

        if resp.status_code != 200:
            msg = error_message(resp)
            logger.error("Session creation rejected (%s): %s", resp.status_code, msg)
            raise SessionCreationError(f"Failed to create session: {msg}", resp.status_code)

        try:
            session_id = SessionResponse.model_validate(resp.json()).session_id
        except ValueError as e:
            raise SessionCreationError("Backend returned an invalid session response") from e

        logger.info("Created session %s", session_id)
        return session_id

    def activate(self, session_id: str) -> None:
        with self._lock:
            if self._active and self._session_id is not None:
                raise RuntimeError(
                    f"Session {self._session_id} is still active; end it before activating another"
                )
            now = datetime.now()
            self._session_id = session_id
            self._active = True
            self._created_at = now
            self._last_used = now
        for callback in self._activate_callbacks:
            callback()
        logger.info("Session %s active (table %s)", session_id, table_name_for(session_id))

    def touch(self) -> None:
        with self._lock:
            if self._active:
                self._last_used = datetime.now()

    def end_session(self) -> bool:
        """
        Best-effort server cleanup followed by an unconditional local reset.
        Returns True when the backend confirmed the deletion.
        """
        session_id = self.session_id
        self.last_termination_error = None
        if session_id:
            try:
                resp = self._api.delete_session(session_id)
                if resp.status_code in (200, 204):
                    logger.info("Session %s deleted", session_id)
                else:
                    self.last_termination_error = SessionTerminationError(
                        f"Failed to delete session: {error_message(resp)}", resp.status_code
                    )
            except requests.RequestException as e:
                self.last_termination_error = SessionTerminationError(f"Error deleting session: {e}")

            if self.last_termination_error is not None:
                logger.warning("Session %s: %s", session_id, self.last_termination_error.message)

        self._reset()
        return session_id is not None and self.last_termination_error is None

    def expire(self) -> None:
        """Local reset for a session the backend no longer knows about."""
        session_id = self.session_id
        if session_id:
            logger.warning("Session %s expired on the backend", session_id)
        self._reset()

    def check_status(self) -> Optional[SessionData]:
        """
        Ask the backend whether the held session still exists. A 404 expires
        it locally; transport errors leave local state as it is.
        """
        session_id = self.session_id
        if not session_id:
            return None
        try:
            resp = self._api.session_status(session_id)
        except requests.RequestException as e:
            logger.warning("Session status check failed: %s", e)
            return self.session

        if resp.status_code == 404:
            self.expire()
            return None
        if resp.status_code != 200:
            logger.warning("Session status check returned %s", resp.status_code)
            return self.session
        return SessionData.model_validate(resp.json())

    def _reset(self) -> None:
        with self._lock:
            self._session_id = None
            self._active = False
            self._created_at = None
            self._last_used = None
        for callback in self._end_callbacks:
            callback()
