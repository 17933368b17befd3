import logging
from typing import Optional

import requests

from client.api_client import BackendClient, error_message
from client.errors import UploadBindError, ValidationError
from client.session_manager import SessionManager
from client.single_flight import SingleFlight
from config import SAMPLE_CSV_PATH
from models.common_models import UploadResponse
from models.query_models import UploadCandidate

logger = logging.getLogger(__name__)

CSV_EXTENSION = ".csv"
CSV_MIME_TYPE = "text/csv"


class UploadCoordinator:
    """
    Drives the two-phase upload: create a session, then bind the file to it.
    The session only becomes active once both steps succeeded.
    """

    def __init__(self, api: BackendClient, sessions: SessionManager, sample_path: str = SAMPLE_CSV_PATH):
        self._api = api
        self._sessions = sessions
        self._sample_path = sample_path
        self._flight = SingleFlight("Upload")
        self.selected: Optional[UploadCandidate] = None
        self.last_upload: Optional[UploadResponse] = None

    @property
    def in_flight(self) -> bool:
        return self._flight.busy

    @staticmethod
    def validate(candidate: UploadCandidate) -> bool:
        return candidate.extension == CSV_EXTENSION or candidate.mime_type == CSV_MIME_TYPE

    def select(self, candidate: UploadCandidate) -> UploadCandidate:
        """Remember a candidate for a later submit(); a non-CSV file clears the selection."""
        if not self.validate(candidate):
            logger.info("Rejected non-CSV file %s (%s)", candidate.filename, candidate.mime_type)
            # the rejected file replaces whatever was picked before
            self.selected = None
            raise ValidationError("Please upload a CSV file")
        self.selected = candidate
        return candidate

    def submit(self, candidate: Optional[UploadCandidate] = None) -> UploadResponse:
        candidate = candidate if candidate is not None else self.selected
        if candidate is None:
            raise ValidationError("No file selected")
        if not self.validate(candidate):
            raise ValidationError("Please upload a CSV file")

        with self._flight.claim():
            # One session at a time: drop the current one before making another
            if self._sessions.is_active:
                self._sessions.end_session()

            session_id = self._sessions.create_session()
            upload = self._bind(session_id, candidate)

            self._sessions.activate(session_id)
            self.selected = None
            self.last_upload = upload
            logger.info("Bound %s to session %s (%d rows)", upload.filename, session_id, upload.rows)
            return upload

    def submit_sample(self) -> UploadResponse:
        try:
            with open(self._sample_path, "rb") as f:
                content = f.read()
        except OSError as e:
            logger.error("Sample file %s unavailable: %s", self._sample_path, e)
            raise ValidationError("Sample file is not available") from e
        sample = UploadCandidate(filename="test.csv", content=content, mime_type=CSV_MIME_TYPE)
        return self.submit(sample)

    def _bind(self, session_id: str, candidate: UploadCandidate) -> UploadResponse:
        # A failure here leaves an orphan session on the backend; it is not
        # torn down or retried.
        try:
            resp = self._api.upload(session_id, candidate.filename, candidate.content, candidate.mime_type)
        except requests.RequestException as e:
            logger.error("Upload to session %s failed, session left orphaned: %s", session_id, e)
            raise UploadBindError(f"Failed to upload file: {e}", session_id) from e

        if resp.status_code != 200:
            msg = error_message(resp)
            logger.error("Upload to session %s rejected (%s), session left orphaned: %s",
                         session_id, resp.status_code, msg)
            raise UploadBindError(f"Upload failed: {msg}", session_id, resp.status_code)

        try:
            return UploadResponse.model_validate(resp.json())
        except ValueError as e:
            raise UploadBindError("Backend returned an invalid upload response", session_id) from e
