from typing import Optional

import requests

from client.api_client import BackendClient
from client.health_probe import HealthProbe
from client.query_dispatcher import QueryDispatcher
from client.query_history import QueryHistory
from client.session_manager import SessionManager
from client.upload_coordinator import UploadCoordinator
from config import API_URL, SAMPLE_CSV_PATH


class AppState:
    """
    Everything the UI needs for one browser session, wired together.
    The Streamlit app keeps one of these in st.session_state.
    """

    def __init__(
        self,
        base_url: str = API_URL,
        http: Optional[requests.Session] = None,
        sample_path: str = SAMPLE_CSV_PATH,
    ):
        self.api = BackendClient(base_url, http=http)
        self.sessions = SessionManager(self.api)
        self.history = QueryHistory()
        self.uploads = UploadCoordinator(self.api, self.sessions, sample_path=sample_path)
        self.queries = QueryDispatcher(self.api, self.sessions, self.history)
        self.health = HealthProbe(self.api)

        # History and the displayed result live exactly as long as the session
        self.sessions.on_end(self.history.clear)
        self.sessions.on_end(self.queries.reset)
        # A fresh session starts without the previous one's result or error
        self.sessions.on_activate(self.queries.reset)
