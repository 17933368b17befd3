"""
Thin wrapper over the backend REST contract.

Every method returns the raw response; deciding what a status code means is
left to the component that issued the call. Transport failures surface as
requests.RequestException.
"""

from typing import Optional

import requests

from config import API_URL, REQUEST_TIMEOUT


class BackendClient:
    def __init__(
        self,
        base_url: str = API_URL,
        http: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def health(self):
        return self.http.get(self._url("/health"), timeout=self.timeout)

    # ---------- sessions ----------
    def create_session(self):
        return self.http.post(self._url("/api/session/create"), timeout=self.timeout)

    def delete_session(self, session_id: str):
        return self.http.delete(self._url(f"/api/session/{session_id}"), timeout=self.timeout)

    def session_status(self, session_id: str):
        return self.http.get(self._url(f"/api/session/{session_id}/status"), timeout=self.timeout)

    # ---------- data ----------
    def upload(self, session_id: str, filename: str, content: bytes, mime_type: Optional[str] = None):
        files = {"file": (filename, content, mime_type or "text/csv")}
        data = {"session_id": session_id}
        return self.http.post(self._url("/api/upload"), files=files, data=data, timeout=self.timeout)

    def query(self, sql: str, session_id: str):
        return self.http.post(
            self._url("/api/query"),
            json={"sql": sql, "session_id": session_id},
            timeout=self.timeout,
        )

    def natural(self, query: str, session_id: str):
        return self.http.post(
            self._url("/api/natural"),
            json={"query": query, "session_id": session_id},
            timeout=self.timeout,
        )

    def schema(self, session_id: str):
        return self.http.get(self._url(f"/api/schema/{session_id}"), timeout=self.timeout)


def error_message(resp) -> str:
    """Pull the backend's {"error": ...} message out of a failed response."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return resp.text or f"HTTP {resp.status_code}"
