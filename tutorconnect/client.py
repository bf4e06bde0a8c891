"""
Python client for the TutorConnectPro REST API.

The signed-in state lives in an explicit SessionStore handed to the client rather than
in module globals: login/register fill it, logout clears it, and load() restores it
from disk when a token file is configured.
"""
from pathlib import Path
from typing import Any, Dict, Optional, Union
import json
import requests
from tutorconnect.errors import TutorConnectError
from tutorconnect.logger import logger


class ApiError(TutorConnectError):
    """A non-success response from the API"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class SessionStore:
    """
    Holds the access token, refresh token and user of the signed-in account.

    When `path` is given the session is persisted as JSON so it survives restarts.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self.token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def load(self) -> bool:
        """Restore a saved session. Returns True if a token was found."""
        if self.path is None or not self.path.exists():
            return False
        saved = json.loads(self.path.read_text())
        self.token = saved.get("token")
        self.refresh_token = saved.get("refresh_token")
        self.user = saved.get("user")
        return self.is_authenticated

    def save(self, token: str, user: Dict[str, Any], refresh_token: Optional[str] = None):
        self.token = token
        self.refresh_token = refresh_token
        self.user = user
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps({"token": token, "refresh_token": refresh_token, "user": user}))

    def clear(self):
        self.token = None
        self.refresh_token = None
        self.user = None
        if self.path is not None and self.path.exists():
            self.path.unlink()


class TutorConnectClient:
    """
    Thin wrapper over the REST API.

    Args:
        base_url (str): API root, e.g. "http://localhost:8000"
        http: Object with a requests-compatible `request(method, url, **kwargs)` method.
              Defaults to a requests.Session.
        store (SessionStore): Where the signed-in session is kept.
    """

    def __init__(self, base_url: str = "", http=None, store: Optional[SessionStore] = None):
        self.base_url = base_url.rstrip("/")
        self.http = http if http is not None else requests.Session()
        self.store = store if store is not None else SessionStore()

    def _call(self, method: str, path: str, auth: bool = True, token: Optional[str] = None, **kwargs) -> Dict[str, Any]:
        headers = kwargs.pop("headers", {})
        bearer = token or (self.store.token if auth else None)
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"

        response = self.http.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
        try:
            body = response.json()
        except ValueError:
            body = {"status": "error", "message": response.text}

        if response.status_code >= 400 or body.get("status") in ("fail", "error"):
            logger.warning(f"{method} {path} failed with {response.status_code}: {body.get('message')}")
            raise ApiError(response.status_code, body.get("message") or "Request failed")
        return body

    ### AUTH ###

    def register(self, name: str, email: str, password: str, role: str = "student", **fields) -> Dict[str, Any]:
        body = self._call("POST", "/auth/register", auth=False, json={"name": name, "email": email, "password": password, "role": role, **fields})
        self.store.save(body["token"], body["data"]["user"], body.get("refresh_token"))
        return body["data"]["user"]

    def login(self, email: str, password: str, role: Optional[str] = None) -> Dict[str, Any]:
        credentials = {"email": email, "password": password}
        if role:
            credentials["role"] = role
        body = self._call("POST", "/auth/login", auth=False, json=credentials)
        self.store.save(body["token"], body["data"]["user"], body.get("refresh_token"))
        return body["data"]["user"]

    def refresh(self) -> str:
        if not self.store.refresh_token:
            raise ApiError(401, "No refresh token in the session")
        body = self._call("POST", "/auth/refresh", token=self.store.refresh_token)
        self.store.save(body["token"], self.store.user, body["refresh_token"])
        return body["token"]

    def logout(self):
        try:
            if self.store.is_authenticated:
                self._call("POST", "/auth/logout")
        finally:
            self.store.clear()

    ### USERS ###

    def me(self) -> Dict[str, Any]:
        user = self._call("GET", "/users/me")["data"]["user"]
        self.store.user = user
        return user

    def update_me(self, **changes) -> Dict[str, Any]:
        user = self._call("PUT", "/users/update", json=changes)["data"]["user"]
        self.store.user = user
        return user

    ### TUTORS ###

    def list_tutors(self, subject: Optional[str] = None, location: Optional[str] = None, experience: Optional[int] = None):
        params = {k: v for k, v in {"subject": subject, "location": location, "experience": experience}.items() if v is not None}
        return self._call("GET", "/tutors", auth=False, params=params)["data"]["tutors"]

    def get_tutor(self, tutor_id: str) -> Dict[str, Any]:
        return self._call("GET", f"/tutors/{tutor_id}", auth=False)["data"]["tutor"]

    def update_tutor_profile(self, tutor_id: str, **changes) -> Dict[str, Any]:
        return self._call("PUT", f"/tutors/{tutor_id}", json=changes)["data"]["tutor_profile"]

    def rate_tutor(self, tutor_id: str, rating: int) -> Dict[str, Any]:
        return self._call("POST", f"/tutors/{tutor_id}/rate", json={"rating": rating})["data"]["tutor_profile"]

    ### REQUESTS & BOOKINGS ###

    def create_request(self, tutor_id: str, **terms) -> Dict[str, Any]:
        return self._call("POST", "/requests", json={"tutor_id": tutor_id, **terms})["data"]["request"]

    def list_requests(self):
        return self._call("GET", "/requests")["data"]["requests"]

    def accept_request(self, request_id: str) -> Dict[str, Any]:
        return self._call("PUT", f"/requests/{request_id}/accept")["data"]

    def reject_request(self, request_id: str) -> Dict[str, Any]:
        return self._call("PUT", f"/requests/{request_id}/reject")["data"]["request"]

    def extend_booking(self, booking_id: str, additional_months: int) -> Dict[str, Any]:
        return self._call("POST", "/requests/extend", json={"booking_id": booking_id, "additional_months": additional_months})["data"]["booking"]

    def list_bookings(self):
        return self._call("GET", "/bookings")["data"]["bookings"]

    def update_booking_status(self, booking_id: str, status: str) -> Dict[str, Any]:
        return self._call("PUT", f"/bookings/{booking_id}/status", json={"status": status})["data"]["booking"]

    ### ADMIN ###

    def admin_users(self) -> Dict[str, Any]:
        return self._call("GET", "/admin/users")["data"]

    def admin_requests(self) -> Dict[str, Any]:
        return self._call("GET", "/admin/requests")["data"]

    def toggle_block(self, user_id: str) -> Dict[str, Any]:
        return self._call("PUT", f"/admin/users/{user_id}/block")["data"]["user"]
