import json
import logging
from typing import Any, Dict, List, Optional

import requests

from src.client.backend import AuthBase, BackendError, DatabaseBase
from src.core.models import AuthUser

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/db"


class HttpSession:
    """Holds the server address and the bearer token shared by auth and db."""

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token: Optional[str] = None

    def headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            resp = requests.request(method, url, headers=self.headers(), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise BackendError(f"Connection error: {e}") from e

        logger.debug("%s %s -> %s", method, path, resp.status_code)
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except (ValueError, AttributeError):
                detail = resp.text
            raise BackendError(f"{method} {path} failed: {detail}", status_code=resp.status_code)
        return resp

    def request_json(self, method: str, path: str, **kwargs) -> Any:
        resp = self.request(method, path, **kwargs)
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(f"Invalid JSON from {path}") from e


class HttpCollection:
    def __init__(self, session: HttpSession, name: str):
        self.session = session
        self.path = f"{API_PREFIX}/{name}"

    def list(self, where: Optional[Dict[str, Any]] = None, order_by: Optional[Dict[str, str]] = None) -> List[dict]:
        params = {}
        if where:
            params["where"] = json.dumps(where)
        if order_by:
            params["order_by"] = ",".join(f"{key}:{direction}" for key, direction in order_by.items())
        data = self.session.request_json("GET", self.path, params=params)
        if not isinstance(data, list):
            raise BackendError(f"Expected a list from {self.path}")
        return data

    def create(self, record: dict) -> dict:
        return self.session.request_json("POST", self.path, json=record)

    def update(self, record_id: str, partial: dict) -> dict:
        return self.session.request_json("PATCH", f"{self.path}/{record_id}", json=partial)

    def delete(self, record_id: str) -> None:
        self.session.request("DELETE", f"{self.path}/{record_id}")


class HttpDatabase(DatabaseBase):
    def __init__(self, session: HttpSession):
        self.session = session

    def collection(self, name: str) -> HttpCollection:
        return HttpCollection(self.session, name)


class HttpAuth(AuthBase):
    requires_credentials = True

    def __init__(self, session: HttpSession):
        super().__init__()
        self.session = session

    def login(self, email: Optional[str] = None, password: Optional[str] = None) -> None:
        if not email or not password:
            raise BackendError("Email and password are required")

        self._set_state(None, is_loading=True)
        try:
            token_data = self.session.request_json("POST", "/auth/token", data={"username": email, "password": password})
            self.session.token = token_data["access_token"]
            me = self.session.request_json("GET", "/auth/me")
            user = AuthUser(id=str(me["id"]), email=me.get("email"), display_name=me.get("display_name"))
        except (BackendError, KeyError, TypeError) as e:
            self.session.token = None
            self._set_state(None)
            if isinstance(e, BackendError):
                raise
            raise BackendError(f"Unexpected login response: {e}") from e

        logger.info("Signed in as %s", user.email or user.id)
        self._set_state(user)

    def logout(self) -> None:
        self.session.token = None
        self._set_state(None)


class HttpBackend:
    def __init__(self, base_url: str, timeout: float = 10.0):
        self.session = HttpSession(base_url, timeout)
        self.auth = HttpAuth(self.session)
        self.db = HttpDatabase(self.session)
