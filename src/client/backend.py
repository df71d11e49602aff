import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Protocol

from src.core.models import AuthState, AuthUser

logger = logging.getLogger(__name__)

AuthListener = Callable[[AuthState], None]
Unsubscribe = Callable[[], None]


class BackendError(Exception):
    """Any failure reported by a backend adapter."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class Collection(Protocol):
    def list(self, where: Optional[Dict[str, Any]] = None, order_by: Optional[Dict[str, str]] = None) -> List[dict]: ...

    def create(self, record: dict) -> dict: ...

    def update(self, record_id: str, partial: dict) -> dict: ...

    def delete(self, record_id: str) -> None: ...


class Database(Protocol):
    def collection(self, name: str) -> Collection: ...


class Auth(Protocol):
    requires_credentials: bool

    def on_auth_state_changed(self, callback: AuthListener) -> Unsubscribe: ...

    def login(self, email: Optional[str] = None, password: Optional[str] = None) -> None: ...

    def logout(self) -> None: ...


class BackendClient(Protocol):
    auth: Auth
    db: Database


class DatabaseBase(ABC):
    """Gives ``db.<collection>`` attribute access on top of ``collection(name)``."""

    @abstractmethod
    def collection(self, name: str) -> Collection:
        """Returns the named collection."""

    def __getattr__(self, name: str) -> Collection:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.collection(name)


class AuthBase(ABC):
    requires_credentials = False

    def __init__(self):
        self._state = AuthState(user=None, is_loading=False)
        self._listeners: List[AuthListener] = []

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def current_user(self) -> Optional[AuthUser]:
        return self._state.user

    def on_auth_state_changed(self, callback: AuthListener) -> Unsubscribe:
        self._listeners.append(callback)
        callback(self._state)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _set_state(self, user: Optional[AuthUser], is_loading: bool = False):
        self._state = AuthState(user=user, is_loading=is_loading)
        logger.debug("Auth state: user=%s loading=%s", user.id if user else None, is_loading)
        for listener in list(self._listeners):
            listener(self._state)

    @abstractmethod
    def login(self, email: Optional[str] = None, password: Optional[str] = None) -> None:
        """Signs in and reports the new state through ``_set_state``."""

    @abstractmethod
    def logout(self) -> None:
        """Signs out and reports the new state through ``_set_state``."""
