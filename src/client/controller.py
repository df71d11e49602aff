import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from pydantic import ValidationError

from src.client.backend import BackendClient, BackendError, Unsubscribe
from src.core.display import GridStats, compute_stats
from src.core.filtering import filter_records
from src.core.generator import generate_record_id
from src.core.models import ALL_CATEGORIES, ApiKeyDraft, ApiKeyRecord, ApiKeyUpdate, AuthState, AuthUser, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    title: str
    message: str
    is_error: bool = False


def _error(message: str) -> Notification:
    return Notification(title="Error", message=message, is_error=True)


def _success(message: str) -> Notification:
    return Notification(title="Success", message=message)


class ApiKeyController:
    """
    Owns the signed-in user and the user's API keys.

    Every mutation goes through the backend facade and is followed by a full
    reload; the record list is only ever replaced as a whole.
    """

    def __init__(
        self,
        backend: BackendClient,
        collection: str = "api_keys",
        notify: Optional[Callable[[Notification], None]] = None,
        clock: Callable = utcnow,
    ):
        self.backend = backend
        self.collection_name = collection
        self.notify = notify or (lambda n: None)
        self.clock = clock

        self.user: Optional[AuthUser] = None
        self.is_loading = True
        self.records: List[ApiKeyRecord] = []
        self.search_query = ""
        self.selected_category = ALL_CATEGORIES
        self.is_add_dialog_open = False

        self._loaded_user_id: Optional[str] = None
        self._listeners: List[Callable[[], None]] = []
        self._auth_unsubscribe: Optional[Unsubscribe] = None

    # --- 订阅 ---
    def subscribe(self, listener: Callable[[], None]) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self):
        for listener in list(self._listeners):
            listener()

    def attach(self):
        if self._auth_unsubscribe is None:
            self._auth_unsubscribe = self.backend.auth.on_auth_state_changed(self.on_auth_change)

    def detach(self):
        if self._auth_unsubscribe is not None:
            self._auth_unsubscribe()
            self._auth_unsubscribe = None

    @property
    def _collection(self):
        return self.backend.db.collection(self.collection_name)

    # --- 登录状态 ---
    def on_auth_change(self, state: AuthState):
        self.user = state.user
        self.is_loading = state.is_loading

        if self.user is None:
            self.records = []
            self._loaded_user_id = None
        elif self.user.id != self._loaded_user_id:
            self._loaded_user_id = self.user.id
            if self.load_records():
                return
        self._changed()

    # --- 数据 ---
    def load_records(self) -> bool:
        if self.user is None:
            return False
        try:
            rows = self._collection.list(
                where={"user_id": self.user.id},
                order_by={"created_at": "desc"},
            )
            records = [ApiKeyRecord.from_wire(row) for row in rows]
        except (BackendError, ValidationError, ValueError) as e:
            logger.exception("Failed to load API keys: %s", e)
            self.notify(_error("Failed to load API keys"))
            return False

        self.records = records
        logger.debug("Loaded %d API keys for %s", len(records), self.user.id)
        self._changed()
        return True

    def add_record(self, draft: ApiKeyDraft) -> bool:
        if self.user is None:
            self.notify(_error("Failed to add API key"))
            return False
        if not draft.is_complete:
            self.notify(_error("Name and API key are required"))
            return False

        now = self.clock()
        record = ApiKeyRecord(
            id=generate_record_id(int(now.timestamp() * 1000)),
            user_id=self.user.id,
            created_at=now,
            updated_at=now,
            **draft.model_dump(),
        )
        try:
            self._collection.create(record.to_wire())
        except BackendError as e:
            logger.exception("Failed to add API key: %s", e)
            self.notify(_error("Failed to add API key"))
            return False

        self.load_records()
        self.is_add_dialog_open = False
        self._changed()
        self.notify(_success("API key added successfully"))
        return True

    def delete_record(self, record_id: str) -> bool:
        try:
            self._collection.delete(record_id)
        except BackendError as e:
            logger.exception("Failed to delete API key: %s", e)
            self.notify(_error("Failed to delete API key"))
            return False

        self.load_records()
        self.notify(_success("API key deleted successfully"))
        return True

    def update_record(self, record_id: str, update: ApiKeyUpdate) -> bool:
        try:
            self._collection.update(record_id, update.to_wire(self.clock()))
        except BackendError as e:
            logger.exception("Failed to update API key: %s", e)
            self.notify(_error("Failed to update API key"))
            return False

        self.load_records()
        self.notify(_success("API key updated successfully"))
        return True

    def toggle_active(self, record: ApiKeyRecord) -> bool:
        return self.update_record(record.id, ApiKeyUpdate(is_active=not record.is_active))

    # --- 界面状态 ---
    def set_search_query(self, query: str):
        self.search_query = query or ""
        self._changed()

    def set_category(self, category: str):
        self.selected_category = category or ALL_CATEGORIES
        self._changed()

    def open_add_dialog(self):
        self.is_add_dialog_open = True
        self._changed()

    def close_add_dialog(self):
        self.is_add_dialog_open = False
        self._changed()

    def filtered_view(self) -> List[ApiKeyRecord]:
        return filter_records(self.records, self.search_query, self.selected_category)

    @property
    def stats(self) -> GridStats:
        return compute_stats(self.filtered_view(), self.clock())

    def login(self, email: Optional[str] = None, password: Optional[str] = None):
        self.backend.auth.login(email, password)

    def logout(self):
        self.backend.auth.logout()
