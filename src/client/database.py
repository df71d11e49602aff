import logging
from typing import Any, ClassVar, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Field, Session, SQLModel, create_engine, select

from src.client.backend import AuthBase, BackendError, Collection, DatabaseBase
from src.core.models import AuthUser

logger = logging.getLogger(__name__)


# --- 1. 本地数据模型 (存储格式: 布尔值为 0/1, 标签为 JSON 文本) ---

class StoredApiKey(SQLModel, table=True):
    __tablename__: ClassVar[str] = "api_keys"
    __table_args__ = {"extend_existing": True}
    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    name: str
    description: Optional[str] = None
    api_key: str
    category: str = Field(default="general")
    service_url: Optional[str] = None
    expires_at: Optional[str] = None
    created_at: str = Field(index=True)
    updated_at: str
    last_used_at: Optional[str] = None
    is_active: int = Field(default=1)
    tags: str = Field(default="[]")


# --- 数据库管理 ---

class LocalCollection:
    def __init__(self, engine, model: type[SQLModel]):
        self.engine = engine
        self.model = model

    def list(self, where: Optional[Dict[str, Any]] = None, order_by: Optional[Dict[str, str]] = None) -> List[dict]:
        try:
            with Session(self.engine) as session:
                statement = select(self.model)
                for key, value in (where or {}).items():
                    statement = statement.where(self._column(key) == value)
                for key, direction in (order_by or {}).items():
                    column = self._column(key)
                    statement = statement.order_by(column.desc() if direction == "desc" else column.asc())
                return [row.model_dump() for row in session.exec(statement).all()]
        except SQLAlchemyError as e:
            raise BackendError(f"list failed: {e}") from e

    def create(self, record: dict) -> dict:
        try:
            with Session(self.engine) as session:
                if session.get(self.model, record.get("id")) is not None:
                    raise BackendError(f"Duplicate id: {record.get('id')}")
                item = self.model.model_validate(record)
                session.add(item)
                session.commit()
                session.refresh(item)
                logger.info("Created %s %s", self.model.__tablename__, item.id)
                return item.model_dump()
        except SQLAlchemyError as e:
            raise BackendError(f"create failed: {e}") from e

    def update(self, record_id: str, partial: dict) -> dict:
        try:
            with Session(self.engine) as session:
                item = session.get(self.model, record_id)
                if item is None:
                    raise BackendError(f"Not found: {record_id}", status_code=404)
                for key, value in partial.items():
                    # 主键和归属用户不可修改
                    if key in ("id", "user_id"):
                        continue
                    if hasattr(item, key):
                        setattr(item, key, value)
                session.add(item)
                session.commit()
                session.refresh(item)
                logger.info("Updated %s %s (%s)", self.model.__tablename__, record_id, ", ".join(partial))
                return item.model_dump()
        except SQLAlchemyError as e:
            raise BackendError(f"update failed: {e}") from e

    def delete(self, record_id: str) -> None:
        try:
            with Session(self.engine) as session:
                item = session.get(self.model, record_id)
                if item is None:
                    raise BackendError(f"Not found: {record_id}", status_code=404)
                session.delete(item)
                session.commit()
                logger.info("Deleted %s %s", self.model.__tablename__, record_id)
        except SQLAlchemyError as e:
            raise BackendError(f"delete failed: {e}") from e

    def _column(self, key: str):
        column = getattr(self.model, key, None)
        if column is None:
            raise BackendError(f"Unknown field: {key}")
        return column


class LocalDatabase(DatabaseBase):
    def __init__(self, database_url: str):
        connect_args = {}
        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine = create_engine(database_url, connect_args=connect_args)
        SQLModel.metadata.create_all(self.engine)
        self._collections: Dict[str, Collection] = {
            StoredApiKey.__tablename__: LocalCollection(self.engine, StoredApiKey),
        }
        logger.info("Local database ready: %s", database_url)

    def collection(self, name: str) -> Collection:
        try:
            return self._collections[name]
        except KeyError:
            raise BackendError(f"Unknown collection: {name}") from None


class LocalAuth(AuthBase):
    """单用户本地登录, 不需要密码"""

    def __init__(self, user: AuthUser):
        super().__init__()
        self._user = user

    def login(self, email: Optional[str] = None, password: Optional[str] = None) -> None:
        self._set_state(self._user)

    def logout(self) -> None:
        self._set_state(None)


class LocalBackend:
    def __init__(self, database_url: str, user: AuthUser):
        self.db = LocalDatabase(database_url)
        self.auth = LocalAuth(user)
