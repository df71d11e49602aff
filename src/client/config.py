# 客户端配置: 读取环境变量和 .env 文件
import sys
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "ApiKeyManager"


def get_app_data_path() -> Path:
    home = Path.home()

    if sys.platform == "win32":
        # Windows: C:\Users\Name\AppData\Roaming\ApiKeyManager
        path = home / "AppData" / "Roaming" / APP_NAME
    else:
        # Linux/Mac: /home/name/.local/share/ApiKeyManager
        path = home / ".local" / "share" / APP_NAME

    path.mkdir(parents=True, exist_ok=True)
    return path


def default_database_url() -> str:
    return f"sqlite:///{(get_app_data_path() / 'api_keys.db').as_posix()}"


class Settings(BaseSettings):
    APP_TITLE: str = "API Key Manager"

    # local: SQLite on this machine, http: remote backend service
    BACKEND: Literal["local", "http"] = "local"
    BACKEND_URL: str = "http://127.0.0.1:8000"
    REQUEST_TIMEOUT: float = 10.0

    # 为空时使用应用数据目录下的 api_keys.db
    DATABASE_URL: str = ""
    COLLECTION: str = "api_keys"

    # 本地模式下登录的唯一用户
    LOCAL_USER_ID: str = "local-user"
    LOCAL_USER_EMAIL: str = "me@localhost"
    LOCAL_USER_NAME: str = "Local User"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL or default_database_url()


@lru_cache
def get_settings() -> Settings:
    return Settings()
