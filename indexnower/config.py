# === FILE: indexnower/config.py ===
"""
Загрузка и валидация конфигурации IndexNower.
Схема описана моделью Pydantic, источник - YAML или JSON файл.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

DEFAULT_USER_AGENT = "IndexNower/1.0"
DEFAULT_ENDPOINT = "https://api.indexnow.org/IndexNow"
MAX_BATCH_SIZE = 10_000


class AppConfig(BaseModel):
    """Настройки одного запуска: хранилище, HTTP-клиент, прокси-сервер."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    data_file: Path = Field(
        Path("~/.indexnower/app-data.json"),
        validate_default=True,
        description="JSON-документ с сайтами и URL.",
    )
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="User-Agent для загрузки страниц.")
    timeout: float = Field(30.0, gt=0, description="Таймаут одного HTTP-запроса (секунд).")
    indexnow_endpoint: str = Field(DEFAULT_ENDPOINT, min_length=1, description="URL API IndexNow.")
    batch_size: int = Field(MAX_BATCH_SIZE, ge=1, le=MAX_BATCH_SIZE, description="URL в одном запросе.")
    server_host: str = Field("127.0.0.1", description="Адрес прокси-сервера.")
    server_port: int = Field(3001, ge=1, le=65535, description="Порт прокси-сервера.")
    cors_origins: List[str] = Field(
        default_factory=list, description="Разрешённые Origin; пустой список - любые."
    )

    @field_validator("data_file", mode="after")
    def _expand_user(cls, v: Path) -> Path:
        return v.expanduser()

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def _env_overrides() -> dict[str, Any]:
    """PORT и CORS_ORIGINS из окружения перекрывают значения файла."""
    overrides: dict[str, Any] = {}
    port = os.environ.get("PORT")
    if port:
        overrides["server_port"] = port
    origins = os.environ.get("CORS_ORIGINS")
    if origins is not None:
        overrides["cors_origins"] = origins
    return overrides


def load_config(path: Union[str, Path, None] = None) -> AppConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект AppConfig.
    Без пути берёт configs/default.yaml, если он есть, иначе значения по умолчанию.
    Явно указанный, но отсутствующий файл - FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.is_file():
            return AppConfig(**_env_overrides())
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    data.update(_env_overrides())
    try:
        return AppConfig(**data)
    except ValidationError:
        raise
