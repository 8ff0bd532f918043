import copy
import json
import os
import threading
from pathlib import Path
from typing import Any, Callable, Tuple, TypeVar
from uuid import uuid4

from portfolio_core.config.settings import settings
from portfolio_core.domain.exceptions import BusinessError
from portfolio_core.infrastructure.logging.logger import logger


PROJECTS_KEY = "portfolio_projects"
VISITORS_KEY = "portfolio_visitors"

T = TypeVar("T")


class JsonFallbackStore:
    """本地持久化的键值存储，后端不可达时使用。

    每个键对应 `<root>/fallback/<key>.json` 一个文件；首次读取某个键时写入种子值。
    轮询线程与调用线程会并发访问，所有读写都在同一把锁内完成。
    """

    def __init__(self, root: str | Path | None = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._dir = self._root / "fallback"
        self._dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def get(self, key: str, seed: Any) -> Any:
        """返回 key 的持久化值；不存在时写入并返回 seed。"""
        with self._lock:
            return copy.deepcopy(self._get_or_seed(key, seed))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._write(key, value)

    def update(self, key: str, seed: Any, fn: Callable[[Any], Tuple[Any, T]]) -> T:
        """在锁内完成读-改-写。

        fn 接收当前值（的副本），返回 (新值, 结果)；新值被持久化，结果返回给调用方。
        fn 抛出异常时不写入任何内容。
        """
        with self._lock:
            current = copy.deepcopy(self._get_or_seed(key, seed))
            new_value, result = fn(current)
            self._write(key, new_value)
            return result

    def _get_or_seed(self, key: str, seed: Any) -> Any:
        path = self._path(key)
        if path.exists():
            try:
                return json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("fallback_store.corrupt", extra={"extra": {"key": key, "error": str(e)}})
        value = copy.deepcopy(seed)
        self._write(key, value)
        logger.info("fallback_store.seeded", extra={"extra": {"key": key}})
        return value

    def _write(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp_path = self._dir / f"{key}.{uuid4().hex}.json.tmp"
        try:
            tmp_path.write_text(json.dumps(value, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e))

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"
