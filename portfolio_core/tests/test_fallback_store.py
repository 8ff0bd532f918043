import json
import tempfile
from pathlib import Path

import pytest

from portfolio_core.infrastructure.storage.fallback_store import JsonFallbackStore, VISITORS_KEY


def test_get_seeds_once():
    with tempfile.TemporaryDirectory() as d:
        store = JsonFallbackStore(root=Path(d) / ".storage")
        assert store.get("items", [1, 2]) == [1, 2]
        # 第二次读取不会用新的种子覆盖
        assert store.get("items", [9]) == [1, 2]
        assert (Path(d) / ".storage" / "fallback" / "items.json").exists()


def test_set_persists_across_instances():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d) / ".storage"
        JsonFallbackStore(root=root).set(VISITORS_KEY, 42)
        assert JsonFallbackStore(root=root).get(VISITORS_KEY, 0) == 42


def test_get_returns_copies():
    with tempfile.TemporaryDirectory() as d:
        store = JsonFallbackStore(root=Path(d))
        value = store.get("items", [{"id": "1"}])
        value.append({"id": "2"})
        value[0]["id"] = "changed"
        assert store.get("items", []) == [{"id": "1"}]


def test_corrupt_file_is_reseeded():
    with tempfile.TemporaryDirectory() as d:
        store = JsonFallbackStore(root=Path(d))
        (Path(d) / "fallback" / "items.json").write_text("{not json", encoding="utf-8")
        assert store.get("items", ["seed"]) == ["seed"]
        data = json.loads((Path(d) / "fallback" / "items.json").read_text(encoding="utf-8"))
        assert data == ["seed"]


def test_update_writes_new_value_and_returns_result():
    with tempfile.TemporaryDirectory() as d:
        store = JsonFallbackStore(root=Path(d))
        result = store.update(VISITORS_KEY, 10, lambda cur: (cur + 1, "ok"))
        assert result == "ok"
        assert store.get(VISITORS_KEY, 0) == 11


def test_update_failure_leaves_value_untouched():
    with tempfile.TemporaryDirectory() as d:
        store = JsonFallbackStore(root=Path(d))
        store.set("items", ["a"])

        def boom(current):
            current.append("b")
            raise LookupError("nope")

        with pytest.raises(LookupError):
            store.update("items", [], boom)
        assert store.get("items", []) == ["a"]
