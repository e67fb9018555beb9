from __future__ import annotations

from domain.session import SESSION_PRIORITY, Session


class TestSession:
    def test_initial_variables(self) -> None:
        session = Session({"token": "abc", "count": 2})
        assert session.get("token") == "abc"
        assert session.get("count") == 2
        assert session.size == 2

    def test_set_overwrites(self) -> None:
        session = Session()
        session.set("id", 1)
        session.set("id", 2)
        assert session.get("id") == 2
        assert len(session) == 1

    def test_delete_returns_whether_key_existed(self) -> None:
        session = Session({"a": 1})
        assert session.delete("a") is True
        assert session.delete("a") is False
        assert "a" not in session

    def test_merge_overwrites_existing_keys(self) -> None:
        session = Session({"a": 1, "b": 2})
        session.merge({"b": 3, "c": 4})
        assert session.get_all() == {"a": 1, "b": 3, "c": 4}

    def test_get_all_returns_copy(self) -> None:
        session = Session({"a": 1})
        snapshot = session.get_all()
        snapshot["a"] = 99
        assert session.get("a") == 1

    def test_clear(self) -> None:
        session = Session({"a": 1})
        session.clear()
        assert session.size == 0
        assert list(session) == []

    def test_has_and_default(self) -> None:
        session = Session({"none": None})
        assert session.has("none") is True
        assert session.get("missing", "fallback") == "fallback"


class TestSessionVariableSource:
    def test_name_and_priority(self) -> None:
        source = Session().variable_source()
        assert source.name == "Session"
        assert source.priority == SESSION_PRIORITY == 500

    def test_custom_priority(self) -> None:
        assert Session(priority=42).variable_source().priority == 42

    def test_values_are_rendered_as_text(self) -> None:
        session = Session({"id": 42, "ok": True, "tags": ["a", "b"], "nothing": None})
        source = session.variable_source()
        assert source.get("id") == "42"
        assert source.get("ok") == "true"
        assert source.get("tags") == '["a", "b"]'
        assert source.get("nothing") == "null"

    def test_missing_key_is_none(self) -> None:
        assert Session().variable_source().get("missing") is None

    def test_source_sees_later_writes(self) -> None:
        session = Session()
        source = session.variable_source()
        session.set("token", "late")
        assert source.get("token") == "late"
