"""
Tests SessionData: the request-scoped session container.
"""

import pytest

from signet.sessions.core import SessionData


class TestConstruction:

    def test_new_empty(self):
        session = SessionData.new_empty()
        assert session.is_empty()
        assert not session.has_changed()
        assert len(session) == 0

    def test_from_token_data_is_unchanged(self):
        session = SessionData.from_token_data({"foo": "bar", "n": 1})
        assert not session.is_empty()
        assert not session.has_changed()
        assert session.get("foo") == "bar"
        assert session["n"] == 1

    def test_from_token_data_copies_input(self):
        data = {"foo": "bar"}
        session = SessionData.from_token_data(data)
        session.set("foo", "baz")
        assert data == {"foo": "bar"}


class TestReads:

    def test_get_with_default(self):
        session = SessionData.new_empty()
        assert session.get("missing") is None
        assert session.get("missing", "default") == "default"

    def test_has_and_contains(self):
        session = SessionData.from_token_data({"a": 1})
        assert session.has("a")
        assert "a" in session
        assert not session.has("b")

    def test_reads_do_not_mark_changed(self):
        session = SessionData.from_token_data({"a": 1})
        session.get("a")
        session.has("a")
        session.to_dict()
        list(session)
        assert not session.has_changed()

    def test_to_dict_is_a_copy(self):
        session = SessionData.from_token_data({"a": 1})
        snapshot = session.to_dict()
        snapshot["b"] = 2
        assert "b" not in session


class TestMutations:

    def test_set_marks_changed(self):
        session = SessionData.new_empty()
        session.set("foo", "bar")
        assert session.has_changed()
        assert session.get("foo") == "bar"

    def test_setting_same_value_still_marks_changed(self):
        session = SessionData.from_token_data({"foo": "bar"})
        session.set("foo", "bar")
        assert session.has_changed()

    def test_setitem(self):
        session = SessionData.new_empty()
        session["x"] = [1, 2]
        assert session["x"] == [1, 2]
        assert session.has_changed()

    def test_clear_marks_changed_even_when_empty(self):
        session = SessionData.new_empty()
        session.clear()
        assert session.is_empty()
        assert session.has_changed()

    def test_clear_removes_everything(self):
        session = SessionData.from_token_data({"a": 1, "b": 2})
        session.clear()
        assert session.is_empty()
        assert "a" not in session

    def test_remove(self):
        session = SessionData.from_token_data({"a": 1, "b": 2})
        session.remove("a")
        assert "a" not in session
        assert session.has_changed()

    def test_remove_missing_key_marks_changed(self):
        session = SessionData.from_token_data({"a": 1})
        session.remove("missing")
        assert session.has_changed()
        assert session.to_dict() == {"a": 1}

    def test_delitem_missing_raises(self):
        session = SessionData.new_empty()
        with pytest.raises(KeyError):
            del session["missing"]
        assert not session.has_changed()

    def test_changed_is_monotonic(self):
        session = SessionData.new_empty()
        session.set("a", 1)
        session.remove("a")
        assert session.is_empty()
        assert session.has_changed()

    def test_values_are_json_normalized(self):
        session = SessionData.new_empty()
        session.set("pair", (1, 2))
        session.set("nested", {"k": (3,)})
        assert session.get("pair") == [1, 2]
        assert session.get("nested") == {"k": [3]}

    def test_non_serializable_value_rejected(self):
        session = SessionData.new_empty()
        with pytest.raises(TypeError):
            session.set("bad", object())
        assert not session.has_changed()
        assert session.is_empty()

    def test_non_string_key_rejected(self):
        session = SessionData.new_empty()
        with pytest.raises(TypeError):
            session.set(1, "value")
