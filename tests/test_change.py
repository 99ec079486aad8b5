"""Tests for the Change record and its predicates."""

import pytest

from revsync.change import (
    Change,
    ChangeType,
    classify_type,
    equals,
    is_based_on,
    normalize_checkpoint,
)
from revsync.errors import InvalidChangeError
from revsync.hashing import Hasher, id_for_model


class TestChange:
    """Tests for Change dataclass."""

    def test_id_is_derived(self):
        change = Change(model_name="Note", model_id="1")
        assert change.id == id_for_model("Note", "1")

    def test_id_follows_model_fields(self):
        change = Change(model_name="Note", model_id="1")
        change.model_id = "2"

        assert change.id == id_for_model("Note", "2")

    def test_equal_model_gives_equal_id(self):
        a = Change(model_name="Note", model_id="1", rev="a")
        b = Change(model_name="Note", model_id="1", rev="b", checkpoint=9)

        assert a.id == b.id

    def test_id_none_without_model(self):
        assert Change(model_name="Note", model_id=None).id is None
        assert Change(model_name="", model_id="1").id is None

    def test_model_id_coerced_to_str(self):
        change = Change(model_name="Note", model_id=7)
        assert change.model_id == "7"

    def test_id_uses_hasher(self):
        hasher = Hasher("sha256")
        change = Change(model_name="Note", model_id="1", hasher=hasher)

        assert change.id == hasher.id_for_model("Note", "1")
        assert len(change.id) == 64

    def test_new_change_is_empty(self):
        change = Change(model_name="Note", model_id="1")

        assert change.rev is None
        assert change.prev is None
        assert change.checkpoint is None

    def test_to_dict(self):
        change = Change(model_name="Note", model_id="1", rev="r", prev="p", checkpoint=3)

        d = change.to_dict()

        assert d == {
            "id": change.id,
            "rev": "r",
            "prev": "p",
            "checkpoint": 3,
            "modelName": "Note",
            "modelId": "1",
        }

    def test_from_dict_camel_case(self):
        change = Change.from_dict(
            {"modelName": "Note", "modelId": "5", "rev": "r", "prev": None, "checkpoint": "4"}
        )

        assert change.model_name == "Note"
        assert change.model_id == "5"
        assert change.rev == "r"
        assert change.checkpoint == 4

    def test_from_dict_snake_case(self):
        change = Change.from_dict({"model_name": "Note", "model_id": 5})
        assert change.model_id == "5"

    def test_from_dict_ignores_supplied_id(self):
        change = Change.from_dict({"id": "bogus", "modelName": "Note", "modelId": "1"})
        assert change.id == id_for_model("Note", "1")

    def test_from_dict_default_model_name(self):
        change = Change.from_dict({"modelId": "1"}, model_name="Note")
        assert change.model_name == "Note"

    def test_from_dict_missing_model_id(self):
        with pytest.raises(InvalidChangeError):
            Change.from_dict({"modelName": "Note", "rev": "r"})

    def test_from_dict_missing_model_name(self):
        with pytest.raises(InvalidChangeError):
            Change.from_dict({"modelId": "1"})

    def test_from_dict_bad_checkpoint(self):
        with pytest.raises(InvalidChangeError):
            Change.from_dict({"modelName": "Note", "modelId": "1", "checkpoint": "soon"})


class TestClassifyType:
    """Tests for classify_type."""

    @pytest.mark.parametrize(
        "rev,prev,expected",
        [
            ("a", "b", ChangeType.UPDATE),
            ("a", None, ChangeType.CREATE),
            (None, "b", ChangeType.DELETE),
            (None, None, ChangeType.UNKNOWN),
        ],
    )
    def test_table(self, rev, prev, expected):
        change = Change(model_name="Note", model_id="1", rev=rev, prev=prev)

        assert classify_type(change) == expected
        assert change.type == expected

    def test_values(self):
        assert ChangeType.CREATE.value == "create"
        assert ChangeType.UNKNOWN.value == "unknown"


class TestPredicates:
    """Tests for equals and is_based_on."""

    def test_equals_depends_only_on_rev(self):
        base = Change(model_name="Note", model_id="1", rev="A", prev="X", checkpoint=1)

        for prev in (None, "X", "Y"):
            for checkpoint in (None, 0, 1, 99):
                other = Change(
                    model_name="Note", model_id="1", rev="A", prev=prev, checkpoint=checkpoint
                )
                assert equals(base, other)
                assert base.equals(other)

    def test_not_equal_on_different_rev(self):
        a = Change(model_name="Note", model_id="1", rev="A")
        b = Change(model_name="Note", model_id="1", rev="B")

        assert not equals(a, b)

    def test_both_deleted_are_equal(self):
        a = Change(model_name="Note", model_id="1", rev=None, prev="A")
        b = Change(model_name="Note", model_id="1", rev=None, prev="B")

        assert equals(a, b)

    def test_is_based_on(self):
        local = Change(model_name="Note", model_id="1", rev="A", prev="X")
        remote = Change(model_name="Note", model_id="1", rev="B", prev="A")

        assert is_based_on(remote, local)
        assert remote.is_based_on(local)

    def test_is_based_on_is_directional(self):
        local = Change(model_name="Note", model_id="1", rev="A", prev="X")
        remote = Change(model_name="Note", model_id="1", rev="B", prev="A")

        assert not is_based_on(local, remote)

    def test_not_based_on_older_ancestor(self):
        local = Change(model_name="Note", model_id="1", rev="A", prev="X")
        remote = Change(model_name="Note", model_id="1", rev="B", prev="X")

        assert not is_based_on(remote, local)


class TestNormalizeCheckpoint:
    """Tests for normalize_checkpoint."""

    @pytest.mark.parametrize("since,expected", [(None, 0), (0, 0), (3, 3), ("4", 4)])
    def test_valid(self, since, expected):
        assert normalize_checkpoint(since) == expected

    @pytest.mark.parametrize("since", ["yesterday", True, [1]])
    def test_invalid(self, since):
        with pytest.raises(InvalidChangeError):
            normalize_checkpoint(since)
