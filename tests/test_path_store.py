"""PathStore behaviour against the in-memory tables."""

from __future__ import annotations

import pytest

from pathshare.errors import (
    NotFoundError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from pathshare.models import UserPathUpdate
from pathshare.services import PathStore, PathStoreConfig, share_url


# --- Shared paths ----------------------------------------------------
def test_shared_path_round_trip(path_store, sample_path):
    vertex_data = {"0": {"label": "start"}, "2": {"label": "end", "stop": True}}
    path_id = path_store.save_shared_path(
        sample_path, user_location=(28.61, 77.20), vertex_data=vertex_data
    )

    fetched = path_store.get_shared_path(path_id)
    assert fetched is not None
    assert fetched.path_id == path_id
    assert fetched.coordinates == sample_path
    assert fetched.user_location == (28.61, 77.20)
    assert fetched.vertex_data == vertex_data
    assert fetched.created_at is not None
    assert fetched.source_user_path_id is None


def test_shared_path_round_trip_without_optional_fields(path_store, sample_path):
    path_id = path_store.save_shared_path(sample_path)
    fetched = path_store.get_shared_path(path_id)
    assert fetched.coordinates == sample_path
    assert fetched.user_location is None
    assert fetched.vertex_data == {}


def test_single_point_path_is_accepted(path_store):
    path_id = path_store.save_shared_path([(1.0, 2.0)])
    assert path_store.get_shared_path(path_id).coordinates == [(1.0, 2.0)]


def test_empty_path_is_rejected(path_store):
    with pytest.raises(ValidationError):
        path_store.save_shared_path([])


def test_point_without_lng_rejects_whole_path(path_store, memory_client):
    with pytest.raises(ValidationError):
        path_store.save_shared_path([{"lat": 1, "lng": 2}, {"lat": 3}])
    assert len(memory_client.tables["shared_paths"]) == 0


def test_user_path_with_unreadable_point_is_rejected(path_store, memory_client, alice):
    with pytest.raises(ValidationError):
        path_store.save_user_path(alice, "Walk", [(1.0, 2.0), {"lng": 4}])
    assert len(memory_client.tables["user_paths"]) == 0


def test_get_missing_shared_path_returns_none(path_store):
    assert path_store.get_shared_path("does-not-exist") is None
    assert path_store.get_shared_path("") is None


def test_save_shared_path_propagates_storage_failure(memory_client, sample_path):
    table = memory_client.tables["shared_paths"]

    def boom(row):
        raise StorageError("insert into shared_paths failed (status 500)")

    table.insert = boom
    with pytest.raises(StorageError):
        PathStore(memory_client).save_shared_path(sample_path)
    assert len(table) == 0


def test_short_ids_are_checked_for_collisions(memory_client, sample_path):
    ids = iter(["abc", "abc", "xyz"])
    store = PathStore(memory_client, PathStoreConfig(id_generator=lambda: next(ids)))
    assert store.save_shared_path(sample_path) == "abc"
    assert store.save_shared_path(sample_path) == "xyz"


def test_share_url_appends_path_param():
    assert share_url("abc123", "https://example.com/app") == (
        "https://example.com/app?path=abc123"
    )
    assert share_url("abc123", "https://example.com/?v=2") == (
        "https://example.com/?v=2&path=abc123"
    )


# --- User paths ------------------------------------------------------
def test_save_user_path_requires_identity(path_store, sample_path):
    with pytest.raises(UnauthorizedError):
        path_store.save_user_path(None, "Home to Office", sample_path)


@pytest.mark.parametrize("name", ["", "   ", None])
def test_save_user_path_requires_name(path_store, alice, sample_path, name):
    with pytest.raises(ValidationError):
        path_store.save_user_path(alice, name, sample_path)


def test_save_user_path_sets_owner(path_store, memory_client, alice, sample_path):
    path_id = path_store.save_user_path(alice, "Home to Office", sample_path)
    rows = memory_client.tables["user_paths"].rows()
    assert rows[0]["id"] == path_id
    assert rows[0]["user_id"] == alice.user_id
    assert rows[0]["description"] == ""


def test_list_user_paths_newest_first_and_owner_scoped(
    path_store, alice, bob, sample_path
):
    first = path_store.save_user_path(alice, "First", sample_path)
    second = path_store.save_user_path(alice, "Second", sample_path)
    path_store.save_user_path(bob, "Bob's", sample_path)

    listed = path_store.list_user_paths(alice)
    assert [p.id for p in listed] == [second, first]
    assert all(p.owner_id == alice.user_id for p in listed)


def test_list_user_paths_unauthenticated_is_empty(path_store, alice, sample_path):
    path_store.save_user_path(alice, "First", sample_path)
    assert path_store.list_user_paths(None) == []


def test_partial_update_touches_only_name(path_store, alice, sample_path):
    path_id = path_store.save_user_path(
        alice,
        "Old name",
        sample_path,
        description="keep me",
        vertex_data={"1": {"note": "bridge"}},
    )
    path_store.update_user_path(alice, path_id, UserPathUpdate(name="New name"))

    updated = path_store.get_user_path(alice, path_id)
    assert updated.name == "New name"
    assert updated.coordinates == sample_path
    assert updated.description == "keep me"
    assert updated.vertex_data == {"1": {"note": "bridge"}}


def test_update_can_clear_description_with_empty_string(path_store, alice, sample_path):
    path_id = path_store.save_user_path(alice, "Walk", sample_path, description="x")
    path_store.update_user_path(alice, path_id, UserPathUpdate(description=""))
    assert path_store.get_user_path(alice, path_id).description == ""


def test_update_can_clear_vertex_data(path_store, alice, sample_path):
    path_id = path_store.save_user_path(
        alice, "Walk", sample_path, vertex_data={"0": {"a": 1}}
    )
    path_store.update_user_path(alice, path_id, UserPathUpdate(vertex_data={}))
    assert path_store.get_user_path(alice, path_id).vertex_data == {}


def test_update_rejects_blank_name(path_store, alice, sample_path):
    path_id = path_store.save_user_path(alice, "Walk", sample_path)
    with pytest.raises(ValidationError):
        path_store.update_user_path(alice, path_id, UserPathUpdate(name=""))
    assert path_store.get_user_path(alice, path_id).name == "Walk"


def test_update_rejects_unreadable_coordinates(path_store, alice, sample_path):
    path_id = path_store.save_user_path(alice, "Walk", sample_path)
    update = UserPathUpdate(coordinates=[{"lat": 1, "lng": 2}, {"lat": 3}])
    with pytest.raises(ValidationError):
        path_store.update_user_path(alice, path_id, update)
    assert path_store.get_user_path(alice, path_id).coordinates == sample_path


def test_update_missing_path_is_not_found(path_store, alice):
    with pytest.raises(NotFoundError):
        path_store.update_user_path(alice, "missing", UserPathUpdate(name="x"))


def test_update_by_other_user_is_unauthorized(path_store, alice, bob, sample_path):
    path_id = path_store.save_user_path(alice, "Mine", sample_path)
    with pytest.raises(UnauthorizedError):
        path_store.update_user_path(
            bob, path_id, UserPathUpdate(name="Hijacked", coordinates=[(0.0, 0.0)])
        )
    unchanged = path_store.get_user_path(alice, path_id)
    assert unchanged.name == "Mine"
    assert unchanged.coordinates == sample_path


def test_update_without_identity_is_unauthorized(path_store, alice, sample_path):
    path_id = path_store.save_user_path(alice, "Mine", sample_path)
    with pytest.raises(UnauthorizedError):
        path_store.update_user_path(None, path_id, UserPathUpdate(name="x"))


def test_delete_is_idempotent(path_store, alice, sample_path):
    path_id = path_store.save_user_path(alice, "Temp", sample_path)
    path_store.delete_user_path(alice, path_id)
    path_store.delete_user_path(alice, path_id)
    assert path_store.get_user_path(alice, path_id) is None
    path_store.delete_user_path(alice, "never-existed")


def test_delete_by_other_user_is_unauthorized(path_store, alice, bob, sample_path):
    path_id = path_store.save_user_path(alice, "Mine", sample_path)
    with pytest.raises(UnauthorizedError):
        path_store.delete_user_path(bob, path_id)
    assert path_store.get_user_path(alice, path_id) is not None


def test_get_user_path_hides_other_users_rows(path_store, alice, bob, sample_path):
    path_id = path_store.save_user_path(alice, "Mine", sample_path)
    assert path_store.get_user_path(bob, path_id) is None
    assert path_store.get_user_path(None, path_id) is None


# --- Sharing ---------------------------------------------------------
def test_share_user_path_creates_independent_snapshot(
    path_store, alice, sample_path
):
    user_path_id = path_store.save_user_path(
        alice,
        "Route",
        sample_path,
        vertex_data={"0": {"label": "gate"}},
        user_location=(28.6, 77.2),
    )
    shared_id = path_store.share_user_path(alice, user_path_id)

    path_store.update_user_path(
        alice,
        user_path_id,
        UserPathUpdate(coordinates=[(1.0, 1.0), (2.0, 2.0)], vertex_data={}),
    )
    shared = path_store.get_shared_path(shared_id)
    assert shared.coordinates == sample_path
    assert shared.vertex_data == {"0": {"label": "gate"}}
    assert shared.user_location == (28.6, 77.2)
    assert shared.source_user_path_id == user_path_id

    path_store.delete_user_path(alice, user_path_id)
    assert path_store.get_shared_path(shared_id).coordinates == sample_path


def test_share_requires_ownership(path_store, alice, bob, sample_path):
    user_path_id = path_store.save_user_path(alice, "Route", sample_path)
    with pytest.raises(UnauthorizedError):
        path_store.share_user_path(bob, user_path_id)
    with pytest.raises(UnauthorizedError):
        path_store.share_user_path(None, user_path_id)


def test_share_missing_path_is_not_found(path_store, alice):
    with pytest.raises(NotFoundError):
        path_store.share_user_path(alice, "missing")


def test_import_shared_path_keeps_given_id(path_store, sample_path):
    path_store.import_shared_path("cached-1", sample_path, {"lat": 1, "lng": 2})
    fetched = path_store.get_shared_path("cached-1")
    assert fetched.coordinates == sample_path
    assert fetched.user_location == (1.0, 2.0)
    assert fetched.vertex_data == {}


def test_import_shared_path_rejects_duplicate_id(path_store, sample_path):
    path_store.import_shared_path("cached-1", sample_path)
    with pytest.raises(StorageError):
        path_store.import_shared_path("cached-1", sample_path)


def test_import_shared_path_requires_id(path_store, sample_path):
    with pytest.raises(ValidationError):
        path_store.import_shared_path("", sample_path)
