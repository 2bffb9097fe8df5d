"""Tests for the run store."""

import pytest

from comfyrun.errors import DuplicateJob

INPUTS = {"input_text": "a bottle", "batch": "1", "width": "832", "height": "1216", "id": ""}


def test_create_and_get(store):
    """Test that a created run is pending with its inputs stored."""
    store.create("run-1", "user-1", INPUTS)

    run = store.get("run-1")
    assert run is not None
    assert run.user_id == "user-1"
    assert run.inputs == INPUTS
    assert run.image_url is None
    assert run.status == "pending"


def test_get_unknown_run(store):
    """Test that an unknown run is absent."""
    assert store.get("missing") is None


def test_create_duplicate_leaves_record_unmodified(store):
    """Test that a duplicate create fails and keeps the original row."""
    store.create("run-1", "user-1", INPUTS)

    with pytest.raises(DuplicateJob):
        store.create("run-1", "user-2", {"input_text": "other"})

    run = store.get("run-1")
    assert run.user_id == "user-1"
    assert run.inputs == INPUTS


def test_mark_complete_first_writer_wins(store):
    """Test that only the first completion write takes effect."""
    store.create("run-1", "user-1", INPUTS)

    assert store.mark_complete("run-1", "https://cdn.example/first.png") is True
    assert store.mark_complete("run-1", "https://cdn.example/second.png") is False

    run = store.get("run-1")
    assert run.image_url == "https://cdn.example/first.png"
    assert run.status == "complete"
    assert run.completed_at is not None


def test_mark_complete_same_url_is_noop(store):
    """Test that repeating the same completion is idempotent."""
    store.create("run-1", "user-1", INPUTS)

    store.mark_complete("run-1", "https://cdn.example/a.png")
    assert store.mark_complete("run-1", "https://cdn.example/a.png") is False
    assert store.get("run-1").image_url == "https://cdn.example/a.png"


def test_mark_complete_unknown_run(store):
    """Test that completing an unknown run does not create it."""
    assert store.mark_complete("ghost", "https://cdn.example/a.png") is False
    assert store.get("ghost") is None


def test_list_for_user(store):
    """Test that runs are listed per user."""
    store.create("run-1", "user-1", INPUTS)
    store.create("run-2", "user-1", INPUTS)
    store.create("run-3", "user-2", INPUTS)

    runs = store.list_for_user("user-1")
    assert {r.run_id for r in runs} == {"run-1", "run-2"}
    assert len(store.list_for_user("user-1", limit=1)) == 1
