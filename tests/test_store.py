from __future__ import annotations


def test_missing_key_is_none(store):
    assert store.get_int("last-synced-issue-id") is None


def test_put_then_overwrite(store):
    store.put_int("last-synced-issue-id", 10)
    assert store.get_int("last-synced-issue-id") == 10
    store.put_int("last-synced-issue-id", 25)
    assert store.get_int("last-synced-issue-id") == 25
    assert store.get_int("last-refreshed-issue-id") is None
