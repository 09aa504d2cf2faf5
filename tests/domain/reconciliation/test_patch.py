from __future__ import annotations

from subsync.domain.reconciliation import apply_merge_patch, create_merge_patch


def test_equal_documents_produce_empty_patch() -> None:
    document = {"spec": {"subscribers": [{"uid": "a"}]}}

    assert create_merge_patch(document, document) == {}


def test_lists_are_replaced_as_a_whole() -> None:
    original = {"spec": {"subscribers": [{"uid": "a"}], "delivery": {"retry": 1}}}
    modified = {"spec": {"subscribers": [{"uid": "a"}, {"uid": "b"}], "delivery": {"retry": 1}}}

    patch = create_merge_patch(original, modified)

    assert patch == {"spec": {"subscribers": [{"uid": "a"}, {"uid": "b"}]}}


def test_removed_keys_become_null() -> None:
    original = {"spec": {"delivery": {"retry": 1}, "subscribers": []}}
    modified = {"spec": {"subscribers": []}}

    assert create_merge_patch(original, modified) == {"spec": {"delivery": None}}


def test_apply_merge_patch_round_trips_created_patch() -> None:
    original = {"metadata": {"name": "c"}, "spec": {"delivery": {"retry": 1}, "subscribers": []}}
    modified = {"metadata": {"name": "c"}, "spec": {"subscribers": [{"uid": "a"}]}}

    patched = apply_merge_patch(original, create_merge_patch(original, modified))

    assert patched == modified
    assert original["spec"]["delivery"] == {"retry": 1}
