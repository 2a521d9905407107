import numpy as np
import pytest

from retoucher.domain.entities.image_version import ImageVersion, VersionOrigin
from retoucher.domain.services.history_sequence import HistorySequence


def version(value: int) -> ImageVersion:
    return ImageVersion(np.full((4, 4, 3), value, dtype=np.uint8), VersionOrigin.UPLOAD)


def assert_invariants(history: HistorySequence) -> None:
    assert -1 <= history.current_index <= len(history) - 1
    assert history.can_undo == (history.current_index > 0)
    assert history.can_redo == (history.current_index < len(history) - 1)


def test_empty_history():
    history = HistorySequence()
    assert history.current_index == -1
    assert history.current is None
    assert not history.can_undo
    assert not history.can_redo
    assert_invariants(history)


@pytest.mark.parametrize("n", [1, 2, 5, 12])
def test_invariants_hold_after_every_commit(n):
    history = HistorySequence()
    for i in range(n):
        history.commit(version(i))
        assert_invariants(history)
        assert 0 <= history.current_index <= len(history) - 1
    assert history.current_index == n - 1


def test_undo_then_redo_returns_same_object():
    history = HistorySequence()
    a, b = version(1), version(2)
    history.commit(a)
    history.commit(b)
    assert history.undo()
    assert history.current is a
    assert history.redo()
    assert history.current is b


def test_commit_truncates_forward_versions():
    history = HistorySequence()
    a, b, c, d = version(1), version(2), version(3), version(4)
    for v in (a, b, c):
        history.commit(v)
    history.undo()
    assert history.current_index == 1
    history.commit(d)
    assert history.versions == (a, b, d)
    assert history.current is d
    assert not history.can_redo


def test_reset_keeps_forward_versions_reachable():
    history = HistorySequence()
    a, b, c = version(1), version(2), version(3)
    for v in (a, b, c):
        history.commit(v)
    assert history.reset()
    assert history.current_index == 0
    assert history.versions == (a, b, c)
    assert history.redo() and history.current is b
    assert history.redo() and history.current is c
    assert not history.redo()


def test_undo_redo_are_noops_at_the_ends():
    history = HistorySequence()
    history.commit(version(1))
    assert not history.undo()
    assert not history.redo()
    assert history.current_index == 0
    assert not HistorySequence().reset()


def test_upload_new_clears_everything():
    history = HistorySequence()
    history.commit(version(1))
    history.commit(version(2))
    history.upload_new()
    assert len(history) == 0
    assert history.current_index == -1
    assert_invariants(history)


def test_versions_are_read_only():
    v = version(9)
    with pytest.raises(ValueError):
        v.pixels[0, 0, 0] = 1
