import numpy as np
import pytest

from modules.identity import IdentityIndex


def test_best_match_above_threshold():
    idx = IdentityIndex(similarity_thresh=0.8)
    idx.add("alice", np.array([1.0, 0.0, 0.0]))
    idx.add("bob", np.array([0.0, 1.0, 0.0]))
    name, score = idx.match(np.array([0.9, 0.1, 0.0]))
    assert name == "alice"
    assert score > 0.9
    assert len(idx) == 2


def test_no_match_returns_empty_label():
    idx = IdentityIndex(similarity_thresh=0.8)
    assert idx.match(np.ones(3)) == ("", 0.0)
    idx.add("alice", np.array([1.0, 0.0, 0.0]))
    name, _ = idx.match(np.array([0.0, 0.0, 1.0]))
    assert name == ""
    assert idx.match(np.zeros(3))[0] == ""


def test_dimension_mismatch_rejected():
    idx = IdentityIndex()
    idx.add("alice", np.ones(4))
    with pytest.raises(ValueError):
        idx.add("bob", np.ones(3))
