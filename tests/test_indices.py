import numpy as np
import pytest
import qutip

from iontrap.indices import (diagonal_indices, embedded_indices,
                             inverse_kron_index, kron_index, strides)

def _element(dim, i, j):
    return qutip.basis(dim, i) * qutip.basis(dim, j).dag()

def _nonzero_by_column(op):
    rows, cols = np.nonzero(op.full())
    order = np.argsort(cols, kind="stable")
    return np.stack([rows[order], cols[order]], axis=1)

def test_strides_follow_tensor_order():
    assert list(strides([2, 3, 4])) == [12, 4, 1]
    assert list(strides([5])) == [1]

def test_kron_index_round_trip():
    dims = [2, 3, 4]
    assert kron_index((1, 2, 3), dims) == 23
    assert inverse_kron_index(23, dims) == (1, 2, 3)
    assert inverse_kron_index(kron_index((0, 1, 0), dims), dims) == (0, 1, 0)

def test_kron_index_out_of_range():
    with pytest.raises(ValueError):
        kron_index((2, 0), [2, 3])
    with pytest.raises(ValueError):
        inverse_kron_index(6, [2, 3])

def test_embedding_matches_qutip_tensor():
    dims = [2, 3, 4]
    op = qutip.tensor(_element(2, 1, 0), qutip.qeye(3), _element(4, 2, 3))
    found = embedded_indices(dims, {0: (1, 0), 2: (2, 3)})
    assert np.array_equal(found, _nonzero_by_column(op))

def test_embedding_of_middle_subsystem():
    dims = [3, 2, 2]
    op = qutip.tensor(qutip.qeye(3), _element(2, 0, 1), qutip.qeye(2))
    found = embedded_indices(dims, {1: (0, 1)})
    assert len(found) == 6
    assert np.array_equal(found, _nonzero_by_column(op))

def test_embedding_with_everything_fixed_is_one_element():
    found = embedded_indices([2, 3], {0: (1, 0), 1: (2, 2)})
    assert found.tolist() == [[5, 2]]

def test_diagonal_indices():
    assert list(diagonal_indices([2, 3], {1: 2})) == [2, 5]
    op = qutip.tensor(_element(2, 1, 1), qutip.qeye(3))
    expected = np.nonzero(np.diag(op.full()))[0]
    assert list(diagonal_indices([2, 3], {0: 1})) == list(expected)

def test_embedding_rejects_bad_element():
    with pytest.raises(ValueError):
        embedded_indices([2, 3], {1: (3, 0)})
