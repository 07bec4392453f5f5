"""
Index arithmetic for the composite Hilbert space of a trap.  The composite
space is the tensor product of every ion's electronic subspace followed by
every vibrational mode's Fock subspace, ordered in the same way as
`qutip.tensor`, so the last subsystem varies fastest.

Operators in the Hamiltonian are always a single local operator on one or two
subsystems tensored with identities everywhere else.  Rather than building
that tensor product and searching it for the non-zero elements, these
functions calculate directly where one local matrix element `(row, col)` ends
up in the composite matrix.  For example, with `dims = [2, 3]`,
    embedded_indices([2, 3], {0: (1, 0)}) -> [[3, 0], [4, 1], [5, 2]]
which are the elements of `|1><0| x I_3`.
"""

__all__ = ["strides", "kron_index", "inverse_kron_index", "embedded_indices",
           "diagonal_indices"]

import numpy as np

def strides(dims):
    """strides(dims : list of int > 0) -> np.array of int

    The place values of the mixed-radix encoding of a composite index, such that
    `sum(strides(dims) * local)` is the composite index of the local indices
    `local`."""
    dims = np.asarray(dims, dtype=np.intp)
    out = np.ones_like(dims)
    if len(dims) > 1:
        out[:-1] = np.cumprod(dims[::-1])[-2::-1]
    return out

def kron_index(local, dims):
    """kron_index(local : iterable of int, dims : list of int) -> int

    Get the composite index of the basis state which has subsystem `k` in its
    local state `local[k]`."""
    local = np.asarray(local, dtype=np.intp)
    if local.shape != (len(dims),):
        raise ValueError("Need exactly one local index per subsystem.")
    if np.any(local < 0) or np.any(local >= np.asarray(dims)):
        raise ValueError(f"Local indices {tuple(local)} out of range for "
                         f"dimensions {tuple(dims)}.")
    return int(np.dot(strides(dims), local))

def inverse_kron_index(index, dims):
    """inverse_kron_index(index : int, dims : list of int) -> tuple of int

    The inverse of `kron_index()`: split a composite index into the local
    index of each subsystem."""
    total = int(np.prod(dims))
    if not 0 <= index < total:
        raise ValueError(f"Index {index} out of range for dimension {total}.")
    return tuple(int(x) for x in np.unravel_index(index, tuple(dims)))

def _free_offsets(dims, fixed):
    """Composite offsets of every combination of local states of the
    subsystems which are not in `fixed`, in ascending order."""
    place = strides(dims)
    offsets = np.zeros(1, dtype=np.intp)
    for k, dim in enumerate(dims):
        if k in fixed:
            continue
        offsets = (offsets[:, None]
                   + place[k] * np.arange(dim, dtype=np.intp)[None, :]).ravel()
    return np.sort(offsets)

def embedded_indices(dims, fixed):
    """embedded_indices(dims, fixed) -> np.array of int, shape (k, 2)

    Get every composite `(row, col)` element of the operator which acts as
    `|row_k><col_k|` on each subsystem `k` in `fixed` and as the identity on all
    other subsystems.

    Arguments:
    dims: list of int > 0 -- The dimensions of the subsystems.
    fixed: dict of int * (int * int) --
        Maps the position of a subsystem to the local `(row, col)` element of
        the operator acting on it.

    Returns:
    np.array of int, shape (k, 2) --
        The composite `(row, col)` pairs, sorted by column.  All of these
        elements carry the same value as the local product of elements."""
    place = strides(dims)
    row, col = 0, 0
    for k, (i, j) in fixed.items():
        if not (0 <= i < dims[k] and 0 <= j < dims[k]):
            raise ValueError(f"Element ({i}, {j}) out of range for subsystem"
                             f" {k} of dimension {dims[k]}.")
        row += place[k] * i
        col += place[k] * j
    offsets = _free_offsets(dims, fixed)
    # each offset appears in exactly one pair, so sorting the offsets sorts the
    # columns.
    return np.stack([offsets + row, offsets + col], axis=1)

def diagonal_indices(dims, fixed):
    """diagonal_indices(dims, fixed : dict of int * int) -> np.array of int

    Get the composite diagonal positions where each subsystem `k` in `fixed` is
    in its local state `fixed[k]`, in ascending order.  For example,
    `diagonal_indices([2, 3], {1: 2})` is `[2, 5]`."""
    return embedded_indices(dims, {k: (i, i) for k, i in fixed.items()})[:, 0]
