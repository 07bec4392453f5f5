"""
Provides the `hamiltonian()` factory, which turns a `Trap` into a fast
evaluator of its interaction Hamiltonian as a function of time.  The evaluator
is meant to be called many times by a numerical integrator, so all of the
structure of the matrix is worked out once, when it is built, and each call
only evaluates a short list of scalar functions and writes the results into a
preallocated sparse matrix.

Every term of the Hamiltonian is a single ion operator |upper><lower| tensored
with a single element <i|D(xi)|j> of the displacement operator of one
vibrational mode, and the identity on everything else.  That identity means
each term appears in many places of the full matrix with the same value, e.g.
                                 [ s+ x D(xi)       0      ]
           H = I x s+ x D(xi) =  [      0      s+ x D(xi)  ]
so each term is compiled into the group of all the places it appears in (see
`CompiledTerm`), and its value is only calculated once per call.

Without a rotating-wave approximation, the displacement operator also has the
symmetry
           <j|D(xi)|i> = (-1)^(i - j) conj(<i|D(xi)|j>),
so only the elements with `i >= j` are compiled, and the mirrored group is
written from the same value.
"""

__all__ = ["CompiledTerm", "Fluctuations", "compile_terms",
           "compile_fluctuations", "Hamiltonian", "hamiltonian"]

import logging
from collections import namedtuple

import numpy as np
import qutip
import scipy.sparse

from . import coefficients as _coefficients
from .displacement import matrix_element
from .indices import embedded_indices, diagonal_indices
from .ion import zeeman_shift

_log = logging.getLogger(__name__)

_NO_INDICES = np.empty((0, 2), dtype=np.intp)

class _Contribution:
    """The value g(t) d(t) that one laser gives to one matrix element, where
        g(t) = Omega(t) exp(-i Delta t),
        d(t) = <i|D(i eta(t) exp(2 pi i nu timescale t))|j>."""
    __slots__ = ("rabi", "detuning", "lamb_dicke", "nu", "timescale", "i", "j")

    def __init__(self, rabi, detuning, lamb_dicke, nu, timescale, i, j):
        self.rabi = rabi
        self.detuning = detuning
        self.lamb_dicke = lamb_dicke
        self.nu = nu
        self.timescale = timescale
        self.i = i
        self.j = j

    def __call__(self, t):
        xi = 1j * self.lamb_dicke(t)\
             * np.exp(2j * np.pi * self.nu * self.timescale * t)
        d = matrix_element(xi, self.i, self.j)
        g = self.rabi(t) * np.exp(-1j * t * self.detuning)
        return g * d, g * np.conj(d)

class CompiledTerm:
    """
    A group of elements of the Hamiltonian which always hold the same value,
    and the function which calculates that value.

    Calling the term at a time `t` returns the pair `(value, conj_value)`.
    `value` belongs at every element of `indices` (and its complex conjugate at
    the transposed elements).  `sign * conj_value` belongs at every element of
    `conj_indices`, which is empty if a rotating-wave approximation is used.

    Members:
    indices: np.array of int, shape (k, 2) --
        The `(row, col)` elements of the group, sorted by column.
    conj_indices: np.array of int, shape (k, 2) or (0, 2) --
        The elements of the mirrored displacement-operator element `(j, i)`,
        in the same order as `indices`.
    sign: {-1, 1} -- The parity of the mirrored element.
    mode_indices: int * int --
        The Fock-space element `(i, j)` of the vibrational mode in this term.
    contributions: list of callable --
        Each laser addressing these elements adds one contribution, and the
        value of the term is their sum.
    """

    def __init__(self, indices, conj_indices=_NO_INDICES, sign=1,
                 mode_indices=(0, 0)):
        self.indices = indices
        self.conj_indices = conj_indices
        self.sign = sign
        self.mode_indices = mode_indices
        self.contributions = []

    def __repr__(self):
        return "\n".join([
            f"{self.__class__.__name__} at {self.key}",
            f"  elements      = {len(self.indices)}",
            f"  mirrored      = {len(self.conj_indices)}",
            f"  mode indices  = {self.mode_indices}",
            f"  contributions = {len(self.contributions)}",
        ])

    @property
    def key(self):
        """The first `(row, col)` element, which identifies the group."""
        return tuple(int(x) for x in self.indices[0])

    def add(self, contribution):
        self.contributions.append(contribution)

    def __call__(self, t):
        value, conj_value = 0j, 0j
        for contribution in self.contributions:
            a, b = contribution(t)
            value += a
            conj_value += b
        return value, conj_value

Fluctuations = namedtuple("Fluctuations", [
    "field_groups", "field_scales", "field_function",
    "mode_groups", "mode_functions", "reset",
])
Fluctuations.__doc__ = """\
The diagonal terms of the Hamiltonian caused by noise.

Members:
field_groups: list of np.array of int --
    For each level, the diagonal positions where its ion occupies it.
field_scales: list of float -- The Zeeman shift of each level in unit field.
field_function: float -> float --
    2 pi delta_B(t) timescale, the global field noise in angular units.
mode_groups: list of list of np.array of int --
    For each noisy mode, the diagonal positions of each Fock state |n>, n > 0.
mode_functions: list of float -> float --
    2 pi dnu(t) timescale, the frequency noise of each noisy mode.
reset: np.array of int --
    Every diagonal position touched by noise, which must be zeroed before the
    contributions are added."""

def _check_controls(timescale, lamb_dicke_order, rwa_cutoff):
    if timescale <= 0:
        raise ValueError("The timescale must be positive.")
    if int(lamb_dicke_order) != lamb_dicke_order or lamb_dicke_order < 0:
        raise ValueError("The Lamb-Dicke order must be a non-negative integer.")
    if rwa_cutoff < 0:
        raise ValueError("The RWA cutoff must be non-negative.")

def _mode_pattern(dim, coupled, detuning, nu, timescale, lamb_dicke_order,
                  rwa_cutoff):
    """The elements (i, j) of the displacement operator of one mode which are
    kept, as a boolean mask."""
    if not coupled:
        return np.eye(dim, dtype=bool)
    i, j = np.indices((dim, dim))
    keep = np.abs(j - i) <= lamb_dicke_order
    if np.isfinite(rwa_cutoff):
        keep &= np.abs(detuning / (2 * np.pi) + (j - i) * nu * timescale)\
                < rwa_cutoff * timescale
    return keep

def compile_terms(trap, timescale=1e-6, lamb_dicke_order=1, rwa_cutoff=np.inf,
                  probe_times=None):
    """
    compile_terms(trap, timescale=1e-6, lamb_dicke_order=1, rwa_cutoff=inf)
    -> list of CompiledTerm

    Find every group of elements of the Hamiltonian of `trap` which is driven by
    a laser, and the function which gives its value.

    Arguments:
    trap: Trap -- The ions, modes and lasers.
    timescale (kw): float in s > 0 -- The unit of the dimensionless time.
    lamb_dicke_order (kw): int >= 0 --
        Only keep terms which change the phonon number of a mode by up to this
        amount.
    rwa_cutoff (kw): float in Hz >= 0 --
        Drop terms which oscillate faster than this.  Use `np.inf` (the
        default), not a large number, to disable the rotating-wave
        approximation; this also halves the number of terms evaluated.
    probe_times (kw): array_like of float --
        The dimensionless times at which couplings are tested to skip those
        that are zero.  Defaults to `coefficients.DEFAULT_PROBE_TIMES`.

    Returns:
    list of CompiledTerm --
        One term per group, in the order they were found.  Two lasers driving
        the same elements give one term with two contributions.
    """
    _check_controls(timescale, lamb_dicke_order, rwa_cutoff)
    rwa = np.isfinite(rwa_cutoff)
    detunings = _coefficients.detunings(trap, timescale)
    rabis = _coefficients.rabi_frequencies(trap, timescale)
    lamb_dickes = _coefficients.lamb_dicke_parameters(trap)
    ions, modes, dims = trap.ions, trap.modes, trap.dims
    terms = {}
    for n, ion in enumerate(ions):
        for m in range(len(trap.lasers)):
            for k, (lower, upper) in enumerate(ion.transitions):
                rabi = rabis[n][m][k]
                if _coefficients.is_zero(rabi, probe_times):
                    # e.g. the laser doesn't shine on this ion.
                    _log.debug("skipping ion %d, laser %d, transition %s.",
                               n, m, (lower, upper))
                    continue
                detuning = detunings[n][m][k]
                ion_element = (ion.index(upper), ion.index(lower))
                for l, mode in enumerate(modes):
                    lamb_dicke = lamb_dickes[n][m][l]
                    coupled = not _coefficients.is_zero(lamb_dicke, probe_times)
                    keep = _mode_pattern(mode.shape, coupled, detuning, mode.nu,
                                         timescale, lamb_dicke_order,
                                         rwa_cutoff)
                    subsystem = len(ions) + l
                    for i, j in zip(*np.nonzero(keep)):
                        i, j = int(i), int(j)
                        if i < j and not rwa:
                            continue
                        group = embedded_indices(dims, {n: ion_element,
                                                        subsystem: (i, j)})
                        conj_group, sign = _NO_INDICES, 1
                        if i != j and not rwa:
                            conj_group = embedded_indices(
                                dims, {n: ion_element, subsystem: (j, i)})
                            sign = -1 if (i - j) % 2 else 1
                        key = tuple(int(x) for x in group[0])
                        if key not in terms:
                            terms[key] = CompiledTerm(group, conj_group, sign,
                                                      (i, j))
                        terms[key].add(_Contribution(rabi, detuning, lamb_dicke,
                                                     mode.nu, timescale, i, j))
    return list(terms.values())

def _angular(function, timescale):
    return lambda t: 2 * np.pi * function(t) * timescale

def compile_fluctuations(trap, timescale=1e-6, probe_times=None):
    """
    compile_fluctuations(trap, timescale=1e-6) -> Fluctuations

    Find the diagonal terms of the Hamiltonian of `trap` caused by fluctuations
    of the global magnetic field and of the frequencies of the modes.  Sources
    which are zero at all `probe_times` are skipped.

    The field noise gets one group per distinct level name across the trap, on
    the diagonal of the first ion which has that level.
    """
    ions, modes, dims = trap.ions, trap.modes, trap.dims
    field_groups, field_scales = [], []
    if not _coefficients.is_zero(trap.delta_B, probe_times):
        # a level shared by several ions is only compiled for the first of them.
        seen = []
        for n, ion in enumerate(ions):
            for transition in ion.transitions:
                for name in transition:
                    if name in seen:
                        continue
                    seen.append(name)
                    field_groups.append(diagonal_indices(dims,
                                                         {n: ion.index(name)}))
                    field_scales.append(zeeman_shift(1.0, ion.level(name)))
    mode_groups, mode_functions = [], []
    for l, mode in enumerate(modes):
        if _coefficients.is_zero(mode.dnu, probe_times):
            continue
        mode_functions.append(_angular(mode.dnu, timescale))
        mode_groups.append([diagonal_indices(dims, {len(ions) + l: p})
                            for p in range(1, mode.shape)])
    touched = field_groups + [g for groups in mode_groups for g in groups]
    reset = np.unique(np.concatenate(touched)) if touched\
            else np.empty(0, dtype=np.intp)
    return Fluctuations(field_groups, field_scales,
                        _angular(trap.delta_B, timescale),
                        mode_groups, mode_functions, reset)

class Hamiltonian:
    """
    The interaction Hamiltonian of a trap as a function of time.

    Call as `H(t)` or `H(t, psi)` (the state is accepted for the convenience of
    integrators, and ignored) to get the Hamiltonian at the dimensionless time
    `t`.  The returned `scipy.sparse.csr_matrix` is the same object on every
    call and is overwritten in place, so copy it if it needs to be kept.  The
    evaluator is not safe to call from several threads at once; build one per
    thread instead.

    Members:
    dims: list of int -- The dimensions of the subsystems.
    terms: list of CompiledTerm -- The laser-driven terms.
    fluctuations: Fluctuations -- The noise-driven diagonal terms.
    matrix: scipy.sparse.csr_matrix --
        The matrix that is updated, whose sparsity structure is fixed.
    """

    def __init__(self, dims, terms, fluctuations):
        self.dims = list(dims)
        self.terms = terms
        self.fluctuations = fluctuations
        size = int(np.prod(self.dims))
        groups = [fluctuations.reset[:, None].repeat(2, axis=1)]
        for term in terms:
            groups += [term.indices, term.indices[:, ::-1],
                       term.conj_indices, term.conj_indices[:, ::-1]]
        elements = np.concatenate(groups).astype(np.int64)
        keys = np.unique(elements[:, 0] * size + elements[:, 1])
        rows, cols = np.divmod(keys, size)
        indptr = np.searchsorted(rows, np.arange(size + 1))
        self.matrix = scipy.sparse.csr_matrix(
            (np.zeros(len(keys), dtype=np.complex128), cols, indptr),
            shape=(size, size))

        def positions(indices):
            indices = indices.astype(np.int64)
            return np.searchsorted(keys, indices[:, 0] * size + indices[:, 1])

        self.__term_positions = [
            (positions(term.indices), positions(term.indices[:, ::-1]),
             positions(term.conj_indices), positions(term.conj_indices[:, ::-1]))
            for term in terms
        ]
        diagonal = lambda group: positions(group[:, None].repeat(2, axis=1))
        self.__reset = diagonal(fluctuations.reset)
        self.__field_positions = [diagonal(g) for g in fluctuations.field_groups]
        self.__mode_positions = [[diagonal(g) for g in groups]
                                 for groups in fluctuations.mode_groups]

    def __repr__(self):
        return "\n".join([
            f"{self.__class__.__name__} on dims {self.dims}",
            f"  terms        = {len(self.terms)}",
            f"  stored       = {self.matrix.nnz}",
            f"  noisy levels = {len(self.fluctuations.field_groups)}",
            f"  noisy modes  = {len(self.fluctuations.mode_groups)}",
        ])

    def __call__(self, t, psi=None):
        data = self.matrix.data
        for term, (pos, pos_t, cpos, cpos_t) in zip(self.terms,
                                                    self.__term_positions):
            value, conj_value = term(t)
            data[pos] = value
            data[pos_t] = np.conj(value)
            if len(cpos):
                conj_value = term.sign * conj_value
                data[cpos] = conj_value
                data[cpos_t] = np.conj(conj_value)
        if len(self.__reset):
            data[self.__reset] = 0.0
            if self.__field_positions:
                field = self.fluctuations.field_function(t)
                for pos, scale in zip(self.__field_positions,
                                      self.fluctuations.field_scales):
                    data[pos] += field * scale
            for function, groups in zip(self.fluctuations.mode_functions,
                                        self.__mode_positions):
                dnu = function(t)
                for n, pos in enumerate(groups, start=1):
                    data[pos] += n * dnu
        return self.matrix

    def qobj(self, t) -> qutip.Qobj:
        """qobj(t : float) -> qutip.Qobj

        A copy of the Hamiltonian at time `t` as an operator on the composite
        space, which is safe to keep."""
        return qutip.Qobj(self(t).copy(), dims=[self.dims, self.dims])

def hamiltonian(trap, timescale=1e-6, lamb_dicke_order=1, rwa_cutoff=np.inf,
                probe_times=None):
    """
    hamiltonian(trap, timescale=1e-6, lamb_dicke_order=1, rwa_cutoff=inf)
    -> Hamiltonian

    Build the evaluator of the interaction Hamiltonian of `trap`.

    Arguments:
    trap: Trap -- The ions, modes, lasers and fields.
    timescale (kw): float in s > 0 --
        The unit of time of the evaluator, e.g. 1e-6 for us.
    lamb_dicke_order (kw): int >= 0 --
        Only keep terms which change the phonon number by up to this value.
        This is not quite the Lamb--Dicke approximation, since an order of 1
        still keeps, for example, terms proportional to a^dag a.
    rwa_cutoff (kw): float in Hz >= 0 --
        Drop terms which oscillate faster than this.  Use `np.inf` rather than
        a large number to disable the approximation.
    probe_times (kw): array_like of float --
        The dimensionless times used to detect couplings and noise sources
        which are identically zero.

    Returns:
    Hamiltonian -- Call it with a time to get the sparse Hamiltonian.
    """
    terms = compile_terms(trap, timescale, lamb_dicke_order, rwa_cutoff,
                          probe_times)
    fluctuations = compile_fluctuations(trap, timescale, probe_times)
    _log.debug("compiled %d terms, %d noisy levels and %d noisy modes on dims"
               " %s.", len(terms), len(fluctuations.field_groups),
               len(fluctuations.mode_groups), trap.dims)
    return Hamiltonian(trap.dims, terms, fluctuations)
