"""
Equilibrium positions and normal modes of a linear Coulomb crystal of
identical ions in a harmonic trap, and the `LinearChain` configuration which
uses them to place ions and to build the vibrational modes kept in a
simulation.

Positions are in units of the characteristic length scale (see
`characteristic_length_scale()`).  The z axis is the axis of the chain.

Reference: D. F. V. James, Appl. Phys. B 66, 181 (1998).
"""

__all__ = ["StabilityError", "ConvergenceError", "COMFrequencies",
           "NormalMode", "equilibrium_positions", "characteristic_length_scale",
           "normal_modes", "LinearChain"]

import copy
import functools
import logging
import warnings
from collections import namedtuple

import numpy as np
from scipy import constants

from .mode import VibrationalMode

_log = logging.getLogger(__name__)

AXES = {"x": np.array([1.0, 0.0, 0.0]),
        "y": np.array([0.0, 1.0, 0.0]),
        "z": np.array([0.0, 0.0, 1.0])}

# eigenvector components smaller than this are numerical noise.
_SPARSIFY = 1e-5

class StabilityError(ValueError):
    """The trap frequencies put the crystal outside its stability region."""

class ConvergenceError(RuntimeError):
    """The equilibrium positions of the crystal could not be found."""

COMFrequencies = namedtuple("COMFrequencies", ["x", "y", "z"])
NormalMode = namedtuple("NormalMode", ["frequency", "eigenvector"])

def _inverse_powers(x, power):
    """|x_i - x_j|^-power with zeros on the diagonal."""
    diff = np.abs(x[:, None] - x[None, :])
    np.fill_diagonal(diff, 1.0)
    out = diff ** -power
    np.fill_diagonal(out, 0.0)
    return out

def _force(x):
    diff = x[:, None] - x[None, :]
    np.fill_diagonal(diff, np.inf)
    # sign(x_i - x_j) / (x_i - x_j)^2 covers both of the sums.
    return x - np.sum(np.sign(diff) / diff**2, axis=1)

def _jacobian(x):
    cubes = _inverse_powers(x, 3)
    out = -2.0 * cubes
    out[np.diag_indices_from(out)] = 1.0 + 2.0 * cubes.sum(axis=1)
    return out

def _initial_guess(n):
    spacing = 2.018 / n**0.559
    steps = [i for i in range(-(n // 2), n // 2 + 1) if n % 2 or i != 0]
    return spacing * np.array(steps, dtype=np.float64)

@functools.lru_cache(maxsize=None)
def _solve_equilibrium(n, tol, max_iterations):
    x = _initial_guess(n)
    for iteration in range(max_iterations):
        force = _force(x)
        if np.max(np.abs(force)) < tol:
            # large even chains can converge with the middle pair swapped, and
            # any permutation of a root is also a root.
            x = np.sort(x)
            _log.debug("equilibrium of %d ions found in %d Newton steps.",
                       n, iteration)
            x.flags.writeable = False
            return x
        try:
            x = x - np.linalg.solve(_jacobian(x), force)
        except np.linalg.LinAlgError as exc:
            raise ConvergenceError(f"Singular Jacobian while finding the"
                                   f" equilibrium of {n} ions.") from exc
        if not np.all(np.isfinite(x)):
            raise ConvergenceError(f"Newton iteration for the equilibrium of"
                                   f" {n} ions diverged.")
    raise ConvergenceError(f"Equilibrium of {n} ions not found to tolerance"
                           f" {tol} within {max_iterations} iterations.")

def equilibrium_positions(n: int, tol=1e-12, max_iterations=100) -> np.ndarray:
    """equilibrium_positions(n : int > 0) -> np.array of float

    Get the scaled equilibrium positions of `n` identical ions in a harmonic
    potential, in increasing order.  These are the roots of
        x_i - sum_{j<i} 1/(x_i - x_j)^2 + sum_{j>i} 1/(x_i - x_j)^2,
    found by Newton's method starting from positions evenly spaced by
    2.018 / n^0.559 (eq. 8 of the reference).

    The result is cached per `n` and is read-only.

    Raises:
    ConvergenceError -- if the Newton iteration does not converge."""
    if n < 1:
        raise ValueError("Need at least one ion.")
    return _solve_equilibrium(int(n), tol, max_iterations)

def characteristic_length_scale(mass: float, nu: float) -> float:
    """characteristic_length_scale(mass : float in kg, nu : float in Hz)
    -> float in m

    The length scale of a chain of identical ions of mass `mass` in a trap with
    axial frequency 2 pi nu."""
    return (constants.e**2 / (4 * np.pi * constants.epsilon_0 * mass
                              * (2 * np.pi * nu)**2))**(1/3)

def normal_modes(n: int, com, axis="z"):
    """normal_modes(n : int > 0, com : COMFrequencies, axis : str)
    -> list of NormalMode

    Compute the normal modes of `n` ions along `axis` ("x", "y" or "z").  The
    z axis is the axis of the chain.  The modes are ordered with the centre of
    mass mode first for every axis.

    Arguments:
    n: int > 0 -- The number of ions.
    com: COMFrequencies -- The centre-of-mass frequency (Hz) of each axis.
    axis: str -- The axis to compute the modes of.

    Returns:
    list of NormalMode --
        The frequency (Hz) of each mode and its eigenvector, with components
        smaller than 1e-5 set to zero.

    Raises:
    StabilityError --
        if any mode would have a non-positive squared frequency, meaning that
        the linear crystal is not stable for these trap frequencies."""
    if axis not in AXES:
        raise ValueError(f"Unknown axis {axis!r}; use 'x', 'y' or 'z'.")
    com = COMFrequencies(*com)
    a = 2.0 if axis == "z" else -1.0
    beta = getattr(com, axis) / com.z
    cubes = _inverse_powers(equilibrium_positions(n), 3)
    A = -a * cubes
    A[np.diag_indices_from(A)] = beta**2 + a * cubes.sum(axis=1)
    values, vectors = np.linalg.eigh(A)
    if np.any(values <= 0):
        raise StabilityError(
            f"({axis}={getattr(com, axis)}, z={com.z}) is outside the stability"
            f" region for {n} ions: axis ratio {beta} gives squared mode"
            f" frequencies {values.min()} <= 0.")
    vectors[np.abs(vectors) < _SPARSIFY] = 0.0
    out = [NormalMode(np.sqrt(value) * com.z, vectors[:, i])
           for i, value in enumerate(values)]
    return out if axis == "z" else out[::-1]

class LinearChain:
    """
    A linear Coulomb crystal of ions and the subset of its vibrational modes
    which are kept in the simulation.

    Members:
    ions: list of Ion -- The ions, in order along the chain.
    com_frequencies: COMFrequencies -- Centre-of-mass frequency of each axis.
    full_normal_mode_description: dict of str * list of NormalMode --
        Every normal mode of each axis, ordered from the centre of mass mode.
    vibrational_modes: dict of str * list of VibrationalMode --
        The modes which are kept, for each axis.
    """

    def __init__(self, ions, com_frequencies, selected_modes, N=10):
        """
        Arguments:
        ions: list of Ion -- The ions composing the chain.
        com_frequencies: COMFrequencies | (float * float * float) --
            The centre-of-mass frequencies `(x, y, z)` in Hz.
        selected_modes: dict of str * list of int --
            For each axis, which modes to keep, counted outwards from the
            centre of mass mode.  For example `{"z": [0, 1]}` keeps the axial
            centre of mass and stretch modes.
        N (optional): int >= 0 -- Fock cutoff of every kept mode.
        """
        ions = list(ions)
        if not ions:
            raise ValueError("A chain needs at least one ion.")
        for i in range(len(ions)):
            if any(ions[i] is ion for ion in ions[:i]):
                warnings.warn("Some ions point to the same object; making"
                              " copies.")
                ions[i] = copy.copy(ions[i])
        unknown = set(selected_modes) - set(AXES)
        if unknown:
            raise ValueError(f"Unknown axes {sorted(unknown)}.")
        self.ions = ions
        self.com_frequencies = COMFrequencies(*com_frequencies)
        n = len(ions)
        self.full_normal_mode_description = {
            axis: normal_modes(n, self.com_frequencies, axis) for axis in AXES
        }
        self.vibrational_modes = {axis: [] for axis in AXES}
        for axis in AXES:
            for which in selected_modes.get(axis, ()):
                if not 0 <= which < n:
                    raise ValueError(f"Mode {which} of axis {axis} does not"
                                     f" exist for {n} ions.")
                frequency, vector = self.full_normal_mode_description[axis][which]
                self.vibrational_modes[axis].append(VibrationalMode(
                    frequency, vector, N=N, axis=AXES[axis],
                    label=f"{axis}{which}"))
        positions = equilibrium_positions(n)
        scale = characteristic_length_scale(ions[0].mass, self.com_frequencies.z)
        for i, ion in enumerate(ions):
            ion.number = i
            ion.position = positions[i] * scale

    def __repr__(self):
        return f"{self.__class__.__name__}({len(self.ions)} ions)"

    def modes(self):
        """modes() -> list of VibrationalMode

        All the kept modes, ordered by axis (x, y, z)."""
        return [mode for axis in AXES for mode in self.vibrational_modes[axis]]
