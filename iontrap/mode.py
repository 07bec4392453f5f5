"""
Provides the `VibrationalMode` class, a single collective mode of motion of the
ions in a chain which is kept in the simulation.  The mode is truncated to the
Fock states |0>, ..., |N>.
"""

__all__ = ["VibrationalMode"]

import numpy as np
import qutip

class VibrationalMode:
    """
    A vibrational mode of the ion chain.

    Members:
    nu: float in Hz -- The frequency of the mode.
    mode_structure: np.array of float --
        The normalised participation of each ion in the mode.
    N: int >= 0 -- The highest Fock state kept.
    axis: np.array of float -- Unit vector of the direction of motion.
    dnu: float -> float in Hz --
        Fluctuation of the mode frequency, as a function of the dimensionless
        time used by the Hamiltonian.
    label: str -- Human-readable name.
    """

    def __init__(self, nu, mode_structure, N=10, axis=(0, 0, 1), dnu=None,
                 label=""):
        if N < 0:
            raise ValueError("The Fock cutoff must be non-negative.")
        if nu <= 0:
            raise ValueError("The mode frequency must be positive.")
        self.nu = nu
        self.mode_structure = np.asarray(mode_structure, dtype=np.float64)
        self.N = int(N)
        axis = np.asarray(axis, dtype=np.float64)
        self.axis = axis / np.linalg.norm(axis)
        self.dnu = (lambda t: 0.0) if dnu is None else dnu
        self.label = label

    def __repr__(self):
        return (f"{self.__class__.__name__}(nu={self.nu}, N={self.N},"
                f" label={self.label!r})")

    @property
    def shape(self):
        return self.N + 1

    def number(self) -> qutip.Qobj:
        return qutip.num(self.shape)
