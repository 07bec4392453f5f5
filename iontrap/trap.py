"""
Provides the `Trap` class, which collects everything needed to build the
Hamiltonian: the ion configuration, the lasers and the magnetic field.  The
composite Hilbert space of a trap is the tensor product of the subspaces of its
ions (in chain order) followed by those of its kept vibrational modes.
"""

__all__ = ["Trap"]

import numpy as np

class Trap:
    """
    Members:
    configuration: LinearChain -- The ions and their vibrational modes.
    lasers: list of Laser -- The lasers addressing the ions.
    B: float in T -- Magnitude of the static magnetic field at the origin.
    Bhat: np.array of float -- Unit vector along the magnetic field.
    grad_B: float in T/m -- Gradient of the field along the chain axis.
    delta_B: float -> float in T --
        Global fluctuation of the field, as a function of the dimensionless
        time used by the Hamiltonian.
    """

    def __init__(self, configuration, lasers, B=0.0, Bhat=(0, 0, 1),
                 grad_B=0.0, delta_B=None):
        self.configuration = configuration
        self.lasers = list(lasers)
        self.B = B
        Bhat = np.asarray(Bhat, dtype=np.float64)
        self.Bhat = Bhat / np.linalg.norm(Bhat)
        self.grad_B = grad_B
        self.delta_B = (lambda t: 0.0) if delta_B is None else delta_B

    def __repr__(self):
        return (f"{self.__class__.__name__}({self.configuration!r},"
                f" {len(self.lasers)} lasers)")

    @property
    def ions(self):
        return self.configuration.ions

    @property
    def modes(self):
        return self.configuration.modes()

    @property
    def dims(self):
        """The dimension of each subsystem of the composite space."""
        return [ion.shape for ion in self.ions]\
               + [mode.shape for mode in self.modes]

    @property
    def shape(self):
        return int(np.prod(self.dims))

    def field(self, position: float) -> float:
        """field(position : float in m) -> float in T

        The static magnetic field at `position` along the chain axis."""
        return self.B + self.grad_B * position
