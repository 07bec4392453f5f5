"""Provides the Laser class to store the settings of a laser addressing ions in
a trap: its frequency, amplitude and phase profiles, geometry, and which ions
it illuminates."""

__all__ = ["Laser"]

import numbers

import numpy as np
from scipy import constants

def _as_function(value, name):
    if callable(value):
        return value
    if isinstance(value, numbers.Number):
        return lambda t: value
    raise TypeError(f"'{name}' must be a number or a function of time.")

def _unit(vector, name):
    vector = np.asarray(vector, dtype=np.float64)
    norm = np.linalg.norm(vector)
    if vector.shape != (3,) or norm == 0:
        raise ValueError(f"'{name}' must be a non-zero 3-vector.")
    return vector / norm

class Laser:
    """Stores information about a laser used in an experiment.

    Members:
    wavelength: float in m -- The wavelength of the laser.
    detuning: float in Hz -- An additional offset of the laser frequency.
    E: float -> float --
        The field amplitude envelope as a function of the dimensionless time
        used by the Hamiltonian.
    phase: float -> float --
        The phase of the laser in cycles, as a function of time in seconds.
    polarization: np.array of float -- Unit polarization vector.
    k: np.array of float -- Unit vector along the direction of propagation.
    pointing: dict of int * float --
        The relative intensity with which the laser illuminates each ion,
        keyed by the number of the ion in the chain.  Missing ions are dark.
    """
    def __init__(self, wavelength, detuning=0.0, E=1.0, phase=0.0,
                 polarization=(1, 0, 0), k=(0, 0, 1), pointing=()):
        """Arguments:
        wavelength: float in m > 0 -- The wavelength of the laser.
        detuning (kw): float in Hz --
            Offset of the laser from the frequency given by the wavelength.
        E (kw): float | callable -- The field amplitude (envelope).
        phase (kw): float | callable -- The phase of the laser in cycles.
        polarization (kw): 3-vector -- The polarization direction.
        k (kw): 3-vector -- The wavevector direction.
        pointing (kw): iterable of (int * float) | dict of int * float --
            Pairs of the number of an ion and the scale of the field on it."""
        if wavelength <= 0:
            raise ValueError("The wavelength must be positive.")
        self.wavelength = wavelength
        self.detuning = detuning
        self.E = _as_function(E, "E")
        self.phase = _as_function(phase, "phase")
        self.polarization = _unit(polarization, "polarization")
        self.k = _unit(k, "k")
        self.pointing = dict(pointing)

    def __repr__(self):
        return "\n".join([
            f"{self.__class__.__name__}",
            f"  wavelength = {self.wavelength}",
            f"  detuning   = {self.detuning}",
            f"  pointing   = {self.pointing}",
        ])

    @property
    def frequency(self):
        """The frequency of the laser in Hz, excluding `detuning`."""
        return constants.c / self.wavelength

    def scale(self, ion_number):
        """scale(ion_number : int) -> float

        The relative field strength of the laser on the ion `ion_number`."""
        return self.pointing.get(ion_number, 0.0)
