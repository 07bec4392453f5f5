"""
Provides the `Ion` class which stores the electronic structure of a single
trapped ion: the levels that are kept in the simulation, the laser-driven
transitions between them and their static shifts.  The levels are also the
local basis of the ion's subspace, in the order they were given.
"""

__all__ = ["Level", "Ion", "zeeman_shift"]

import numbers
from collections import namedtuple

import numpy as np
import qutip
from scipy import constants

_MU_B = constants.physical_constants["Bohr magneton"][0]

Level = namedtuple("Level", ["name", "energy", "g", "m"], defaults=[0.0, 0.0])
Level.__doc__ = """\
Level(name: str, energy: float in Hz, g: float = 0, m: float = 0)

An electronic level with its energy, Landé g-factor and magnetic quantum
number.  The last two set the size of the linear Zeeman shift."""

def zeeman_shift(B: float, level: Level) -> float:
    """zeeman_shift(B : float in T, level : Level) -> float in Hz

    The linear Zeeman shift of `level` in a magnetic field of magnitude `B`."""
    return level.g * level.m * _MU_B * B / constants.h

def _as_coupling(coupling):
    if callable(coupling):
        return coupling
    if isinstance(coupling, numbers.Real):
        return lambda field, gamma, phi: coupling * field
    raise TypeError(f"Can't use {coupling!r} as a transition coupling.")

class Ion:
    """
    A single ion with a truncated electronic structure.

    Members:
    mass: float in kg -- The mass of the ion.
    levels: tuple of Level -- The levels kept, in basis order.
    transitions: dict of (str * str) * callable --
        Maps `(lower, upper)` level names to the coupling function
        `coupling(field, gamma, phi) -> float in Hz`, where `gamma` and `phi`
        are the angles (in degrees) of the laser polarization and wavevector to
        the magnetic field.
    stark_shift: dict of str * float in Hz -- Static shift of each level.
    number: int -- Position of the ion in its chain, set by the chain.
    position: float in m -- Equilibrium position, set by the chain.
    """

    def __init__(self, mass, levels, transitions, stark_shift=None):
        """
        Arguments:
        mass: float in kg -- The mass of the ion.
        levels: iterable of Level -- The levels to keep, in basis order.
        transitions: dict of (str * str) * (float | callable) --
            The laser-driven transitions.  A number is taken to be the Rabi
            frequency in Hz per unit field, independent of the geometry.
        stark_shift (optional): dict of str * float in Hz --
            The static Stark shift of each level.  Missing levels are unshifted.
        """
        self.mass = mass
        self.levels = tuple(levels)
        names = [level.name for level in self.levels]
        if len(set(names)) != len(names):
            raise ValueError(f"Level names must be unique, but got {names}.")
        self.__index = {name: i for i, name in enumerate(names)}
        self.transitions = {}
        for (lower, upper), coupling in dict(transitions).items():
            if lower == upper:
                raise ValueError(f"Transition ({lower}, {upper}) must join two"
                                 f" different levels.")
            for name in (lower, upper):
                if name not in self.__index:
                    raise ValueError(f"Transition ({lower}, {upper}) refers to"
                                     f" unknown level '{name}'.")
            self.transitions[(lower, upper)] = _as_coupling(coupling)
        self.stark_shift = {name: 0.0 for name in names}
        if stark_shift is not None:
            for name, shift in stark_shift.items():
                self.level(name)
                self.stark_shift[name] = shift
        self.number = None
        self.position = 0.0

    def __repr__(self):
        names = [level.name for level in self.levels]
        return f"{self.__class__.__name__}(levels={names}, number={self.number})"

    @property
    def shape(self):
        return len(self.levels)

    def level(self, name: str) -> Level:
        return self.levels[self.index(name)]

    def index(self, name: str) -> int:
        """index(name : str) -> int

        The position of the level `name` in the local basis."""
        try:
            return self.__index[name]
        except KeyError:
            raise KeyError(f"'{name}' is not a level of this ion.") from None

    def sigma(self, a: str, b: str) -> qutip.Qobj:
        """sigma(a : str, b : str) -> qutip.Qobj

        The operator |a><b| on the subspace of this ion."""
        return qutip.basis(self.shape, self.index(a))\
               * qutip.basis(self.shape, self.index(b)).dag()

    def transition_frequency(self, lower: str, upper: str, B: float) -> float:
        """transition_frequency(lower, upper, B : float in T) -> float in Hz

        The frequency of the transition between two levels at the field `B`,
        including the Zeeman and static Stark shifts."""
        l1, l2 = self.level(lower), self.level(upper)
        out = np.abs(l1.energy + zeeman_shift(B, l1)
                     - (l2.energy + zeeman_shift(B, l2)))
        return out + self.stark_shift[lower] - self.stark_shift[upper]
