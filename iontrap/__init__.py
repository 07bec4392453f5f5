"""
Tools for building the time-dependent interaction Hamiltonian of ions in a
trap, coupled to lasers and to the collective vibrational modes of the chain.
The Hamiltonian is returned as a fast evaluator: a function of time which
updates and returns a `scipy.sparse` matrix over the composite space of all the
ions' electronic levels and all the kept modes' Fock states, ready to be handed
to an external integrator (for example via `Hamiltonian.qobj()` for `qutip`).

A simulation is described by `Ion`s, gathered into a `LinearChain` which
finds their equilibrium positions and normal modes, the `Laser`s addressing
them, and a `Trap` holding all of these and the magnetic field.  The
`hamiltonian()` function then compiles the evaluator.

The `chain` module contains the equilibrium and normal-mode solvers, the
`coefficients` module the Rabi frequencies, detunings and Lamb--Dicke
parameters, the `displacement` module the Fock-basis elements of the
displacement operator, and the `indices` module the index arithmetic of the
composite space.
"""

from .ion import Level, Ion, zeeman_shift
from .laser import Laser
from .mode import VibrationalMode
from .chain import (StabilityError, ConvergenceError, COMFrequencies,
                    NormalMode, LinearChain, equilibrium_positions,
                    normal_modes)
from .trap import Trap
from .coefficients import get_lamb_dicke_parameter
from .hamiltonian import CompiledTerm, Hamiltonian, hamiltonian
from . import chain, coefficients, displacement, indices

__all__ = ["Level", "Ion", "zeeman_shift", "Laser", "VibrationalMode",
           "StabilityError", "ConvergenceError", "COMFrequencies", "NormalMode",
           "LinearChain", "equilibrium_positions", "normal_modes", "Trap",
           "get_lamb_dicke_parameter", "CompiledTerm", "Hamiltonian",
           "hamiltonian", "chain", "coefficients", "displacement", "indices"]
