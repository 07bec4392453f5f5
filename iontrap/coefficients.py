"""
Builders for the time-dependent coefficients of the interaction Hamiltonian of
a trap.  For every combination of ion, laser and transition there is a static
detuning `detunings()[n][m][k]` and a complex Rabi frequency
`rabi_frequencies()[n][m][k](t)`, and for every combination of ion, laser and
vibrational mode there is a Lamb--Dicke parameter
`lamb_dicke_parameters()[n][m][l](t)`.

Everything returned here is in angular units of the dimensionless time
`t = time / timescale`, so that a `timescale` of 1e-6 measures time in us.

The detunings are kept separate from the Rabi frequencies so that the
rotating-wave approximation can be applied on them directly.
"""

__all__ = ["DEFAULT_PROBE_TIMES", "is_zero", "get_lamb_dicke_parameter",
           "detunings", "rabi_frequencies", "lamb_dicke_parameters"]

import numpy as np
from scipy import constants

# 0, 0.01, ..., 100 in units of the timescale.
DEFAULT_PROBE_TIMES = np.linspace(0.0, 100.0, 10001)

def is_zero(function, times=None) -> bool:
    """is_zero(function : float -> number, times : array_like) -> bool

    Whether `function` vanishes at every one of `times`.  This is used to skip
    couplings which are identically zero, like a laser which does not shine on
    an ion.  A function which is non-zero only between the probe times will be
    treated as zero."""
    times = DEFAULT_PROBE_TIMES if times is None else times
    return not any(function(t) != 0 for t in times)

def _cos_angle(a, b):
    cos = np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b))
    return np.clip(cos, -1.0, 1.0)

def get_lamb_dicke_parameter(mode, laser, ion, scaled=False) -> float:
    """get_lamb_dicke_parameter(mode, laser, ion, scaled=False) -> float

    The Lamb--Dicke parameter
        |k| cos(theta) sqrt(hbar / (2 m 2 pi nu)) b
    of `ion` coupled to `mode` by `laser`, where `theta` is the angle between
    the laser wavevector and the mode axis, and `b` is the participation of the
    ion in the mode.

    If `scaled` is True, the parameter is calculated for a mode frequency of
    1 Hz, so that dividing by sqrt(nu) gives the parameter at frequency `nu`."""
    k = 2 * np.pi / laser.wavelength
    nu = 1.0 if scaled else mode.nu
    x0 = np.sqrt(constants.hbar / (2 * ion.mass * 2 * np.pi * nu))
    return k * x0 * _cos_angle(laser.k, mode.axis)\
           * mode.mode_structure[ion.number]

def detunings(trap, timescale):
    """detunings(trap, timescale) -> list of list of list of float

    For each ion `n`, laser `m` and transition `k` of the ion (in the order of
    `ion.transitions`), the angular detuning of the laser from the transition,
    including the Zeeman shift at the position of the ion and the Stark shift.
    """
    out = []
    for ion in trap.ions:
        B = trap.field(ion.position)
        splittings = [ion.transition_frequency(lower, upper, B)
                      for lower, upper in ion.transitions]
        out.append([[2 * np.pi * timescale
                     * (laser.frequency + laser.detuning - splitting)
                     for splitting in splittings]
                    for laser in trap.lasers])
    return out

def _rabi(omega0, E, phase, timescale):
    return lambda t: omega0 * E(t) * np.exp(-2j * np.pi * phase(t * timescale))

def rabi_frequencies(trap, timescale):
    """rabi_frequencies(trap, timescale) -> list of list of list of callable

    For each ion `n`, laser `m` and transition `k`, the complex Rabi frequency
        Omega(t) = Omega_0 E(t) exp(-2 pi i phase(t timescale)),
    with Omega_0 the half-Rabi frequency of the transition in unit field, times
    the pointing of the laser on the ion."""
    out = []
    for ion in trap.ions:
        row = []
        for laser in trap.lasers:
            gamma = np.degrees(np.arccos(_cos_angle(trap.Bhat,
                                                    laser.polarization)))
            phi = np.degrees(np.arccos(_cos_angle(trap.Bhat, laser.k)))
            s = laser.scale(ion.number)
            row.append([
                _rabi(2 * np.pi * timescale * s
                      * coupling(1.0, gamma, phi) / 2.0,
                      laser.E, laser.phase, timescale)
                for coupling in ion.transitions.values()
            ])
        out.append(row)
    return out

def _eta(eta, nu, dnu):
    return lambda t: eta / np.sqrt(nu + dnu(t))

def lamb_dicke_parameters(trap):
    """lamb_dicke_parameters(trap) -> list of list of list of callable

    For each ion `n`, laser `m` and kept mode `l`, the Lamb--Dicke parameter as
    a function of time, including the fluctuation of the mode frequency."""
    modes = trap.modes
    return [[[_eta(get_lamb_dicke_parameter(mode, laser, ion, scaled=True),
                   mode.nu, mode.dnu)
              for mode in modes]
             for laser in trap.lasers]
            for ion in trap.ions]
