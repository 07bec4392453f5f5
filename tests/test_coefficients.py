import numpy as np
import pytest
from scipy import constants

from iontrap import Laser, get_lamb_dicke_parameter, zeeman_shift
from iontrap.coefficients import (detunings, is_zero, lamb_dicke_parameters,
                                  rabi_frequencies)

from conftest import MASS, WAVELENGTH, make_laser

def test_lamb_dicke_parameter_of_single_ion(make_trap):
    trap = make_trap()
    mode, laser, ion = trap.modes[0], trap.lasers[0], trap.ions[0]
    k = 2 * np.pi / WAVELENGTH
    expected = k * np.sqrt(constants.hbar / (2 * MASS * 2 * np.pi * mode.nu))
    # the sign of a single-ion mode vector is arbitrary.
    assert abs(get_lamb_dicke_parameter(mode, laser, ion))\
           == pytest.approx(expected)
    scaled = abs(get_lamb_dicke_parameter(mode, laser, ion, scaled=True))
    assert scaled / np.sqrt(mode.nu) == pytest.approx(expected)

def test_lamb_dicke_parameter_depends_on_geometry(make_trap):
    trap = make_trap(n_ions=2)
    mode, ion = trap.modes[0], trap.ions[1]
    across = Laser(WAVELENGTH, k=(1, 0, 0))
    assert get_lamb_dicke_parameter(mode, across, ion) == pytest.approx(0.0)
    tilted = Laser(WAVELENGTH, k=(1, 0, 1))
    straight = get_lamb_dicke_parameter(mode, trap.lasers[0], ion)
    assert get_lamb_dicke_parameter(mode, tilted, ion)\
           == pytest.approx(straight / np.sqrt(2))

def test_lamb_dicke_functions_follow_frequency_noise(make_trap):
    trap = make_trap()
    mode = trap.modes[0]
    mode.dnu = lambda t: 1e3 * t
    eta = lamb_dicke_parameters(trap)[0][0][0]
    scaled = get_lamb_dicke_parameter(mode, trap.lasers[0], trap.ions[0],
                                      scaled=True)
    assert eta(0.0) == pytest.approx(scaled / np.sqrt(mode.nu))
    assert eta(2.0) == pytest.approx(scaled / np.sqrt(mode.nu + 2e3))

def test_detuning_from_laser_offset(make_trap):
    timescale = 1e-6
    trap = make_trap(lasers=[make_laser(2e5), make_laser(-1e5)])
    blue, red = detunings(trap, timescale)[0]
    assert blue[0] == pytest.approx(2 * np.pi * timescale * 2e5, abs=1e-5)
    assert red[0] == pytest.approx(2 * np.pi * timescale * -1e5, abs=1e-5)

def test_detuning_includes_zeeman_shift(make_trap):
    timescale = 1e-6
    trap = make_trap(B=4e-4)
    ion = trap.ions[0]
    shift = zeeman_shift(4e-4, ion.level("D")) - zeeman_shift(4e-4, ion.level("S"))
    assert detunings(trap, timescale)[0][0][0]\
           == pytest.approx(-2 * np.pi * timescale * shift, abs=1e-5)

def test_rabi_frequency(make_trap):
    timescale = 1e-6
    laser = make_laser(E=lambda t: 2.0, phase=0.25)
    trap = make_trap(n_ions=2, lasers=[laser])
    lit, dark = (row[0][0] for row in rabi_frequencies(trap, timescale))
    omega0 = 2 * np.pi * timescale * 1e5 / 2
    assert lit(0.3) == pytest.approx(2.0 * omega0 * np.exp(-0.5j * np.pi))
    assert dark(0.3) == 0
    assert is_zero(dark)
    assert not is_zero(lit)

def test_is_zero_only_sees_probe_times(probe_times):
    blip = lambda t: 1.0 if t == 0.05 else 0.0
    assert is_zero(blip, probe_times)
    assert not is_zero(blip, [0.0, 0.05])
