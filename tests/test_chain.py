import numpy as np
import pytest

from iontrap import (COMFrequencies, ConvergenceError, LinearChain,
                     StabilityError, equilibrium_positions, normal_modes)
from iontrap.chain import characteristic_length_scale

from conftest import MASS, make_ion

COM = COMFrequencies(x=5e6, y=4e6, z=1e6)

@pytest.mark.parametrize("n", [*range(1, 9), 76, 80, 81])
def test_equilibrium_positions_symmetric_and_increasing(n):
    x = equilibrium_positions(n)
    assert x.shape == (n,)
    assert np.allclose(x, -x[::-1], rtol=0, atol=1e-10)
    assert np.all(np.diff(x) > 0)

def test_equilibrium_positions_known_values():
    assert np.allclose(equilibrium_positions(1), [0.0])
    assert np.allclose(equilibrium_positions(2), [-0.25**(1/3), 0.25**(1/3)])
    assert np.allclose(equilibrium_positions(3),
                       [-1.25**(1/3), 0.0, 1.25**(1/3)])

def test_equilibrium_positions_are_cached_and_read_only():
    x = equilibrium_positions(4)
    assert equilibrium_positions(4) is x
    with pytest.raises(ValueError):
        x[0] = 0.0

def test_equilibrium_positions_reports_failure():
    with pytest.raises(ConvergenceError):
        equilibrium_positions(3, max_iterations=0)
    with pytest.raises(ValueError):
        equilibrium_positions(0)

def test_axial_modes_of_two_ions():
    modes = normal_modes(2, COM, "z")
    assert np.allclose([mode.frequency for mode in modes],
                       [COM.z, np.sqrt(3) * COM.z])
    assert np.allclose(np.abs(modes[0].eigenvector), [2**-0.5, 2**-0.5])

def test_transverse_modes_start_from_centre_of_mass():
    modes = normal_modes(2, COM, "x")
    beta = COM.x / COM.z
    assert np.allclose([mode.frequency for mode in modes],
                       [COM.x, np.sqrt(beta**2 - 1) * COM.z])
    assert np.allclose(np.abs(modes[0].eigenvector), [2**-0.5, 2**-0.5])

@pytest.mark.parametrize("n", [1, 3, 5])
@pytest.mark.parametrize("axis", ["x", "y", "z"])
def test_stable_modes_are_positive_and_normalised(n, axis):
    modes = normal_modes(n, COM, axis)
    assert len(modes) == n
    for frequency, vector in modes:
        assert frequency > 0
        assert np.isclose(np.linalg.norm(vector), 1.0, atol=1e-8)

def test_small_components_are_zeroed():
    stretch = normal_modes(3, COM, "z")[1].eigenvector
    assert stretch[1] == 0.0

def test_unstable_configuration_raises():
    com = COMFrequencies(x=0.5e6, y=4e6, z=1e6)
    with pytest.raises(StabilityError, match="x=500000.0"):
        normal_modes(2, com, "x")
    assert issubclass(StabilityError, ValueError)
    # a single ion is always stable.
    assert normal_modes(1, com, "x")[0].frequency == pytest.approx(com.x)

def test_unknown_axis():
    with pytest.raises(ValueError):
        normal_modes(2, COM, "w")

def test_chain_places_ions_and_selects_modes():
    ions = [make_ion() for _ in range(3)]
    chain = LinearChain(ions, COM, {"x": [0], "z": [0, 1]}, N=5)
    scale = characteristic_length_scale(MASS, COM.z)
    assert [ion.number for ion in chain.ions] == [0, 1, 2]
    assert np.allclose([ion.position for ion in chain.ions],
                       equilibrium_positions(3) * scale)
    modes = chain.modes()
    assert [mode.label for mode in modes] == ["x0", "z0", "z1"]
    assert modes[0].nu == pytest.approx(COM.x)
    assert modes[1].nu == pytest.approx(COM.z)
    assert modes[2].nu == pytest.approx(np.sqrt(3) * COM.z)
    assert all(mode.shape == 6 for mode in modes)
    assert np.allclose(modes[0].axis, [1, 0, 0])

def test_chain_copies_repeated_ions():
    ion = make_ion()
    with pytest.warns(UserWarning):
        chain = LinearChain([ion, ion], COM, {"z": [0]})
    assert chain.ions[0] is not chain.ions[1]
    assert [i.number for i in chain.ions] == [0, 1]

def test_chain_rejects_missing_mode():
    with pytest.raises(ValueError):
        LinearChain([make_ion()], COM, {"z": [1]})
    with pytest.raises(StabilityError):
        LinearChain([make_ion(), make_ion()], (0.5e6, 3e6, 1e6), {"z": [0]})
