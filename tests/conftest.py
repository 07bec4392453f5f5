import numpy as np
import pytest
from scipy import constants

from iontrap import Ion, Laser, Level, LinearChain, Trap

WAVELENGTH = 729e-9
MASS = 40 * constants.atomic_mass
COM = (3e6, 3e6, 1e6)

def make_ion(coupling=1e5):
    levels = [Level("S", 0.0, g=2.0, m=-0.5),
              Level("D", constants.c / WAVELENGTH, g=1.2, m=-1.5)]
    return Ion(MASS, levels, {("S", "D"): coupling})

def make_laser(detuning=0.0, pointing=((0, 1.0),), k=(0, 0, 1), **kwargs):
    return Laser(WAVELENGTH, detuning=detuning, k=k,
                 pointing=pointing, **kwargs)

@pytest.fixture
def make_trap():
    """Factory for a chain of identical ions on the axial modes, addressed by
    lasers along the chain axis."""
    def build(n_ions=1, lasers=None, modes=(0,), N=4, **kwargs):
        chain = LinearChain([make_ion() for _ in range(n_ions)], COM,
                            {"z": list(modes)}, N=N)
        lasers = [make_laser()] if lasers is None else lasers
        return Trap(chain, lasers, **kwargs)
    return build

@pytest.fixture
def probe_times():
    return np.linspace(0.0, 10.0, 101)
