import numpy as np
import pytest
import qutip
from scipy.special import eval_genlaguerre

from iontrap.displacement import laguerre, matrix_element

@pytest.mark.parametrize("n, a, x", [(0, 0, 0.3), (1, 2, 0.5), (4, 1, 0.01),
                                     (7, 3, 2.5)])
def test_laguerre_matches_scipy(n, a, x):
    assert np.isclose(laguerre(n, a, x), eval_genlaguerre(n, a, x),
                      rtol=1e-12, atol=1e-12)

def test_zero_displacement_is_identity():
    for n in range(6):
        for m in range(6):
            assert matrix_element(0, n, m) == (1 if n == m else 0)

@pytest.mark.parametrize("xi", [0.3 + 0.2j, -0.1j, 0.45])
def test_elements_match_qutip_displace(xi):
    expected = qutip.displace(40, xi).full()
    for n in range(5):
        for m in range(5):
            assert np.isclose(matrix_element(xi, n, m), expected[n, m],
                              rtol=0, atol=1e-10)

def test_conjugate_symmetry():
    xi = 0.7 * np.exp(0.3j)
    for n in range(5):
        for m in range(5):
            sign = (-1) ** abs(n - m)
            assert np.isclose(matrix_element(xi, m, n),
                              sign * np.conj(matrix_element(xi, n, m)),
                              rtol=1e-12, atol=1e-14)

def test_overflow_falls_back_to_identity():
    assert matrix_element(1e3, 200, 200) == 1
    assert matrix_element(1e3, 201, 200) == 0
    assert matrix_element(1e3, 200, 201) == 0
