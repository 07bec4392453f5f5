"""
Matrix elements of the displacement operator D(xi) in the truncated Fock
basis.  The single call is
    matrix_element(xi, n, m)
which returns <n|D(xi)|m> with 0-based phonon numbers.  These are the
coupling strengths of an ion's internal transition to a vibrational mode
outside the Lamb--Dicke regime, so they are evaluated at every time step of
the Hamiltonian and are written to be cheap.

The underlying associated Laguerre polynomials are available at `laguerre()`.

Reference: K. E. Cahill and R. J. Glauber, Phys. Rev. 177, 1857 (1969).
"""

__all__ = ["laguerre", "matrix_element"]

import numpy as np

def laguerre(n: int, a: float, x: float) -> float:
    """laguerre(n : int >= 0, a : float, x : float) -> res : float

    Calculate the Laguerre polynomial result L_n^a(x), which is equivalent to
    Mathematica's LaguerreL[n, a, x].
    """
    if n == 0:
        return 1.0
    elif n == 1:
        return 1 + a - x
    # use a recurrence relation calculation for speed and accuracy
    # ref: http://functions.wolfram.com/Polynomials/LaguerreL3/17/01/01/01/
    l_2, l_1 = 1.0, 1 + a - x
    for m in range(2, n + 1):
        l_2, l_1 = l_1, ((a + 2*m - x - 1) * l_1 - (a + m - 1) * l_2) / m
    return l_1

def matrix_element(xi: complex, n: int, m: int) -> complex:
    """matrix_element(xi : complex, n : int >= 0, m : int >= 0) -> complex

    Get <n|D(xi)|m>, where D(xi) = exp(xi a^dag - conj(xi) a).  For `n < m`
    the element is found from the symmetry
        <n|D|m> = (-1)^(m - n) conj(<m|D|n>).

    For extreme values of `xi` and the phonon numbers the closed form can
    overflow into NaN.  In that case the element is taken to be 1 on the
    diagonal and 0 elsewhere, which is an approximation and not a general
    guarantee of accuracy.
    """
    if n < m:
        out = np.conj(matrix_element(xi, m, n))
        return -out if (m - n) % 2 else out
    xi = np.complex128(xi)
    x = (xi.real * xi.real) + (xi.imag * xi.imag)
    s = 1.0
    for k in range(m + 1, n + 1):
        s *= k
    with np.errstate(over="ignore", under="ignore", invalid="ignore"):
        out = np.sqrt(1.0 / s) * xi**(n - m) * np.exp(-0.5 * x)\
              * laguerre(m, n - m, x)
    if np.isnan(out):
        return 1.0 + 0.0j if n == m else 0.0j
    return complex(out)
