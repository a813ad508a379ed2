"""
Farquhar–von Caemmerer–Berry model of C3 leaf photosynthesis.

Net assimilation is the minimum of three limiting rates (Rubisco, electron
transport and sink/TPU) minus leaf respiration. Kinetic constants and maximum
rates are scaled with temperature following Collatz et al. (1991).

All functions are stateless and vectorized over NumPy arrays, so response
curves are evaluated in a single call.

Functions
---------
net_assimilation
    Net CO2 assimilation rate.
co2_response
    A–Ci curve at fixed light.
light_response
    Light-response curve at fixed Ci.

References
----------
Collatz, G. J., Ball, J. T., Grivet, C. & Berry, J. A. (1991). Physiological
and environmental regulation of stomatal conductance, photosynthesis and
transpiration. Agricultural and Forest Meteorology, 54, 107-136.
"""

from __future__ import annotations

import numpy as np

Array = np.ndarray

SURFACE_PRESSURE = 101325.0  # Pa
O2_PARTIAL_PRESSURE = 0.209 * SURFACE_PRESSURE  # Pa

# Curvature of the light response of electron transport
THETA = 0.7


def net_assimilation(
    v_max: Array | float,
    j_max: Array | float,
    apar: Array | float,
    c_i: Array | float,
    temp_c: Array | float,
) -> Array | float:
    r"""
    Net CO2 assimilation rate [µmol m⁻² s⁻¹].

    Parameters
    ----------
    v_max : float or ndarray
        Maximum carboxylation rate at 25 °C [µmol m⁻² s⁻¹].
    j_max : float or ndarray
        Maximum electron-transport rate [µmol m⁻² s⁻¹].
    apar : float or ndarray
        Absorbed PAR [µmol m⁻² s⁻¹].
    c_i : float or ndarray
        Intercellular CO2 partial pressure [Pa].
    temp_c : float or ndarray
        Leaf temperature [°C].

    Returns
    -------
    float or ndarray
        :math:`A_n = \min(w_c, w_j, w_s) - R_d`, broadcast over the inputs.

    Notes
    -----
    With :math:`k = (T - 25)/10`:

    .. math::

        \begin{aligned}
        \tau &= 2600 \cdot 0.57^k, \quad \Gamma^* = O_i / (2\tau),\quad
        K_c = 30 \cdot 2.1^k, \quad K_o = 30000 \cdot 1.2^k,\\
        V_m &= \frac{V_{max}\,2.1^k}
            {(1 + e^{0.25(10 - T)})(1 + e^{0.4(T - 40)})},\quad
        R_d = \frac{0.015\,V_m\,2.4^k}{1 + e^{1.3(T - 55)}},\\
        0 &= \theta J^2 - (J_{max} + 0.385\,APAR)\,J
            + 0.385\,J_{max}\,APAR \quad(\text{smaller root}),\\
        w_c &= \frac{V_m (c_i - \Gamma^*)}{c_i + K_c (1 + O_i/K_o)},\quad
        w_j = \frac{J (c_i - \Gamma^*)}{4 (c_i + 2\Gamma^*)},\quad
        w_s = V_m / 2.
        \end{aligned}
    """
    t = np.asarray(temp_c, dtype=float)
    ci = np.asarray(c_i, dtype=float)
    apar = np.asarray(apar, dtype=float)
    j_max = np.asarray(j_max, dtype=float)

    k = (t - 25.0) / 10.0
    tau = 2600.0 * 0.57**k
    gamma_star = O2_PARTIAL_PRESSURE / (2.0 * tau)
    k_c = 30.0 * 2.1**k
    k_o = 30000.0 * 1.2**k

    cold = 1.0 + np.exp(0.25 * (10.0 - t))
    heat = 1.0 + np.exp(0.4 * (t - 40.0))
    v_m = np.asarray(v_max, dtype=float) * 2.1**k / (cold * heat)

    r_d = 0.015 * v_m * 2.4**k / (1.0 + np.exp(1.3 * (t - 55.0)))

    b = -(j_max + 0.385 * apar)
    c = 0.385 * j_max * apar
    disc = np.sqrt(np.maximum(b * b - 4.0 * THETA * c, 0.0))
    j = (-b - disc) / (2.0 * THETA)

    w_c = (
        v_m
        * (ci - gamma_star)
        / (ci + k_c * (1.0 + O2_PARTIAL_PRESSURE / k_o))
    )
    w_j = j * (ci - gamma_star) / (4.0 * (ci + 2.0 * gamma_star))
    w_s = v_m / 2.0

    a_n = np.minimum(np.minimum(w_c, w_j), w_s) - r_d
    return float(a_n) if a_n.ndim == 0 else a_n


def co2_response(
    v_max: float = 50.0,
    j_max: float = 100.0,
    temp_c: float = 25.0,
    apar: float = 500.0,
) -> tuple[Array, Array]:
    """
    A–Ci response curve.

    Returns
    -------
    co2_ppm : ndarray
        Ambient-equivalent CO2, 10 to 1000 ppm in steps of 10.
    a_n : ndarray
        Net assimilation with ``c_i = ppm / 10`` Pa.
    """
    co2_ppm = np.arange(10.0, 1000.0 + 1e-9, 10.0)
    a_n = net_assimilation(v_max, j_max, apar, co2_ppm / 10.0, temp_c)
    return co2_ppm, a_n


def light_response(
    v_max: float = 50.0,
    j_max: float = 100.0,
    temp_c: float = 25.0,
    c_i: float = 30.0,
) -> tuple[Array, Array]:
    """
    Light-response curve.

    Returns
    -------
    apar : ndarray
        Absorbed PAR, 0 to 2000 µmol m⁻² s⁻¹ in steps of 20.
    a_n : ndarray
        Net assimilation at ``c_i`` Pa.
    """
    apar = np.arange(0.0, 2000.0 + 1e-9, 20.0)
    return apar, net_assimilation(v_max, j_max, apar, c_i, temp_c)
