"""
Piecewise-linear response functions shared by the crop and emergence models.

Functions
---------
trapezoid_response
    Temperature response with a base, an optimum plateau, and a ceiling.
linear_ramp
    Linear rise from 0 at a lower threshold to 1 at an upper threshold.
clamp
    Scalar/array clipping helper.
"""

from __future__ import annotations

import numpy as np

Array = np.ndarray


def clamp(x: Array | float, lo: float, hi: float) -> Array | float:
    """Clip ``x`` to ``[lo, hi]``, returning a float for scalar input."""
    out = np.clip(x, lo, hi)
    return float(out) if np.ndim(out) == 0 else out


def trapezoid_response(
    t: Array | float,
    t_base: float,
    t_opt1: float,
    t_opt2: float,
    t_ceil: float,
) -> Array | float:
    """
    Trapezoidal temperature response in ``[0, 1]``.

    - 0 at or below ``t_base`` and at or above ``t_ceil``
    - linear increase from 0 to 1 between ``t_base`` and ``t_opt1``
    - 1 on the plateau ``[t_opt1, t_opt2]``
    - linear decrease from 1 to 0 between ``t_opt2`` and ``t_ceil``

    A triangular response is obtained with ``t_opt1 == t_opt2``.

    Parameters
    ----------
    t : float or ndarray
        Temperature [°C].
    t_base, t_opt1, t_opt2, t_ceil : float
        Breakpoints, expected to satisfy
        ``t_base ≤ t_opt1 ≤ t_opt2 ≤ t_ceil``.

    Returns
    -------
    float or ndarray
        Response factor with the shape of ``t``.
    """
    ti = np.asarray(t, dtype=float)

    rise = (ti - t_base) / max(t_opt1 - t_base, 1e-9)
    fall = (t_ceil - ti) / max(t_ceil - t_opt2, 1e-9)

    out = np.select(
        [
            (ti <= t_base) | (ti >= t_ceil),
            ti < t_opt1,
            ti <= t_opt2,
        ],
        [0.0, rise, 1.0],
        default=fall,
    )
    out = np.clip(out, 0.0, 1.0)
    return float(out) if out.ndim == 0 else out


def linear_ramp(
    x: Array | float, lower: float, upper: float
) -> Array | float:
    """
    Linear response rising from 0 at ``lower`` to 1 at ``upper``.

    Values at or below ``lower`` map to 0, at or above ``upper`` to 1.
    """
    xi = np.asarray(x, dtype=float)
    out = np.where(
        xi <= lower,
        0.0,
        np.where(
            xi >= upper,
            1.0,
            (xi - lower) / max(upper - lower, 1e-9),
        ),
    )
    return float(out) if out.ndim == 0 else out
