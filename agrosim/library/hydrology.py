"""
Tipping-bucket hydrology kernels.

These are the per-day flux rules used by
:class:`~agrosim.core.model.SoilWaterModel`. They accept scalars or NumPy
arrays so that scenario sweeps can evaluate several buckets at once.
"""

from __future__ import annotations

import numpy as np

Array = np.ndarray


def cover_fraction(lai: Array | float, lai_full_cover: float) -> Array:
    """Fraction of ground covered by the canopy, ``clip(LAI/LAI_fc, 0, 1)``."""
    return np.clip(
        np.asarray(lai, dtype=float) / max(lai_full_cover, 1e-9), 0.0, 1.0
    )


def surface_runoff(rain: Array | float, infiltration_capacity: float) -> Array:
    """Rain in excess of the daily infiltration capacity [mm/day]."""
    rain = np.asarray(rain, dtype=float)
    return np.maximum(rain - infiltration_capacity, 0.0)


def drainage(w: Array | float, w_fc: float, beta: float) -> Array:
    """Free drainage of water held above field capacity [mm/day]."""
    return np.maximum(np.asarray(w, dtype=float) - w_fc, 0.0) * beta


def actual_fluxes(
    w: Array | float,
    et0: float,
    cover: Array | float,
    w_wp: float,
    alpha: float,
    gamma: float,
) -> tuple[Array, Array]:
    r"""
    Water-limited transpiration and soil evaporation for one day.

    .. math::

        T_{act} = \min(ET_0\,c,\ \alpha\,AW), \qquad
        E_{act} = \min(ET_0\,(1-c),\ \gamma\,AW),

    with :math:`AW = \max(W - W_{wp}, 0)` the plant-available water and
    :math:`c` the cover fraction.

    Parameters
    ----------
    w : float or ndarray
        Soil water content at the start of the day [mm].
    et0 : float
        Reference evapotranspiration [mm/day].
    cover : float or ndarray
        Canopy cover fraction in ``[0, 1]``.
    w_wp : float
        Water content at wilting point [mm].
    alpha, gamma : float
        Daily extraction coefficients for transpiration and evaporation.

    Returns
    -------
    t_act, e_act : ndarray
        Actual transpiration and evaporation [mm/day].
    """
    cover = np.asarray(cover, dtype=float)
    aw = np.maximum(np.asarray(w, dtype=float) - w_wp, 0.0)
    t_act = np.minimum(et0 * cover, alpha * aw)
    e_act = np.minimum(et0 * (1.0 - cover), gamma * aw)
    return t_act, e_act


def aridity_index(t_act: Array | float, et0: float) -> Array:
    """Water-stress index ``1 - T_act/ET0`` (0 when ``ET0 == 0``)."""
    t_act = np.asarray(t_act, dtype=float)
    if et0 <= 0.0:
        return np.zeros_like(t_act)
    return 1.0 - t_act / et0
