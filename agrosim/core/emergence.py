"""
Pre-emergence thermal and hydric accumulation.

Two parallel models track progress from sowing to seedling emergence:

- **GDD** (model 1) accumulates air-temperature degree days above the
  germination base temperature.
- **ETT** (model 2) accumulates *effective* thermal time: an estimated soil
  temperature (air temperature warmed by unshaded radiation) drives a
  triangular temperature response, which is further limited by a linear
  response to the soil moisture fraction of saturation.

Both accumulators are returned; percentages are relative to the same
thermal-time target so the two models can be compared directly.

Classes
-------
GerminationParams
    Immutable germination parameter set.
EmergenceModel
    Daily engine producing
    :class:`~agrosim.core.data_containers.EmergenceResults`.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from agrosim.core.data_containers import EmergenceResults, Weather
from agrosim.core.soils import SoilParams
from agrosim.exceptions import ConfigurationError
from agrosim.library.responses import linear_ramp, trapezoid_response

Array = np.ndarray

# Soil warming above air temperature per MJ/m²/day of unshaded radiation
RAD_TO_SOIL_TEMP = 0.25


@dataclass(frozen=True, slots=True)
class GerminationParams:
    """
    Germination parameters.

    Parameters
    ----------
    t_base : float
        Base temperature for germination [°C].
    t_opt : float
        Optimal temperature [°C].
    t_ceiling : float
        Ceiling temperature above which germination stops [°C].
    gdd_target : float
        Thermal time required for emergence [°C day]. A zero target means
        emergence is complete from day one.
    theta_wilt_frac : float
        Soil water fraction of saturation at which the water response is 0.
    theta_opt_frac : float
        Soil water fraction of saturation at which the water response is 1.
    """

    t_base: float = 6.0
    t_opt: float = 20.0
    t_ceiling: float = 32.0
    gdd_target: float = 120.0
    theta_wilt_frac: float = 0.15
    theta_opt_frac: float = 0.35

    def __post_init__(self):
        if not (self.t_base <= self.t_opt <= self.t_ceiling):
            raise ConfigurationError(
                "Germination temperatures must satisfy "
                "t_base ≤ t_opt ≤ t_ceiling."
            )
        if not (0.0 <= self.theta_wilt_frac <= self.theta_opt_frac <= 1.0):
            raise ConfigurationError(
                "Moisture fractions must satisfy "
                "0 ≤ theta_wilt_frac ≤ theta_opt_frac ≤ 1."
            )
        if self.gdd_target < 0.0:
            raise ConfigurationError("gdd_target must be non-negative.")


@dataclass(slots=True)
class EmergenceModel:
    r"""
    Daily seed-emergence engine.

    Parameters
    ----------
    weather : Weather
        Daily forcing (TMIN, TMAX, SRAD).
    soil : SoilParams
        Soil parameters; uses ``w_sat`` and ``w0``.
    soil_water : array_like, optional
        Daily soil water content [mm], e.g. ``WaterResults.w``. Days beyond
        the end of the series (or all days, if omitted) use ``soil.w0``.
    params : GerminationParams
        Germination parameters.
    shading : float, default=0.0
        Fraction of incident radiation intercepted above the seedbed, in
        ``[0, 1]``.

    Notes
    -----
    Per day:

    .. math::

        \begin{aligned}
        GDD &= \max(\bar T - T_b, 0),\\
        T_{soil} &= \bar T + 0.25\,SRAD\,(1 - s),\\
        ETT &= (T_{opt} - T_b)\; f_T(T_{soil})\; f_W(W / W_{sat}).
        \end{aligned}
    """

    weather: Weather
    soil: SoilParams = field(default_factory=SoilParams)
    soil_water: Array | None = None
    params: GerminationParams = field(default_factory=GerminationParams)
    shading: float = 0.0

    def __post_init__(self):
        if not (0.0 <= self.shading <= 1.0):
            raise ConfigurationError("shading must be in [0, 1].")

    def evolve(self) -> EmergenceResults:
        """Accumulate GDD and effective thermal time over the weather."""
        w, sp, gp = self.weather, self.soil, self.params
        T = len(w.tmin)

        tair = w.tmean
        w_soil = self._soil_water_series(self.soil_water, sp.w0, T)

        gdd_daily = np.maximum(tair - gp.t_base, 0.0)

        t_soil = tair + w.srad * (1.0 - self.shading) * RAD_TO_SOIL_TEMP
        f_t = np.asarray(
            trapezoid_response(
                t_soil, gp.t_base, gp.t_opt, gp.t_opt, gp.t_ceiling
            ),
            dtype=float,
        )
        f_w = np.asarray(
            linear_ramp(
                w_soil / sp.w_sat, gp.theta_wilt_frac, gp.theta_opt_frac
            ),
            dtype=float,
        )
        ett_daily = (gp.t_opt - gp.t_base) * f_t * f_w

        gdd_cum = np.cumsum(gdd_daily)
        ett_cum = np.cumsum(ett_daily)

        return EmergenceResults(
            day=w.day.copy(),
            t_soil=t_soil,
            w_soil=w_soil,
            gdd_daily=gdd_daily,
            gdd_cum=gdd_cum,
            hydro_factor=f_w,
            ett_daily=ett_daily,
            ett_cum=ett_cum,
            gdd_pct=self._percent(gdd_cum, gp.gdd_target),
            emergence_pct=self._percent(ett_cum, gp.gdd_target),
        )

    @staticmethod
    def _soil_water_series(soil_water, w0: float, T: int) -> Array:
        """Daily soil water, falling back to ``w0`` where no value exists."""
        out = np.full(T, float(w0))
        if soil_water is not None:
            sw = np.asarray(soil_water, dtype=float).ravel()[:T]
            out[: sw.size] = sw
        return out

    @staticmethod
    def _percent(cum: Array, target: float) -> Array:
        """Progress to ``target`` in percent, capped at 100."""
        if target <= 0.0:
            return np.full_like(cum, 100.0)
        return np.minimum(100.0, cum / target * 100.0)
