"""
Daily crop growth and soil-water models (time-stepping engines).

This module implements the deterministic, day-by-day evolution of a generic
annual crop and of the tipping-bucket soil water beneath it. The public entry
points are :class:`CropModel`, which composes
:class:`~.data_containers.Weather` and :class:`~.crops.CropParams` and
produces a
:class:`~.data_containers.CropResults`, and :class:`SoilWaterModel`, which
consumes the weather, :class:`~.soils.SoilParams` and a LAI trajectory and
produces a :class:`~.data_containers.WaterResults`.

Design Principles
-----------------
- **Deterministic & reproducible**: given the same inputs, `evolve()` returns
  bit-identical results.
- **Pure numerics**: no I/O, plotting, or file access; inputs/outputs are
  NumPy arrays.
- **Separation of concerns**: data containers in ``data_containers.py``,
  crop parameters in ``crops.py``, soil parameters in ``soils.py``, response
  and hydrologic kernels in ``library/``.
- **Early termination**: the crop run stops the first day the development
  stage reaches 1; later weather days are simply unused.

See Also
--------
agrosim.core.data_containers : ``Weather``, ``CropResults``, ``WaterResults``.
agrosim.core.crops : ``CropParams`` presets.
agrosim.library.hydrology : bucket flux kernels.

Examples
--------
>>> from agrosim.core.crops import CropParams
>>> from agrosim.core.model import CropModel, SoilWaterModel
>>> from agrosim.core.soils import SoilParams
>>> from agrosim.core.weather import WeatherParams, make_weather
>>> weather = make_weather(WeatherParams(), seed=42)
>>> crop = CropModel(weather=weather, params=CropParams()).evolve()
>>> water = SoilWaterModel(weather, SoilParams(), crop.lai).evolve()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from agrosim.core.crops import CropParams
from agrosim.core.data_containers import CropResults, WaterResults, Weather
from agrosim.core.soils import SoilParams
from agrosim.exceptions import ConfigurationError
from agrosim.library.hydrology import (
    actual_fluxes,
    aridity_index,
    cover_fraction,
    drainage,
    surface_runoff,
)
from agrosim.library.responses import clamp, trapezoid_response

Array = np.ndarray

logger = logging.getLogger(__name__)

# Fraction of global radiation that is photosynthetically active
PAR_FRACTION = 0.48


@dataclass(slots=True)
class CropModel:
    r"""Deterministic daily phenology–LAI–biomass model.

    Parameters
    ----------
    weather : Weather
        Daily forcing (TMIN, TMAX, SRAD, RAIN).
    params : CropParams
        Crop parameters (phenology, leaf area, RUE and its temperature
        response).

    Notes
    -----
    For each day :math:`t`:

    .. math::

        \begin{aligned}
        DTU_t &= \max(\bar T_t - T_{base}, 0), \qquad
        CTU_t = CTU_{t-1} + DTU_t,\\
        NDS_t &= \mathrm{clip}(CTU_t / TU_{HAR}, 0, 1),\\
        \Delta B_t &= SRAD_t \cdot 0.48 \cdot
            (1 - e^{-k\,LAI_t}) \cdot RUE \cdot f(\bar T_t),
        \end{aligned}

    where :math:`f` is the trapezoidal temperature response of RUE. LAI is
    updated *before* the biomass increment, and ``ΔB`` is zero on the day
    maturity is reached. The loop stops after recording that day.

    - **Units.** Temperature [°C], SRAD [MJ m⁻² day⁻¹], RUE [g MJ⁻¹],
      biomass [g m⁻²], LAI [m² m⁻²].

    Examples
    --------
    >>> results = CropModel(weather=weather, params=CropParams()).evolve()
    >>> results.reached_maturity
    True
    """

    weather: Weather
    params: CropParams = field(default_factory=CropParams)

    # ---------------------------
    # Public API
    # ---------------------------
    def evolve(self) -> CropResults:
        """Simulate until maturity or the end of the weather series."""
        w, cp = self.weather, self.params
        T = len(w.tmin)
        tmean = w.tmean

        state = self._alloc_state(T)

        ctu = 0.0
        lai = cp.lai0
        b = cp.b0
        n = 0

        # ====================== main loop ======================
        for t in range(T):
            # --- Phenology
            dtu = self._thermal_units(float(tmean[t]), cp.t_base)
            ctu += dtu
            nds = self._development_stage(ctu, cp.tu_har)

            # --- Temperature factor for RUE
            tf = trapezoid_response(
                float(tmean[t]), cp.tb_rue, cp.tp1_rue, cp.tp2_rue, cp.tc_rue
            )

            # --- Leaf area (updated before biomass)
            lai = self._lai_next(lai, nds, cp)

            # --- Biomass
            db = self._biomass_increment(float(w.srad[t]), lai, nds, tf, cp)
            b += db

            state["dtu"][t] = dtu
            state["ctu"][t] = ctu
            state["nds"][t] = nds
            state["lai"][t] = lai
            state["db"][t] = db
            state["b"][t] = b
            n = t + 1

            if nds >= 1.0:
                logger.debug("Maturity reached on day %d.", int(w.day[t]))
                break

        return self._package_results(state, w, n)

    # --------------------------- End of public API --------------------------

    @staticmethod
    def _alloc_state(T: int) -> dict[str, Array]:
        """Allocate zero-initialized daily state arrays of length ``T``."""
        return {
            name: np.zeros((T,), dtype=float)
            for name in ("dtu", "ctu", "nds", "lai", "db", "b")
        }

    @staticmethod
    def _thermal_units(tmean: float, t_base: float) -> float:
        """Daily thermal units ``max(T_mean − T_base, 0)`` [°C day]."""
        return max(tmean - t_base, 0.0)

    @staticmethod
    def _development_stage(ctu: float, tu_har: float) -> float:
        """
        Normalized development stage in ``[0, 1]``.

        A non-positive thermal-time target means the crop is mature as soon
        as the simulation starts.
        """
        if tu_har <= 0.0:
            return 1.0
        return clamp(ctu / tu_har, 0.0, 1.0)

    @staticmethod
    def _lai_next(lai: float, nds: float, cp: CropParams) -> float:
        """
        LAI for today given yesterday's LAI and today's stage.

        - Growth window ``fr_emr ≤ NDS < fr_bls``: logistic growth
          ``α·LAI·max(LAI_max − LAI, 0)``.
        - Senescence window ``fr_bls ≤ NDS < 1``: exponential decay
          ``−sen_rate·LAI``, floored at 0.
        - Otherwise LAI is unchanged.
        """
        if cp.fr_emr <= nds < cp.fr_bls:
            return lai + cp.alpha * lai * max(cp.lai_max - lai, 0.0)
        if cp.fr_bls <= nds < 1.0:
            return max(lai - cp.sen_rate * lai, 0.0)
        return lai

    @staticmethod
    def _biomass_increment(
        srad: float, lai: float, nds: float, tf: float, cp: CropParams
    ) -> float:
        """
        Daily biomass increment [g m⁻² day⁻¹].

        Beer–Lambert interception of PAR times temperature-limited RUE; zero
        once the crop is mature.
        """
        if nds >= 1.0:
            return 0.0
        f_int = 1.0 - np.exp(-cp.k_par * lai)
        return float(srad * PAR_FRACTION * f_int * cp.rue * tf)

    @staticmethod
    def _package_results(
        state: dict[str, Array], w: Weather, n: int
    ) -> CropResults:
        """Construct the results object, truncated to ``n`` simulated days."""
        return CropResults(
            day=w.day[:n].copy(),
            tmin=w.tmin[:n].copy(),
            tmax=w.tmax[:n].copy(),
            srad=w.srad[:n].copy(),
            rain=w.rain[:n].copy(),
            dtu=state["dtu"][:n],
            ctu=state["ctu"][:n],
            nds=state["nds"][:n],
            lai=state["lai"][:n],
            db=state["db"][:n],
            b=state["b"][:n],
        )


@dataclass(slots=True)
class SoilWaterModel:
    r"""Single-layer tipping-bucket soil-water balance.

    Parameters
    ----------
    weather : Weather
        Daily forcing; only RAIN is used.
    soil : SoilParams
        Water contents, ET0, extraction and drainage coefficients.
    lai : array_like, optional
        Daily LAI trajectory. If shorter than the weather, the last value is
        held for the remaining days; if empty, LAI is 0 throughout.
    et0 : float or array_like, optional
        Reference evapotranspiration overriding ``soil.et0``. A scalar is
        applied every day; an array must have one value per weather day.

    Notes
    -----
    For each day:

    .. math::

        \begin{aligned}
        c &= \mathrm{clip}(LAI / LAI_{fc}, 0, 1),\\
        RO &= \max(RAIN - I_{cap}, 0),\qquad
        D = \beta\,\max(W - W_{fc}, 0),\\
        W &\leftarrow \mathrm{clip}(W + RAIN - RO - T_{act} - E_{act} - D,
            0, W_{sat}),
        \end{aligned}

    with actual fluxes from :func:`~agrosim.library.hydrology.actual_fluxes`.
    All fluxes use the water content at the start of the day.
    """

    weather: Weather
    soil: SoilParams = field(default_factory=SoilParams)
    lai: Array | None = None
    et0: float | Array | None = None

    def evolve(self) -> WaterResults:
        """Run the bucket over every weather day (no early termination)."""
        w, sp = self.weather, self.soil
        T = len(w.rain)

        lai = self._lai_series(self.lai, T)
        et0 = self._et0_series(self.et0, sp.et0, T)

        state = {
            name: np.zeros((T,), dtype=float)
            for name in (
                "runoff",
                "transpiration",
                "evaporation",
                "drainage",
                "w",
                "arid",
            )
        }

        wc = sp.w0
        for t in range(T):
            rain = float(w.rain[t])
            cover = cover_fraction(lai[t], sp.lai_full_cover)
            t_act, e_act = actual_fluxes(
                wc, float(et0[t]), cover, sp.w_wp, sp.alpha, sp.gamma
            )
            d = float(drainage(wc, sp.w_fc, sp.beta))
            ro = float(surface_runoff(rain, sp.inf_cap))

            wc = clamp(
                wc + rain - ro - float(t_act) - float(e_act) - d,
                0.0,
                sp.w_sat,
            )

            state["runoff"][t] = ro
            state["transpiration"][t] = t_act
            state["evaporation"][t] = e_act
            state["drainage"][t] = d
            state["w"][t] = wc
            state["arid"][t] = aridity_index(t_act, float(et0[t]))

        return WaterResults(
            day=w.day.copy(),
            rain=w.rain.copy(),
            et0=et0,
            runoff=state["runoff"],
            transpiration=state["transpiration"],
            evaporation=state["evaporation"],
            drainage=state["drainage"],
            w=state["w"],
            arid=state["arid"],
        )

    @staticmethod
    def _lai_series(lai, T: int) -> Array:
        """Pad (hold last value) or truncate the LAI trajectory to ``T``."""
        if lai is None:
            return np.zeros(T)
        lai = np.asarray(lai, dtype=float).ravel()
        if lai.size == 0:
            return np.zeros(T)
        if lai.size >= T:
            return lai[:T].copy()
        return np.concatenate([lai, np.full(T - lai.size, lai[-1])])

    @staticmethod
    def _et0_series(et0, default: float, T: int) -> Array:
        """Broadcast the ET0 forcing to one value per day."""
        if et0 is None:
            return np.full(T, float(default))
        arr = np.asarray(et0, dtype=float)
        if not np.all(np.isfinite(arr)) or np.any(arr < 0.0):
            raise ConfigurationError("'et0' must be finite and non-negative.")
        if arr.ndim == 0:
            return np.full(T, float(arr))
        if arr.shape != (T,):
            raise ConfigurationError(
                "'et0' must be a scalar or have one value per day."
            )
        return arr.copy()
