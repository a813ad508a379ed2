"""
Core containers for weather forcing and simulation outputs.

This module defines the immutable weather series consumed by every daily
engine and the result containers they return. All series are stored as 1-D
NumPy arrays; every result container can be exported with
:meth:`to_dataframe` for tabular output.

Classes
-------
Weather
    Frozen dataclass storing the daily forcing (TMIN, TMAX, SRAD, RAIN)
    with validation and normalization.
CropResults
    Daily phenology, LAI, and biomass trajectory.
WaterResults
    Daily tipping-bucket soil-water trajectory and fluxes.
EmergenceResults
    Daily pre-emergence thermal/hydric accumulation.
MonthlyClimate
    Monthly climate and plant-cover summaries used by the carbon model.
CarbonPools
    Frozen snapshot of the five RothC pools.
CarbonResults
    Monthly soil-carbon trajectory over a multi-year horizon.
DiurnalResults
    Sub-hourly canopy and soil energy-balance trajectory.

Notes
-----
- ``Weather`` coerces input series to 1-D float arrays, checks length
  consistency, and rejects negative radiation or rainfall.
- Result containers are plain (mutable) dataclasses, but engines never share
  them: each run allocates new arrays.
"""

from __future__ import annotations

from dataclasses import dataclass, fields

import numpy as np
import pandas as pd

from agrosim.exceptions import ConfigurationError

Array = np.ndarray


def _as_series(x, name: str) -> Array:
    arr = np.asarray(x, dtype=float)
    if arr.ndim != 1:
        raise ConfigurationError(f"Weather series '{name}' must be 1-D.")
    return arr


class _TableMixin:
    """Tabular export shared by the result containers."""

    def to_dataframe(self) -> pd.DataFrame:
        """Return the series as a DataFrame, one row per time step."""
        return pd.DataFrame(
            {f.name: getattr(self, f.name) for f in fields(self)}
        )

    def __len__(self) -> int:
        return len(getattr(self, fields(self)[0].name))


# -------------------------
# Weather
# -------------------------


@dataclass(frozen=True)
class Weather(_TableMixin):
    """
    Daily forcing series used by the crop, water, and emergence models.

    The class is frozen so that the input weather cannot be modified during a
    simulation; scenario variants are built as new instances (see
    :func:`agrosim.core.weather.scale_weather`).

    Attributes
    ----------
    tmin : ndarray, shape (T,)
        Daily minimum air temperature [°C].
    tmax : ndarray, shape (T,)
        Daily maximum air temperature [°C].
    srad : ndarray, shape (T,)
        Global solar radiation [MJ/m²/day], non-negative.
    rain : ndarray, shape (T,)
        Daily precipitation [mm/day], non-negative.
    day : ndarray, shape (T,), optional
        1-based day ordinal. Defaults to ``1..T``.

    Raises
    ------
    ConfigurationError
        If any series is not 1-D, lengths differ, or radiation/rainfall
        contain negative values.
    """

    tmin: Array
    tmax: Array
    srad: Array
    rain: Array
    day: Array | None = None

    def __post_init__(self):
        """Normalize inputs to 1-D float arrays and validate them."""
        tmin = _as_series(self.tmin, "tmin")
        tmax = _as_series(self.tmax, "tmax")
        srad = _as_series(self.srad, "srad")
        rain = _as_series(self.rain, "rain")

        T = tmin.shape[0]
        if not (tmax.shape[0] == srad.shape[0] == rain.shape[0] == T):
            raise ConfigurationError(
                "All weather series must have the same length T."
            )
        if np.any(srad < 0.0) or np.any(rain < 0.0):
            raise ConfigurationError("SRAD and RAIN must be non-negative.")

        if self.day is None:
            day = np.arange(1, T + 1, dtype=int)
        else:
            day = np.asarray(self.day, dtype=int)
            if day.shape != (T,):
                raise ConfigurationError("'day' must have length T.")

        # frozen dataclass: assign through object.__setattr__
        object.__setattr__(self, "tmin", tmin)
        object.__setattr__(self, "tmax", tmax)
        object.__setattr__(self, "srad", srad)
        object.__setattr__(self, "rain", rain)
        object.__setattr__(self, "day", day)

    @property
    def tmean(self) -> Array:
        """Daily mean air temperature ``(TMIN + TMAX) / 2`` [°C]."""
        return 0.5 * (self.tmin + self.tmax)

    @classmethod
    def empty(cls) -> "Weather":
        """Weather with zero days."""
        z = np.zeros(0)
        return cls(tmin=z, tmax=z, srad=z, rain=z)

    def to_dataframe(self) -> pd.DataFrame:
        """Return the forcing with the ``DAY,TMIN,TMAX,RAIN,SRAD`` layout."""
        return pd.DataFrame(
            {
                "DAY": self.day,
                "TMIN": self.tmin,
                "TMAX": self.tmax,
                "RAIN": self.rain,
                "SRAD": self.srad,
            }
        )


# -------------------------
# Daily results
# -------------------------


@dataclass
class CropResults(_TableMixin):
    """Daily crop trajectory, truncated at maturity (NDS = 1)."""

    day: Array  # (T',) 1-based day ordinal
    tmin: Array  # (T',)
    tmax: Array  # (T',)
    srad: Array  # (T',)
    rain: Array  # (T',)

    dtu: Array  # (T',) daily thermal units [°C day]
    ctu: Array  # (T',) cumulative thermal units [°C day]
    nds: Array  # (T',) normalized development stage [0-1]
    lai: Array  # (T',) leaf area index [m²/m²]
    db: Array  # (T',) daily biomass increment [g/m²/day]
    b: Array  # (T',) cumulative biomass [g/m²]

    @property
    def reached_maturity(self) -> bool:
        """True if the run stopped because NDS reached 1."""
        return bool(len(self.nds) and self.nds[-1] >= 1.0)

    @property
    def final_biomass(self) -> float:
        """Cumulative biomass on the last simulated day (0 if empty)."""
        return float(self.b[-1]) if len(self.b) else 0.0


@dataclass
class WaterResults(_TableMixin):
    """Daily tipping-bucket soil-water trajectory."""

    day: Array  # (T,)
    rain: Array  # (T,) [mm/day]
    et0: Array  # (T,) reference ET [mm/day]
    runoff: Array  # (T,) [mm/day]
    transpiration: Array  # (T,) actual [mm/day]
    evaporation: Array  # (T,) actual [mm/day]
    drainage: Array  # (T,) [mm/day]
    w: Array  # (T,) soil water at end of day [mm]
    arid: Array  # (T,) water-stress index [0-1]


@dataclass
class EmergenceResults(_TableMixin):
    """Daily seed-emergence accumulators (simple GDD and effective TT)."""

    day: Array  # (T,)
    t_soil: Array  # (T,) estimated soil temperature [°C]
    w_soil: Array  # (T,) soil water used for the hydric factor [mm]
    gdd_daily: Array  # (T,) air-temperature degree days
    gdd_cum: Array  # (T,)
    hydro_factor: Array  # (T,) water response [0-1]
    ett_daily: Array  # (T,) effective thermal time
    ett_cum: Array  # (T,)
    gdd_pct: Array  # (T,) GDD progress to target [0-100]
    emergence_pct: Array  # (T,) ETT progress to target [0-100]

    def emergence_day(self, target: float, model: str = "ett") -> int | None:
        """
        First day whose cumulative total reaches ``target``.

        Parameters
        ----------
        target : float
            Thermal-time threshold.
        model : {'ett', 'gdd'}, default='ett'
            Accumulator to inspect.

        Returns
        -------
        int or None
            Day ordinal, or ``None`` if the threshold is never reached.
        """
        cum = {"ett": self.ett_cum, "gdd": self.gdd_cum}[model]
        hit = np.flatnonzero(cum >= target)
        return int(self.day[hit[0]]) if hit.size else None


# -------------------------
# Monthly / carbon results
# -------------------------


@dataclass
class MonthlyClimate(_TableMixin):
    """Monthly summaries (30-day chunks) driving the carbon model."""

    temp: Array  # (M,) mean air temperature [°C]
    precip: Array  # (M,) total rainfall [mm/month]
    et0: Array  # (M,) nominal evapotranspiration [mm/month]
    plant_cover: Array  # (M,) bool, live canopy for most of the chunk


@dataclass(frozen=True, slots=True)
class CarbonPools:
    """RothC carbon pools [Mg C/ha]."""

    dpm: float
    rpm: float
    bio: float
    hum: float
    iom: float

    @property
    def total(self) -> float:
        """Total soil organic carbon, the sum of the five pools."""
        return self.dpm + self.rpm + self.bio + self.hum + self.iom

    @classmethod
    def from_total_soc(cls, soc: float) -> "CarbonPools":
        """
        Split an initial SOC stock across pools with a fixed heuristic.

        DPM 1 %, RPM 15 %, BIO 2 %, HUM 75 %, IOM 7 %.
        """
        return cls(
            dpm=soc * 0.01,
            rpm=soc * 0.15,
            bio=soc * 0.02,
            hum=soc * 0.75,
            iom=soc * 0.07,
        )


@dataclass
class CarbonResults(_TableMixin):
    """Monthly RothC trajectory over the simulated years."""

    year: Array  # (N,) 1-based
    month: Array  # (N,) 1..12
    dpm: Array  # (N,) [Mg C/ha]
    rpm: Array  # (N,)
    bio: Array  # (N,)
    hum: Array  # (N,)
    iom: Array  # (N,)
    total_soc: Array  # (N,)
    co2: Array  # (N,) CO2-C respired during the month [Mg C/ha]
    c_input: Array  # (N,) carbon input of the month [Mg C/ha]

    @property
    def final_soc(self) -> float:
        """Total SOC at the end of the horizon (NaN if empty)."""
        return float(self.total_soc[-1]) if len(self.total_soc) else np.nan


# -------------------------
# Sub-hourly energy balance
# -------------------------


@dataclass
class DiurnalResults(_TableMixin):
    """Sub-hourly canopy/soil energy-balance trajectory."""

    time: Array  # (S,) hours since start
    hour: Array  # (S,) hour of day [0, 24)
    rad: Array  # (S,) incident global radiation after shading [W/m²]
    temp_air: Array  # (S,) [°C]
    temp_canopy: Array  # (S,) LAI-weighted leaf temperature [°C]
    temp_soil: Array  # (S,) [°C]
    et_mm_h: Array  # (S,) evapotranspiration [mm/h]
    soil_water: Array  # (S,) volumetric soil water [m³/m³]
    vpd: Array  # (S,) vapor-pressure deficit [kPa]
    converged: Array  # (S,) bool, solver converged at this step

    def total_et(self, step_hours: float = 0.5) -> float:
        """Total evapotranspiration over the run [mm]."""
        return float(np.sum(self.et_mm_h) * step_hours)
