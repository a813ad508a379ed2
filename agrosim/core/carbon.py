"""
Monthly multi-pool soil-carbon model (RothC-style).

Soil organic carbon is split into five pools with first-order decay:
decomposable and resistant plant material (DPM, RPM), microbial biomass (BIO),
humified organic matter (HUM) and inert organic matter (IOM). Each month the
active pools decay at a rate scaled by temperature, moisture and soil-cover
modifiers; decomposed carbon is partly respired as CO2 and partly
re-synthesised into BIO and HUM according to a clay-dependent partition.

Classes
-------
Rotation
    Enumeration of the supported crop rotations.
CarbonParams
    Immutable management parameters (rotation, tillage, cover crops,
    residues, manure).
CarbonModel
    Multi-year driver producing
    :class:`~agrosim.core.data_containers.CarbonResults`.

Functions
---------
temperature_modifier, moisture_modifier, cover_modifier
    Environmental rate modifiers.
max_soil_moisture_deficit, clay_partition
    Clay-dependent soil constants.
decompose, rothc_step
    One monthly step of the pool dynamics.
aggregate_monthly
    Summarise daily weather and LAI into 30-day "months".

Notes
-----
- The cover modifier multiplies the tillage modifier before entering the
  combined rate modifier, so reduced tillage only acts through the cover
  term.
- Moisture uses ``precip − ET0`` for the month; a non-negative balance means
  no moisture limitation.

References
----------
Coleman, K. & Jenkinson, D. S. (1996). RothC-26.3 - A model for the turnover
of carbon in soil. In: Evaluation of Soil Organic Matter Models, Springer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Mapping, Sequence

import numpy as np

from agrosim.core.data_containers import (
    CarbonPools,
    CarbonResults,
    MonthlyClimate,
    Weather,
)
from agrosim.core.soils import SoilParams
from agrosim.exceptions import ConfigurationError

Array = np.ndarray

logger = logging.getLogger(__name__)

# Annual decomposition rate constants [yr⁻¹]
RATE_CONSTANTS: Mapping[str, float] = {
    "dpm": 10.0,
    "rpm": 0.3,
    "bio": 0.66,
    "hum": 0.02,
    "iom": 0.0,
}

# Share of the BIO+HUM flux that goes to BIO
BIO_FRACTION = 0.46

# DPM:RPM ratio of plant inputs
DPM_RPM_RATIO_CROP = 1.44
DPM_RPM_RATIO_LEGUME = 1.0

# Carbon content of dry matter and residue return fractions
CARBON_FRACTION = 0.45
RESIDUE_FULL = 0.65
RESIDUE_STUBBLE = 0.20

# Additional inputs [Mg C/ha/yr]
COVER_CROP_INPUT = 0.8
MANURE_INPUT = 1.0

# Month indices (0 = first month of the year) covered by a cover crop
COVER_CROP_MONTHS = frozenset({0, 1, 2, 10, 11})

DAYS_PER_MONTH = 30


class Rotation(str, Enum):
    """Crop rotations with a predefined annual biomass sequence."""

    TOMATO_WHEAT = "tomato-wheat"
    TOMATO_WHEAT_GRAIN_MAIZE = "tomato-wheat-grain-maize"
    TOMATO_WHEAT_SILAGE_MAIZE = "tomato-wheat-silage-maize"
    TOMATO_WHEAT_SOY = "tomato-wheat-soy"
    TOMATO_WHEAT_SORGHUM = "tomato-wheat-sorghum"
    TOMATO_WHEAT_SUGAR_BEET = "tomato-wheat-sugar-beet"
    TOMATO_WHEAT_ALFALFA = "tomato-wheat-alfalfa"

    def is_legume_year(self, year_index: int) -> bool:
        """True if position ``year_index`` of the rotation is a legume."""
        if self is Rotation.TOMATO_WHEAT_SOY:
            return year_index == 2
        if self is Rotation.TOMATO_WHEAT_ALFALFA:
            return year_index >= 2
        return False


# Above-ground biomass per rotation year [Mg DM/ha]
ROTATION_BIOMASS: Mapping[Rotation, tuple[float, ...]] = {
    Rotation.TOMATO_WHEAT: (8.0, 14.0),
    Rotation.TOMATO_WHEAT_GRAIN_MAIZE: (8.0, 14.0, 22.0),
    Rotation.TOMATO_WHEAT_SILAGE_MAIZE: (8.0, 14.0, 20.0),
    Rotation.TOMATO_WHEAT_SOY: (8.0, 14.0, 8.0),
    Rotation.TOMATO_WHEAT_SORGHUM: (8.0, 14.0, 16.0),
    Rotation.TOMATO_WHEAT_SUGAR_BEET: (8.0, 14.0, 18.0),
    # three years of alfalfa
    Rotation.TOMATO_WHEAT_ALFALFA: (8.0, 14.0, 12.0, 12.0, 12.0),
}


@dataclass(frozen=True, slots=True)
class CarbonParams:
    """
    Soil-carbon management parameters.

    Parameters
    ----------
    rotation : Rotation or str
        Crop rotation; strings are converted to :class:`Rotation`.
    minimum_tillage : bool
        Reduced tillage (rate modifier 0.8).
    cover_crops : bool
        Winter cover crops: extra carbon input and live cover Nov-Mar.
    incorporate_residues : bool
        Full residue return (``True``) or stubble only (``False``).
    add_manure : bool
        Annual manure application.
    """

    rotation: Rotation = Rotation.TOMATO_WHEAT
    minimum_tillage: bool = False
    cover_crops: bool = False
    incorporate_residues: bool = True
    add_manure: bool = False

    def __post_init__(self):
        try:
            rotation = Rotation(self.rotation)
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown rotation '{self.rotation}'. "
                f"Known: {[r.value for r in Rotation]}"
            ) from e
        object.__setattr__(self, "rotation", rotation)

    def baseline(self) -> "CarbonParams":
        """Same rotation under conventional management."""
        return replace(
            self,
            minimum_tillage=False,
            cover_crops=False,
            add_manure=False,
            incorporate_residues=True,
        )

    @property
    def biomass_sequence(self) -> tuple[float, ...]:
        """Annual biomass sequence of the selected rotation [Mg DM/ha]."""
        return ROTATION_BIOMASS[self.rotation]


# -------------------------
# Rate modifiers
# -------------------------


def temperature_modifier(temp: Array | float) -> Array | float:
    r"""
    RothC temperature rate modifier.

    .. math::

        a(T) = \frac{47.91}{1 + e^{106.06/(T + 18.27)}}, \qquad
        a(T) = 0 \ \text{for}\ T < -5\,°C.
    """
    t = np.asarray(temp, dtype=float)
    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        a = 47.91 / (1.0 + np.exp(106.06 / (t + 18.27)))
    a = np.where(t < -5.0, 0.0, a)
    return float(a) if a.ndim == 0 else a


def max_soil_moisture_deficit(clay: float) -> float:
    """Maximum topsoil moisture deficit ``-(20 + 1.3c - 0.01c²)`` [mm]."""
    return -(20.0 + 1.3 * clay - 0.01 * clay * clay)


def moisture_modifier(
    precip: Array | float, et0: Array | float, clay: float
) -> Array | float:
    """
    Moisture rate modifier from the monthly water balance.

    A non-negative ``precip − et0`` gives 1. Otherwise the deficit is capped
    at :func:`max_soil_moisture_deficit` and mapped linearly onto
    ``[0.2, 1]``.
    """
    max_smd = max_soil_moisture_deficit(clay)
    balance = np.asarray(precip, dtype=float) - np.asarray(et0, dtype=float)
    deficit = np.maximum(balance, max_smd)
    factor = 0.2 + 0.8 * ((max_smd - deficit) / max_smd)
    out = np.where(balance >= 0.0, 1.0, np.clip(factor, 0.2, 1.0))
    return float(out) if out.ndim == 0 else out


def cover_modifier(plant_cover: bool, minimum_tillage: bool = False) -> float:
    """Soil-cover modifier (0.6 under live cover) times tillage (0.8)."""
    cover = 0.6 if plant_cover else 1.0
    tillage = 0.8 if minimum_tillage else 1.0
    return cover * tillage


def clay_partition(clay: float) -> float:
    """CO2 : (BIO+HUM) ratio ``x = 1.67(1.85 + 1.60 e^{-0.0786 clay})``."""
    return 1.67 * (1.85 + 1.60 * np.exp(-0.0786 * clay))


# -------------------------
# Pool dynamics
# -------------------------


def decompose(pools: CarbonPools, modifier: float) -> CarbonPools:
    """
    Carbon decomposed from each pool during one month.

    Each pool loses ``amount·(1 − exp(−rate·modifier/12))``; IOM has a zero
    rate and never decomposes.
    """
    return CarbonPools(
        **{
            name: getattr(pools, name)
            * (1.0 - np.exp(-rate * modifier / 12.0))
            for name, rate in RATE_CONSTANTS.items()
        }
    )


def rothc_step(
    pools: CarbonPools,
    dpm_input: float,
    rpm_input: float,
    modifier: float,
    clay: float,
) -> tuple[CarbonPools, float]:
    """
    Advance the pools by one month.

    Parameters
    ----------
    pools : CarbonPools
        Pools at the start of the month [Mg C/ha].
    dpm_input, rpm_input : float
        Fresh plant carbon added to DPM and RPM this month [Mg C/ha].
    modifier : float
        Combined rate modifier (temperature × moisture × cover).
    clay : float
        Clay content [%].

    Returns
    -------
    new_pools : CarbonPools
        Pools at the end of the month.
    co2 : float
        Carbon respired during the month [Mg C/ha].
    """
    dec = decompose(pools, modifier)
    total = dec.dpm + dec.rpm + dec.bio + dec.hum

    x = clay_partition(clay)
    co2 = total * x / (x + 1.0)
    to_bio_hum = total / (x + 1.0)

    new_pools = CarbonPools(
        dpm=pools.dpm - dec.dpm + dpm_input,
        rpm=pools.rpm - dec.rpm + rpm_input,
        bio=pools.bio - dec.bio + to_bio_hum * BIO_FRACTION,
        hum=pools.hum - dec.hum + to_bio_hum * (1.0 - BIO_FRACTION),
        iom=pools.iom,
    )
    return new_pools, float(co2)


# -------------------------
# Monthly aggregation
# -------------------------


def aggregate_monthly(
    weather: Weather,
    lai: Sequence[float] | Array | None = None,
    et0: float = 4.0,
    lai_threshold: float = 0.5,
) -> MonthlyClimate:
    """
    Summarise daily forcing into consecutive 30-day chunks.

    Parameters
    ----------
    weather : Weather
        Daily forcing.
    lai : array_like, optional
        Daily LAI. Days beyond its end (e.g. after harvest) count as bare.
    et0 : float, default=4.0
        Daily reference ET [mm/day]; the monthly value is ``30·et0``.
    lai_threshold : float, default=0.5
        LAI above which a day counts as covered.

    Returns
    -------
    MonthlyClimate
        Mean temperature, total rain, monthly ET0 and a live-cover flag that
        is set when more than half of the chunk's days are covered. The last
        chunk may be shorter than 30 days.
    """
    T = len(weather.tmin)
    covered = np.zeros(T, dtype=bool)
    if lai is not None:
        lai_arr = np.asarray(lai, dtype=float).ravel()[:T]
        covered[: lai_arr.size] = lai_arr > lai_threshold

    tmean = weather.tmean
    starts = range(0, T, DAYS_PER_MONTH)
    temp, precip, cover = [], [], []
    for i in starts:
        sl = slice(i, min(i + DAYS_PER_MONTH, T))
        n = sl.stop - sl.start
        temp.append(float(np.mean(tmean[sl])))
        precip.append(float(np.sum(weather.rain[sl])))
        cover.append(bool(np.count_nonzero(covered[sl]) > n / 2))

    M = len(temp)
    return MonthlyClimate(
        temp=np.asarray(temp, dtype=float),
        precip=np.asarray(precip, dtype=float),
        et0=np.full(M, DAYS_PER_MONTH * et0),
        plant_cover=np.asarray(cover, dtype=bool),
    )


# -------------------------
# Long-term driver
# -------------------------


@dataclass(slots=True)
class CarbonModel:
    """
    Multi-year monthly RothC simulation.

    Parameters
    ----------
    monthly : MonthlyClimate
        Monthly climate, drawn cyclically (month ``m`` of every year uses
        entry ``m % M``).
    soil : SoilParams
        Uses ``initial_soc`` and ``clay_percent``.
    params : CarbonParams
        Management parameters.
    years : int, default=20
        Number of simulated years.
    biomass_sequence : sequence of float, optional
        Annual biomass per rotation position [Mg DM/ha]. Defaults to the
        sequence of ``params.rotation``.

    Notes
    -----
    Annual carbon input is
    ``biomass·0.45·(0.65 | 0.20) + 0.8·cover_crops + 1.0·manure`` spread
    evenly over 12 months and split between DPM and RPM according to the
    rotation-year legume flag.
    """

    monthly: MonthlyClimate
    soil: SoilParams = field(default_factory=SoilParams)
    params: CarbonParams = field(default_factory=CarbonParams)
    years: int = 20
    biomass_sequence: Sequence[float] | None = None

    def evolve(self) -> CarbonResults:
        """Run the monthly loop and return the pool trajectory."""
        if self.years < 0:
            raise ConfigurationError("years must be non-negative.")

        cp, sp, mc = self.params, self.soil, self.monthly
        seq = tuple(
            self.biomass_sequence
            if self.biomass_sequence is not None
            else cp.biomass_sequence
        )
        M = len(mc.temp)
        if M == 0 or not seq:
            return self._package_results([])

        # Modifiers only depend on the month, not on the year
        tillage_cover = [
            cover_modifier(
                bool(mc.plant_cover[m % M])
                or (cp.cover_crops and m in COVER_CROP_MONTHS),
                cp.minimum_tillage,
            )
            for m in range(12)
        ]
        env = [
            temperature_modifier(float(mc.temp[m % M]))
            * moisture_modifier(
                float(mc.precip[m % M]), float(mc.et0[m % M]), sp.clay_percent
            )
            * tillage_cover[m]
            for m in range(12)
        ]

        pools = CarbonPools.from_total_soc(sp.initial_soc)
        rows = []
        for y in range(self.years):
            idx = y % len(seq)
            monthly_input = self._annual_input(seq[idx], cp) / 12.0
            ratio = (
                DPM_RPM_RATIO_LEGUME
                if cp.rotation.is_legume_year(idx)
                else DPM_RPM_RATIO_CROP
            )
            dpm_frac = ratio / (1.0 + ratio)

            for m in range(12):
                pools, co2 = rothc_step(
                    pools,
                    monthly_input * dpm_frac,
                    monthly_input * (1.0 - dpm_frac),
                    env[m],
                    sp.clay_percent,
                )
                rows.append((y + 1, m + 1, pools, co2, monthly_input))

        logger.debug(
            "RothC: %d years, SOC %.2f -> %.2f Mg C/ha",
            self.years,
            sp.initial_soc,
            pools.total,
        )
        return self._package_results(rows)

    @staticmethod
    def _annual_input(biomass: float, cp: CarbonParams) -> float:
        """Total carbon input of one year [Mg C/ha]."""
        residue = RESIDUE_FULL if cp.incorporate_residues else RESIDUE_STUBBLE
        c_in = biomass * CARBON_FRACTION * residue
        if cp.cover_crops:
            c_in += COVER_CROP_INPUT
        if cp.add_manure:
            c_in += MANURE_INPUT
        return c_in

    @staticmethod
    def _package_results(rows: list) -> CarbonResults:
        """Build results from ``(year, month, pools, co2, input)`` rows."""

        def col(fn, dtype=float) -> Array:
            return np.asarray([fn(r) for r in rows], dtype=dtype)

        return CarbonResults(
            year=col(lambda r: r[0], int),
            month=col(lambda r: r[1], int),
            dpm=col(lambda r: r[2].dpm),
            rpm=col(lambda r: r[2].rpm),
            bio=col(lambda r: r[2].bio),
            hum=col(lambda r: r[2].hum),
            iom=col(lambda r: r[2].iom),
            total_soc=col(lambda r: r[2].total),
            co2=col(lambda r: r[3]),
            c_input=col(lambda r: r[4]),
        )
