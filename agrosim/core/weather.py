"""
Synthetic daily weather generation.

The generator produces a smooth seasonal cycle for temperature and radiation
and stochastic daily rainfall. Randomness is confined to the rainfall draw and
is isolated behind an explicit :class:`numpy.random.Generator`, so callers can
fix it for reproducible runs.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from agrosim.core.data_containers import Weather
from agrosim.exceptions import ConfigurationError


@dataclass(frozen=True, slots=True)
class WeatherParams:
    """
    Parameters of the synthetic weather generator.

    Parameters
    ----------
    n_days : int
        Number of days to generate.
    tmean : float
        Annual mean air temperature [°C].
    tamp : float
        Amplitude of the seasonal temperature cycle [°C].
    srad : float
        Mean global radiation [MJ/m²/day].
    rain_mean : float
        Mean daily rainfall [mm/day].
    rain_shape : float, default=1.0
        Shape of the gamma distribution of daily rainfall. A value of 1 gives
        an exponential distribution.
    diurnal_range : float, default=10.0
        Difference TMAX − TMIN [°C].
    """

    n_days: int = 200
    tmean: float = 18.0
    tamp: float = 8.0
    srad: float = 18.0
    rain_mean: float = 2.0
    rain_shape: float = 1.0
    diurnal_range: float = 10.0

    def __post_init__(self):
        if self.n_days < 0:
            raise ConfigurationError("n_days must be non-negative.")
        if self.tamp < 0.0 or self.srad < 0.0 or self.rain_mean < 0.0:
            raise ConfigurationError(
                "tamp, srad and rain_mean must be non-negative."
            )
        if self.rain_shape <= 0.0 or self.diurnal_range < 0.0:
            raise ConfigurationError(
                "rain_shape must be positive and diurnal_range non-negative."
            )


def make_weather(
    params: WeatherParams,
    rng: np.random.Generator | None = None,
    seed: int | None = None,
) -> Weather:
    r"""
    Generate a synthetic daily weather series.

    For day of year :math:`d = 1..n`:

    .. math::

        \begin{aligned}
        T_d &= T_{mean} + T_{amp}\,\sin\!\big(2\pi (d - 30)/365\big),\\
        TMIN_d, TMAX_d &= T_d \mp \Delta T / 2,\\
        SRAD_d &= \max\!\big(0,\ S + 6\,\sin(2\pi (d - 80)/365)\big),\\
        RAIN_d &\sim \Gamma(k,\ \mu/k).
        \end{aligned}

    Parameters
    ----------
    params : WeatherParams
        Generator parameters.
    rng : numpy.random.Generator, optional
        Random source for rainfall. Takes precedence over ``seed``.
    seed : int, optional
        Seed for a fresh ``default_rng`` when ``rng`` is not given.

    Returns
    -------
    Weather
        Daily forcing of length ``params.n_days``.
    """
    if rng is None:
        rng = np.random.default_rng(seed)

    doy = np.arange(1, params.n_days + 1)
    tmp = params.tmean + params.tamp * np.sin(2.0 * np.pi * (doy - 30) / 365.0)
    half_range = 0.5 * params.diurnal_range
    srad = np.maximum(
        0.0, params.srad + 6.0 * np.sin(2.0 * np.pi * (doy - 80) / 365.0)
    )

    if params.rain_mean > 0.0:
        rain = rng.gamma(
            shape=params.rain_shape,
            scale=params.rain_mean / params.rain_shape,
            size=params.n_days,
        )
    else:
        rain = np.zeros(params.n_days)

    return Weather(
        tmin=tmp - half_range,
        tmax=tmp + half_range,
        srad=srad,
        rain=rain,
        day=doy,
    )


def scale_weather(
    weather: Weather, srad_factor: float = 1.0, rain_factor: float = 1.0
) -> Weather:
    """
    Return a copy of ``weather`` with radiation and rainfall rescaled.

    Used to build scenario forcings (e.g. shading under solar panels).
    Factors are floored at 0 so that the result stays valid.
    """
    return Weather(
        tmin=weather.tmin.copy(),
        tmax=weather.tmax.copy(),
        srad=weather.srad * max(srad_factor, 0.0),
        rain=weather.rain * max(rain_factor, 0.0),
        day=weather.day.copy(),
    )
