"""
Weather import helpers (outside the simulation core).

Functions
---------
read_weather_csv
    Read a ``DAY,TMIN,TMAX,RAIN,SRAD`` table into :class:`Weather`.
fetch_open_meteo
    Download one calendar year of daily weather from the Open-Meteo archive.
weather_from_frame
    Build :class:`Weather` from a DataFrame with the standard columns.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd
import requests

from agrosim.core.data_containers import Weather
from agrosim.exceptions import ConfigurationError, WeatherFetchError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("TMIN", "TMAX")
OPTIONAL_COLUMNS = ("RAIN", "SRAD")

OPEN_METEO_ARCHIVE_URL = "https://archive-api.open-meteo.com/v1/archive"
OPEN_METEO_DAILY = (
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "shortwave_radiation_sum",
)
HTTP_OK = 200


def weather_from_frame(df: pd.DataFrame) -> Weather:
    """
    Convert a table with (case-insensitive) weather columns to ``Weather``.

    Rows whose TMIN or TMAX do not parse as numbers are skipped with a
    warning. Missing or unparseable RAIN/SRAD values default to 0, and a
    missing DAY defaults to the 1-based row position in the table.

    Raises
    ------
    ConfigurationError
        If TMIN or TMAX is not among the columns.
    """
    df = df.rename(columns=lambda c: str(c).strip().upper())
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ConfigurationError(
            f"Weather table is missing required columns: {missing}"
        )

    num = pd.DataFrame(index=df.index)
    for col in ("DAY",) + REQUIRED_COLUMNS + OPTIONAL_COLUMNS:
        if col in df.columns:
            num[col] = pd.to_numeric(df[col], errors="coerce")
        else:
            num[col] = np.nan
    num["ROW"] = np.arange(1, len(num) + 1)

    ok = num["TMIN"].notna() & num["TMAX"].notna()
    n_skipped = int((~ok).sum())
    if n_skipped:
        logger.warning(
            "Skipped %d weather rows with unparseable TMIN/TMAX.", n_skipped
        )
    num = num[ok]

    day = num["DAY"].where(num["DAY"].notna() & (num["DAY"] != 0), num["ROW"])
    return Weather(
        tmin=num["TMIN"].to_numpy(dtype=float),
        tmax=num["TMAX"].to_numpy(dtype=float),
        srad=num["SRAD"].fillna(0.0).to_numpy(dtype=float),
        rain=num["RAIN"].fillna(0.0).to_numpy(dtype=float),
        day=day.to_numpy(dtype=int),
    )


def read_weather_csv(path: str | Path, **read_csv_kwargs) -> Weather:
    """
    Read daily weather from a CSV file.

    Parameters
    ----------
    path : str or pathlib.Path
        File with a header row including at least TMIN and TMAX
        (case-insensitive); DAY, RAIN and SRAD are optional.
    **read_csv_kwargs
        Forwarded to :func:`pandas.read_csv`.

    Returns
    -------
    Weather
    """
    df = pd.read_csv(path, skip_blank_lines=True, **read_csv_kwargs)
    weather = weather_from_frame(df)
    logger.info("Read %d weather days from %s", len(weather), path)
    return weather


def fetch_open_meteo(
    latitude: float,
    longitude: float,
    year: int,
    timeout: float = 30.0,
    session: requests.Session | None = None,
) -> Weather:
    """
    Fetch one calendar year of daily weather from the Open-Meteo archive.

    Parameters
    ----------
    latitude, longitude : float
        Site coordinates [decimal degrees].
    year : int
        Calendar year; January 1 to December 31 is requested.
    timeout : float, default=30.0
        Request timeout [s].
    session : requests.Session, optional
        Session to issue the request with.

    Returns
    -------
    Weather
        Daily TMIN, TMAX, RAIN and SRAD (MJ m⁻² day⁻¹), days numbered
        from 1.

    Raises
    ------
    WeatherFetchError
        On network errors, non-200 responses or a payload without daily data.
    """
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "start_date": f"{year}-01-01",
        "end_date": f"{year}-12-31",
        "daily": ",".join(OPEN_METEO_DAILY),
        "timezone": "auto",
    }
    getter = session.get if session is not None else requests.get
    try:
        response = getter(
            OPEN_METEO_ARCHIVE_URL, params=params, timeout=timeout
        )
    except requests.RequestException as e:
        raise WeatherFetchError(f"Error fetching weather data: {e}") from e

    if response.status_code != HTTP_OK:
        raise WeatherFetchError(
            "Failed retrieving Open-Meteo data, server returned HTTP "
            f"code {response.status_code} on URL {response.url}"
        )
    try:
        daily = response.json()["daily"]
    except (ValueError, KeyError, TypeError) as e:
        raise WeatherFetchError("Invalid Open-Meteo payload.") from e
    missing = [k for k in OPEN_METEO_DAILY if k not in daily]
    if missing:
        raise WeatherFetchError(
            f"Open-Meteo payload is missing daily variables: {missing}"
        )

    df = pd.DataFrame(
        {
            "TMAX": daily["temperature_2m_max"],
            "TMIN": daily["temperature_2m_min"],
            "RAIN": daily["precipitation_sum"],
            "SRAD": daily["shortwave_radiation_sum"],
        }
    )
    weather = weather_from_frame(df)
    logger.info(
        "Fetched %d days for (%.2f, %.2f) in %d from Open-Meteo.",
        len(weather),
        latitude,
        longitude,
        year,
    )
    return weather
