import numpy as np
import numpy.testing as npt
import pytest
import requests

from agrosim.core.data_containers import CropResults, DiurnalResults
from agrosim.core.model import CropModel
from agrosim.core.weather import WeatherParams, make_weather
from agrosim.exceptions import ConfigurationError, WeatherFetchError
from agrosim.library import weather_io
from agrosim.library.io_hdf5 import (
    load_results_hdf5,
    load_results_vars_hdf5,
    save_results_hdf5,
)
from agrosim.library.weather_io import fetch_open_meteo, read_weather_csv


class _FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.url = weather_io.OPEN_METEO_ARCHIVE_URL

    def json(self):
        return self._payload


def _daily_payload():
    return {
        "daily": {
            "time": ["2024-01-01", "2024-01-02", "2024-01-03"],
            "temperature_2m_max": [25.0, None, 27.5],
            "temperature_2m_min": [12.0, 13.0, 14.5],
            "precipitation_sum": [0.0, 3.2, None],
            "shortwave_radiation_sum": [22.1, 18.4, 25.0],
        }
    }


# -------------------------
# CSV
# -------------------------


def test_read_weather_csv(tmp_path):
    path = tmp_path / "weather.csv"
    path.write_text(
        " day ,tmin,TMAX,Rain\n"
        "1,10.0,20.0,1.5\n"
        "2,n/a,21.0,0.0\n"
        "3,11.0,22.0,\n"
    )
    w = read_weather_csv(path)

    assert len(w) == 2
    npt.assert_array_equal(w.day, [1, 3])
    npt.assert_array_equal(w.tmin, [10.0, 11.0])
    npt.assert_array_equal(w.rain, [1.5, 0.0])
    # SRAD column is absent
    npt.assert_array_equal(w.srad, 0.0)


def test_csv_without_day_column_uses_row_order(tmp_path):
    path = tmp_path / "weather.csv"
    path.write_text("TMIN,TMAX,RAIN,SRAD\n5,15,0,10\n6,16,2,12\n")
    w = read_weather_csv(path)
    npt.assert_array_equal(w.day, [1, 2])
    npt.assert_array_equal(w.srad, [10.0, 12.0])


def test_csv_round_trip_of_generated_weather(tmp_path):
    weather = make_weather(WeatherParams(n_days=20), seed=4)
    path = tmp_path / "generated.csv"
    weather.to_dataframe().to_csv(path, index=False)

    back = read_weather_csv(path)
    npt.assert_allclose(back.tmax, weather.tmax)
    npt.assert_array_equal(back.day, weather.day)


def test_csv_missing_required_column(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("DAY,TMIN,RAIN\n1,10,0\n")
    with pytest.raises(ConfigurationError):
        read_weather_csv(path)


# -------------------------
# Open-Meteo
# -------------------------


def test_fetch_open_meteo(monkeypatch):
    calls = {}

    def fake_get(url, params=None, timeout=None):
        calls.update(url=url, params=params, timeout=timeout)
        return _FakeResponse(_daily_payload())

    monkeypatch.setattr(weather_io.requests, "get", fake_get)
    w = fetch_open_meteo(-31.4, -64.2, 2024)

    assert calls["params"]["start_date"] == "2024-01-01"
    assert calls["params"]["end_date"] == "2024-12-31"
    assert "shortwave_radiation_sum" in calls["params"]["daily"]
    assert calls["timeout"] == 30.0
    # the day with a missing TMAX is dropped
    npt.assert_array_equal(w.day, [1, 3])
    npt.assert_array_equal(w.tmax, [25.0, 27.5])
    npt.assert_array_equal(w.rain, [0.0, 0.0])
    npt.assert_array_equal(w.srad, [22.1, 25.0])


def test_fetch_open_meteo_http_error(monkeypatch):
    monkeypatch.setattr(
        weather_io.requests,
        "get",
        lambda *a, **k: _FakeResponse({}, status_code=500),
    )
    with pytest.raises(WeatherFetchError):
        fetch_open_meteo(0.0, 0.0, 2024)


def test_fetch_open_meteo_network_error(monkeypatch):
    def fail(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(weather_io.requests, "get", fail)
    with pytest.raises(WeatherFetchError):
        fetch_open_meteo(0.0, 0.0, 2024)


def test_fetch_open_meteo_without_daily_block(monkeypatch):
    monkeypatch.setattr(
        weather_io.requests,
        "get",
        lambda *a, **k: _FakeResponse({"error": True, "reason": "bad"}),
    )
    with pytest.raises(WeatherFetchError):
        fetch_open_meteo(0.0, 0.0, 2024)


# -------------------------
# HDF5
# -------------------------


def test_hdf5_round_trip(tmp_path):
    weather = make_weather(WeatherParams(n_days=120), seed=8)
    res = CropModel(weather).evolve()
    path = tmp_path / "out" / "crop.h5"

    save_results_hdf5(res, path, extra_meta={"site": {"lat": -31.4}})
    back = load_results_hdf5(path, CropResults)

    assert isinstance(back, CropResults)
    npt.assert_array_equal(back.b, res.b)
    npt.assert_array_equal(back.day, res.day)

    only = load_results_vars_hdf5(path, ["lai"])
    assert set(only) == {"lai"}
    with pytest.raises(KeyError):
        load_results_vars_hdf5(path, ["yield"])


def test_hdf5_keeps_boolean_and_empty_arrays(tmp_path):
    n = 3
    res = DiurnalResults(
        converged=np.array([True, False, True]),
        **{
            name: np.arange(n, dtype=float)
            for name in (
                "time",
                "hour",
                "rad",
                "temp_air",
                "temp_canopy",
                "temp_soil",
                "et_mm_h",
                "soil_water",
                "vpd",
            )
        },
    )
    path = tmp_path / "diurnal.h5"
    save_results_hdf5(res, path)
    back = load_results_hdf5(path, DiurnalResults)
    assert back.converged.dtype == bool
    npt.assert_array_equal(back.converged, res.converged)

    empty = CropModel(make_weather(WeatherParams(n_days=0))).evolve()
    save_results_hdf5(empty, tmp_path / "empty.h5")
    assert len(load_results_hdf5(tmp_path / "empty.h5", CropResults)) == 0


def test_save_rejects_non_dataclass(tmp_path):
    with pytest.raises(TypeError):
        save_results_hdf5({"b": np.zeros(3)}, tmp_path / "x.h5")
