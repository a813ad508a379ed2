import numpy as np
import numpy.testing as npt
import pytest

from agrosim.core.data_containers import Weather
from agrosim.core.weather import WeatherParams, make_weather, scale_weather
from agrosim.exceptions import ConfigurationError


def test_seed_makes_rain_reproducible():
    a = make_weather(WeatherParams(), seed=11)
    b = make_weather(WeatherParams(), rng=np.random.default_rng(11))
    npt.assert_array_equal(a.rain, b.rain)
    assert len(a) == 200


def test_generator_shape_and_ranges():
    params = WeatherParams(n_days=365, diurnal_range=12.0)
    w = make_weather(params, seed=0)

    npt.assert_allclose(w.tmax - w.tmin, 12.0)
    npt.assert_array_equal(w.day, np.arange(1, 366))
    assert np.all(w.srad >= 0.0)
    assert np.all(w.rain >= 0.0)
    npt.assert_allclose(w.tmean.mean(), params.tmean, atol=0.5)


def test_dry_climate():
    w = make_weather(WeatherParams(rain_mean=0.0), seed=1)
    npt.assert_array_equal(w.rain, 0.0)


def test_scale_weather():
    w = make_weather(WeatherParams(n_days=30), seed=2)
    s = scale_weather(w, srad_factor=0.7, rain_factor=-1.0)
    npt.assert_allclose(s.srad, 0.7 * w.srad)
    npt.assert_array_equal(s.rain, 0.0)
    npt.assert_array_equal(s.tmin, w.tmin)


def test_weather_validation():
    with pytest.raises(ConfigurationError):
        Weather(tmin=[1, 2], tmax=[3], srad=[1, 1], rain=[0, 0])
    with pytest.raises(ConfigurationError):
        Weather(tmin=[1], tmax=[3], srad=[1], rain=[-2])
    with pytest.raises(ConfigurationError):
        Weather(tmin=[[1]], tmax=[[3]], srad=[[1]], rain=[[0]])
    with pytest.raises(ConfigurationError):
        WeatherParams(n_days=-1)


def test_weather_table_layout():
    df = make_weather(WeatherParams(n_days=5), seed=3).to_dataframe()
    assert list(df.columns) == ["DAY", "TMIN", "TMAX", "RAIN", "SRAD"]
    assert len(df) == 5
