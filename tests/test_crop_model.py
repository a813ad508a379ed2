import numpy as np
import numpy.testing as npt
import pytest

from agrosim.core.crops import CropParams
from agrosim.core.data_containers import Weather
from agrosim.core.model import PAR_FRACTION, CropModel
from agrosim.core.weather import WeatherParams, make_weather
from agrosim.exceptions import ConfigurationError

ATOL = 1e-9
RTOL = 1e-9


def _constant_weather(n_days: int, temp: float, srad: float = 20.0):
    return Weather(
        tmin=np.full(n_days, temp),
        tmax=np.full(n_days, temp),
        srad=np.full(n_days, srad),
        rain=np.zeros(n_days),
    )


def test_first_day_matches_hand_computation():
    weather = _constant_weather(5, temp=18.0, srad=20.0)
    # emergence window open from day 1
    cp = CropParams(fr_emr=0.0)
    res = CropModel(weather=weather, params=cp).evolve()

    lai1 = cp.lai0 + cp.alpha * cp.lai0 * (cp.lai_max - cp.lai0)
    db1 = 20.0 * PAR_FRACTION * (1.0 - np.exp(-cp.k_par * lai1)) * cp.rue

    npt.assert_allclose(res.dtu[0], 10.0)
    npt.assert_allclose(res.lai[0], lai1, rtol=RTOL, atol=ATOL)
    npt.assert_allclose(res.db[0], db1, rtol=RTOL, atol=ATOL)
    npt.assert_allclose(res.b[0], cp.b0 + db1, rtol=RTOL, atol=ATOL)


def test_stops_on_maturity_day():
    weather = _constant_weather(30, temp=18.0)
    res = CropModel(weather, CropParams(tu_har=100.0)).evolve()

    # 10 °C day units reach 100 on day 10
    assert len(res) == 10
    assert res.reached_maturity
    assert res.nds[-1] == 1.0
    assert res.db[-1] == 0.0
    npt.assert_array_equal(res.day, np.arange(1, 11))


def test_invariants_on_synthetic_season():
    weather = make_weather(WeatherParams(), seed=42)
    res = CropModel(weather=weather, params=CropParams()).evolve()

    assert 0 < len(res) <= len(weather)
    assert np.all((res.nds >= 0.0) & (res.nds <= 1.0))
    assert np.all(np.diff(res.nds) >= 0.0)
    assert np.all(res.lai >= 0.0)
    assert np.all(np.diff(res.b) >= -ATOL)
    npt.assert_allclose(np.cumsum(res.db), res.b, rtol=1e-9, atol=1e-9)
    if res.reached_maturity:
        assert np.count_nonzero(res.nds >= 1.0) == 1


def test_non_positive_target_gives_single_record():
    weather = _constant_weather(20, temp=25.0)
    res = CropModel(weather, CropParams(tu_har=0.0)).evolve()

    assert len(res) == 1
    assert res.nds[0] == 1.0
    assert res.db[0] == 0.0


def test_cold_weather_never_develops():
    weather = _constant_weather(30, temp=5.0)
    cp = CropParams()
    res = CropModel(weather, cp).evolve()

    assert len(res) == 30
    npt.assert_array_equal(res.ctu, 0.0)
    npt.assert_array_equal(res.lai, cp.lai0)
    npt.assert_array_equal(res.b, 0.0)
    assert not res.reached_maturity


def test_empty_weather():
    res = CropModel(Weather.empty()).evolve()
    assert len(res) == 0
    assert res.final_biomass == 0.0


def test_evolve_is_repeatable():
    weather = make_weather(WeatherParams(n_days=150), seed=3)
    model = CropModel(weather=weather, params=CropParams.from_preset("maize"))
    a = model.evolve()
    b = model.evolve()
    for name in ("nds", "lai", "b"):
        npt.assert_array_equal(getattr(a, name), getattr(b, name))


def test_to_dataframe_has_one_row_per_day():
    weather = make_weather(WeatherParams(n_days=60), seed=1)
    df = CropModel(weather).evolve().to_dataframe()
    assert list(df.columns[:2]) == ["day", "tmin"]
    assert len(df) <= 60


@pytest.mark.parametrize("name", ["generic", "maize", "wheat", "tomato"])
def test_presets(name):
    assert CropParams.from_preset(name).crop_name == name


def test_unknown_preset_raises():
    with pytest.raises(ConfigurationError):
        CropParams.from_preset("banana")


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(tb_rue=30.0),
        dict(fr_emr=0.8, fr_bls=0.5),
        dict(lai0=6.0),
        dict(tu_har=-1.0),
        dict(rue=0.0),
    ],
)
def test_invalid_params_raise(kwargs):
    with pytest.raises(ConfigurationError):
        CropParams(**kwargs)


def test_default_season_reaches_maturity_or_uses_every_day():
    weather = make_weather(
        WeatherParams(n_days=200, tmean=18.0, tamp=8.0), seed=0
    )
    cp = CropParams(t_base=8.0, tu_har=1400.0)
    res = CropModel(weather, cp).evolve()

    assert np.count_nonzero(weather.tmean > cp.t_base) > 100
    if res.reached_maturity:
        assert len(res) <= 200
    else:
        assert len(res) == 200
