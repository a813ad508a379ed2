import numpy as np
import pytest

from agrosim.core.calibration import (
    calibrate,
    rmse,
    sensitivity,
    synthetic_observations,
)
from agrosim.core.crops import CropParams
from agrosim.core.weather import WeatherParams, make_weather
from agrosim.exceptions import ConfigurationError


@pytest.fixture(scope="module")
def weather():
    return make_weather(WeatherParams(n_days=180), seed=10)


def test_rmse():
    assert rmse([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == 0.0
    # only the common leading days are compared
    assert rmse([1.0, 2.0], [2.0, 3.0, 100.0]) == pytest.approx(1.0)
    assert np.isnan(rmse([], [1.0]))


def test_noise_free_observations_reproduce_the_run(weather):
    cp = CropParams()
    obs = synthetic_observations(weather, cp, sigma=0.0)
    noisy = synthetic_observations(weather, cp, sigma=150.0, seed=1)
    assert obs.shape == noisy.shape
    assert not np.allclose(obs, noisy)

    with pytest.raises(ConfigurationError):
        synthetic_observations(weather, cp, sigma=-1.0)


def test_calibration_recovers_rue(weather):
    truth = CropParams(rue=2.5)
    obs = synthetic_observations(weather, truth, sigma=0.0)

    res = calibrate(
        weather,
        CropParams(rue=1.0),
        obs,
        name="rue",
        grid=[1.5, 2.0, 2.5, 3.0, 3.5],
        refine=False,
    )
    assert res.best_value == 2.5
    assert res.best_rmse == pytest.approx(0.0, abs=1e-9)
    assert list(res.table.columns) == ["value", "rmse", "b_final"]
    assert len(res.table) == 5
    assert not res.refined


@pytest.mark.slow
def test_refinement_between_grid_points(weather):
    obs = synthetic_observations(weather, CropParams(rue=2.3), sigma=0.0)
    res = calibrate(
        weather, CropParams(), obs, name="rue", grid=[1.5, 2.0, 2.5, 3.0]
    )
    assert res.refined
    assert res.best_value == pytest.approx(2.3, abs=0.01)


def test_calibration_errors(weather):
    obs = synthetic_observations(weather, CropParams(), sigma=0.0)
    with pytest.raises(ConfigurationError):
        calibrate(weather, CropParams(), obs, name="sen_rate")
    with pytest.raises(ConfigurationError):
        calibrate(weather, CropParams(), obs, name="rue", grid=[])


def test_sensitivity_table(weather):
    df = sensitivity(weather, CropParams(), span_percent=20.0)

    assert len(df) == 3 * 6
    assert list(df.columns) == ["param", "scenario", "value", "b_final"]
    rue = df[df["param"] == "rue"].set_index("scenario")
    assert rue.loc["low", "value"] == pytest.approx(2.0)
    assert rue.loc["high", "b_final"] > rue.loc["low", "b_final"]

    with pytest.raises(ConfigurationError):
        sensitivity(weather, CropParams(), span_percent=100.0)
