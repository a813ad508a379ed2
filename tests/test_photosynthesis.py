import numpy as np
import numpy.testing as npt
import pytest

from agrosim.core.photosynthesis import (
    co2_response,
    light_response,
    net_assimilation,
)


def test_scalar_input_returns_float():
    a_n = net_assimilation(50.0, 100.0, 500.0, 30.0, 25.0)
    assert isinstance(a_n, float)
    assert a_n > 0.0


def test_darkness_gives_respiration_loss():
    assert net_assimilation(50.0, 100.0, 0.0, 30.0, 25.0) < 0.0


def test_co2_response_curve():
    ppm, a_n = co2_response()
    assert ppm.shape == a_n.shape == (100,)
    assert ppm[0] == 10.0 and ppm[-1] == 1000.0
    # below the compensation point the leaf loses carbon
    assert a_n[0] < 0.0
    assert a_n[-1] > a_n[0]


def test_light_response_curve_saturates():
    apar, a_n = light_response()
    assert apar.shape == a_n.shape == (101,)
    assert np.all(np.diff(a_n) >= -1e-12)
    # the last steps add little once light is no longer limiting
    assert a_n[-1] - a_n[-2] < a_n[1] - a_n[0]


@pytest.mark.parametrize("temp_c", [5.0, 45.0])
def test_extreme_temperatures_reduce_assimilation(temp_c):
    at_25 = net_assimilation(50.0, 100.0, 800.0, 30.0, 25.0)
    assert net_assimilation(50.0, 100.0, 800.0, 30.0, temp_c) < at_25


def test_broadcasting_over_temperature():
    temps = np.array([10.0, 20.0, 30.0])
    out = net_assimilation(50.0, 100.0, 800.0, 30.0, temps)
    assert out.shape == (3,)


# At 25 °C: V_m = 50 / ((1 + e^-3.75)(1 + e^-6)) = 48.7303, R_d = 0.73096,
# Gamma* = 4.07249 Pa, K_c (1 + O_i/K_o) = 51.1769 Pa
@pytest.mark.parametrize(
    "j_max, apar, c_i, expected",
    [
        # Rubisco-limited: w_c = 10.905 < w_s = 24.365 < w_j = 36.81
        (300.0, 2000.0, 20.0, 10.17361),
        # light-limited: J = 36.9435, w_j = 8.1925
        (300.0, 100.0, 100.0, 7.46152),
        # sink-limited: w_s = V_m / 2 below w_c = 30.92 and w_j = 57.70
        (300.0, 2000.0, 100.0, 23.63422),
    ],
)
def test_known_values_at_25_degrees(j_max, apar, c_i, expected):
    a_n = net_assimilation(50.0, j_max, apar, c_i, 25.0)
    assert a_n == pytest.approx(expected, rel=1e-3)


def test_high_co2_and_light_plateau_at_half_vm():
    ppm, a_n = co2_response(j_max=300.0, apar=2000.0)
    # w_s caps the curve once c_i exceeds about 60 Pa
    npt.assert_allclose(a_n[ppm >= 700.0], 23.63422, rtol=1e-3)
