import math

import numpy as np
import numpy.testing as npt
import pytest

from agrosim.core.energy_balance import (
    EnergyBalanceInputs,
    EnergyBalanceParams,
    EnergyBalanceSolver,
    LeafCategory,
    ShadedLeaf,
    SunlitLeaf,
    simulate_diurnal,
    water_saving,
)
from agrosim.exceptions import ConfigurationError, ConvergenceWarning
from agrosim.library.micrometeorology import (
    psychrometric_constant,
    saturation_vapor_pressure,
    stability_correction,
    vapor_pressure_deficit,
)


def _midday_inputs(**kwargs) -> EnergyBalanceInputs:
    base = dict(
        air_temperature=28.0,
        relative_humidity=45.0,
        par_direct=400.0,
        par_diffuse=70.0,
    )
    base.update(kwargs)
    return EnergyBalanceInputs(**base)


def test_no_energy_and_saturated_air_keep_air_temperature():
    inputs = _midday_inputs(
        relative_humidity=100.0, par_direct=0.0, par_diffuse=0.0
    )
    params = EnergyBalanceParams(albedo=1.0, atmospheric_emissivity=1.0)
    res = EnergyBalanceSolver(inputs, params).run()

    assert res.converged
    assert res.net_radiation <= 0.0
    for c in res.components:
        assert c.temperature == pytest.approx(28.0)
        assert c.latent_heat_flux == pytest.approx(0.0, abs=1e-9)
    assert res.et_mm_h == pytest.approx(0.0, abs=1e-9)


def test_reflective_canopy_in_darkness_cools_below_air():
    inputs = EnergyBalanceInputs(
        air_temperature=20.0, par_direct=0.0, par_diffuse=0.0
    )
    res = EnergyBalanceSolver(inputs, EnergyBalanceParams(albedo=1.0)).run()

    assert res.converged
    # only the long-wave deficit of a clear sky remains
    assert -20.0 < res.net_radiation <= 0.0
    temps = np.array([c.temperature for c in res.components])
    # long-wave loss and evaporation into unsaturated air cool every
    # component slightly
    assert np.all(temps < 20.0)
    assert np.all(temps > 19.0)


@pytest.mark.filterwarnings("ignore::agrosim.exceptions.ConvergenceWarning")
def test_midday_balance_closes():
    res = EnergyBalanceSolver(_midday_inputs()).run()

    assert res.net_radiation > 0.0
    assert res.latent_heat_flux > 0.0
    npt.assert_allclose(
        res.sensible_heat_flux + res.latent_heat_flux,
        res.net_radiation - res.soil_heat_flux,
        rtol=1e-9,
    )
    # stomata of sunlit leaves see more light than shaded ones
    sunlit, shaded = res.leaves
    assert sunlit.surface_resistance < shaded.surface_resistance


def test_sunlit_shaded_split_preserves_lai():
    res = EnergyBalanceSolver(_midday_inputs(leaf_area_index=3.0)).run()
    sunlit, shaded = res.leaves
    assert isinstance(sunlit, SunlitLeaf)
    assert isinstance(shaded, ShadedLeaf)
    assert sunlit.lai == pytest.approx((1.0 - math.exp(-1.8)) / 0.6)
    assert sunlit.lai + shaded.lai == pytest.approx(3.0)


def test_lumped_canopy_has_one_leaf():
    res = EnergyBalanceSolver(_midday_inputs(), leaf_category="lumped").run()
    assert len(res.leaves) == 1
    assert res.leaves[0].lai == pytest.approx(4.0)
    assert np.isfinite(res.canopy_temperature)


def test_bare_soil_canopy_temperature_is_air_temperature():
    res = EnergyBalanceSolver(
        _midday_inputs(leaf_area_index=0.0, canopy_height=0.0),
        leaf_category=LeafCategory.LUMPED,
    ).run()
    assert res.canopy_temperature == 28.0
    assert res.soil.absorbed_energy == pytest.approx(
        res.net_radiation - res.soil_heat_flux
    )


def test_closed_stomata_without_soil_water():
    res = EnergyBalanceSolver(_midday_inputs(soil_water_content=0.1)).run()
    for leaf in res.leaves:
        assert leaf.surface_resistance >= 1e9


def test_iteration_cap_warns():
    params = EnergyBalanceParams(max_iterations=1)
    with pytest.warns(ConvergenceWarning):
        res = EnergyBalanceSolver(_midday_inputs(), params).run()
    assert not res.converged
    assert res.outer_iterations <= 1


def test_neutral_run_skips_stability_loop():
    res = EnergyBalanceSolver(_midday_inputs()).run(stability=False)
    assert res.outer_iterations == 0
    assert res.aerodynamic_resistance > 0.0


def test_invalid_geometry():
    with pytest.raises(ConfigurationError):
        EnergyBalanceInputs(
            air_temperature=20.0, measurement_height=0.5, canopy_height=0.8
        )
    with pytest.raises(ConfigurationError):
        EnergyBalanceInputs(air_temperature=20.0, wind_speed=0.0)
    # below the bare-soil roughness length the log profile is undefined
    with pytest.raises(ConfigurationError):
        EnergyBalanceSolver(
            _midday_inputs(
                canopy_height=0.0,
                leaf_area_index=0.0,
                measurement_height=0.005,
            )
        )


def test_micrometeorology_helpers():
    assert saturation_vapor_pressure(20.0) == pytest.approx(2.338, rel=1e-3)
    assert vapor_pressure_deficit(20.0, 100.0) == 0.0
    assert psychrometric_constant(101.3) == pytest.approx(0.0673, rel=1e-2)

    assert stability_correction(0.0) == (0.0, 0.0)
    phi_m, phi_h = stability_correction(-0.5)
    assert phi_m > 0.0 and phi_h > 0.0
    phi_m, phi_h = stability_correction(0.2)
    assert phi_m == phi_h == pytest.approx(-1.0)


@pytest.mark.slow
@pytest.mark.filterwarnings("ignore::agrosim.exceptions.ConvergenceWarning")
def test_shading_saves_water():
    base = simulate_diurnal(days=1, step_hours=1.0)
    shaded = simulate_diurnal(days=1, step_hours=1.0, shading_percent=50.0)

    assert len(base) == 24
    npt.assert_array_equal(base.hour, np.arange(24.0))
    assert np.all(base.soil_water >= EnergyBalanceParams().wilting_point)
    assert shaded.rad.max() == pytest.approx(0.5 * base.rad.max())
    assert base.total_et(step_hours=1.0) > shaded.total_et(step_hours=1.0)
    assert water_saving(base, shaded) > 0.0
    assert water_saving(shaded, shaded) == 0.0


def test_water_saving_without_baseline_et():
    empty = simulate_diurnal(days=0)
    assert len(empty) == 0
    assert water_saving(empty, empty) == 0.0
