"""
Iterative leaf/soil energy-balance solver.

The canopy is represented by a small set of components that share one
aerodynamic resistance: either a single *lumped* leaf or separate *sunlit*
and *shaded* leaves, plus the *soil* surface. For each component the solver
partitions available energy into latent heat (Penman–Monteith) and sensible
heat, and derives the surface temperature from the sensible flux.

Solver states
-------------
1. **Setup**: canopy geometry (displacement height, roughness length) and a
   neutral aerodynamic resistance.
2. **Transient balance** (inner loop): update every component until the
   summed absolute temperature change falls below the tolerance.
3. **Stability correction** (outer loop, optional): recompute the
   aerodynamic resistance from Monin–Obukhov similarity using the current
   sensible heat flux, then re-enter the transient balance. Stops when the
   sensible heat flux changes by less than 1 W m⁻².

Both loops are bounded by ``EnergyBalanceParams.max_iterations``. Hitting a
cap is not an error: the result is returned with ``converged=False`` and a
:class:`~agrosim.exceptions.ConvergenceWarning` is issued.

Classes
-------
EnergyBalanceInputs, EnergyBalanceParams
    Immutable meteorological/canopy state and physical/numerical parameters.
LeafCategory
    Canopy layout (lumped or sunlit/shaded).
CanopyComponent, LumpedLeaf, SunlitLeaf, ShadedLeaf, Soil
    Component hierarchy sharing :meth:`CanopyComponent.update`.
EnergyBalanceSolver, EnergyBalanceResult
    Solver and its output.

Functions
---------
simulate_diurnal
    Run the solver over synthetic half-hourly forcing.
water_saving
    Relative ET reduction of a scenario against a baseline.
"""

from __future__ import annotations

import logging
import math
import warnings
from dataclasses import dataclass, replace
from enum import Enum

import numpy as np

from agrosim.core.data_containers import DiurnalResults
from agrosim.exceptions import ConfigurationError, ConvergenceWarning
from agrosim.library.micrometeorology import (
    AIR_DENSITY,
    AIR_SPECIFIC_HEAT,
    LATENT_HEAT,
    STEFAN_BOLTZMANN,
    VON_KARMAN,
    celsius_to_kelvin,
    friction_velocity,
    obukhov_length,
    psychrometric_constant,
    roughness_length,
    saturation_vapor_pressure,
    stability_correction,
    vapor_pressure_deficit,
    vapor_pressure_slope,
    zero_plane_displacement,
)

logger = logging.getLogger(__name__)

RHO_CP = AIR_DENSITY * AIR_SPECIFIC_HEAT

# PAR share of global radiation
PAR_FRACTION = 0.48

# Surface resistance assigned to leaves with no open stomata [s m⁻¹]
CLOSED_STOMATA_RESISTANCE = 1e9

# Convergence threshold of the stability loop [W m⁻²]
SENSIBLE_HEAT_TOLERANCE = 1.0

# Iterations of the Obukhov-length fixed point within one stability update
MAX_STABILITY_ITERATIONS = 10


class LeafCategory(str, Enum):
    """Canopy layout used by the solver."""

    LUMPED = "lumped"
    SUNLIT_SHADED = "sunlit-shaded"


@dataclass(frozen=True, slots=True)
class EnergyBalanceInputs:
    """
    Instantaneous meteorological and canopy state.

    Parameters
    ----------
    air_temperature : float
        Air temperature at measurement height [°C].
    relative_humidity : float
        Relative humidity [%].
    wind_speed : float
        Wind speed at measurement height [m s⁻¹], positive.
    atmospheric_pressure : float
        Atmospheric pressure [kPa].
    measurement_height : float
        Height of the wind/temperature measurement [m]; must exceed the
        canopy height.
    canopy_height : float
        Canopy height [m].
    leaf_area_index : float
        Total canopy LAI [m² m⁻²].
    soil_water_content : float
        Volumetric soil water content [m³ m⁻³].
    par_direct, par_diffuse : float
        Incident direct and diffuse PAR [W m⁻²].
    vapor_pressure : float, optional
        Actual vapor pressure [kPa]. Derived from temperature and relative
        humidity when omitted.
    """

    air_temperature: float
    relative_humidity: float = 60.0
    wind_speed: float = 2.0
    atmospheric_pressure: float = 101.3
    measurement_height: float = 2.3
    canopy_height: float = 0.8
    leaf_area_index: float = 4.0
    soil_water_content: float = 0.22
    par_direct: float = 0.0
    par_diffuse: float = 0.0
    vapor_pressure: float | None = None

    def __post_init__(self):
        if not (0.0 <= self.relative_humidity <= 100.0):
            raise ConfigurationError("relative_humidity must be in [0, 100].")
        if self.wind_speed <= 0.0 or self.atmospheric_pressure <= 0.0:
            raise ConfigurationError(
                "wind_speed and atmospheric_pressure must be positive."
            )
        if self.canopy_height < 0.0 or self.leaf_area_index < 0.0:
            raise ConfigurationError(
                "canopy_height and leaf_area_index must be non-negative."
            )
        if self.measurement_height <= self.canopy_height:
            raise ConfigurationError(
                "measurement_height must exceed canopy_height."
            )
        if not (0.0 <= self.soil_water_content <= 1.0):
            raise ConfigurationError("soil_water_content must be in [0, 1].")
        if self.par_direct < 0.0 or self.par_diffuse < 0.0:
            raise ConfigurationError("Incident PAR must be non-negative.")
        if self.vapor_pressure is None:
            object.__setattr__(
                self,
                "vapor_pressure",
                saturation_vapor_pressure(self.air_temperature)
                * self.relative_humidity
                / 100.0,
            )
        elif self.vapor_pressure < 0.0:
            raise ConfigurationError("vapor_pressure must be non-negative.")

    @property
    def par_total(self) -> float:
        return self.par_direct + self.par_diffuse


@dataclass(frozen=True, slots=True)
class EnergyBalanceParams:
    """
    Physical and numerical parameters of the solver.

    Parameters
    ----------
    drag_coefficient : float
        Leaf drag coefficient used for canopy geometry.
    soil_roughness_length : float
        Roughness length of bare soil for momentum [m].
    atmospheric_emissivity : float
        Effective atmospheric emissivity in the long-wave balance.
    wilting_point, field_capacity : float
        Volumetric water contents bounding the water-stress ramp.
    max_stomatal_conductance : float
        Maximum stomatal conductance per unit leaf area [m s⁻¹].
    absorbed_par_50 : float
        PAR at which stomatal conductance is half its maximum [W m⁻²].
    extinction_coefficient : float
        Extinction coefficient of a black canopy for direct beam.
    albedo : float
        Surface short-wave albedo.
    temperature_tolerance : float
        Inner-loop tolerance on the summed temperature change [K].
    max_iterations : int
        Iteration cap of both the inner and the outer loop.
    """

    drag_coefficient: float = 0.2
    soil_roughness_length: float = 0.01
    atmospheric_emissivity: float = 0.85
    wilting_point: float = 0.15
    field_capacity: float = 0.35
    max_stomatal_conductance: float = 0.01
    absorbed_par_50: float = 100.0
    extinction_coefficient: float = 0.6
    albedo: float = 0.23
    temperature_tolerance: float = 0.01
    max_iterations: int = 50

    def __post_init__(self):
        if not (0.0 <= self.albedo <= 1.0):
            raise ConfigurationError("albedo must be in [0, 1].")
        if not (0.0 <= self.atmospheric_emissivity <= 1.0):
            raise ConfigurationError(
                "atmospheric_emissivity must be in [0, 1]."
            )
        if not (0.0 <= self.wilting_point < self.field_capacity <= 1.0):
            raise ConfigurationError(
                "Require 0 ≤ wilting_point < field_capacity ≤ 1."
            )
        if self.soil_roughness_length <= 0.0 or self.absorbed_par_50 <= 0.0:
            raise ConfigurationError(
                "soil_roughness_length and absorbed_par_50 must be positive."
            )
        if (
            self.drag_coefficient < 0.0
            or self.max_stomatal_conductance < 0.0
            or self.extinction_coefficient < 0.0
        ):
            raise ConfigurationError(
                "Drag, conductance and extinction must be non-negative."
            )
        if self.temperature_tolerance <= 0.0 or self.max_iterations < 1:
            raise ConfigurationError(
                "temperature_tolerance must be positive and "
                "max_iterations at least 1."
            )


@dataclass(frozen=True, slots=True)
class Environment:
    """Forcing shared by all components during one transient update."""

    air_temperature: float  # °C
    available_energy: float  # W m-2
    par_total: float  # W m-2
    par_diffuse: float  # W m-2
    lai: float  # total canopy LAI
    extinction_coefficient: float
    water_stress: float  # [0, 1]
    max_conductance: float  # m s-1
    par_50: float  # W m-2
    delta: float  # kPa K-1
    gamma: float  # kPa K-1
    vpd: float  # kPa
    ra: float  # s m-1

    @property
    def canopy_interception(self) -> float:
        """Fraction of available energy absorbed by the canopy."""
        return 1.0 - math.exp(-self.extinction_coefficient * self.lai)


# -------------------------
# Canopy components
# -------------------------


@dataclass(slots=True)
class CanopyComponent:
    """
    One surface exchanging energy with the air above the canopy.

    Subclasses define how much energy the surface absorbs and its surface
    resistance; :meth:`update` applies the Penman–Monteith partition common
    to all of them.
    """

    lai: float
    temperature: float
    absorbed_energy: float = 0.0
    latent_heat_flux: float = 0.0
    sensible_heat_flux: float = 0.0
    surface_resistance: float = 0.0

    def update(self, env: Environment) -> None:
        r"""
        Recompute fluxes and temperature for the current environment.

        .. math::

            \lambda E = \frac{\Delta A + \rho c_p\,VPD/r_a}
                             {\Delta + \gamma (1 + r_s/r_a)}, \qquad
            H = A - \lambda E, \qquad
            T = T_a + \frac{H\,r_a}{\rho c_p}.
        """
        self.absorbed_energy = self._absorbed_energy(env)
        self.surface_resistance = self._surface_resistance(env)

        num = env.delta * self.absorbed_energy + RHO_CP * env.vpd / env.ra
        den = env.delta + env.gamma * (1.0 + self.surface_resistance / env.ra)
        self.latent_heat_flux = num / den if den > 0.0 else 0.0
        self.sensible_heat_flux = self.absorbed_energy - self.latent_heat_flux
        self.temperature = (
            env.air_temperature + self.sensible_heat_flux * env.ra / RHO_CP
        )

    def _absorbed_energy(self, env: Environment) -> float:
        raise NotImplementedError

    def _surface_resistance(self, env: Environment) -> float:
        raise NotImplementedError


@dataclass(slots=True)
class _Leaf(CanopyComponent):
    """Leaf whose surface resistance is stomatal."""

    def _absorbed_par(self, env: Environment) -> float:
        raise NotImplementedError

    def _surface_resistance(self, env: Environment) -> float:
        par = self._absorbed_par(env)
        gs = (
            env.max_conductance
            * par
            / (env.par_50 + par)
            * env.water_stress
        )
        if gs * self.lai > 0.0:
            return 1.0 / (gs * self.lai)
        return CLOSED_STOMATA_RESISTANCE


@dataclass(slots=True)
class LumpedLeaf(_Leaf):
    """Whole canopy treated as a single big leaf."""

    def _absorbed_energy(self, env: Environment) -> float:
        return env.available_energy * env.canopy_interception

    def _absorbed_par(self, env: Environment) -> float:
        klai = env.extinction_coefficient * env.lai
        if klai > 0.0:
            return env.par_total * env.canopy_interception / klai
        return env.par_total


@dataclass(slots=True)
class _LeafClass(_Leaf):
    """Leaf class receiving a LAI-proportional share of canopy energy."""

    def _absorbed_energy(self, env: Environment) -> float:
        share = self.lai / env.lai if env.lai > 0.0 else 0.0
        return env.available_energy * env.canopy_interception * share


@dataclass(slots=True)
class SunlitLeaf(_LeafClass):
    """Leaves exposed to direct beam; stomata see direct + diffuse PAR."""

    def _absorbed_par(self, env: Environment) -> float:
        return env.par_total


@dataclass(slots=True)
class ShadedLeaf(_LeafClass):
    """Leaves in the shade; stomata see only diffuse PAR."""

    def _absorbed_par(self, env: Environment) -> float:
        return env.par_diffuse


@dataclass(slots=True)
class Soil(CanopyComponent):
    """Soil surface below the canopy."""

    def _absorbed_energy(self, env: Environment) -> float:
        return env.available_energy * (1.0 - env.canopy_interception)

    def _surface_resistance(self, env: Environment) -> float:
        return math.exp(8.206 - 4.255 * env.water_stress)


# -------------------------
# Solver
# -------------------------


@dataclass(frozen=True)
class EnergyBalanceResult:
    """Output of :meth:`EnergyBalanceSolver.run`."""

    components: tuple[CanopyComponent, ...]
    air_temperature: float  # °C
    net_radiation: float  # W m-2
    soil_heat_flux: float  # W m-2
    aerodynamic_resistance: float  # s m-1
    sensible_heat_flux: float  # W m-2, all components
    latent_heat_flux: float  # W m-2, all components
    converged: bool
    inner_iterations: int
    outer_iterations: int

    @property
    def leaves(self) -> tuple[CanopyComponent, ...]:
        return tuple(c for c in self.components if not isinstance(c, Soil))

    @property
    def soil(self) -> Soil:
        return next(c for c in self.components if isinstance(c, Soil))

    @property
    def canopy_temperature(self) -> float:
        """LAI-weighted leaf temperature (air temperature without leaves)."""
        total = sum(c.lai for c in self.leaves)
        if total <= 0.0:
            return self.air_temperature
        return sum(c.temperature * c.lai for c in self.leaves) / total

    @property
    def soil_temperature(self) -> float:
        return self.soil.temperature

    @property
    def et_mm_h(self) -> float:
        """Evapotranspiration rate equivalent to the latent heat flux."""
        return self.latent_heat_flux * 3600.0 / LATENT_HEAT


class EnergyBalanceSolver:
    """
    Canopy/soil energy-balance solver.

    Parameters
    ----------
    inputs : EnergyBalanceInputs
        Meteorological and canopy state.
    params : EnergyBalanceParams, optional
        Physical and numerical parameters.
    leaf_category : LeafCategory, default=LeafCategory.SUNLIT_SHADED
        Canopy layout.

    Raises
    ------
    ConfigurationError
        If the measurement height is not above the displacement height plus
        the roughness length (the log wind profile is then undefined).

    Examples
    --------
    >>> inputs = EnergyBalanceInputs(air_temperature=25.0, par_direct=400.0,
    ...                              par_diffuse=70.0)
    >>> res = EnergyBalanceSolver(inputs).run()
    >>> res.canopy_temperature  # doctest: +SKIP
    """

    def __init__(
        self,
        inputs: EnergyBalanceInputs,
        params: EnergyBalanceParams | None = None,
        leaf_category: LeafCategory | str = LeafCategory.SUNLIT_SHADED,
    ):
        self.inputs = inputs
        self.params = params if params is not None else EnergyBalanceParams()
        self.leaf_category = LeafCategory(leaf_category)

        i, p = self.inputs, self.params
        self.displacement = zero_plane_displacement(
            i.canopy_height, i.leaf_area_index, p.drag_coefficient
        )
        self.z0m = roughness_length(
            p.soil_roughness_length,
            self.displacement,
            i.canopy_height,
            i.leaf_area_index,
            p.drag_coefficient,
        )
        if i.measurement_height - self.displacement <= self.z0m:
            raise ConfigurationError(
                "measurement_height is too low for the canopy geometry."
            )

        self.components = self._create_components()
        self.aerodynamic_resistance = self._aerodynamic_resistance(0.0, 0.0)
        self.sensible_heat_flux = 0.0
        self.latent_heat_flux = 0.0

    # ---------------------------
    # Public API
    # ---------------------------
    def run(self, stability: bool = True) -> EnergyBalanceResult:
        """
        Solve the energy balance.

        Parameters
        ----------
        stability : bool, default=True
            Apply the Monin–Obukhov stability correction (outer loop).

        Returns
        -------
        EnergyBalanceResult
            Component states, totals and convergence information.
        """
        p = self.params
        rn, g = self._net_radiation()

        inner_ok, n_inner = self._solve_transient(rn - g)
        outer_ok, n_outer = True, 0

        if stability:
            outer_ok = False
            for n_outer in range(1, p.max_iterations + 1):
                h_old = self.sensible_heat_flux
                self._update_stability()
                ok, n = self._solve_transient(rn - g)
                inner_ok = inner_ok and ok
                n_inner += n
                if (
                    abs(h_old - self.sensible_heat_flux)
                    < SENSIBLE_HEAT_TOLERANCE
                ):
                    outer_ok = True
                    break

        converged = inner_ok and outer_ok
        if not converged:
            warnings.warn(
                "Energy balance stopped at the iteration cap "
                f"({p.max_iterations}) without meeting its tolerance.",
                ConvergenceWarning,
                stacklevel=2,
            )
        logger.debug(
            "Energy balance: %d inner / %d outer iterations, H=%.2f, LE=%.2f",
            n_inner,
            n_outer,
            self.sensible_heat_flux,
            self.latent_heat_flux,
        )

        return EnergyBalanceResult(
            components=tuple(replace(c) for c in self.components),
            air_temperature=self.inputs.air_temperature,
            net_radiation=rn,
            soil_heat_flux=g,
            aerodynamic_resistance=self.aerodynamic_resistance,
            sensible_heat_flux=self.sensible_heat_flux,
            latent_heat_flux=self.latent_heat_flux,
            converged=converged,
            inner_iterations=n_inner,
            outer_iterations=n_outer,
        )

    # --------------------------- End of public API --------------------------

    def _create_components(self) -> list[CanopyComponent]:
        """Build the leaf components and the soil, all at air temperature."""
        i, p = self.inputs, self.params
        lai, t_air = i.leaf_area_index, i.air_temperature

        if self.leaf_category is LeafCategory.LUMPED:
            leaves: list[CanopyComponent] = [LumpedLeaf(lai, t_air)]
        else:
            kb = p.extinction_coefficient
            lai_sunlit = (1.0 - math.exp(-kb * lai)) / kb if kb > 0 else lai
            leaves = [
                SunlitLeaf(lai_sunlit, t_air),
                ShadedLeaf(lai - lai_sunlit, t_air),
            ]
        return leaves + [Soil(0.0, t_air)]

    def _net_radiation(self) -> tuple[float, float]:
        """
        Net radiation and soil heat flux [W m⁻²].

        Short-wave: ``(1 − albedo)·PAR/0.48``. Long-wave: net emitted
        radiation ``−σT⁴(0.34 − 0.14√ea)(1 − εa)``. The soil heat flux is
        10 % of net radiation by day and 50 % at night.
        """
        i, p = self.inputs, self.params
        rs = i.par_total / PAR_FRACTION
        sw_net = (1.0 - p.albedo) * rs
        lw_net = (
            -STEFAN_BOLTZMANN
            * celsius_to_kelvin(i.air_temperature) ** 4
            * (0.34 - 0.14 * math.sqrt(i.vapor_pressure))
            * (1.0 - p.atmospheric_emissivity)
        )
        rn = sw_net + lw_net
        g = (0.1 if rs > 0.0 else 0.5) * rn
        return rn, g

    def _environment(self, available_energy: float) -> Environment:
        i, p = self.inputs, self.params
        water_stress = min(
            max(
                (i.soil_water_content - p.wilting_point)
                / (p.field_capacity - p.wilting_point),
                0.0,
            ),
            1.0,
        )
        return Environment(
            air_temperature=i.air_temperature,
            available_energy=available_energy,
            par_total=i.par_total,
            par_diffuse=i.par_diffuse,
            lai=i.leaf_area_index,
            extinction_coefficient=p.extinction_coefficient,
            water_stress=water_stress,
            max_conductance=p.max_stomatal_conductance,
            par_50=p.absorbed_par_50,
            delta=vapor_pressure_slope(i.air_temperature),
            gamma=psychrometric_constant(i.atmospheric_pressure),
            vpd=vapor_pressure_deficit(
                i.air_temperature, i.relative_humidity
            ),
            ra=self.aerodynamic_resistance,
        )

    def _solve_transient(self, available_energy: float) -> tuple[bool, int]:
        """Inner loop; returns ``(converged, iterations)``."""
        p = self.params
        env = self._environment(available_energy)
        n = 0
        for n in range(1, p.max_iterations + 1):
            t_old = [c.temperature for c in self.components]
            for c in self.components:
                c.update(env)
            self.sensible_heat_flux = sum(
                c.sensible_heat_flux for c in self.components
            )
            self.latent_heat_flux = sum(
                c.latent_heat_flux for c in self.components
            )
            diff = sum(
                abs(c.temperature - t)
                for c, t in zip(self.components, t_old)
            )
            if diff < p.temperature_tolerance:
                return True, n
        return False, n

    def _update_stability(self) -> None:
        """Recompute the aerodynamic resistance from Monin–Obukhov theory."""
        i = self.inputs
        t_k = celsius_to_kelvin(i.air_temperature)
        z = i.measurement_height - self.displacement
        phi_m = phi_h = 0.0

        for _ in range(MAX_STABILITY_ITERATIONS):
            u_star = friction_velocity(
                i.wind_speed,
                i.measurement_height,
                self.displacement,
                self.z0m,
                phi_m,
            )
            if not math.isfinite(u_star) or u_star <= 0.0:
                logger.debug(
                    "Non-physical friction velocity %.3g; keeping "
                    "previous stability correction.",
                    u_star,
                )
                break
            length = obukhov_length(t_k, u_star, self.sensible_heat_flux)
            if not math.isfinite(length):
                logger.debug(
                    "Obukhov length undefined (H=%.3g); near-neutral.",
                    self.sensible_heat_flux,
                )
                break
            new_m, new_h = stability_correction(z / length)
            if abs(new_m - phi_m) < 0.01:
                break
            phi_m, phi_h = new_m, new_h

        self.aerodynamic_resistance = self._aerodynamic_resistance(
            phi_m, phi_h
        )

    def _aerodynamic_resistance(self, phi_m: float, phi_h: float) -> float:
        """Aerodynamic resistance for heat [s m⁻¹], floored at 1e-6."""
        i = self.inputs
        u_star = friction_velocity(
            i.wind_speed,
            i.measurement_height,
            self.displacement,
            self.z0m,
            phi_m,
        )
        if not math.isfinite(u_star) or u_star <= 0.0:
            logger.debug("Falling back to neutral aerodynamic resistance.")
            phi_m = phi_h = 0.0
            u_star = friction_velocity(
                i.wind_speed,
                i.measurement_height,
                self.displacement,
                self.z0m,
            )
        log_term = math.log(
            (i.measurement_height - self.displacement) / self.z0m
        )
        return max((log_term - phi_h) / (u_star * VON_KARMAN), 1e-6)


# -------------------------
# Diurnal driver
# -------------------------


def diurnal_forcing(
    hour: float, shading_percent: float = 0.0
) -> tuple[float, float, float, float]:
    """
    Synthetic clear-sky forcing for a summer day.

    Returns
    -------
    rad_direct, rad_diffuse : float
        Incident global radiation split 85 %/15 % after shading [W m⁻²].
    temp_c : float
        Air temperature [°C], peaking in mid afternoon.
    rh : float
        Relative humidity [%], clipped to ``[20, 85]``.
    """
    rad = max(0.0, 1050.0 * math.sin(math.pi * (hour - 6.0) / 13.0))
    factor = 1.0 - shading_percent / 100.0
    rad_direct = rad * 0.85 * factor
    rad_diffuse = rad * 0.15 * factor

    phase = math.sin(math.pi * (hour - 9.0) / 15.0)
    temp_c = 22.0 + 15.0 * phase
    rh = min(max(75.0 - 55.0 * phase, 20.0), 85.0)
    return rad_direct, rad_diffuse, temp_c, rh


def simulate_diurnal(
    days: int = 1,
    shading_percent: float = 0.0,
    params: EnergyBalanceParams | None = None,
    lai: float = 4.0,
    canopy_height: float = 0.8,
    step_hours: float = 0.5,
    soil_depth: float = 0.4,
    initial_soil_water: float = 0.22,
    leaf_category: LeafCategory | str = LeafCategory.SUNLIT_SHADED,
) -> DiurnalResults:
    """
    Run the energy balance over synthetic sub-hourly forcing.

    Soil water is depleted by the simulated ET of each step and floored at
    the wilting point, so a shaded canopy keeps its soil wetter.

    Parameters
    ----------
    days : int, default=1
        Number of simulated days.
    shading_percent : float, default=0.0
        Radiation intercepted by panels above the crop [%].
    params : EnergyBalanceParams, optional
        Solver parameters (conductance, drag, albedo, ...).
    lai, canopy_height : float
        Canopy state.
    step_hours : float, default=0.5
        Time step [h].
    soil_depth : float, default=0.4
        Depth of the root-zone reservoir [m].
    initial_soil_water : float, default=0.22
        Initial volumetric water content [m³ m⁻³].
    leaf_category : LeafCategory, default=LeafCategory.SUNLIT_SHADED
        Canopy layout.

    Returns
    -------
    DiurnalResults
        One record per time step.
    """
    if days < 0 or step_hours <= 0.0 or soil_depth <= 0.0:
        raise ConfigurationError(
            "days must be non-negative; step_hours and soil_depth positive."
        )
    if not (0.0 <= shading_percent <= 100.0):
        raise ConfigurationError("shading_percent must be in [0, 100].")
    params = params if params is not None else EnergyBalanceParams()

    n_steps = int(round(days * 24.0 / step_hours))
    cols = {
        name: np.zeros(n_steps)
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
    }
    converged = np.zeros(n_steps, dtype=bool)
    soil_water = initial_soil_water

    for s in range(n_steps):
        t = s * step_hours
        hour = t % 24.0
        rad_direct, rad_diffuse, temp_c, rh = diurnal_forcing(
            hour, shading_percent
        )
        inputs = EnergyBalanceInputs(
            air_temperature=temp_c,
            relative_humidity=rh,
            wind_speed=2.0,
            atmospheric_pressure=101.3,
            measurement_height=max(2.0, canopy_height + 1.5),
            canopy_height=canopy_height,
            leaf_area_index=lai,
            soil_water_content=soil_water,
            par_direct=rad_direct * PAR_FRACTION,
            par_diffuse=rad_diffuse * PAR_FRACTION,
        )
        res = EnergyBalanceSolver(inputs, params, leaf_category).run()

        et_mm_h = res.et_mm_h
        # dew (negative ET) may refill the reservoir
        soil_water = min(
            max(
                params.wilting_point,
                soil_water - (et_mm_h / 1000.0) / soil_depth * step_hours,
            ),
            1.0,
        )

        cols["time"][s] = t
        cols["hour"][s] = hour
        cols["rad"][s] = rad_direct + rad_diffuse
        cols["temp_air"][s] = temp_c
        cols["temp_canopy"][s] = res.canopy_temperature
        cols["temp_soil"][s] = res.soil_temperature
        cols["et_mm_h"][s] = et_mm_h
        cols["soil_water"][s] = soil_water
        cols["vpd"][s] = vapor_pressure_deficit(temp_c, rh)
        converged[s] = res.converged

    return DiurnalResults(converged=converged, **cols)


def water_saving(
    baseline: DiurnalResults, scenario: DiurnalResults
) -> float:
    """ET reduction of ``scenario`` relative to ``baseline`` [%]."""
    et_base = float(np.sum(baseline.et_mm_h))
    if et_base <= 0.0:
        return 0.0
    return (et_base - float(np.sum(scenario.et_mm_h))) / et_base * 100.0
