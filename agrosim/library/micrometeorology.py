"""
Surface-layer micrometeorology helpers for the energy-balance solver.

Vapor-pressure functions follow FAO-56 (kPa, °C); aerodynamic functions
follow Monin–Obukhov similarity with the Businger–Dyer stability functions.

Functions
---------
saturation_vapor_pressure, vapor_pressure_deficit, vapor_pressure_slope
    Humidity functions [kPa], [kPa K⁻¹].
psychrometric_constant
    γ from atmospheric pressure [kPa K⁻¹].
zero_plane_displacement, roughness_length
    Canopy aerodynamic geometry [m].
friction_velocity, obukhov_length, stability_correction
    Monin–Obukhov similarity.
"""

from __future__ import annotations

import math

VON_KARMAN = 0.41
AIR_DENSITY = 1.225  # kg m-3
AIR_SPECIFIC_HEAT = 1013.0  # J kg-1 K-1
LATENT_HEAT = 2.45e6  # J kg-1
STEFAN_BOLTZMANN = 5.67e-8  # W m-2 K-4
GRAVITY = 9.81  # m s-2
ABSOLUTE_ZERO = -273.15  # °C

# Ratio of molecular weights of water vapour and dry air
EPSILON = 0.622


def celsius_to_kelvin(t: float) -> float:
    return t - ABSOLUTE_ZERO


def saturation_vapor_pressure(temp_c: float) -> float:
    """Saturation vapor pressure ``0.6108 exp(17.27T/(T+237.3))`` [kPa]."""
    return 0.6108 * math.exp(17.27 * temp_c / (temp_c + 237.3))


def vapor_pressure_deficit(temp_c: float, rh: float) -> float:
    """Vapor-pressure deficit for relative humidity ``rh`` in % [kPa]."""
    return saturation_vapor_pressure(temp_c) * (1.0 - rh / 100.0)


def vapor_pressure_slope(temp_c: float) -> float:
    """Slope of the saturation vapor-pressure curve Δ [kPa K⁻¹]."""
    return 4098.0 * saturation_vapor_pressure(temp_c) / (temp_c + 237.3) ** 2


def psychrometric_constant(pressure_kpa: float) -> float:
    """Psychrometric constant ``cp·P/(λ·ε)`` [kPa K⁻¹]."""
    return AIR_SPECIFIC_HEAT * pressure_kpa / (LATENT_HEAT * EPSILON)


def zero_plane_displacement(
    height: float, lai: float, drag_coefficient: float
) -> float:
    """Zero-plane displacement height ``1.1 h ln(1 + (cd·LAI)^¼)`` [m]."""
    if height <= 0.0:
        return 0.0
    return 1.1 * height * math.log(1.0 + (drag_coefficient * lai) ** 0.25)


def roughness_length(
    z0_soil: float,
    displacement: float,
    height: float,
    lai: float,
    drag_coefficient: float,
) -> float:
    """
    Roughness length for momentum of a canopy over soil [m].

    Falls back to the bare-soil value when there is no canopy or the
    displacement height reaches the canopy top.
    """
    if height <= 0.0 or displacement >= height:
        return z0_soil
    return min(
        z0_soil + 0.3 * height * math.sqrt(drag_coefficient * lai),
        0.3 * height * (1.0 - displacement / height),
    )


def friction_velocity(
    wind_speed: float,
    measurement_height: float,
    displacement: float,
    z0m: float,
    phi_m: float = 0.0,
) -> float:
    """Friction velocity from the stability-corrected log profile [m s⁻¹]."""
    return (VON_KARMAN * wind_speed) / (
        math.log((measurement_height - displacement) / z0m) - phi_m
    )


def obukhov_length(
    air_temperature_k: float, u_star: float, sensible_heat_flux: float
) -> float:
    """
    Monin–Obukhov length [m].

    Returns ``inf`` (neutral) when the friction velocity or the sensible heat
    flux is too small for the length to be defined.
    """
    if abs(u_star) < 1e-6 or abs(sensible_heat_flux) < 1e-6:
        return math.inf
    buoyancy = (GRAVITY / air_temperature_k) * (
        sensible_heat_flux / (AIR_DENSITY * AIR_SPECIFIC_HEAT)
    )
    if buoyancy == 0.0:
        return math.inf
    return -(u_star**3) / (VON_KARMAN * buoyancy)


def stability_correction(zeta: float) -> tuple[float, float]:
    """
    Integrated stability functions ``(phi_m, phi_h)``.

    Unstable (``zeta < 0``) uses the Paulson forms with
    ``x = (1 − 16ζ)^¼``; stable uses ``−5ζ`` for both.
    """
    if zeta < 0.0:
        x = (1.0 - 16.0 * zeta) ** 0.25
        phi_h = 2.0 * math.log((1.0 + x * x) / 2.0)
        phi_m = (
            2.0 * math.log((1.0 + x) / 2.0)
            + math.log((1.0 + x * x) / 2.0)
            - 2.0 * math.atan(x)
            + math.pi / 2.0
        )
        return phi_m, phi_h
    val = -5.0 * zeta
    return val, val
