"""
Soil parameter container.

:class:`SoilParams` groups the tipping-bucket hydrology parameters used by
:class:`~agrosim.core.model.SoilWaterModel` and the soil properties used by
the carbon model (initial SOC, clay content).
"""

from __future__ import annotations

from dataclasses import dataclass

from agrosim.exceptions import ConfigurationError


@dataclass(frozen=True, slots=True)
class SoilParams:
    """
    Soil hydrology and carbon parameters.

    Parameters
    ----------
    w0 : float
        Initial soil water content [mm].
    w_wp : float
        Water content at wilting point [mm].
    w_fc : float
        Water content at field capacity [mm].
    w_sat : float
        Water content at saturation [mm]. Upper bound of the bucket.
    et0 : float
        Reference evapotranspiration, constant over the season [mm/day].
    alpha : float
        Fraction of plant-available water that can be transpired per day.
    beta : float
        Fraction of water above field capacity drained per day.
    gamma : float
        Fraction of plant-available water that can evaporate per day.
    inf_cap : float
        Daily infiltration capacity; rain above it runs off [mm/day].
    lai_full_cover : float
        LAI at which the canopy fully covers the ground [m²/m²].
    soil_depth : float
        Depth of the simulated soil layer [cm].
    initial_soc : float
        Initial soil organic carbon stock [Mg C/ha].
    clay_percent : float
        Clay content of the topsoil [%].

    Notes
    -----
    Ranges are validated (``0 ≤ w_wp ≤ w_fc ≤ w_sat``, ``0 ≤ w0 ≤ w_sat``,
    rate coefficients in ``[0, 1]``, clay in ``[0, 100]``) but no
    cross-model consistency is enforced.
    """

    w0: float = 120.0
    w_wp: float = 60.0
    w_fc: float = 160.0
    w_sat: float = 250.0
    et0: float = 4.0
    alpha: float = 0.25
    beta: float = 0.20
    gamma: float = 0.15
    inf_cap: float = 25.0
    lai_full_cover: float = 3.0
    soil_depth: float = 30.0

    # Carbon specific fields
    initial_soc: float = 50.0
    clay_percent: float = 25.0

    def __post_init__(self):
        """Validate parameter ranges."""
        if self.w_sat <= 0.0:
            raise ConfigurationError("w_sat must be positive.")
        if not (0.0 <= self.w_wp <= self.w_fc <= self.w_sat):
            raise ConfigurationError(
                "Water contents must satisfy 0 ≤ w_wp ≤ w_fc ≤ w_sat."
            )
        if not (0.0 <= self.w0 <= self.w_sat):
            raise ConfigurationError("w0 must lie in [0, w_sat].")
        if self.et0 < 0.0 or self.inf_cap < 0.0:
            raise ConfigurationError("et0 and inf_cap must be non-negative.")
        for name in ("alpha", "beta", "gamma"):
            if not (0.0 <= getattr(self, name) <= 1.0):
                raise ConfigurationError(f"{name} must be in [0, 1].")
        if self.lai_full_cover <= 0.0 or self.soil_depth <= 0.0:
            raise ConfigurationError(
                "lai_full_cover and soil_depth must be positive."
            )
        if self.initial_soc < 0.0:
            raise ConfigurationError("initial_soc must be non-negative.")
        if not (0.0 <= self.clay_percent <= 100.0):
            raise ConfigurationError("clay_percent must be in [0, 100].")
