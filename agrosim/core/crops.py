"""
Crop parameter presets and dataclass container.

This module provides a single, concrete dataclass :class:`CropParams` that
encapsulates the parameters of the generic annual-crop model. The class is
**frozen** (immutable) and uses **slots** for memory efficiency. It defaults
to the didactic "generic crop" parameterization and includes a preset
constructor for a few alternative crops.

The parameters cover phenology (thermal time to maturity), the leaf-area
trajectory (logistic growth, exponential senescence and their development
stage windows), radiation interception (extinction coefficient), radiation-use
efficiency (RUE), and the trapezoidal temperature response of RUE.

Classes
-------
CropParams
    Immutable container for crop parameters. Provides
    :meth:`CropParams.default` and :meth:`CropParams.from_preset`.

Notes
-----
- **Scope**: This module defines *crop* parameters only. Soil and hydrology
  parameters (water contents, ET0, drainage coefficients, SOC, clay) live in
  :class:`~agrosim.core.soils.SoilParams`.
- **Validation**: The constructor checks basic consistency:
  ``tb_rue ≤ tp1_rue ≤ tp2_rue ≤ tc_rue``, ``0 ≤ fr_emr ≤ fr_bls ≤ 1``,
  ``0 ≤ lai0 ≤ lai_max``, non-negative rates, positive RUE and extinction
  coefficient, and ``tu_har ≥ 0``. A zero thermal-time target is allowed: the
  crop is then mature on the first simulated day.

Examples
--------
>>> from agrosim.core.crops import CropParams
>>> cp = CropParams.default()          # equivalent to CropParams()
>>> cp_maize = CropParams.from_preset("maize")

Override selected fields (immutability enforced after construction):

>>> from dataclasses import replace
>>> cp_custom = replace(CropParams(), rue=3.0, tu_har=1200.0)

See Also
--------
agrosim.core.model.CropModel : Execution engine consuming CropParams.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from agrosim.exceptions import ConfigurationError


@dataclass(frozen=True, slots=True)
class CropParams:
    """
    Concrete crop parameter set (defaults to the generic crop).

    Parameters
    ----------
    crop_name : str, default="generic"
        Human-readable crop identifier.
    t_base : float
        Base temperature for thermal-time accumulation [°C].
    tu_har : float
        Thermal time from emergence to maturity [°C day].
    lai0 : float
        LAI at emergence [m²/m²].
    lai_max : float
        Asymptotic maximum LAI of the logistic growth [m²/m²].
    alpha : float
        Logistic LAI growth rate [(m²/m²)⁻¹ day⁻¹].
    sen_rate : float
        Relative LAI senescence rate [day⁻¹].
    fr_emr : float
        Development stage at which leaf growth starts (in [0, 1]).
    fr_bls : float
        Development stage at which leaf senescence starts (in [0, 1]).
    k_par : float
        Extinction coefficient for PAR (Beer–Lambert).
    rue : float
        Radiation-use efficiency [g DM / MJ PAR].
    tb_rue : float
        Temperature below which RUE is zero [°C].
    tp1_rue : float
        Lower optimal temperature for RUE [°C].
    tp2_rue : float
        Upper optimal temperature for RUE [°C].
    tc_rue : float
        Temperature above which RUE is zero [°C].
    b0 : float
        Biomass at emergence [g/m²].

    Examples
    --------
    >>> cp = CropParams.default()
    >>> cp = CropParams.from_preset("wheat")
    """

    # --- Species ---
    crop_name: str = "generic"

    # --- Phenology ---
    t_base: float = 8.0
    tu_har: float = 1400.0

    # --- Leaf area ---
    lai0: float = 0.02
    lai_max: float = 5.0
    alpha: float = 0.02
    sen_rate: float = 0.02
    fr_emr: float = 0.05
    fr_bls: float = 0.65
    k_par: float = 0.6

    # --- Radiation use efficiency ---
    rue: float = 2.5  # g/MJ

    # --- Thermal response trapezoid for RUE (°C) ---
    tb_rue: float = 8.0
    tp1_rue: float = 18.0
    tp2_rue: float = 28.0
    tc_rue: float = 40.0

    # --- Initial state ---
    b0: float = 0.0

    # -------------------------
    # Post-init: validate
    # -------------------------
    def __post_init__(self):
        """
        Run validations on the parameter set.

        Raises
        ------
        ConfigurationError
            If any validation fails. Possible messages include:
            - "Thermal trapezoid must satisfy tb_rue ≤ tp1_rue ≤ tp2_rue ≤
              tc_rue."
            - "Development windows must satisfy 0 ≤ fr_emr ≤ fr_bls ≤ 1."
            - "LAI must satisfy 0 ≤ lai0 ≤ lai_max."
            - "tu_har must be non-negative."
            - "alpha and sen_rate must be non-negative."
            - "k_par and rue must be positive."
            - "b0 must be non-negative."
        """
        if not (self.tb_rue <= self.tp1_rue <= self.tp2_rue <= self.tc_rue):
            raise ConfigurationError(
                "Thermal trapezoid must satisfy "
                "tb_rue ≤ tp1_rue ≤ tp2_rue ≤ tc_rue."
            )
        if not (0.0 <= self.fr_emr <= self.fr_bls <= 1.0):
            raise ConfigurationError(
                "Development windows must satisfy 0 ≤ fr_emr ≤ fr_bls ≤ 1."
            )
        if not (0.0 <= self.lai0 <= self.lai_max):
            raise ConfigurationError("LAI must satisfy 0 ≤ lai0 ≤ lai_max.")
        if self.tu_har < 0.0:
            raise ConfigurationError("tu_har must be non-negative.")
        if self.alpha < 0.0 or self.sen_rate < 0.0:
            raise ConfigurationError(
                "alpha and sen_rate must be non-negative."
            )
        if self.k_par <= 0.0 or self.rue <= 0.0:
            raise ConfigurationError("k_par and rue must be positive.")
        if self.b0 < 0.0:
            raise ConfigurationError("b0 must be non-negative.")

    # -------------------------
    # Convenience constructors / presets
    # -------------------------
    @classmethod
    def default(cls) -> "CropParams":
        """Return a `CropParams` instance with the generic-crop defaults."""
        return cls()

    @classmethod
    def from_preset(cls, name: str) -> "CropParams":
        """
        Instantiate from a named preset.

        Parameters
        ----------
        name : {'generic', 'maize', 'wheat', 'tomato'}
            Preset identifier.

        Returns
        -------
        CropParams
            Parameter set for the given preset.

        Raises
        ------
        ConfigurationError
            If `name` is not a known preset.
        """
        presets: Mapping[str, dict] = {
            # generic is the class default; listed for clarity
            "generic": dict(crop_name="generic"),
            "maize": dict(
                crop_name="maize",
                t_base=8.0,
                tu_har=1600.0,
                lai_max=6.0,
                alpha=0.025,
                k_par=0.65,
                rue=3.65,
                tb_rue=8.0,
                tp1_rue=20.0,
                tp2_rue=32.0,
                tc_rue=42.0,
            ),
            "wheat": dict(
                crop_name="wheat",
                t_base=0.0,
                tu_har=2000.0,
                lai_max=5.5,
                alpha=0.015,
                sen_rate=0.03,
                fr_bls=0.7,
                k_par=0.5,
                rue=2.8,
                tb_rue=0.0,
                tp1_rue=12.0,
                tp2_rue=24.0,
                tc_rue=35.0,
            ),
            "tomato": dict(
                crop_name="tomato",
                t_base=10.0,
                tu_har=1300.0,
                lai_max=4.0,
                k_par=0.7,
                rue=2.2,
                tb_rue=10.0,
                tp1_rue=20.0,
                tp2_rue=28.0,
                tc_rue=38.0,
            ),
        }
        try:
            return cls(**presets[name])
        except KeyError as e:
            raise ConfigurationError(
                f"Unknown preset '{name}'. Known: {sorted(presets)}"
            ) from e
