"""
Parameter calibration and one-at-a-time sensitivity of the crop model.

The workflow mirrors a classroom exercise: produce synthetic "observations"
of cumulative biomass from a reference run plus Gaussian noise, then recover
a single crop parameter by minimising the RMSE against those observations,
and finally rank parameters by the spread of final biomass they induce.

Functions
---------
synthetic_observations
    Noisy biomass observations from a reference run.
rmse
    Root-mean-square error over the overlapping days.
calibrate
    Grid search (with optional bounded scalar refinement) of one parameter.
sensitivity
    Final biomass for ±span perturbations of selected parameters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Mapping, Sequence

import numpy as np
import pandas as pd
from scipy.optimize import minimize_scalar

from agrosim.core.crops import CropParams
from agrosim.core.data_containers import Weather
from agrosim.core.model import CropModel
from agrosim.exceptions import ConfigurationError

Array = np.ndarray

logger = logging.getLogger(__name__)

# Default search grids per calibrated CropParams field
CALIBRATION_GRIDS: Mapping[str, Array] = {
    "rue": 0.8 + 0.1 * np.arange(38),
    "k_par": 0.25 + 0.05 * np.arange(20),
    "lai_max": 2.0 + 0.25 * np.arange(25),
    "tu_har": 900.0 + 50.0 * np.arange(25),
}

SENSITIVITY_PARAMS: tuple[str, ...] = (
    "rue",
    "k_par",
    "lai_max",
    "tu_har",
    "t_base",
    "alpha",
)


def synthetic_observations(
    weather: Weather,
    params: CropParams,
    sigma: float = 150.0,
    rng: np.random.Generator | None = None,
    seed: int | None = None,
) -> Array:
    """
    Cumulative biomass of a reference run plus ``N(0, sigma²)`` noise.

    Returns
    -------
    ndarray
        One observation [g m⁻²] per simulated day of the reference run.
    """
    if sigma < 0.0:
        raise ConfigurationError("sigma must be non-negative.")
    if rng is None:
        rng = np.random.default_rng(seed)
    ref = CropModel(weather=weather, params=params).evolve()
    return ref.b + rng.normal(0.0, sigma, size=ref.b.shape)


def rmse(simulated: Array, observed: Array) -> float:
    """RMSE over the common leading days (NaN if there is no overlap)."""
    n = min(len(simulated), len(observed))
    if n == 0:
        return float("nan")
    diff = np.asarray(simulated[:n], dtype=float) - np.asarray(
        observed[:n], dtype=float
    )
    return float(np.sqrt(np.mean(diff**2)))


@dataclass(frozen=True)
class CalibrationResult:
    """
    Outcome of :func:`calibrate`.

    Attributes
    ----------
    name : str
        Calibrated ``CropParams`` field.
    table : pandas.DataFrame
        Grid evaluations with columns ``value``, ``rmse``, ``b_final``.
    best_value : float
        Parameter value with the lowest RMSE (grid or refined).
    best_rmse : float
        RMSE at ``best_value``.
    refined : bool
        True if the scalar refinement improved on the best grid point.
    """

    name: str
    table: pd.DataFrame
    best_value: float
    best_rmse: float
    refined: bool


def _run(weather: Weather, params: CropParams, name: str, value: float):
    return CropModel(
        weather=weather, params=replace(params, **{name: float(value)})
    ).evolve()


def calibrate(
    weather: Weather,
    params: CropParams,
    observations: Array,
    name: str = "rue",
    grid: Sequence[float] | Array | None = None,
    refine: bool = True,
) -> CalibrationResult:
    """
    Calibrate one crop parameter against biomass observations.

    Parameters
    ----------
    weather : Weather
        Forcing of the calibration runs.
    params : CropParams
        Starting parameter set; all other fields are kept.
    observations : array_like
        Observed cumulative biomass, one value per day from day 1.
    name : str, default='rue'
        ``CropParams`` field to calibrate.
    grid : array_like, optional
        Candidate values. Defaults to :data:`CALIBRATION_GRIDS` ``[name]``.
    refine : bool, default=True
        Refine the best grid point with a bounded scalar minimisation between
        its grid neighbours.

    Returns
    -------
    CalibrationResult

    Raises
    ------
    ConfigurationError
        If ``name`` has no default grid and none is given, or a candidate
        value is invalid for the crop parameters.
    """
    if grid is None:
        try:
            grid = CALIBRATION_GRIDS[name]
        except KeyError as e:
            raise ConfigurationError(
                f"No default grid for '{name}'. "
                f"Known: {sorted(CALIBRATION_GRIDS)}"
            ) from e
    grid = np.asarray(grid, dtype=float)
    if grid.size == 0:
        raise ConfigurationError("Calibration grid is empty.")
    obs = np.asarray(observations, dtype=float)

    rows = []
    for v in grid:
        sim = _run(weather, params, name, v)
        rows.append((float(v), rmse(sim.b, obs), sim.final_biomass))
    table = pd.DataFrame(rows, columns=["value", "rmse", "b_final"])

    i_best = int(np.nanargmin(table["rmse"].to_numpy()))
    best_value = float(table["value"].iloc[i_best])
    best_rmse = float(table["rmse"].iloc[i_best])
    refined = False

    if refine and grid.size > 1:
        lo = float(grid[max(i_best - 1, 0)])
        hi = float(grid[min(i_best + 1, grid.size - 1)])
        opt = minimize_scalar(
            lambda v: rmse(_run(weather, params, name, v).b, obs),
            bounds=(min(lo, hi), max(lo, hi)),
            method="bounded",
        )
        if opt.success and opt.fun < best_rmse:
            best_value, best_rmse, refined = float(opt.x), float(opt.fun), True

    logger.debug(
        "Calibrated %s = %.4g (RMSE %.2f, refined=%s)",
        name,
        best_value,
        best_rmse,
        refined,
    )
    return CalibrationResult(
        name=name,
        table=table,
        best_value=best_value,
        best_rmse=best_rmse,
        refined=refined,
    )


def sensitivity(
    weather: Weather,
    params: CropParams,
    span_percent: float = 20.0,
    names: Sequence[str] = SENSITIVITY_PARAMS,
) -> pd.DataFrame:
    """
    One-at-a-time sensitivity of final biomass.

    Each parameter is set to ``v0·(1 − span)`` and ``v0·(1 + span)`` while
    the others keep their base values.

    Returns
    -------
    pandas.DataFrame
        Columns ``param``, ``scenario`` (``low``/``base``/``high``),
        ``value`` and ``b_final``.
    """
    if not (0.0 <= span_percent < 100.0):
        raise ConfigurationError("span_percent must be in [0, 100).")
    span = span_percent / 100.0
    b_base = CropModel(weather=weather, params=params).evolve().final_biomass

    rows = []
    for name in names:
        v0 = float(getattr(params, name))
        low, high = v0 * (1.0 - span), v0 * (1.0 + span)
        rows.append(
            (name, "low", low, _run(weather, params, name, low).final_biomass)
        )
        rows.append((name, "base", v0, b_base))
        rows.append(
            (
                name,
                "high",
                high,
                _run(weather, params, name, high).final_biomass,
            )
        )
    return pd.DataFrame(
        rows, columns=["param", "scenario", "value", "b_final"]
    )
