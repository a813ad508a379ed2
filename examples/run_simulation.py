import logging
import sys
from pathlib import Path

import matplotlib.pyplot as plt

from agrosim.core.carbon import CarbonParams, Rotation
from agrosim.core.crops import CropParams
from agrosim.core.energy_balance import simulate_diurnal, water_saving
from agrosim.core.scenarios import (
    Simulation,
    agrivoltaics,
    run_emergence_scenario,
    run_scenario,
)
from agrosim.core.soils import SoilParams
from agrosim.core.weather import WeatherParams, make_weather
from agrosim.library.io_hdf5 import save_results_hdf5
from agrosim.library.weather_io import read_weather_csv

OUT_PATH = Path(Path(__file__).parent, "output")

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s"
)

# -----------------------------
# Weather: CSV given on the command line, or synthetic
# -----------------------------
if len(sys.argv) > 1:
    weather = read_weather_csv(Path(sys.argv[1]))
else:
    weather = make_weather(WeatherParams(n_days=200), seed=42)

# -----------------------------
# Crop, soil and management
# -----------------------------
crop = CropParams.from_preset("tomato")
soil = SoilParams(initial_soc=50.0, clay_percent=25.0)
carbon = CarbonParams(
    rotation=Rotation.TOMATO_WHEAT_SOY,
    minimum_tillage=True,
    cover_crops=True,
)

# -----------------------------
# Run simulation
# -----------------------------
results = Simulation(weather, crop, soil, carbon).run(years=20)
print(
    f"Final biomass: {results.crop.final_biomass:.1f} g/m2, "
    f"SOC change vs. conventional: {results.soc_difference:+.2f} Mg C/ha"
)

shading = 30.0
scenario = run_scenario(weather, crop, soil, agrivoltaics(shading))
print(
    f"Biomass change under {shading:.0f} % shading: "
    f"{scenario.biomass_change_percent:+.1f} %"
)

emergence = run_emergence_scenario(weather, soil, shading_percent=shading)
print("Emergence days:", emergence.emergence_days())

base_day = simulate_diurnal(days=1)
shaded_day = simulate_diurnal(days=1, shading_percent=shading)
print(f"Water saving: {water_saving(base_day, shaded_day):.1f} %")

# -----------------------------
# Save results
# -----------------------------
save_results_hdf5(
    results.crop,
    Path(OUT_PATH, "crop.h5"),
    extra_meta={"crop": crop.crop_name, "rotation": carbon.rotation.value},
)
save_results_hdf5(results.carbon, Path(OUT_PATH, "carbon.h5"))

# -----------------------------
# Plots
# -----------------------------
fig, axes = plt.subplots(2, 2, figsize=(11, 7))

ax = axes[0, 0]
ax.plot(scenario.baseline_crop.day, scenario.baseline_crop.b, label="open")
ax.plot(scenario.crop.day, scenario.crop.b, label="agrivoltaic")
ax.set(xlabel="day", ylabel="biomass [g/m²]", title="Biomass")
ax.legend()

ax = axes[0, 1]
ax.plot(results.water.day, results.water.w)
ax.set(xlabel="day", ylabel="soil water [mm]", title="Soil water")

ax = axes[1, 0]
months = (results.carbon.year - 1) * 12 + results.carbon.month
ax.plot(months, results.carbon.total_soc, label="scenario")
ax.plot(months, results.baseline_carbon.total_soc, label="conventional")
ax.set(xlabel="month", ylabel="SOC [Mg C/ha]", title="Soil carbon")
ax.legend()

ax = axes[1, 1]
ax.plot(base_day.hour, base_day.temp_canopy, label="canopy, open")
ax.plot(shaded_day.hour, shaded_day.temp_canopy, label="canopy, shaded")
ax.plot(base_day.hour, base_day.temp_air, "k--", label="air")
ax.set(xlabel="hour", ylabel="temperature [°C]", title="Diurnal cycle")
ax.legend()

fig.tight_layout()
fig.savefig(Path(OUT_PATH, "summary.png"), dpi=120)
plt.show()
