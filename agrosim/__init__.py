"""
agrosim: didactic crop, soil-water, soil-carbon and canopy energy models.

Subpackages
-----------
core
    Simulation engines and their parameter/result containers.
library
    Shared kernels (response functions, hydrology, micrometeorology) and
    I/O helpers (CSV/archive weather, HDF5 snapshots).
"""

__version__ = "0.1.0"
