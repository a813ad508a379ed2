"""Snapshots of simulation results containers in HDF5 files."""

from __future__ import annotations

import json
import logging
import platform
import subprocess
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import h5py

import numpy as np

from agrosim import __version__

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
RESULTS_GROUP = "results"


def _git_commit_or_none() -> Optional[str]:
    """Commit hash of the working tree, if it is a git checkout."""
    try:
        out = subprocess.check_output(
            ["git", "rev-parse", "HEAD"],
            text=True,
            stderr=subprocess.DEVNULL,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return out.strip()


def _array_fields(results: Any) -> list[str]:
    """Names of the array fields of a results dataclass."""
    if not is_dataclass(results):
        raise TypeError(
            f"Expected a results dataclass, got {type(results).__name__}."
        )
    return [f.name for f in fields(results)]


def _encode_attr(value: Any) -> Any:
    # HDF5 attributes cannot hold None or nested containers
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


def _write_dataset(group: h5py.Group, name: str, values: Any) -> None:
    arr = np.asarray(values)
    # h5py refuses filters on zero-sized datasets
    filtered = arr.size > 0
    dset = group.create_dataset(
        name,
        data=arr,
        compression="gzip" if filtered else None,
        shuffle=filtered,
    )
    dset.attrs["shape"] = arr.shape
    dset.attrs["dtype"] = str(arr.dtype)


def save_results_hdf5(
    results: Any, path: Path, extra_meta: Optional[Dict[str, Any]] = None
) -> None:
    """
    Persist the arrays of a results container to HDF5 with metadata.

    Parameters
    ----------
    results : dataclass instance
        E.g. :class:`~agrosim.core.data_containers.CropResults`; every field
        must be array-like.
    path : pathlib.Path
        Output file; parent directories are created.
    extra_meta : dict, optional
        Additional file-level attributes (JSON-encoded if nested).
    """
    names = _array_fields(results)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    meta = {
        "schema_version": SCHEMA_VERSION,
        "results_class": type(results).__name__,
        "agrosim": __version__,
        "numpy": np.__version__,
        "python": platform.python_version(),
        "git_commit": _git_commit_or_none(),
    }
    meta.update(extra_meta or {})

    with h5py.File(path, "w") as f:
        f.attrs.update({k: _encode_attr(v) for k, v in meta.items()})
        group = f.create_group(RESULTS_GROUP)
        for name in names:
            _write_dataset(group, name, getattr(results, name))

    logger.info("Wrote %s snapshot: %s", meta["results_class"], path)


def load_results_vars_hdf5(
    path: Path, names: Iterable[str]
) -> Dict[str, np.ndarray]:
    """
    Read selected variables from a snapshot without loading the rest.

    Raises
    ------
    KeyError
        If a requested variable is not stored in the file.
    """
    out: Dict[str, np.ndarray] = {}
    with h5py.File(path, "r") as f:
        group = f[RESULTS_GROUP]
        for name in names:
            if name not in group:
                raise KeyError(f"Variable '{name}' not found in {path}.")
            out[name] = group[name][()]
    return out


def load_results_hdf5(path: Path, results_class: type) -> Any:
    """
    Rebuild a results container from a snapshot.

    Parameters
    ----------
    path : pathlib.Path
        HDF5 file path.
    results_class : type
        Dataclass to instantiate; each of its fields is read from the
        dataset of the same name.

    Returns
    -------
    Any
        An instance of ``results_class`` populated from the file.

    Raises
    ------
    KeyError
        If a field of ``results_class`` is missing from the file.
    """
    names = [f.name for f in fields(results_class)]
    values = load_results_vars_hdf5(path, names)
    logger.info("Loaded %s from %s", results_class.__name__, path)
    return results_class(**values)
