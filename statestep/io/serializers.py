"""Save and load configurations and simulation snapshots."""

import json
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np


def _to_json(obj: Any) -> Any:
    """Convert numpy values (and enums) to plain JSON types."""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, dict):
        return {str(k): _to_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_json(x) for x in obj]
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    value = getattr(obj, "value", None)
    if isinstance(value, (str, int, float)):
        return value
    return obj


def save_config(config: Dict[str, Any], path: Union[str, Path]) -> None:
    """Write a SimulationConfig dict (or snapshot metadata) as indented JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(_to_json(config), f, indent=2, ensure_ascii=False)


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def save_snapshot(snapshot: Dict[str, Any], path: Union[str, Path]) -> None:
    """
    Write a flat simulation snapshot as two files next to path:

    - <path>.npz: every numpy array entry, under its own name. Simulation
      checkpoints name them "<kind>.<entity>" ("state.cube", "dstate.7").
    - <path>.meta.json: the remaining scalar entries (time, steps, solver, dt).

    Any suffix on path is replaced.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    arrays = {name: value for name, value in snapshot.items() if isinstance(value, np.ndarray)}
    meta = {name: value for name, value in snapshot.items() if name not in arrays}
    np.savez(path.with_suffix(".npz"), **arrays)
    save_config(meta, path.with_suffix(".meta.json"))


def load_snapshot(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read back a snapshot written by save_snapshot() as one flat dict. The
    .meta.json file is optional; its entries take precedence over arrays of the
    same name.
    """
    path = Path(path)
    with np.load(path.with_suffix(".npz")) as npz:
        snapshot: Dict[str, Any] = {name: npz[name] for name in npz.files}
    meta_path = path.with_suffix(".meta.json")
    if meta_path.exists():
        snapshot.update(load_config(meta_path))
    return snapshot
