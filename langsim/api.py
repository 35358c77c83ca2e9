"""Command surface for drivers: create a simulation, then step, snapshot and inspect it."""
from typing import Any, Dict, Optional

from .settings import ConfigError  # noqa: F401
from .simulation import InvariantError, Simulation  # noqa: F401
from .snapshot import Snapshot, build_snapshot

SimulationHandle = Simulation


def create(config: Optional[Dict[str, Any]] = None, seed: Optional[int] = None) -> SimulationHandle:
    """Build a new simulation. Raises ConfigError for an invalid config."""
    return Simulation(config, seed=seed)


def step(handle: SimulationHandle) -> bool:
    handle.step()
    return True


def snapshot(handle: SimulationHandle) -> Snapshot:
    return build_snapshot(handle)


def reset(handle: SimulationHandle) -> None:
    handle.reset()


def new_world(handle: SimulationHandle, config: Optional[Dict[str, Any]] = None) -> None:
    handle.new_world(config)


def inspect(handle: SimulationHandle, x: int, y: int) -> Optional[Dict[str, Any]]:
    return handle.inspect(x, y)
