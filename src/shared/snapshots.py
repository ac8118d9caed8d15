"""Snapshot sinks for periodic solver output.

A :class:`Snapshot` is a copy of the ghost-inclusive solver arrays at one
step. Sinks decide what to do with it: write a VTK structured grid, or keep
it in memory.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Dict, List

import numpy as np
import pyvista as pv

log = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """Copy of U, V, P, T and C at one step, with the grid spacing."""

    step: int
    time: float
    dx: float
    dy: float
    u: np.ndarray
    v: np.ndarray
    p: np.ndarray
    t: np.ndarray
    concentrations: Dict[str, np.ndarray] = field(default_factory=dict)

    @classmethod
    def capture(cls, step, time, dx, dy, arrays, species_names) -> "Snapshot":
        return cls(
            step=step,
            time=time,
            dx=dx,
            dy=dy,
            u=arrays.u.copy(),
            v=arrays.v.copy(),
            p=arrays.p.copy(),
            t=arrays.t.copy(),
            concentrations={name: arrays.c[s].copy() for s, name in enumerate(species_names)},
        )

    @property
    def imax(self) -> int:
        return self.p.shape[0] - 2

    @property
    def jmax(self) -> int:
        return self.p.shape[1] - 2

    def node_velocity(self):
        """Face velocities averaged to the (imax+1) x (jmax+1) grid nodes."""
        u_node = 0.5 * (self.u[: self.imax + 1, : self.jmax + 1] + self.u[: self.imax + 1, 1 : self.jmax + 2])
        v_node = 0.5 * (self.v[: self.imax + 1, : self.jmax + 1] + self.v[1 : self.imax + 2, : self.jmax + 1])
        return u_node, v_node

    def to_vtk(self) -> pv.StructuredGrid:
        """Structured grid with nodal velocity and cell-centred scalars."""
        imax, jmax = self.imax, self.jmax
        x = np.arange(imax + 1) * self.dx
        y = np.arange(jmax + 1) * self.dy
        X, Y = np.meshgrid(x, y, indexing="ij")
        Z = np.zeros_like(X)
        grid = pv.StructuredGrid(X[:, :, None], Y[:, :, None], Z[:, :, None])

        u_node, v_node = self.node_velocity()
        velocity = np.column_stack(
            [u_node.ravel(order="F"), v_node.ravel(order="F"), np.zeros(u_node.size)]
        )
        grid.point_data["velocity"] = velocity

        interior = (slice(1, imax + 1), slice(1, jmax + 1))
        grid.cell_data["pressure"] = self.p[interior].ravel(order="F")
        grid.cell_data["temperature"] = self.t[interior].ravel(order="F")
        for name, values in self.concentrations.items():
            grid.cell_data[name.replace(" ", "_")] = values[interior].ravel(order="F")

        grid.field_data["time"] = np.array([self.time])
        return grid


class SnapshotSink(ABC):
    @abstractmethod
    def write(self, snapshot: Snapshot):
        pass


class InMemorySnapshotSink(SnapshotSink):
    """Keeps every snapshot; used by tests and notebooks."""

    def __init__(self):
        self.snapshots: List[Snapshot] = []

    def write(self, snapshot: Snapshot):
        self.snapshots.append(snapshot)


class VTKSnapshotWriter(SnapshotSink):
    """Writes ``{prefix}.{step}.vts`` files into ``output_dir``."""

    def __init__(self, output_dir, prefix: str = "solution"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix
        self.paths: List[Path] = []

    def write(self, snapshot: Snapshot):
        path = self.output_dir / f"{self.prefix}.{snapshot.step}.vts"
        snapshot.to_vtk().save(str(path))
        self.paths.append(path)
        log.debug(f"Wrote snapshot {path.name} at t={snapshot.time:.4f}")
        return path
