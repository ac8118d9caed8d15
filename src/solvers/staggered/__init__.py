"""MAC-grid projection solver and its stencil kernels."""

from .solver import StaggeredGridSolver

__all__ = ["StaggeredGridSolver"]
