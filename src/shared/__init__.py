"""Solver-independent output: snapshots and plots."""
