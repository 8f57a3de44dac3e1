"""Rigid transform types."""

from .pose import SE3

__all__ = ["SE3"]
