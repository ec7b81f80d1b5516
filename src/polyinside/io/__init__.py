"""I/O utilities for polyinside."""

from .points import read_point_set
from .stl import read_stl, write_stl

__all__ = ['read_stl', 'write_stl', 'read_point_set']
