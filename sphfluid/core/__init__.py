"""Core components: particles, kernels, spatial indexing, integration and backends."""

from .particles import ParticleArrays, ParticleSnapshot
from .kernels import (
    SmoothingKernels,
    poly6,
    spiky_gradient,
    viscosity_laplacian,
    poly6_gradient,
    poly6_laplacian
)
from .spatial_hash import NeighborList, SpatialIndex, build_spatial_index
from .integrator import integrate_semi_implicit_euler, clamp_speed

__all__ = [
    'ParticleArrays',
    'ParticleSnapshot',
    'SmoothingKernels',
    'poly6',
    'spiky_gradient',
    'viscosity_laplacian',
    'poly6_gradient',
    'poly6_laplacian',
    'NeighborList',
    'SpatialIndex',
    'build_spatial_index',
    'integrate_semi_implicit_euler',
    'clamp_speed'
]
