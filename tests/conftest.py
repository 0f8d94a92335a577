"""Pytest configuration for glimmer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import numpy as np
import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts. The renderer's
    kernels run in double precision, so f64 is the default float type.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=42)
    yield


@pytest.fixture
def rng():
    """A seeded NumPy generator, fresh for every test."""
    return np.random.default_rng(12345)


@pytest.fixture
def grey():
    """A shared mid-grey diffuse material."""
    from glimmer.materials import Lambertian

    return Lambertian((0.5, 0.5, 0.5))
