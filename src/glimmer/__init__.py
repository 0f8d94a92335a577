"""Offline Monte-Carlo ray tracer for scenes of spheres.

This package renders a fixed scene through a thin-lens camera, supporting:
- Lambertian, metal and dielectric (glass) materials
- Antialiasing by jittered supersampling and depth of field
- A host-side NumPy reference renderer and a Taichi data-parallel backend
- PPM and PNG image output

Subpackages:
    core: Ray and vector utilities, the radiance integrator, Taichi kernels
    geometry: Sphere primitive and hit records
    materials: Scattering models
    scene: Scene container and preset scenes
    camera: Thin-lens camera with ray generation
    output: Image sinks
"""

__version__ = "0.1.0"
