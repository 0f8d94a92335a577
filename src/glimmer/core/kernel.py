"""Data-parallel Taichi renderer.

This module renders the same image model as :mod:`glimmer.core.integrator`,
but shards the work across Taichi threads: the outermost ``ti.ndrange`` loop
over a band of rows is parallelized, and every pixel writes only its own slot
of a preallocated framebuffer, so no locking is needed.

Scene data is uploaded once into GPU-friendly Taichi fields:
    - Structure-of-Arrays layout for sphere centers, radii and material ids
    - Deduplicated materials (shared instances are uploaded once) with an
      integer type tag for dispatch

Radiance is evaluated iteratively: the recursive ``ray_color`` is unrolled
into a throughput product carried along the bounce chain, bounded by the same
bounce budget.

Taichi must be initialized with float64 as the default float type (see
:func:`init_taichi`); the framebuffer, scene and camera state are all f64.
Random numbers come from Taichi's per-thread generators, seeded by
``ti.init(random_seed=...)``.

Example:
    >>> from glimmer.config import RenderSettings
    >>> from glimmer.core.kernel import KernelRenderer, init_taichi
    >>> from glimmer.scene.presets import material_showcase
    >>> init_taichi("cpu", seed=1)
    >>> scene, camera = material_showcase(image_width=400)
    >>> renderer = KernelRenderer(camera, scene, RenderSettings(samples_per_pixel=50))
    >>> image = renderer.render()  # (225, 400, 3) float64, gamma-encoded
"""

import logging
from collections.abc import Iterator

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from glimmer.camera.thin_lens import ThinLensCamera
from glimmer.config import COLOR_CLAMP_MAX, T_MIN, RenderSettings
from glimmer.core.integrator import (
    CancellationFlag,
    ProgressCallback,
    RenderCancelled,
    iter_framebuffer,
)
from glimmer.core.ray import Vec3
from glimmer.geometry.sphere import Sphere
from glimmer.materials import Dielectric, Lambertian, Material, MaterialType, Metal
from glimmer.materials.metal import ABSORPTION_TOLERANCE
from glimmer.scene.world import Scene

logger = logging.getLogger(__name__)

# Type alias for 3D double-precision vectors inside kernels
vec3 = ti.types.vector(3, ti.f64)

# Upper bound of the ray parameter range inside kernels
T_MAX = 1.0e30

# Default number of rows rendered per kernel launch
DEFAULT_ROWS_PER_BATCH = 16


def init_taichi(arch: str = "cpu", seed: int | None = None) -> None:
    """Initialize Taichi for double-precision rendering.

    Args:
        arch: "cpu" or "gpu". A GPU backend without float64 support cannot
            run the renderer.
        seed: Seed for Taichi's random generators. None keeps Taichi's default.

    Raises:
        ValueError: If the architecture name is unknown.
    """
    archs = {"cpu": ti.cpu, "gpu": ti.gpu}
    if arch not in archs:
        raise ValueError(f"Unknown Taichi architecture {arch!r}; expected one of {sorted(archs)}")
    options = {"arch": archs[arch], "default_fp": ti.f64}
    if seed is not None:
        options["random_seed"] = seed
    ti.init(**options)
    logger.info("Taichi initialized (arch=%s, seed=%s)", arch, seed)


@ti.dataclass
class KernelHitRecord:
    """Record of a ray-sphere intersection inside a kernel.

    Attributes:
        hit: 1 if the ray intersected a sphere, 0 on a miss.
        t: The ray parameter of the intersection (valid if hit == 1).
        point: The intersection point (valid if hit == 1).
        normal: Unit normal facing against the ray (valid if hit == 1).
        front_face: 1 if the outward side was hit, 0 otherwise.
        material_id: Index into the uploaded materials, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def normalize_or_zero(v: vec3) -> vec3:
    """Normalize a vector, returning zero for zero-length input."""
    n = v.norm()
    result = vec3(0.0, 0.0, 0.0)
    if n > 0.0:
        result = v / n
    return result


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal."""
    return incident - 2.0 * incident.dot(normal) * normal


@ti.func
def refract(unit_direction: vec3, normal: vec3, eta_ratio: ti.f64) -> vec3:
    """Refract a unit direction through a surface using Snell's law."""
    cos_theta = tm.min(-unit_direction.dot(normal), 1.0)
    perpendicular = eta_ratio * (unit_direction + cos_theta * normal)
    parallel = -ti.sqrt(ti.abs(1.0 - perpendicular.dot(perpendicular))) * normal
    return perpendicular + parallel


@ti.func
def random_in_unit_sphere() -> vec3:
    """Rejection-sample a point strictly inside the unit sphere."""
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    while found == 0:
        p = vec3(
            ti.random(ti.f64) * 2.0 - 1.0,
            ti.random(ti.f64) * 2.0 - 1.0,
            ti.random(ti.f64) * 2.0 - 1.0,
        )
        lensq = p.dot(p)
        if lensq > 1e-160 and lensq < 1.0:
            found = 1
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a unit vector uniformly distributed on the sphere."""
    return random_in_unit_sphere().normalized()


@ti.func
def random_in_unit_disk() -> vec3:
    """Rejection-sample a point (x, y, 0) inside the unit disk."""
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    while found == 0:
        p = vec3(ti.random(ti.f64) * 2.0 - 1.0, ti.random(ti.f64) * 2.0 - 1.0, 0.0)
        if p.x * p.x + p.y * p.y < 1.0:
            found = 1
    return p


@ti.func
def background(direction: vec3) -> vec3:
    """Sky gradient: white looking down, (0.5, 0.7, 1.0) looking up."""
    a = 0.5 * (normalize_or_zero(direction).y + 1.0)
    return (1.0 - a) * vec3(1.0, 1.0, 1.0) + a * vec3(0.5, 0.7, 1.0)


# =============================================================================
# Intersection and Scattering
# =============================================================================


@ti.func
def hit_sphere(
    origin: vec3,
    direction: vec3,
    center: vec3,
    radius: ti.f64,
    t_min: ti.f64,
    t_max: ti.f64,
) -> KernelHitRecord:
    """Test for ray-sphere intersection in ``(t_min, t_max]``.

    Same half-b quadratic as :meth:`glimmer.geometry.sphere.Sphere.intersect`.
    The material id is left at -1 for the caller to fill in.
    """
    oc = origin - center
    a = direction.dot(direction)
    half_b = oc.dot(direction)
    c = oc.dot(oc) - radius * radius
    discriminant = half_b * half_b - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if a > 0.0 and discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        t = (-half_b - sqrt_d) / a
        valid = t > t_min and t <= t_max
        if not valid:
            t = (-half_b + sqrt_d) / a
            valid = t > t_min and t <= t_max

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = origin + t * direction
            # Sign follows the radius: negative radii face inward
            outward_normal = (hit_point - center) / radius
            if direction.dot(outward_normal) < 0.0:
                is_front_face = 1
                hit_normal = outward_normal
            else:
                hit_normal = -outward_normal

    return KernelHitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
        material_id=-1,
    )


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3):
    """Diffuse scatter about the normal; always scatters.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter).
    """
    direction = normal + random_unit_vector()
    if ti.abs(direction.x) < 1e-8 and ti.abs(direction.y) < 1e-8 and ti.abs(direction.z) < 1e-8:
        direction = normal
    return direction, albedo, 1


@ti.func
def scatter_metal(albedo: vec3, fuzz: ti.f64, incident: vec3, normal: vec3):
    """Mirror reflection perturbed by fuzz; absorbed if it points inward.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter).
    """
    reflected = reflect(normalize_or_zero(incident), normal)
    direction = reflected + fuzz * random_unit_vector()
    did_scatter = 1
    if direction.dot(normal) < -ABSORPTION_TOLERANCE:
        did_scatter = 0
    return direction, albedo, did_scatter


@ti.func
def scatter_dielectric(refractive_index: ti.f64, incident: vec3, normal: vec3, front_face: ti.i32):
    """Refract, or reflect on total internal reflection; always scatters.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter).
    """
    ratio = refractive_index
    if front_face == 1:
        ratio = 1.0 / refractive_index

    unit_direction = normalize_or_zero(incident)
    cos_theta = tm.min(-unit_direction.dot(normal), 1.0)
    sin_theta = ti.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))

    direction = vec3(0.0, 0.0, 0.0)
    if ratio * sin_theta > 1.0:
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, ratio)
    return direction, vec3(1.0, 1.0, 1.0), 1


# =============================================================================
# Renderer
# =============================================================================


@ti.data_oriented
class KernelRenderer:
    """Render a frame by sharding rows across Taichi threads.

    The camera and scene are copied into Taichi fields at construction; the
    renderer never reads the Python objects again, so they may not change
    the image once it exists.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        frame: The (height, width) vec3 framebuffer, gamma-encoded.
    """

    def __init__(
        self,
        camera: ThinLensCamera,
        scene: Scene,
        settings: RenderSettings,
        *,
        rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
    ) -> None:
        """Allocate fields and upload camera and scene.

        Args:
            camera: The frame's camera.
            scene: The frame's scene; every surface must be a Sphere.
            settings: Samples per pixel and bounce budget (the seed is set
                through :func:`init_taichi`).
            rows_per_batch: Rows rendered per kernel launch; progress and
                cancellation are checked between launches.

        Raises:
            ValueError: If rows_per_batch is not positive or the scene
                contains a surface type the kernels cannot trace.
        """
        if rows_per_batch <= 0:
            raise ValueError(f"rows_per_batch must be positive, got {rows_per_batch}")

        self.width = camera.image_width
        self.height = camera.image_height
        self._rows_per_batch = rows_per_batch

        # Compile-time constants baked into the kernels
        self._samples_per_pixel = settings.samples_per_pixel
        self._max_bounces = settings.max_bounces
        self._defocus = camera.defocus_angle > 0.0

        # Camera state
        self._origin = ti.Vector.field(3, dtype=ti.f64, shape=())
        self._pixel00 = ti.Vector.field(3, dtype=ti.f64, shape=())
        self._delta_u = ti.Vector.field(3, dtype=ti.f64, shape=())
        self._delta_v = ti.Vector.field(3, dtype=ti.f64, shape=())
        self._disk_u = ti.Vector.field(3, dtype=ti.f64, shape=())
        self._disk_v = ti.Vector.field(3, dtype=ti.f64, shape=())

        # Scene storage (fields need at least one slot even for empty scenes)
        spheres = list(scene)
        for surface in spheres:
            if not isinstance(surface, Sphere):
                raise ValueError(
                    f"KernelRenderer can only trace spheres, got {type(surface).__name__}"
                )
        materials = scene.materials()
        self._num_spheres = len(spheres)
        sphere_slots = max(1, len(spheres))
        material_slots = max(1, len(materials))

        self._sphere_centers = ti.Vector.field(3, dtype=ti.f64, shape=sphere_slots)
        self._sphere_radii = ti.field(dtype=ti.f64, shape=sphere_slots)
        self._sphere_material_ids = ti.field(dtype=ti.i32, shape=sphere_slots)
        self._material_types = ti.field(dtype=ti.i32, shape=material_slots)
        self._material_albedos = ti.Vector.field(3, dtype=ti.f64, shape=material_slots)
        # Fuzz for metals, refractive index for dielectrics, unused for Lambertian
        self._material_params = ti.field(dtype=ti.f64, shape=material_slots)

        self.frame = ti.Vector.field(3, dtype=ti.f64, shape=(self.height, self.width))

        self._upload_camera(camera)
        self._upload_scene(spheres, materials)

    # -------------------------------------------------------------------------
    # Uploads (Python-side, called once)
    # -------------------------------------------------------------------------

    def _upload_camera(self, camera: ThinLensCamera) -> None:
        self._origin[None] = camera.look_from.tolist()
        self._pixel00[None] = camera.pixel00_location.tolist()
        self._delta_u[None] = camera.pixel_delta_u.tolist()
        self._delta_v[None] = camera.pixel_delta_v.tolist()
        self._disk_u[None] = camera.defocus_disk_u.tolist()
        self._disk_v[None] = camera.defocus_disk_v.tolist()

    def _upload_scene(self, spheres: list[Sphere], materials: list[Material]) -> None:
        material_index = {id(material): k for k, material in enumerate(materials)}

        material_slots = self._material_types.shape[0]
        types = np.zeros(material_slots, dtype=np.int32)
        albedos = np.zeros((material_slots, 3), dtype=np.float64)
        params = np.zeros(material_slots, dtype=np.float64)
        for k, material in enumerate(materials):
            types[k] = int(material.kind)
            if isinstance(material, (Lambertian, Metal)):
                albedos[k] = material.albedo
            if isinstance(material, Metal):
                params[k] = material.fuzz
            elif isinstance(material, Dielectric):
                params[k] = material.refractive_index
        self._material_types.from_numpy(types)
        self._material_albedos.from_numpy(albedos)
        self._material_params.from_numpy(params)

        slots = self._sphere_radii.shape[0]
        centers = np.zeros((slots, 3), dtype=np.float64)
        radii = np.ones(slots, dtype=np.float64)
        material_ids = np.zeros(slots, dtype=np.int32)
        for k, sphere in enumerate(spheres):
            centers[k] = sphere.center
            radii[k] = sphere.radius
            material_ids[k] = material_index[id(sphere.material)]
        self._sphere_centers.from_numpy(centers)
        self._sphere_radii.from_numpy(radii)
        self._sphere_material_ids.from_numpy(material_ids)

        logger.debug(
            "Uploaded %d spheres and %d materials", len(spheres), len(materials)
        )

    # -------------------------------------------------------------------------
    # Taichi functions
    # -------------------------------------------------------------------------

    @ti.func
    def _generate_ray(self, i: ti.i32, j: ti.i32):
        """Jittered camera ray for pixel (i, j), as (origin, direction)."""
        offset_u = ti.random(ti.f64) - 0.5
        offset_v = ti.random(ti.f64) - 0.5
        pixel_sample = (
            self._pixel00[None]
            + (i + offset_u) * self._delta_u[None]
            + (j + offset_v) * self._delta_v[None]
        )
        origin = self._origin[None]
        if ti.static(self._defocus):
            p = random_in_unit_disk()
            origin = origin + p.x * self._disk_u[None] + p.y * self._disk_v[None]
        return origin, pixel_sample - origin

    @ti.func
    def _intersect(self, origin: vec3, direction: vec3) -> KernelHitRecord:
        """Nearest hit over all spheres in ``(T_MIN, T_MAX]``."""
        closest = KernelHitRecord(
            hit=0,
            t=0.0,
            point=vec3(0.0, 0.0, 0.0),
            normal=vec3(0.0, 0.0, 0.0),
            front_face=0,
            material_id=-1,
        )
        closest_t = T_MAX
        for k in range(self._num_spheres):
            rec = hit_sphere(
                origin,
                direction,
                self._sphere_centers[k],
                self._sphere_radii[k],
                T_MIN,
                closest_t,
            )
            if rec.hit == 1 and (closest.hit == 0 or rec.t < closest_t):
                closest = rec
                closest.material_id = self._sphere_material_ids[k]
                closest_t = rec.t
        return closest

    @ti.func
    def _scatter(self, rec: KernelHitRecord, incident: vec3):
        """Dispatch to the hit material's scatter function."""
        material_id = rec.material_id
        mat_type = self._material_types[material_id]
        albedo = self._material_albedos[material_id]
        param = self._material_params[material_id]

        # Default values
        scattered_direction = vec3(0.0, 0.0, 0.0)
        attenuation = vec3(0.0, 0.0, 0.0)
        did_scatter = 0

        if mat_type == int(MaterialType.LAMBERTIAN):
            scattered_direction, attenuation, did_scatter = scatter_lambertian(
                albedo, rec.normal
            )
        elif mat_type == int(MaterialType.METAL):
            scattered_direction, attenuation, did_scatter = scatter_metal(
                albedo, param, incident, rec.normal
            )
        elif mat_type == int(MaterialType.DIELECTRIC):
            scattered_direction, attenuation, did_scatter = scatter_dielectric(
                param, incident, rec.normal, rec.front_face
            )

        return scattered_direction, attenuation, did_scatter

    @ti.func
    def _ray_color(self, origin: vec3, direction: vec3) -> vec3:
        """Iterative form of the recursive radiance estimate.

        The throughput holds the product of attenuations so far; the loop
        ends on escape (sky times throughput), absorption, a zero
        attenuation, or an exhausted budget (black).
        """
        color = vec3(0.0, 0.0, 0.0)
        throughput = vec3(1.0, 1.0, 1.0)
        ray_origin = origin
        ray_direction = direction
        remaining = self._max_bounces
        active = 1

        while active == 1:
            rec = self._intersect(ray_origin, ray_direction)
            if rec.hit == 0:
                color = throughput * background(ray_direction)
                active = 0
            elif remaining <= 1:
                active = 0
            else:
                scattered, attenuation, did_scatter = self._scatter(rec, ray_direction)
                if did_scatter == 0 or attenuation.max() <= 0.0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered
                    remaining -= 1

        return color

    # -------------------------------------------------------------------------
    # Rendering Kernels
    # -------------------------------------------------------------------------

    @ti.kernel
    def _render_rows(self, row_start: ti.i32, row_end: ti.i32):
        """Render rows [row_start, row_end) in parallel, one pixel per thread."""
        for j, i in ti.ndrange((row_start, row_end), self.width):
            color_sum = vec3(0.0, 0.0, 0.0)
            for _ in range(self._samples_per_pixel):
                origin, direction = self._generate_ray(i, j)
                color_sum += self._ray_color(origin, direction)
            average = color_sum * (1.0 / self._samples_per_pixel)
            self.frame[j, i] = ti.sqrt(tm.clamp(average, 0.0, COLOR_CLAMP_MAX))

    @ti.kernel
    def _trace(self, origin: vec3, direction: vec3) -> vec3:
        """Trace a single ray (used for testing and debugging)."""
        return self._ray_color(origin, direction)

    # -------------------------------------------------------------------------
    # Public Rendering API
    # -------------------------------------------------------------------------

    def trace(self, origin: Vec3, direction: Vec3) -> tuple[float, float, float]:
        """Estimate the radiance along one ray with the uploaded scene.

        Args:
            origin: Ray origin.
            direction: Ray direction (any non-zero length).

        Returns:
            Tuple of (R, G, B) linear radiance.
        """
        color = self._trace(vec3(*map(float, origin)), vec3(*map(float, direction)))
        return (float(color[0]), float(color[1]), float(color[2]))

    def render(
        self,
        *,
        progress: ProgressCallback | None = None,
        cancel: CancellationFlag | None = None,
    ) -> npt.NDArray[np.float64]:
        """Render the full frame.

        Args:
            progress: Optional callback invoked after each band of rows with
                ``(pixels_done, pixels_total)``.
            cancel: Optional flag checked before each band.

        Returns:
            Array of shape (height, width, 3), row 0 at the top, gamma-encoded.

        Raises:
            RenderCancelled: If ``cancel`` becomes set mid-frame.
        """
        total = self.width * self.height
        logger.info(
            "Kernel render %dx%d, %d spp, %d max bounces, %d spheres",
            self.width,
            self.height,
            self._samples_per_pixel,
            self._max_bounces,
            self._num_spheres,
        )
        for row_start in range(0, self.height, self._rows_per_batch):
            if cancel is not None and cancel.is_set():
                logger.info("Kernel render cancelled at row %d", row_start)
                raise RenderCancelled(f"Render cancelled at row {row_start}")
            row_end = min(row_start + self._rows_per_batch, self.height)
            self._render_rows(row_start, row_end)
            if progress is not None:
                progress(row_end * self.width, total)
        ti.sync()
        return self.frame.to_numpy()

    def render_pixels(
        self,
        *,
        progress: ProgressCallback | None = None,
        cancel: CancellationFlag | None = None,
    ) -> Iterator[Vec3]:
        """Render the frame and stream it row-major for an image sink."""
        return iter_framebuffer(self.render(progress=progress, cancel=cancel))

    def __repr__(self) -> str:
        return (
            f"KernelRenderer(width={self.width}, height={self.height}, "
            f"spheres={self._num_spheres}, samples={self._samples_per_pixel})"
        )
