"""Camera module for view and ray generation.

Components:
    thin_lens: Perspective camera with antialiasing jitter and depth of field

Camera responsibilities:
    - Derive an orthonormal basis from look-from / look-at / up
    - Map pixel (i, j) to a point on the focus plane (row 0 at the top)
    - Jitter samples inside the pixel footprint for antialiasing
    - Sample ray origins on the defocus disk for depth of field
"""

from .thin_lens import ThinLensCamera

__all__ = [
    "ThinLensCamera",
]
