"""Image morphing methods (meshing, homographies, warping, blending)."""

from .mesh import TriangleMesh, triangulate, index_triangles, triangle_points
from .homography import solve_triangle, solve_all, blend_homography, blend_all
from .warp import rasterize_triangles, build_warp_map, remap_image
from .blend import LaplacianBlender, blend_images, derive_mask, unsharp_mask

__all__ = [
    "TriangleMesh",
    "triangulate",
    "index_triangles",
    "triangle_points",
    "solve_triangle",
    "solve_all",
    "blend_homography",
    "blend_all",
    "rasterize_triangles",
    "build_warp_map",
    "remap_image",
    "LaplacianBlender",
    "blend_images",
    "derive_mask",
    "unsharp_mask",
]
