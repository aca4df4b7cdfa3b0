"""
Utility functions for PLY color handling.

Spherical harmonics conversion for Gaussian splatting files whose colors are
stored as DC coefficients (``f_dc_0`` .. ``f_dc_2``).
"""

import numpy as np


# Spherical Harmonics conversion constant
SH_C0 = 0.28209479177387814  # sqrt(1/(4*pi))


def sh2rgb_np(sh: np.ndarray) -> np.ndarray:
    """Convert Spherical Harmonics DC coefficients to RGB.

    Args:
        sh: DC coefficients, any shape

    Returns:
        RGB values (unclipped, nominally in [0, 1])
    """
    return sh * SH_C0 + 0.5


def sh_dc_colors_to_rgb(colors: np.ndarray) -> np.ndarray:
    """DC coefficients to RGB clipped into [0, 1], as float32."""
    return np.clip(sh2rgb_np(colors), 0.0, 1.0).astype(np.float32)
