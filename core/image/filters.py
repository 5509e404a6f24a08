"""
Raster filter primitives over float RGB arrays.

These are the pixel-level building blocks used by the secondary (raw
buffer) processing tier. Every function takes and returns ``float32``
arrays of shape (H, W, 3) in the 0-255 range and clamps its result, so a
chain of calls clamps after each step.

Kernels are applied as correlation with reflected borders, matching
``cv2.filter2D`` defaults.
"""

from typing import Sequence, Tuple

import numpy as np

from core.constants import ImageConstants

# Shared 3x3 kernels
SHARPEN_CROSS = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float32)
SHARPEN_FULL = np.array([[-1, -1, -1], [-1, 9, -1], [-1, -1, -1]], dtype=np.float32)
EDGE_LAPLACIAN = np.array([[-1, -1, -1], [-1, 8, -1], [-1, -1, -1]], dtype=np.float32)
GAUSSIAN_3 = np.array([[1, 2, 1], [2, 4, 2], [1, 2, 1]], dtype=np.float32) / 16.0


def neighbour_kernel(center: float, neighbour: float, size: int = 3) -> np.ndarray:
    """Square kernel with one value at the centre and another everywhere else."""
    kernel = np.full((size, size), neighbour, dtype=np.float32)
    kernel[size // 2, size // 2] = center
    return kernel


def cross_kernel(center: float, arm: float) -> np.ndarray:
    """3x3 kernel with ``arm`` on the 4-neighbourhood and zero corners."""
    return np.array([[0, arm, 0], [arm, center, arm], [0, arm, 0]], dtype=np.float32)


def deconvolution_kernel(radius: float, strength: float) -> np.ndarray:
    """
    Sharpening kernel sized from a blur radius.

    Size is ``max(3, min(7, floor(2r) + 1))`` forced odd; the centre weight
    ``1 + (n^2 - 1) * s`` balances the ``-s`` neighbours so the kernel sums to 1.
    """
    size = max(3, min(7, int(np.floor(radius * 2)) + 1))
    if size % 2 == 0:
        size += 1
    return neighbour_kernel(1 + (size * size - 1) * strength, -strength, size)


def clamp(rgb: np.ndarray) -> np.ndarray:
    return np.clip(rgb, 0.0, 255.0)


def to_uint8(rgb: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(rgb), 0, 255).astype(np.uint8)


def luminance(rgb: np.ndarray) -> np.ndarray:
    """Luma plane ``0.299 R + 0.587 G + 0.114 B``."""
    wr, wg, wb = ImageConstants.LUMA_WEIGHTS
    return rgb[..., 0] * wr + rgb[..., 1] * wg + rgb[..., 2] * wb


def adjust_saturation(rgb: np.ndarray, factor: float) -> np.ndarray:
    gray = luminance(rgb)[..., None]
    return clamp(gray + (rgb - gray) * factor)


def adjust_brightness(rgb: np.ndarray, factor: float) -> np.ndarray:
    return clamp(rgb * factor)


def adjust_contrast(rgb: np.ndarray, factor: float, pivot: float = 128.0) -> np.ndarray:
    return clamp((rgb - pivot) * factor + pivot)


def contrast_factor(contrast: float) -> float:
    """Classic contrast curve factor for an adjustment in -255..255."""
    return (259.0 * (contrast + 255.0)) / (255.0 * (259.0 - contrast))


def scale_channels(rgb: np.ndarray, factors: Sequence[float]) -> np.ndarray:
    return clamp(rgb * np.asarray(factors, dtype=np.float32))


def offset_channels(rgb: np.ndarray, offsets: Sequence[float]) -> np.ndarray:
    return clamp(rgb + np.asarray(offsets, dtype=np.float32))


def normalize_channels(rgb: np.ndarray) -> np.ndarray:
    """Stretch each channel to the full range; flat channels are left alone."""
    out = rgb.copy()
    for c in range(3):
        channel = rgb[..., c]
        low, high = float(channel.min()), float(channel.max())
        if high > low:
            out[..., c] = (channel - low) * (255.0 / (high - low))
    return clamp(out)


def channel_means(rgb: np.ndarray) -> Tuple[float, float, float]:
    means = rgb.reshape(-1, 3).mean(axis=0)
    return float(means[0]), float(means[1]), float(means[2])


def gray_world_factors(means: Sequence[float]) -> Tuple[float, float, float]:
    """Per-channel gains that pull every channel mean to the overall mean."""
    total = sum(means) / 3.0
    return tuple(total / m if m > 0 else 1.0 for m in means)


def gray_world(rgb: np.ndarray) -> np.ndarray:
    return scale_channels(rgb, gray_world_factors(channel_means(rgb)))


def _padded_windows(plane: np.ndarray, size: int):
    half = size // 2
    pad = [(half, half), (half, half)] + [(0, 0)] * (plane.ndim - 2)
    mode = "reflect" if min(plane.shape[:2]) > half else "edge"
    padded = np.pad(plane, pad, mode=mode)
    height, width = plane.shape[:2]
    for dy in range(size):
        for dx in range(size):
            yield dy, dx, padded[dy : dy + height, dx : dx + width]


def correlate(rgb: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Raw (unclamped) kernel response."""
    out = np.zeros_like(rgb, dtype=np.float32)
    size = kernel.shape[0]
    for dy, dx, window in _padded_windows(rgb, size):
        weight = kernel[dy, dx]
        if weight:
            out += window * weight
    return out


def convolve(rgb: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    return clamp(correlate(rgb, kernel))


def blend(original: np.ndarray, processed: np.ndarray, factor) -> np.ndarray:
    """``original + (processed - original) * factor``; factor may be a per-pixel plane."""
    factor = np.asarray(factor, dtype=np.float32)
    if factor.ndim == 2:
        factor = factor[..., None]
    return clamp(original + (processed - original) * factor)


def median3(rgb: np.ndarray) -> np.ndarray:
    """3x3 median filter per channel."""
    stack = np.stack([window for _, _, window in _padded_windows(rgb, 3)], axis=0)
    return np.median(stack, axis=0).astype(np.float32)


def box_mean3(plane: np.ndarray) -> np.ndarray:
    out = np.zeros_like(plane, dtype=np.float32)
    for _, _, window in _padded_windows(plane, 3):
        out += window
    return out / 9.0


def local_variance(plane: np.ndarray) -> np.ndarray:
    """3x3 local variance ``E[x^2] - E[x]^2``."""
    mean = box_mean3(plane)
    return np.maximum(box_mean3(plane * plane) - mean * mean, 0.0)


def mix_channels(rgb: np.ndarray, matrix: Sequence[Sequence[float]]) -> np.ndarray:
    """Each output channel is a weighted sum of R, G and B (one matrix row per channel)."""
    return clamp(rgb @ np.asarray(matrix, dtype=np.float32).T)


def apply_curve(rgb: np.ndarray, lut: np.ndarray) -> np.ndarray:
    """Map rounded 0-255 values through a 256 entry table."""
    return clamp(np.asarray(lut, dtype=np.float32)[to_uint8(rgb)])


def shift_hue(rgb: np.ndarray, degrees: float) -> np.ndarray:
    """Rotate hue in HSV space; saturation and value are kept."""
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    high = rgb.max(axis=-1)
    low = rgb.min(axis=-1)
    chroma = high - low
    safe = np.where(chroma > 0, chroma, 1.0)

    hue = np.where(
        high == r,
        ((g - b) / safe) % 6.0,
        np.where(high == g, (b - r) / safe + 2.0, (r - g) / safe + 4.0),
    )
    hue = ((np.where(chroma > 0, hue, 0.0) * 60.0 + degrees) % 360.0) / 60.0

    x = chroma * (1.0 - np.abs(hue % 2.0 - 1.0))
    zero = np.zeros_like(chroma)
    sector = np.floor(hue).astype(np.int64) % 6
    choices = [
        (chroma, x, zero),
        (x, chroma, zero),
        (zero, chroma, x),
        (zero, x, chroma),
        (x, zero, chroma),
        (chroma, zero, x),
    ]
    out = np.stack(
        [np.choose(sector, [c[i] for c in choices]) for i in range(3)], axis=-1
    )
    return clamp(out + low[..., None]).astype(np.float32)


def gaussian_kernel_1d(sigma: float) -> np.ndarray:
    """Normalized 1-D Gaussian reaching out to 3 sigma."""
    radius = max(1, int(np.ceil(3 * sigma)))
    xs = np.arange(-radius, radius + 1, dtype=np.float32)
    kernel = np.exp(-(xs * xs) / (2.0 * sigma * sigma))
    return (kernel / kernel.sum()).astype(np.float32)


def _correlate_axis(rgb: np.ndarray, kernel: np.ndarray, axis: int) -> np.ndarray:
    half = len(kernel) // 2
    size = rgb.shape[axis]
    pad = [(0, 0)] * rgb.ndim
    pad[axis] = (half, half)
    padded = np.pad(rgb, pad, mode="reflect" if size > half else "edge")
    out = np.zeros_like(rgb, dtype=np.float32)
    for i, weight in enumerate(kernel):
        out += np.take(padded, np.arange(i, i + size), axis=axis) * weight
    return out


def gaussian_blur(rgb: np.ndarray, sigma: float) -> np.ndarray:
    """Separable Gaussian blur with reflected borders."""
    kernel = gaussian_kernel_1d(sigma)
    return clamp(_correlate_axis(_correlate_axis(rgb, kernel, 1), kernel, 0))


def motion_kernel(angle: float, length: int) -> np.ndarray:
    """Normalized line kernel of ``length`` pixels at ``angle`` degrees."""
    size = length if length % 2 else length + 1
    center = size // 2
    theta = np.deg2rad(angle)
    kernel = np.zeros((size, size), dtype=np.float32)
    for t in np.linspace(-center, center, size * 2):
        x = int(round(center + t * np.cos(theta)))
        y = int(round(center - t * np.sin(theta)))
        kernel[y, x] = 1.0
    return kernel / kernel.sum()


def posterize(rgb: np.ndarray, levels: int) -> np.ndarray:
    step = 255.0 / (levels - 1)
    return clamp(np.round(rgb / step) * step).astype(np.float32)


def screen(base: np.ndarray, layer, opacity: float = 1.0) -> np.ndarray:
    """Screen blend ``layer`` over ``base``; ``layer`` may be a colour tuple."""
    layer = np.asarray(layer, dtype=np.float32)
    screened = 255.0 - (255.0 - base) * (255.0 - layer) / 255.0
    return blend(base, screened, opacity)


def radial_falloff(height: int, width: int, inner: float = 0.3) -> np.ndarray:
    """0 inside ``inner`` of the half-diagonal, rising to 1 at the corners."""
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    cy, cx = (height - 1) / 2.0, (width - 1) / 2.0
    reach = max(float(np.hypot(cy, cx)), 1.0)
    distance = np.hypot(ys - cy, xs - cx) / reach
    return np.clip((distance - inner) / (1.0 - inner), 0.0, 1.0).astype(np.float32)


def grain(height: int, width: int, amount: float, seed: int = 0) -> np.ndarray:
    """Seeded uniform noise plane in ``[-amount / 2, amount / 2]``."""
    rng = np.random.default_rng(seed)
    return ((rng.random((height, width), dtype=np.float32) - 0.5) * amount).astype(np.float32)


def stipple(rgb: np.ndarray, spacing: int, radius: float, background: float = 255.0) -> np.ndarray:
    """
    Paint one round dot per ``spacing`` cell, coloured from the cell centre.

    Pixels outside every dot take the ``background`` value.
    """
    height, width = rgb.shape[:2]
    ys = np.arange(height)
    xs = np.arange(width)
    cy = np.minimum((ys // spacing) * spacing + spacing // 2, height - 1)
    cx = np.minimum((xs // spacing) * spacing + spacing // 2, width - 1)
    dy = (ys - cy)[:, None]
    dx = (xs - cx)[None, :]
    inside = dx * dx + dy * dy <= radius * radius

    out = np.full_like(rgb, background, dtype=np.float32)
    dots = rgb[cy][:, cx]
    out[inside] = dots[inside]
    return out


def texture_plane(height: int, width: int, kind: str, seed: int = 0) -> np.ndarray:
    """Multiplicative surface texture: ``canvas`` weave, ``paper`` or ``rough`` grain."""
    if kind == "canvas":
        ys, xs = np.mgrid[0:height, 0:width]
        weave = ((ys // 2) + (xs // 2)) % 2
        return (1.0 - 0.06 * weave).astype(np.float32)
    rng = np.random.default_rng(seed)
    depth = 0.05 if kind == "paper" else 0.12
    return (1.0 - depth * rng.random((height, width), dtype=np.float32)).astype(np.float32)


# Tone curves as 256 entry lookup tables


def _hable(x):
    a, b, c, d, e, f = 0.15, 0.5, 0.1, 0.2, 0.02, 0.3
    return (x * (a * x + c * b) + d * e) / (x * (a * x + b) + d * f) - e / f


def _aces(x):
    return (x * (2.51 * x + 0.03)) / (x * (2.43 * x + 0.59) + 0.14)


def tone_curve(name: str) -> np.ndarray:
    """
    Tone mapping curve normalized so black and white are fixed.

    ``reinhard``: ``x (1 + k) / (x + k)`` with ``k = 0.5``; ``filmic``: Hable;
    ``aces``: Narkowicz fit; ``uncharted2``: Hable with a 2x exposure bias.
    """
    x = np.linspace(0.0, 1.0, 256, dtype=np.float64)
    if name == "reinhard":
        y = x * 1.5 / (x + 0.5)
    elif name == "filmic":
        y = _hable(x) / _hable(1.0)
    elif name == "aces":
        y = _aces(x) / _aces(1.0)
    elif name == "uncharted2":
        y = _hable(2.0 * x) / _hable(2.0)
    else:
        raise ValueError(f"unknown tone curve: {name}")
    return (np.clip(y, 0.0, 1.0) * 255.0).astype(np.float32)


def gamma_curve(gamma: float) -> np.ndarray:
    """``255 * (x / 255) ** (1 / gamma)``; gamma above 1 brightens."""
    x = np.linspace(0.0, 1.0, 256, dtype=np.float64)
    return (np.power(x, 1.0 / gamma) * 255.0).astype(np.float32)


# Geometry on RGBA uint8 arrays


def parse_hex_color(color: str) -> Tuple[int, int, int, int]:
    """``#rgb`` or ``#rrggbb`` to an opaque RGBA tuple."""
    value = color.lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16), 255


def rotated_bounds(width: int, height: int, angle: float) -> Tuple[int, int]:
    """Bounding box of a ``width x height`` rectangle rotated by ``angle`` degrees."""
    quarter = angle % 90 == 0
    if quarter:
        if (angle // 90) % 2 == 0:
            return width, height
        return height, width
    theta = np.deg2rad(angle)
    cos, sin = abs(np.cos(theta)), abs(np.sin(theta))
    return int(round(width * cos + height * sin)), int(round(width * sin + height * cos))


def rotate_nearest(
    rgba: np.ndarray, angle: float, fill: Tuple[int, int, int, int]
) -> np.ndarray:
    """
    Rotate clockwise about the centre onto an expanded canvas.

    Quarter turns are exact transposes; other angles use inverse mapping
    with nearest-neighbour sampling.
    """
    if angle % 90 == 0:
        return np.ascontiguousarray(np.rot90(rgba, k=-int(angle // 90) % 4))

    height, width = rgba.shape[:2]
    new_w, new_h = rotated_bounds(width, height, angle)
    theta = np.deg2rad(angle)
    cos, sin = np.cos(theta), np.sin(theta)

    ys, xs = np.mgrid[0:new_h, 0:new_w].astype(np.float32)
    dx = xs - (new_w - 1) / 2.0
    dy = ys - (new_h - 1) / 2.0
    src_x = np.rint(cos * dx + sin * dy + (width - 1) / 2.0).astype(np.int64)
    src_y = np.rint(-sin * dx + cos * dy + (height - 1) / 2.0).astype(np.int64)

    inside = (src_x >= 0) & (src_x < width) & (src_y >= 0) & (src_y < height)
    out = np.empty((new_h, new_w, 4), dtype=np.uint8)
    out[...] = fill
    out[inside] = rgba[src_y[inside], src_x[inside]]
    return out


def center_crop(rgba: np.ndarray, width: int, height: int) -> np.ndarray:
    rows, cols = rgba.shape[:2]
    width, height = min(width, cols), min(height, rows)
    top = (rows - height) // 2
    left = (cols - width) // 2
    return rgba[top : top + height, left : left + width].copy()


def resize_bilinear(rgba: np.ndarray, width: int, height: int) -> np.ndarray:
    """Bilinear resampling with half-pixel centres."""
    rows, cols = rgba.shape[:2]
    ys = np.clip((np.arange(height) + 0.5) * rows / height - 0.5, 0, rows - 1)
    xs = np.clip((np.arange(width) + 0.5) * cols / width - 0.5, 0, cols - 1)
    y0 = np.floor(ys).astype(np.int64)
    x0 = np.floor(xs).astype(np.int64)
    y1 = np.minimum(y0 + 1, rows - 1)
    x1 = np.minimum(x0 + 1, cols - 1)
    wy = (ys - y0)[:, None, None]
    wx = (xs - x0)[None, :, None]

    src = rgba.astype(np.float32)
    top = src[y0][:, x0] * (1 - wx) + src[y0][:, x1] * wx
    bottom = src[y1][:, x0] * (1 - wx) + src[y1][:, x1] * wx
    return to_uint8(top * (1 - wy) + bottom * wy)


def alpha_composite(canvas: np.ndarray, layer: np.ndarray, left: int, top: int) -> None:
    """Composite ``layer`` over ``canvas`` in place (straight alpha)."""
    height, width = layer.shape[:2]
    region = canvas[top : top + height, left : left + width].astype(np.float32)
    src = layer.astype(np.float32)
    src_a = src[..., 3:4] / 255.0
    dst_a = region[..., 3:4] / 255.0
    out_a = src_a + dst_a * (1 - src_a)
    safe_a = np.where(out_a > 0, out_a, 1.0)
    rgb = (src[..., :3] * src_a + region[..., :3] * dst_a * (1 - src_a)) / safe_a
    region[..., :3] = rgb
    region[..., 3:4] = out_a * 255.0
    canvas[top : top + height, left : left + width] = to_uint8(region)
