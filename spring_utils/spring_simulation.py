"""
Spring Simulation Module
========================

The toy dataset of the intuition section: a mass bouncing on an ideal
spring along one direction in 3-D space, filmed by three cameras. Each
camera records the (x, y) image position of the mass, so a one-dimensional
motion shows up as six noisy, redundant measurements. PCA should find that
one direction explains almost everything.

Provides:
- simple harmonic (optionally damped) motion
- camera geometry and noisy recordings
- signal-to-noise and redundancy illustrations
"""

import logging

import numpy as np
import pandas as pd
from typing import Dict, Any, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_DIRECTION = (1.0, 2.0, 3.0)
"""Direction of the spring in lab coordinates (normalized before use)."""


# ──────────────────────────────────────────────
#  MOTION
# ──────────────────────────────────────────────

def simulate_spring(
    n_samples: int = 200,
    duration: float = 10.0,
    amplitude: float = 1.0,
    frequency: float = 0.5,
    damping: float = 0.0,
    phase: float = 0.0
) -> pd.DataFrame:
    """
    Position of a mass on a spring sampled at evenly spaced times.

    x(t) = A * exp(-damping * t) * cos(2 * pi * f * t + phase)

    Parameters
    ----------
    n_samples : int
        Number of frames (>= 2).
    duration : float
        Recording length in seconds (> 0).
    amplitude : float
        Initial amplitude A.
    frequency : float
        Oscillation frequency f in Hz.
    damping : float
        Exponential damping rate (>= 0); 0 gives simple harmonic motion.
    phase : float
        Phase offset in radians.

    Returns
    -------
    pd.DataFrame
        Columns 'time' and 'position'.
    """
    if n_samples < 2:
        raise ValueError(f"n_samples must be >= 2, got {n_samples}")
    if duration <= 0:
        raise ValueError(f"duration must be > 0, got {duration}")
    if damping < 0:
        raise ValueError(f"damping must be >= 0, got {damping}")

    time = np.linspace(0.0, duration, n_samples)
    position = amplitude * np.exp(-damping * time) * np.cos(2 * np.pi * frequency * time + phase)
    return pd.DataFrame({'time': time, 'position': position})


# ──────────────────────────────────────────────
#  CAMERAS
# ──────────────────────────────────────────────

def camera_from_angles(
    theta: float,
    phi: float,
    name: str = 'camera',
    offset: Tuple[float, float] = (0.0, 0.0)
) -> Dict[str, Any]:
    """
    Camera looking along the direction given by spherical angles (degrees).

    The image plane is spanned by two orthonormal vectors perpendicular to
    the viewing direction: u is horizontal, v = d x u.

    Returns
    -------
    dict
        'name', 'direction', 'u', 'v', 'offset'
    """
    theta_r, phi_r = np.deg2rad(theta), np.deg2rad(phi)
    direction = np.array([
        np.cos(phi_r) * np.cos(theta_r),
        np.cos(phi_r) * np.sin(theta_r),
        np.sin(phi_r),
    ])
    u = np.array([-np.sin(theta_r), np.cos(theta_r), 0.0])
    v = np.cross(direction, u)
    return {
        'name': name,
        'direction': direction,
        'u': u,
        'v': v,
        'offset': np.asarray(offset, dtype=float),
    }


def default_cameras() -> List[Dict[str, Any]]:
    """Three cameras A, B and C placed at arbitrary, non-orthogonal angles."""
    return [
        camera_from_angles(0.0, 0.0, name='A', offset=(2.0, 1.0)),
        camera_from_angles(60.0, 30.0, name='B', offset=(-1.0, 0.5)),
        camera_from_angles(135.0, -40.0, name='C', offset=(0.0, -2.0)),
    ]


def _unit(direction: Sequence[float]) -> np.ndarray:
    direction = np.asarray(direction, dtype=float)
    norm = np.linalg.norm(direction)
    if direction.shape != (3,) or norm == 0:
        raise ValueError(f"direction must be a non-zero 3-vector, got {direction}")
    return direction / norm


def record_cameras(
    positions: Sequence[float],
    cameras: Optional[List[Dict[str, Any]]] = None,
    direction: Sequence[float] = DEFAULT_DIRECTION,
    noise_sd: float = 0.05,
    seed: Optional[int] = None
) -> pd.DataFrame:
    """
    Image coordinates of the mass as seen by every camera.

    Parameters
    ----------
    positions : array-like
        Displacement along the spring at each frame.
    cameras : list of dict, optional
        Cameras from ``camera_from_angles``. Default ``default_cameras()``.
    direction : 3-vector
        Direction of the spring in lab coordinates.
    noise_sd : float
        Standard deviation of Gaussian measurement noise (>= 0).
    seed : int, optional
        Random seed for the noise.

    Returns
    -------
    pd.DataFrame
        Columns x<name>, y<name> for every camera (xA, yA, xB, ...).
    """
    if noise_sd < 0:
        raise ValueError(f"noise_sd must be >= 0, got {noise_sd}")

    cameras = cameras or default_cameras()
    rng = np.random.default_rng(seed)
    points = np.outer(np.asarray(positions, dtype=float), _unit(direction))

    columns = {}
    for cam in cameras:
        n = len(points)
        columns[f"x{cam['name']}"] = points @ cam['u'] + cam['offset'][0] + rng.normal(0, noise_sd, n)
        columns[f"y{cam['name']}"] = points @ cam['v'] + cam['offset'][1] + rng.normal(0, noise_sd, n)

    return pd.DataFrame(columns)


def generate_spring_dataset(
    n_samples: int = 200,
    noise_sd: float = 0.05,
    seed: Optional[int] = None,
    cameras: Optional[List[Dict[str, Any]]] = None,
    direction: Sequence[float] = DEFAULT_DIRECTION,
    **motion_kwargs: Any
) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Simulate the spring and film it.

    Returns
    -------
    recording : pd.DataFrame
        Six camera coordinates indexed by time.
    truth : pd.Series
        True displacement along the spring, same index.
    """
    motion = simulate_spring(n_samples=n_samples, **motion_kwargs)
    recording = record_cameras(motion['position'], cameras=cameras,
                               direction=direction, noise_sd=noise_sd, seed=seed)
    recording.index = pd.Index(motion['time'], name='time')
    truth = pd.Series(motion['position'].to_numpy(), index=recording.index, name='position')

    logger.debug("Spring dataset: %d frames, %d coordinates, noise sd %.3f",
                 len(recording), recording.shape[1], noise_sd)
    return recording, truth


# ──────────────────────────────────────────────
#  NOISE AND REDUNDANCY
# ──────────────────────────────────────────────

def signal_to_noise_ratio(X2: pd.DataFrame) -> float:
    """
    SNR of a 2-D cloud: variance along its major axis over variance along
    its minor axis (ratio of the covariance eigenvalues).

    Returns ``inf`` for a perfectly flat cloud.
    """
    values = np.asarray(X2, dtype=float)
    if values.ndim != 2 or values.shape[1] != 2:
        raise ValueError(f"Need an (n, 2) array, got shape {values.shape}")

    eigenvalues = np.sort(np.linalg.eigvalsh(np.cov(values, rowvar=False)))
    if eigenvalues[0] <= 1e-12 * eigenvalues[1]:
        return float('inf')
    return float(eigenvalues[1] / eigenvalues[0])


def redundancy_examples(n: int = 200, seed: Optional[int] = None) -> pd.DataFrame:
    """
    Three pairs of measurements with low, medium and high redundancy.

    Low: two unrelated recordings. Medium: the second follows the first
    with noticeable noise. High: the second is almost a copy of the first.

    Returns
    -------
    pd.DataFrame
        Long format with columns 'redundancy', 'r1', 'r2'.
    """
    if n < 2:
        raise ValueError(f"n must be >= 2, got {n}")

    rng = np.random.default_rng(seed)
    frames = []
    for label, noise in (('low', None), ('medium', 0.6), ('high', 0.08)):
        r1 = rng.normal(0, 1, n)
        r2 = rng.normal(0, 1, n) if noise is None else r1 + rng.normal(0, noise, n)
        frames.append(pd.DataFrame({'redundancy': label, 'r1': r1, 'r2': r2}))
    return pd.concat(frames, ignore_index=True)


def recovered_signal(pca_results: Dict[str, Any], truth: pd.Series) -> float:
    """
    Absolute correlation between PC1 scores and the true displacement.

    The sign of a component is arbitrary, so only the magnitude matters.
    """
    scores = pca_results['scores'].iloc[:, 0].to_numpy()
    truth_values = np.asarray(truth, dtype=float)
    if len(scores) != len(truth_values):
        raise ValueError(
            f"Scores ({len(scores)}) and truth ({len(truth_values)}) differ in length"
        )
    return float(abs(np.corrcoef(scores, truth_values)[0, 1]))
