import numpy as np
import pytest


def gaussian(frames: np.ndarray, center: float, sigma: float, amplitude: float = 1.0) -> np.ndarray:
    return amplitude * np.exp(-((frames - center) ** 2) / (2.0 * sigma ** 2))


def build_rows(
    frame_count: int = 120,
    center: float = 60.0,
    sigma: float = 6.0,
    scale: float = 1.0,
    c2c4=100.0,
    missing_c2c4=(5, 100),
):
    """삼킴 1회가 들어 있는 signals.areas 형태의 합성 녹화"""
    frames = np.arange(frame_count, dtype=float)
    g = gaussian(frames, center, sigma)
    overlap = np.where(g < 1e-3, 0.0, 400.0 * g)

    rows = []
    for i in range(frame_count):
        rows.append({
            'pharynx': scale * (500.0 - 200.0 * g[i]),
            'vestibule': scale * (300.0 - 250.0 * g[i]),
            'bolus': scale * 200.0 * g[i],
            'bolus_pharynx_overlap': scale * overlap[i],
            'bolus_vestibule_overlap': 0.0,
            'hyoid_c4_distance': scale * (50.0 + 30.0 * g[i]),
            'ues_length': scale * (20.0 + 15.0 * g[i]),
            'c2c4_length': None if i in missing_c2c4 else scale * c2c4,
        })
    return rows


@pytest.fixture
def synthetic_rows():
    return build_rows
