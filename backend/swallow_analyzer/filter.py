# swallow_analyzer/filter.py

import numpy as np
from scipy.ndimage import correlate1d

from .config import AnalyzerConfig


class GaussianSmoother:
    """가우시안 가중 이동평균 필터

    가중치 w(j) = exp(-j² / (2·r²)), r = window // 2.
    경계에서는 범위 안의 이웃만 사용하고 가중치 합으로 다시 정규화한다
    (패딩/순환 없음).
    """

    def __init__(self, window: int = AnalyzerConfig.SMOOTHING_WINDOW):
        self.window = int(window)
        self.radius = self.window // 2

    def weights(self) -> np.ndarray:
        offsets = np.arange(-self.radius, self.radius + 1, dtype=float)
        return np.exp(-(offsets ** 2) / (2.0 * self.radius ** 2))

    def apply(self, data) -> np.ndarray:
        """결측 없는 1차원 시퀀스 평활화"""
        values = np.asarray(data, dtype=float)
        if len(values) < self.window or self.radius == 0:
            return values.copy()

        w = self.weights()
        weighted = correlate1d(values, w, mode='constant', cval=0.0)
        norm = correlate1d(np.ones_like(values), w, mode='constant', cval=0.0)
        return weighted / norm

    def apply_series(self, series: np.ndarray, positive_only: bool = False) -> np.ndarray:
        """NaN(결측)을 제외하고 평활화한 뒤 원래 프레임 위치로 되돌림

        결측 프레임은 결과에서도 NaN 으로 남는다.
        """
        values = np.asarray(series, dtype=float)
        valid = ~np.isnan(values)
        if positive_only:
            valid &= values > 0

        result = np.full(len(values), np.nan)
        if not np.any(valid):
            return result
        result[valid] = self.apply(values[valid])
        return result
