# swallow_analyzer/calibration.py

import logging
from typing import Dict, Optional, Sequence

import numpy as np

from .config import AnalyzerConfig

logger = logging.getLogger(__name__)


class ScaleCalibrator:
    """C2-C4 길이 기반 스케일 캘리브레이터

    C2-C4 경추 길이를 피검자별 해부학적 자로 보고, 카메라 거리/줌에 따른
    프레임 간 크기 변화를 제거한다.
    - 면적 항목: × scale
    - 거리 항목: × scale²
    """

    def __init__(
        self,
        area_parameters: Sequence[str] = tuple(AnalyzerConfig.AREA_PARAMETERS),
        distance_parameters: Sequence[str] = tuple(AnalyzerConfig.DISTANCE_PARAMETERS),
    ):
        self.area_parameters = list(area_parameters)
        self.distance_parameters = list(distance_parameters)
        self.reference: Optional[float] = None

    def compute_reference(self, c2c4_lengths: np.ndarray) -> Optional[float]:
        """유효한(양수) C2-C4 길이의 중앙값

        유효값이 하나도 없으면 None (캘리브레이션 불가).
        """
        lengths = np.asarray(c2c4_lengths, dtype=float)
        valid = lengths[~np.isnan(lengths)]
        valid = valid[valid > 0]
        if len(valid) == 0:
            logger.warning("[Calibration] no valid C2-C4 length, calibration undefined")
            self.reference = None
            return None

        self.reference = float(np.median(valid))
        logger.debug(
            "[Calibration] reference=%.3f from %d valid lengths", self.reference, len(valid)
        )
        return self.reference

    def scale_factors(self, smoothed_c2c4: np.ndarray) -> np.ndarray:
        """프레임별 scale = reference / c2c4 (결측/0 이하 → NaN)"""
        lengths = np.asarray(smoothed_c2c4, dtype=float)
        factors = np.full(len(lengths), np.nan)
        if self.reference is None:
            return factors
        valid = ~np.isnan(lengths)
        valid[valid] = lengths[valid] > 0
        factors[valid] = self.reference / lengths[valid]
        return factors

    def normalize(
        self,
        smoothed: Dict[str, np.ndarray],
        smoothed_c2c4: np.ndarray,
    ) -> Dict[str, np.ndarray]:
        """평활화된 측정값 → 정규화 값

        Args:
            smoothed: 항목명 → 평활화 배열
            smoothed_c2c4: 평활화된 C2-C4 길이 배열

        Returns:
            항목명 → 정규화 배열 (scale 이 없는 프레임은 NaN)
        """
        scale = self.scale_factors(smoothed_c2c4)
        scale_squared = scale * scale

        normalized = {}
        for name in self.area_parameters:
            normalized[name] = np.asarray(smoothed[name], dtype=float) * scale
        for name in self.distance_parameters:
            normalized[name] = np.asarray(smoothed[name], dtype=float) * scale_squared

        missing = int(np.sum(np.isnan(scale)))
        if self.reference is not None and missing:
            logger.debug("[Calibration] %d frames without usable C2-C4 length", missing)
        return normalized
