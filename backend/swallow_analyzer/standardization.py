# swallow_analyzer/standardization.py

from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np

from .config import AnalyzerConfig


@dataclass(frozen=True)
class GroupStatistics:
    """그룹 Z-score 통계량"""
    mean: float
    std: float
    sample_count: int
    parameter_count: int

    def to_dict(self) -> Dict:
        return {
            'mean': self.mean,
            'std': self.std,
            'sample_count': self.sample_count,
            'parameter_count': self.parameter_count,
        }


class GroupStandardizer:
    """면적 그룹 / 거리 그룹 단위 Z-score 표준화

    같은 단위 항목끼리는 상대적 크기 차이를 유지하고, 면적과 거리처럼
    범위가 다른 값만 비교 가능한 척도로 맞춘다.
    """

    def __init__(
        self,
        area_parameters: Sequence[str] = tuple(AnalyzerConfig.AREA_PARAMETERS),
        distance_parameters: Sequence[str] = tuple(AnalyzerConfig.DISTANCE_PARAMETERS),
        std_epsilon: float = AnalyzerConfig.STD_EPSILON,
    ):
        self.groups = {
            'area': list(area_parameters),
            'distance': list(distance_parameters),
        }
        self.std_epsilon = std_epsilon

    def compute_statistics(
        self, normalized: Dict[str, np.ndarray], names: Sequence[str]
    ) -> GroupStatistics:
        pooled = [np.asarray(normalized[name], dtype=float) for name in names]
        values = np.concatenate(pooled) if pooled else np.array([])
        values = values[~np.isnan(values)]

        if len(values) == 0:
            return GroupStatistics(mean=0.0, std=1.0, sample_count=0, parameter_count=len(names))

        # 모집단 표준편차 (ddof=0)
        mean = float(np.mean(values))
        std = float(np.std(values))
        return GroupStatistics(
            mean=mean,
            std=max(std, self.std_epsilon),
            sample_count=len(values),
            parameter_count=len(names),
        )

    def standardize(self, normalized: Dict[str, np.ndarray]):
        """Returns:
            (항목명 → Z-score 배열, 그룹명 → GroupStatistics)
        """
        zscores: Dict[str, np.ndarray] = {}
        stats: Dict[str, GroupStatistics] = {}
        for group, names in self.groups.items():
            group_stats = self.compute_statistics(normalized, names)
            stats[group] = group_stats
            for name in names:
                values = np.asarray(normalized[name], dtype=float)
                zscores[name] = (values - group_stats.mean) / group_stats.std
        return zscores, stats
