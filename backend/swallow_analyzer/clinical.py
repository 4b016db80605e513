# swallow_analyzer/clinical.py
"""주기별 임상 파라미터 추출

- PCR: 표준화 pharynx 면적의 5% / 95% 분위수 비
- 흡인 위험: 정규화 bolus-vestibule 중첩 / vestibule 면적 비의 최대값
- 랜드마크: HYB, UESO, UESC, LVC, LVCoff
- 랜드마크 간 구간 (프레임, 초)

PCR 음수 처리 규칙과 흡인 임계값 0.2 는 경험적으로 정해진 값이므로
설정값으로 열어 두고 임상 검증 대상으로 남긴다.
"""

import logging
import math
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import AnalyzerConfig
from .landmarks import search_valley, standard_strategies, vestibule_strategies
from .models import (
    INTERVAL_DEFINITIONS, ClinicalParameters, Landmark, OverlapSample, SwallowCycle,
)

logger = logging.getLogger(__name__)


def nearest_rank(sorted_values: np.ndarray, fraction: float) -> float:
    """보간 없는 분위수: sorted[floor(n·fraction)]"""
    n = len(sorted_values)
    index = min(n - 1, int(math.floor(n * fraction)))
    return float(sorted_values[index])


def contraction_ratio(
    p5: float,
    p95: float,
    min_value: float,
    offset_margin: float = AnalyzerConfig.PCR_OFFSET_MARGIN,
) -> Tuple[Optional[float], float, float]:
    """음수 분위수 보정 후 PCR = p5 / p95

    둘 다 음수면 절댓값, 하나만 음수면 |min| + margin 만큼 이동.

    Returns:
        (pcr, adjusted_p5, adjusted_p95) - 분모가 0 이면 pcr 은 None
    """
    adjusted_p5, adjusted_p95 = p5, p95
    if p5 < 0 and p95 < 0:
        adjusted_p5, adjusted_p95 = abs(p5), abs(p95)
    elif p5 < 0 or p95 < 0:
        offset = abs(min_value) + offset_margin
        adjusted_p5, adjusted_p95 = p5 + offset, p95 + offset

    if adjusted_p95 == 0:
        return None, adjusted_p5, adjusted_p95
    return adjusted_p5 / adjusted_p95, adjusted_p5, adjusted_p95


def _frame_to_seconds(frames: Optional[int], fps: float) -> Optional[float]:
    if frames is None:
        return None
    return round(frames / fps, 3)


class ClinicalParameterExtractor:
    """삼킴 주기별 임상 파라미터 계산기"""

    def __init__(
        self,
        fps: float = AnalyzerConfig.DEFAULT_FPS,
        pcr_low_percentile: float = AnalyzerConfig.PCR_LOW_PERCENTILE,
        pcr_high_percentile: float = AnalyzerConfig.PCR_HIGH_PERCENTILE,
        pcr_offset_margin: float = AnalyzerConfig.PCR_OFFSET_MARGIN,
        aspiration_threshold: float = AnalyzerConfig.ASPIRATION_THRESHOLD,
        aspiration_min_area: float = AnalyzerConfig.ASPIRATION_MIN_AREA,
        reversal_threshold: float = AnalyzerConfig.TREND_REVERSAL_THRESHOLD,
        lv_curvature_threshold: float = AnalyzerConfig.LV_CURVATURE_THRESHOLD,
        lv_slope_threshold: float = AnalyzerConfig.LV_SLOPE_THRESHOLD,
    ):
        self.fps = fps
        self.pcr_low_percentile = pcr_low_percentile
        self.pcr_high_percentile = pcr_high_percentile
        self.pcr_offset_margin = pcr_offset_margin
        self.aspiration_threshold = aspiration_threshold
        self.aspiration_min_area = aspiration_min_area
        self.standard_strategies = standard_strategies(reversal_threshold)
        self.vestibule_strategies = vestibule_strategies(
            lv_curvature_threshold, lv_slope_threshold
        )

    # ─── PCR ───

    def compute_pcr(self, pharynx_z: np.ndarray, cycle: SwallowCycle) -> Dict:
        values = pharynx_z[cycle.start_frame:cycle.end_frame + 1]
        values = values[~np.isnan(values)]
        if len(values) == 0:
            return {}

        sorted_values = np.sort(values)
        p5 = nearest_rank(sorted_values, self.pcr_low_percentile)
        p95 = nearest_rank(sorted_values, self.pcr_high_percentile)
        pcr, adjusted_p5, adjusted_p95 = contraction_ratio(
            p5, p95, float(sorted_values[0]), self.pcr_offset_margin
        )
        logger.debug(
            "[Clinical] cycle %d PCR: p5=%.3f p95=%.3f adjusted=(%.3f, %.3f)",
            cycle.cycle_number, p5, p95, adjusted_p5, adjusted_p95,
        )
        return {
            'pcr': pcr,
            'pcr_p5': p5,
            'pcr_p95': p95,
            'pcr_adjusted_p5': adjusted_p5,
            'pcr_adjusted_p95': adjusted_p95,
            'pcr_frames': len(values),
            'pcr_has_negative_values': p5 < 0 or p95 < 0,
        }

    # ─── 흡인 위험 ───

    def compute_aspiration(
        self, overlap: np.ndarray, vestibule: np.ndarray, cycle: SwallowCycle
    ) -> Dict:
        """정규화(비표준화) 값 기준 overlap / vestibule 최대 비율"""
        samples: List[OverlapSample] = []
        for frame in range(cycle.start_frame, cycle.end_frame + 1):
            ov = overlap[frame]
            ve = vestibule[frame]
            if np.isnan(ov) or np.isnan(ve):
                continue

            adjusted_overlap, adjusted_vestibule = float(ov), float(ve)
            # vestibule 이 0 에 가까우면 분모 보정, 아니면 overlap 하한 보정
            if abs(ve) < self.aspiration_min_area:
                adjusted_vestibule = self.aspiration_min_area
            elif abs(ov) < self.aspiration_min_area:
                adjusted_overlap = self.aspiration_min_area

            samples.append(OverlapSample(
                frame=frame,
                overlap=float(ov),
                vestibule=float(ve),
                adjusted_overlap=adjusted_overlap,
                adjusted_vestibule=adjusted_vestibule,
                ratio=adjusted_overlap / adjusted_vestibule,
            ))

        result = {
            'aspiration_threshold': self.aspiration_threshold,
            'overlap_samples': tuple(samples),
        }
        if samples:
            max_ratio = max(s.ratio for s in samples)
            result['max_overlap_ratio'] = max_ratio
            result['aspiration_risk'] = max_ratio >= self.aspiration_threshold
        return result

    # ─── 랜드마크 ───

    @staticmethod
    def search_window(
        cycle: SwallowCycle,
        previous: Optional[SwallowCycle],
        following: Optional[SwallowCycle],
    ) -> Tuple[int, int]:
        """이전 주기 끝 ~ 다음 주기 시작까지 넓힌 탐색 구간"""
        lower = max(0, previous.end_frame) if previous is not None else cycle.start_frame
        upper = following.start_frame if following is not None else cycle.end_frame
        return lower, upper

    def locate_landmark(
        self,
        series: np.ndarray,
        cycle: SwallowCycle,
        window: Tuple[int, int],
        step: int,
        strategies,
    ) -> Optional[Landmark]:
        """주기 내 최대값(anchor)에서 step 방향으로 밸리 탐색"""
        cycle_values = series[cycle.start_frame:cycle.end_frame + 1]
        if np.all(np.isnan(cycle_values)):
            return None
        anchor_frame = cycle.start_frame + int(np.nanargmax(cycle_values))

        # 결측 제거 후 압축된 인덱스 공간에서 탐색하고 프레임 번호로 복원
        lower, upper = window
        frames = np.arange(lower, upper + 1)
        values = series[lower:upper + 1]
        valid = ~np.isnan(values)
        frames, values = frames[valid], values[valid]
        anchor = int(np.searchsorted(frames, anchor_frame))

        found = search_valley(values, anchor, step, strategies)
        if found is None:
            return None
        index, strategy = found
        return Landmark(
            frame=int(frames[index]),
            value=float(values[index]),
            anchor_frame=anchor_frame,
            anchor_value=float(series[anchor_frame]),
            strategy=strategy,
        )

    def compute_landmarks(
        self,
        zscores: Dict[str, np.ndarray],
        cycle: SwallowCycle,
        previous: Optional[SwallowCycle],
        following: Optional[SwallowCycle],
    ) -> Dict[str, Optional[Landmark]]:
        lower, upper = self.search_window(cycle, previous, following)
        hyoid = zscores['hyoid_c4_distance']
        ues = zscores['ues_length']
        vestibule = zscores['vestibule']

        return {
            'hyb': self.locate_landmark(
                hyoid, cycle, (lower, cycle.end_frame), -1, self.standard_strategies),
            'ueso': self.locate_landmark(
                ues, cycle, (lower, upper), -1, self.standard_strategies),
            'uesc': self.locate_landmark(
                ues, cycle, (lower, upper), 1, self.standard_strategies),
            'lvc': self.locate_landmark(
                vestibule, cycle, (lower, upper), -1, self.vestibule_strategies),
            'lvc_off': self.locate_landmark(
                vestibule, cycle, (lower, upper), 1, self.vestibule_strategies),
        }

    def compute_intervals(
        self, landmarks: Dict[str, Optional[Landmark]], cycle: SwallowCycle
    ) -> Tuple[Dict[str, Optional[int]], Dict[str, Optional[float]]]:
        frames = {name: (lm.frame if lm is not None else None) for name, lm in landmarks.items()}
        frames['start'] = cycle.start_frame

        intervals: Dict[str, Optional[int]] = {}
        for name, end, begin in INTERVAL_DEFINITIONS:
            if frames.get(end) is None or frames.get(begin) is None:
                intervals[name] = None
            else:
                # 음수 구간은 순서 이상 신호로 그대로 보고
                intervals[name] = frames[end] - frames[begin]
        intervals_s = {name: _frame_to_seconds(v, self.fps) for name, v in intervals.items()}
        return intervals, intervals_s

    # ─── 주기 단위 ───

    def extract(
        self,
        cycle: SwallowCycle,
        zscores: Dict[str, np.ndarray],
        normalized: Dict[str, np.ndarray],
        previous: Optional[SwallowCycle] = None,
        following: Optional[SwallowCycle] = None,
    ) -> ClinicalParameters:
        values: Dict = {}
        values.update(self.compute_pcr(zscores['pharynx'], cycle))
        values.update(self.compute_aspiration(
            normalized['bolus_vestibule_overlap'], normalized['vestibule'], cycle
        ))

        landmarks = self.compute_landmarks(zscores, cycle, previous, following)
        values.update(landmarks)
        values['intervals'], values['intervals_s'] = self.compute_intervals(landmarks, cycle)

        undetermined = [name for name, lm in landmarks.items() if lm is None]
        if undetermined:
            logger.warning(
                "[Clinical] cycle %d: undetermined landmarks %s",
                cycle.cycle_number, ', '.join(undetermined),
            )
        return ClinicalParameters(**values)

    def extract_all(
        self,
        cycles: Sequence[SwallowCycle],
        zscores: Dict[str, np.ndarray],
        normalized: Dict[str, np.ndarray],
    ) -> List[SwallowCycle]:
        """모든 주기에 파라미터를 붙인 새 SwallowCycle 목록 (경계는 그대로)"""
        finalized = tuple(cycles)
        result = []
        for i, cycle in enumerate(finalized):
            previous = finalized[i - 1] if i > 0 else None
            following = finalized[i + 1] if i + 1 < len(finalized) else None
            params = self.extract(cycle, zscores, normalized, previous, following)
            result.append(replace(cycle, parameters=params))
        return result
