# swallow_analyzer/pipeline.py
"""삼킴 분석 코디네이터

프레임별 측정값 → 평활화 → C2-C4 스케일 정규화 → 그룹 Z-score
→ 삼킴 주기 분할 → 주기별 임상 파라미터.

한 번의 녹화 전체를 메모리에서 일괄 처리한다. 데이터 문제는 예외 대신
결측(None/NaN)과 경고 로그로 드러난다.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from .calibration import ScaleCalibrator
from .clinical import ClinicalParameterExtractor
from .config import AnalyzerConfig
from .export import build_rows, to_csv_text
from .filter import GaussianSmoother
from .key_frames import detect_key_frames
from .models import KeyFrame, SwallowCycle, cycles_to_dicts
from .records import FrameRecord, extract_series, records_from_rows, series_to_list
from .segmentation import CycleSegmenter, SegmentationResult
from .standardization import GroupStandardizer, GroupStatistics

logger = logging.getLogger(__name__)


@dataclass
class SwallowAnalysisResult:
    """분석 결과 전체 (발표/내보내기 계층에 전달)"""
    fps: float
    frame_count: int
    reference: Optional[float]
    scale_factors: np.ndarray
    smoothed: Dict[str, np.ndarray]
    normalized: Dict[str, np.ndarray]
    zscores: Dict[str, np.ndarray]
    group_stats: Dict[str, GroupStatistics]
    segmentation: SegmentationResult
    cycles: List[SwallowCycle]
    relaxed: bool = False
    key_frames: List[KeyFrame] = field(default_factory=list)

    @property
    def total_swallows(self) -> int:
        return len(self.cycles)

    def csv_rows(self) -> List[List[str]]:
        return build_rows(self.smoothed, self.normalized, self.zscores, self.frame_count)

    def to_csv(self) -> str:
        return to_csv_text(self.csv_rows())

    def to_dict(self) -> Dict:
        seg = self.segmentation
        return {
            'fps': self.fps,
            'frame_count': self.frame_count,
            'reference': self.reference,
            'area_stats': self.group_stats['area'].to_dict(),
            'distance_stats': self.group_stats['distance'].to_dict(),
            'series': {
                'smoothed': {k: series_to_list(v, 4) for k, v in self.smoothed.items()},
                'normalized': {k: series_to_list(v, 4) for k, v in self.normalized.items()},
                'zscore': {k: series_to_list(v, 4) for k, v in self.zscores.items()},
                'scale_factor': series_to_list(self.scale_factors, 4),
            },
            'swallowing_analysis': {
                'cycles': cycles_to_dicts(self.cycles),
                'total_swallows': self.total_swallows,
                'smoothed': series_to_list(seg.smoothed, 4),
                'diff': series_to_list(seg.diff, 4),
                'peaks': list(seg.peaks),
                'min_peak_height': seg.min_peak_height,
                'min_cycle_length': seg.min_cycle_length,
                'relaxed': self.relaxed,
            },
            'key_frames': [k.to_dict() for k in self.key_frames],
        }


class SwallowAnalyzer:
    """녹화 1건 단위 삼킴 분석기"""

    def __init__(
        self,
        fps: float = AnalyzerConfig.DEFAULT_FPS,
        smoothing_window: int = AnalyzerConfig.SMOOTHING_WINDOW,
        min_peak_height: float = AnalyzerConfig.MIN_PEAK_HEIGHT,
        min_cycle_length: int = AnalyzerConfig.MIN_CYCLE_LENGTH,
        relaxed_min_peak_height: float = AnalyzerConfig.RELAXED_MIN_PEAK_HEIGHT,
        relaxed_min_cycle_length: int = AnalyzerConfig.RELAXED_MIN_CYCLE_LENGTH,
        retry_relaxed: bool = True,
        aspiration_threshold: float = AnalyzerConfig.ASPIRATION_THRESHOLD,
        pcr_offset_margin: float = AnalyzerConfig.PCR_OFFSET_MARGIN,
    ):
        if fps is None or not fps > 0:
            raise ValueError(f"fps 는 0 보다 커야 합니다: {fps}")

        self.fps = float(fps)
        self.area_parameters = list(AnalyzerConfig.AREA_PARAMETERS)
        self.distance_parameters = list(AnalyzerConfig.DISTANCE_PARAMETERS)

        self.smoother = GaussianSmoother(smoothing_window)
        self.calibrator = ScaleCalibrator(self.area_parameters, self.distance_parameters)
        self.standardizer = GroupStandardizer(self.area_parameters, self.distance_parameters)
        self.segmenter = CycleSegmenter(
            fps=self.fps,
            min_peak_height=min_peak_height,
            min_cycle_length=min_cycle_length,
            smoothing_window=smoothing_window,
        )
        self.relaxed_segmenter: Optional[CycleSegmenter] = None
        if retry_relaxed:
            self.relaxed_segmenter = CycleSegmenter(
                fps=self.fps,
                min_peak_height=relaxed_min_peak_height,
                min_cycle_length=relaxed_min_cycle_length,
                smoothing_window=smoothing_window,
            )
        self.extractor = ClinicalParameterExtractor(
            fps=self.fps,
            aspiration_threshold=aspiration_threshold,
            pcr_offset_margin=pcr_offset_margin,
        )

    def smooth_all(self, records: Sequence[FrameRecord]) -> Dict[str, np.ndarray]:
        smoothed = {}
        for name in self.area_parameters + self.distance_parameters:
            smoothed[name] = self.smoother.apply_series(extract_series(records, name))
        return smoothed

    def segment(self, driver: np.ndarray):
        """기본 파라미터로 분할, 주기가 없으면 완화 파라미터로 1회 재시도"""
        segmentation = self.segmenter.segment(driver)
        if segmentation.cycles or self.relaxed_segmenter is None:
            return segmentation, False

        logger.info("[Segmenter] no cycle with default parameters, retrying relaxed")
        relaxed = self.relaxed_segmenter.segment(driver)
        if relaxed.cycles:
            return relaxed, True
        logger.warning("[Segmenter] no swallow cycle detected")
        return segmentation, False

    def analyze(self, records: Sequence[FrameRecord]) -> SwallowAnalysisResult:
        records = list(records)
        frame_count = len(records)

        # 1. 평활화 (결측 제외 후 원래 프레임 위치로 복원)
        smoothed = self.smooth_all(records)
        raw_c2c4 = extract_series(records, AnalyzerConfig.REFERENCE_PARAMETER)
        smoothed_c2c4 = self.smoother.apply_series(raw_c2c4, positive_only=True)

        # 2. C2-C4 기준 정규화
        reference = self.calibrator.compute_reference(raw_c2c4)
        scale_factors = self.calibrator.scale_factors(smoothed_c2c4)
        normalized = self.calibrator.normalize(smoothed, smoothed_c2c4)

        # 3. 그룹 Z-score
        zscores, group_stats = self.standardizer.standardize(normalized)

        # 4. 삼킴 주기 분할 (완료 후 불변)
        segmentation, relaxed = self.segment(zscores[AnalyzerConfig.DRIVER_PARAMETER])

        # 5. 주기별 임상 파라미터
        cycles = self.extractor.extract_all(segmentation.cycles, zscores, normalized)

        logger.info(
            "[Analyzer] frames=%d reference=%s swallows=%d relaxed=%s",
            frame_count,
            f"{reference:.2f}" if reference is not None else None,
            len(cycles),
            relaxed,
        )

        return SwallowAnalysisResult(
            fps=self.fps,
            frame_count=frame_count,
            reference=reference,
            scale_factors=scale_factors,
            smoothed=smoothed,
            normalized=normalized,
            zscores=zscores,
            group_stats=group_stats,
            segmentation=segmentation,
            cycles=cycles,
            relaxed=relaxed,
            key_frames=detect_key_frames(records),
        )

    def analyze_rows(self, rows: Sequence[Dict]) -> SwallowAnalysisResult:
        """signals.areas 형태의 dict 목록을 바로 분석"""
        return self.analyze(records_from_rows(rows))
