# swallow_analyzer/segmentation.py
"""삼킴 주기 분할 모듈

표준화된 bolus-pharynx 중첩 면적(구동 신호)에서 피크를 찾고,
각 피크를 시작/끝 프레임 구간으로 확장한다.

- 피크 검출: 좌우 PEAK_WINDOW 프레임 안에 더 큰 값이 없고 최소 높이 초과
- 피크 필터: MIN_CYCLE_LENGTH 보다 가까운 피크는 큰 쪽만 유지
- 시작: 첫 주기는 0 프레임부터, 이후 주기는 이전 주기 끝 다음 프레임부터
  최저점을 찾고 그 뒤 첫 상승 프레임
- 끝: 피크 뒤 최저점 → 기울기가 안정되는 첫 프레임
- 검증: 길이 범위, 이전 주기와 겹침 없음, start < peak < end
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from scipy.ndimage import maximum_filter1d

from .config import AnalyzerConfig
from .filter import GaussianSmoother
from .models import SwallowCycle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SegmentationResult:
    """주기 분할 결과 (진단용 중간 신호 포함)"""
    cycles: Tuple[SwallowCycle, ...]
    smoothed: np.ndarray
    diff: np.ndarray
    peaks: Tuple[int, ...]
    min_peak_height: float
    min_cycle_length: int

    @property
    def total_swallows(self) -> int:
        return len(self.cycles)


class CycleSegmenter:
    """구동 신호 기반 삼킴 주기 분할기"""

    def __init__(
        self,
        fps: float = AnalyzerConfig.DEFAULT_FPS,
        min_peak_height: float = AnalyzerConfig.MIN_PEAK_HEIGHT,
        min_cycle_length: int = AnalyzerConfig.MIN_CYCLE_LENGTH,
        peak_window: int = AnalyzerConfig.PEAK_WINDOW,
        smoothing_window: int = AnalyzerConfig.SMOOTHING_WINDOW,
        first_rise_threshold: float = AnalyzerConfig.FIRST_RISE_THRESHOLD,
        rise_threshold: float = AnalyzerConfig.RISE_THRESHOLD,
        end_rise_threshold: float = AnalyzerConfig.END_RISE_THRESHOLD,
        stability_threshold: float = AnalyzerConfig.STABILITY_THRESHOLD,
        end_search_frames: int = AnalyzerConfig.END_SEARCH_FRAMES,
        stability_search_frames: int = AnalyzerConfig.STABILITY_SEARCH_FRAMES,
        min_duration: int = AnalyzerConfig.MIN_CYCLE_DURATION,
        max_duration: int = AnalyzerConfig.MAX_CYCLE_DURATION,
    ):
        self.fps = fps
        self.min_peak_height = min_peak_height
        self.min_cycle_length = min_cycle_length
        self.peak_window = peak_window
        self.smoother = GaussianSmoother(smoothing_window)
        self.first_rise_threshold = first_rise_threshold
        self.rise_threshold = rise_threshold
        self.end_rise_threshold = end_rise_threshold
        self.stability_threshold = stability_threshold
        self.end_search_frames = end_search_frames
        self.stability_search_frames = stability_search_frames
        self.min_duration = min_duration
        self.max_duration = max_duration

    def prepare_driver(self, driver: np.ndarray) -> Optional[np.ndarray]:
        """구동 신호 평활화, 결측 프레임은 최저값으로 채움 (전부 결측이면 None)"""
        smoothed = self.smoother.apply_series(np.asarray(driver, dtype=float))
        valid = ~np.isnan(smoothed)
        if not np.any(valid):
            return None
        smoothed[~valid] = np.min(smoothed[valid])
        return smoothed

    def detect_peaks(self, smoothed: np.ndarray) -> List[int]:
        w = self.peak_window
        n = len(smoothed)
        if n <= 2 * w:
            return []

        # 이웃 중 더 큰 값이 없으면 국소 최대
        local_max = maximum_filter1d(smoothed, size=2 * w + 1, mode='nearest')
        candidates = np.arange(w, n - w)
        is_peak = (smoothed[candidates] >= local_max[candidates]) & \
                  (smoothed[candidates] > self.min_peak_height)
        return [int(i) for i in candidates[is_peak]]

    def filter_peaks(self, smoothed: np.ndarray, peaks: List[int]) -> List[int]:
        """가까운 피크 쌍에서 큰 피크만 유지 (같으면 먼저 남은 피크)"""
        kept: List[int] = []
        for peak in peaks:
            significant = True
            for j, prev in enumerate(kept):
                if abs(peak - prev) < self.min_cycle_length:
                    if smoothed[peak] > smoothed[prev]:
                        del kept[j]
                    else:
                        significant = False
                    break
            if significant:
                kept.append(peak)
        return kept

    def find_start_frame(
        self,
        smoothed: np.ndarray,
        diff: np.ndarray,
        peak: int,
        accepted: Tuple[SwallowCycle, ...],
    ) -> int:
        if not accepted:
            rises = np.flatnonzero(diff[:peak] > self.first_rise_threshold)
            return int(rises[0]) if len(rises) else 0

        # 이전 주기 끝 다음 프레임부터 피크 전까지의 최저점
        search_start = accepted[-1].end_frame + 1
        local_min_index = peak
        segment = smoothed[search_start:peak]
        if len(segment) and np.min(segment) < smoothed[peak]:
            local_min_index = search_start + int(np.argmin(segment))

        rises = np.flatnonzero(diff[local_min_index:peak] > self.rise_threshold)
        return local_min_index + int(rises[0]) if len(rises) else local_min_index

    def find_end_frame(self, smoothed: np.ndarray, diff: np.ndarray, peak: int) -> int:
        n = len(smoothed)

        # 피크 뒤 최저점 (다시 상승하면 중단)
        post_min_index = peak
        post_min = smoothed[peak]
        for j in range(peak + 1, min(n, peak + self.end_search_frames)):
            if smoothed[j] < post_min:
                post_min = smoothed[j]
                post_min_index = j
            if j < len(diff) and diff[j] > self.end_rise_threshold:
                break

        # 최저점 이후 안정 구간의 시작
        stop = min(len(diff), post_min_index + self.stability_search_frames)
        for j in range(post_min_index, stop):
            if abs(diff[j]) < self.stability_threshold:
                return j
        return post_min_index

    def _build_cycle(
        self,
        smoothed: np.ndarray,
        diff: np.ndarray,
        peak: int,
        accepted: Tuple[SwallowCycle, ...],
    ) -> Optional[SwallowCycle]:
        start = self.find_start_frame(smoothed, diff, peak, accepted)
        end = self.find_end_frame(smoothed, diff, peak)
        last_end = accepted[-1].end_frame if accepted else -1
        duration = end - start

        reasonable = self.min_duration <= duration <= self.max_duration
        sequential = start > last_end
        if not (reasonable and sequential and start < peak < end):
            logger.warning(
                "[Segmenter] peak %d skipped: start=%d end=%d last_end=%d duration=%d "
                "(length_ok=%s, sequential=%s)",
                peak, start, end, last_end, duration, reasonable, sequential,
            )
            return None

        return SwallowCycle(
            cycle_number=len(accepted) + 1,
            start_frame=start,
            peak_frame=peak,
            end_frame=end,
            peak_value=float(smoothed[peak]),
            fps=self.fps,
        )

    def segment(self, driver: np.ndarray) -> SegmentationResult:
        """구동 신호 → 삼킴 주기 목록"""
        driver = np.asarray(driver, dtype=float)
        empty = SegmentationResult(
            cycles=(), smoothed=driver.copy(), diff=np.diff(driver), peaks=(),
            min_peak_height=self.min_peak_height, min_cycle_length=self.min_cycle_length,
        )
        if len(driver) < self.min_cycle_length:
            return empty

        smoothed = self.prepare_driver(driver)
        if smoothed is None:
            logger.warning("[Segmenter] driver series has no valid samples")
            return empty

        diff = np.diff(smoothed)
        peaks = self.filter_peaks(smoothed, self.detect_peaks(smoothed))

        # 확정된 주기들을 불변 튜플로 누적 (다음 주기 탐색의 입력)
        accepted: Tuple[SwallowCycle, ...] = ()
        for peak in peaks:
            cycle = self._build_cycle(smoothed, diff, peak, accepted)
            if cycle is not None:
                accepted = accepted + (cycle,)
                logger.debug(
                    "[Segmenter] cycle %d: start=%d peak=%d end=%d",
                    cycle.cycle_number, cycle.start_frame, cycle.peak_frame, cycle.end_frame,
                )

        return SegmentationResult(
            cycles=accepted,
            smoothed=smoothed,
            diff=diff,
            peaks=tuple(peaks),
            min_peak_height=self.min_peak_height,
            min_cycle_length=self.min_cycle_length,
        )
