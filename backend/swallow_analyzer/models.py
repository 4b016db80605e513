# swallow_analyzer/models.py

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .config import AnalyzerConfig


LANDMARK_NAMES = ('hyb', 'ueso', 'uesc', 'lvc', 'lvc_off')

# (이름, 끝 랜드마크, 시작 랜드마크) - 'start' 는 주기 시작 프레임
INTERVAL_DEFINITIONS = (
    ('hyb_from_start', 'hyb', 'start'),
    ('ueso_from_hyb', 'ueso', 'hyb'),
    ('ues_open_duration', 'uesc', 'ueso'),
    ('lvc_from_hyb', 'lvc', 'hyb'),
    ('lv_closure_duration', 'lvc_off', 'lvc'),
)


@dataclass(frozen=True)
class Landmark:
    """랜드마크 프레임과 그 근거가 된 피크/밸리"""
    frame: int
    value: float
    anchor_frame: int
    anchor_value: float
    strategy: str

    def to_dict(self) -> Dict:
        return {
            'frame': self.frame,
            'value': round(self.value, 4),
            'anchor_frame': self.anchor_frame,
            'anchor_value': round(self.anchor_value, 4),
            'strategy': self.strategy,
        }


@dataclass(frozen=True)
class OverlapSample:
    """프레임별 bolus-vestibule 중첩 비율"""
    frame: int
    overlap: float
    vestibule: float
    adjusted_overlap: float
    adjusted_vestibule: float
    ratio: float


@dataclass(frozen=True)
class ClinicalParameters:
    """주기별 임상 파라미터 (결측 = None)"""
    pcr: Optional[float] = None
    pcr_p5: Optional[float] = None
    pcr_p95: Optional[float] = None
    pcr_adjusted_p5: Optional[float] = None
    pcr_adjusted_p95: Optional[float] = None
    pcr_frames: int = 0
    pcr_has_negative_values: bool = False

    aspiration_risk: Optional[bool] = None
    max_overlap_ratio: Optional[float] = None
    aspiration_threshold: float = AnalyzerConfig.ASPIRATION_THRESHOLD
    overlap_samples: Tuple[OverlapSample, ...] = ()

    hyb: Optional[Landmark] = None
    ueso: Optional[Landmark] = None
    uesc: Optional[Landmark] = None
    lvc: Optional[Landmark] = None
    lvc_off: Optional[Landmark] = None

    intervals: Dict[str, Optional[int]] = field(default_factory=dict)
    intervals_s: Dict[str, Optional[float]] = field(default_factory=dict)

    def landmark_frame(self, name: str) -> Optional[int]:
        landmark = getattr(self, name)
        return landmark.frame if landmark is not None else None

    def to_dict(self) -> Dict:
        result = {
            'pcr': self.pcr,
            'pcr_p5': self.pcr_p5,
            'pcr_p95': self.pcr_p95,
            'pcr_adjusted_p5': self.pcr_adjusted_p5,
            'pcr_adjusted_p95': self.pcr_adjusted_p95,
            'pcr_frames': self.pcr_frames,
            'pcr_has_negative_values': self.pcr_has_negative_values,
            'aspiration_risk': self.aspiration_risk,
            'max_overlap_ratio': self.max_overlap_ratio,
            'aspiration_threshold': self.aspiration_threshold,
            'overlap_samples': [
                {
                    'frame': s.frame,
                    'overlap': s.overlap,
                    'vestibule': s.vestibule,
                    'adjusted_overlap': s.adjusted_overlap,
                    'adjusted_vestibule': s.adjusted_vestibule,
                    'ratio': s.ratio,
                }
                for s in self.overlap_samples
            ],
        }
        for name in LANDMARK_NAMES:
            landmark = getattr(self, name)
            result[name] = landmark.frame if landmark is not None else None
            result[f'{name}_detail'] = landmark.to_dict() if landmark is not None else None
        result['intervals'] = dict(self.intervals)
        result['intervals_s'] = dict(self.intervals_s)
        return result


@dataclass(frozen=True)
class SwallowCycle:
    """삼킴 주기 경계 (start < peak < end)"""
    cycle_number: int
    start_frame: int
    peak_frame: int
    end_frame: int
    peak_value: float
    fps: float
    parameters: Optional[ClinicalParameters] = None

    @property
    def duration(self) -> int:
        return self.end_frame - self.start_frame

    @property
    def start_time_s(self) -> float:
        return self.start_frame / self.fps

    @property
    def peak_time_s(self) -> float:
        return self.peak_frame / self.fps

    @property
    def end_time_s(self) -> float:
        return self.end_frame / self.fps

    @property
    def duration_s(self) -> float:
        return self.duration / self.fps

    def to_dict(self) -> Dict:
        result = {
            'cycle_number': self.cycle_number,
            'start_frame': self.start_frame,
            'peak_frame': self.peak_frame,
            'end_frame': self.end_frame,
            'peak_value': round(self.peak_value, 4),
            'duration': self.duration,
            'start_time_s': round(self.start_time_s, 3),
            'peak_time_s': round(self.peak_time_s, 3),
            'end_time_s': round(self.end_time_s, 3),
            'duration_s': round(self.duration_s, 3),
        }
        if self.parameters is not None:
            result.update(self.parameters.to_dict())
        return result


@dataclass(frozen=True)
class KeyFrame:
    """원시 측정값 기준 주요 시점 프레임"""
    name: str
    label: str
    frame_index: int

    def to_dict(self) -> Dict:
        return {'name': self.name, 'label': self.label, 'frame_index': self.frame_index}


def cycles_to_dicts(cycles: List[SwallowCycle]) -> List[Dict]:
    return [c.to_dict() for c in cycles]
