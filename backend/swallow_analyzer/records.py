# swallow_analyzer/records.py

import math
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

import numpy as np


MEASUREMENT_FIELDS = (
    'pharynx',
    'vestibule',
    'bolus',
    'bolus_pharynx_overlap',
    'bolus_vestibule_overlap',
    'hyoid_c4_distance',
    'ues_length',
    'c2c4_length',
)


def _to_optional_float(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


@dataclass(frozen=True)
class FrameRecord:
    """프레임 1장의 측정값 (상류 분할 모델 출력)"""
    index: int
    pharynx: Optional[float] = None
    vestibule: Optional[float] = None
    bolus: Optional[float] = None
    bolus_pharynx_overlap: Optional[float] = None
    bolus_vestibule_overlap: Optional[float] = None
    hyoid_c4_distance: Optional[float] = None
    ues_length: Optional[float] = None
    c2c4_length: Optional[float] = None

    @classmethod
    def from_dict(cls, index: int, row: Mapping) -> 'FrameRecord':
        """signals.areas[i] 형태의 dict 에서 생성 (모르는 키는 무시)"""
        values = {name: _to_optional_float(row.get(name)) for name in MEASUREMENT_FIELDS}
        return cls(index=index, **values)


def records_from_rows(rows: Sequence[Mapping]) -> List[FrameRecord]:
    return [FrameRecord.from_dict(i, row) for i, row in enumerate(rows)]


def extract_series(records: Sequence[FrameRecord], name: str) -> np.ndarray:
    """측정 항목 하나를 프레임 순서의 배열로 추출 (결측 = NaN)"""
    values = [getattr(r, name) for r in records]
    return np.array(
        [np.nan if v is None else v for v in values], dtype=float
    )


def series_to_list(series: np.ndarray, digits: Optional[int] = None) -> List[Optional[float]]:
    """NaN → None 으로 변환한 JSON 직렬화용 리스트"""
    result = []
    for v in series:
        if np.isnan(v):
            result.append(None)
        elif digits is None:
            result.append(float(v))
        else:
            result.append(round(float(v), digits))
    return result
