# swallow_analyzer/key_frames.py

from typing import List, Optional, Sequence

import numpy as np

from .models import KeyFrame
from .records import FrameRecord, extract_series

# ═══ 주요 시점 라벨 ═══
KEY_FRAME_LABELS = {
    'swallow_onset': '인두기 삼킴 시작',
    'aspiration': '흡인 의심 (bolus-vestibule 최대 중첩)',
    'hyoid_peak': '설골 최대 변위',
    'pharynx_max': '인두강 최대',
    'pharynx_min': '인두강 최소',
    'swallow_end': '인두기 삼킴 종료',
}


def _nan_argmax(series: np.ndarray) -> Optional[int]:
    if np.all(np.isnan(series)):
        return None
    return int(np.nanargmax(series))


def _nan_argmin(series: np.ndarray) -> Optional[int]:
    if np.all(np.isnan(series)):
        return None
    return int(np.nanargmin(series))


def detect_key_frames(records: Sequence[FrameRecord]) -> List[KeyFrame]:
    """원시 측정값에서 미리보기용 주요 시점 프레임 탐색

    - 삼킴 시작: bolus-pharynx 중첩이 처음 0 보다 커지는 프레임
    - 흡인 의심: bolus-vestibule 중첩 최대 프레임 (0 보다 클 때만)
    - 설골 최대: hyoid-C4 거리 최대 프레임
    - 인두강 최대/최소
    - 삼킴 종료: 시작 이후 중첩이 다시 0 이 되는 첫 프레임
    """
    if not records:
        return []

    found = {}
    bp_overlap = extract_series(records, 'bolus_pharynx_overlap')
    bv_overlap = extract_series(records, 'bolus_vestibule_overlap')
    hyoid = extract_series(records, 'hyoid_c4_distance')
    pharynx = extract_series(records, 'pharynx')

    onset_candidates = np.flatnonzero(bp_overlap > 0)
    onset = int(onset_candidates[0]) if len(onset_candidates) else None
    found['swallow_onset'] = onset

    aspiration = _nan_argmax(bv_overlap)
    if aspiration is not None and bv_overlap[aspiration] > 0:
        found['aspiration'] = aspiration

    found['hyoid_peak'] = _nan_argmax(hyoid)
    found['pharynx_max'] = _nan_argmax(pharynx)
    found['pharynx_min'] = _nan_argmin(pharynx)

    if onset is not None:
        after = np.flatnonzero(bp_overlap[onset + 1:] == 0)
        if len(after):
            found['swallow_end'] = onset + 1 + int(after[0])

    return [
        KeyFrame(name=name, label=label, frame_index=found[name])
        for name, label in KEY_FRAME_LABELS.items()
        if found.get(name) is not None
    ]
