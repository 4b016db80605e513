# swallow_analyzer/export.py

import csv
import io
from typing import Dict, List, Optional

import numpy as np

# 스프레드시트 호환을 위해 열 순서/소수 자릿수 고정
SMOOTHED_COLUMNS = [
    'bolus_pharynx_overlap', 'bolus_vestibule_overlap', 'pharynx', 'vestibule', 'bolus',
]
NORMALIZED_COLUMNS = SMOOTHED_COLUMNS + ['hyoid_c4_distance', 'ues_length']

CSV_HEADER = (
    ['Frame']
    + [f'Smoothed_{name}' for name in SMOOTHED_COLUMNS]
    + [f'Normalized_{name}' for name in NORMALIZED_COLUMNS]
    + [f'ZScore_{name}' for name in NORMALIZED_COLUMNS]
)


def _fmt(value: float, digits: int) -> str:
    if value is None or np.isnan(value):
        return ''
    return f'{value:.{digits}f}'


def build_rows(
    smoothed: Dict[str, np.ndarray],
    normalized: Dict[str, np.ndarray],
    zscores: Dict[str, np.ndarray],
    frame_count: Optional[int] = None,
) -> List[List[str]]:
    """프레임별 CSV 행 (헤더 제외)"""
    if frame_count is None:
        frame_count = len(next(iter(normalized.values()))) if normalized else 0

    rows = []
    for i in range(frame_count):
        row = [str(i)]
        row += [_fmt(smoothed[name][i], 2) for name in SMOOTHED_COLUMNS]
        row += [_fmt(normalized[name][i], 2) for name in NORMALIZED_COLUMNS]
        row += [_fmt(zscores[name][i], 3) for name in NORMALIZED_COLUMNS]
        rows.append(row)
    return rows


def write_csv(rows: List[List[str]], stream) -> None:
    writer = csv.writer(stream, lineterminator='\n')
    writer.writerow(CSV_HEADER)
    writer.writerows(rows)


def to_csv_text(rows: List[List[str]]) -> str:
    buffer = io.StringIO()
    write_csv(rows, buffer)
    return buffer.getvalue()
