# swallow_analyzer/landmarks.py
"""랜드마크 밸리 탐색 전략

피크(anchor)에서 한 방향(step=-1 이전, +1 이후)으로 걸어가며 밸리를 찾는다.
전략은 순서대로 시도하고, 각 전략은 인덱스 또는 None(불일치)을 반환한다.

values 는 결측이 제거된(압축된) 탐색 구간 값이고, 반환 인덱스도 그 배열 기준이다.
"""

from typing import Callable, List, Optional, Tuple

import numpy as np

Strategy = Callable[[np.ndarray, int, int], Optional[int]]


def _walk(anchor: int, step: int, lower: int, upper: int):
    """anchor 다음 위치부터 [lower, upper] 범위 안에서 step 방향으로 순회"""
    i = anchor + step
    while lower <= i <= upper:
        yield i
        i += step


def slope_flip(threshold: float = 0.0) -> Strategy:
    """1차 미분 부호 전환 (하강 → 상승) 지점"""
    def strategy(values: np.ndarray, anchor: int, step: int) -> Optional[int]:
        n = len(values)
        slope = np.diff(values)
        for i in _walk(anchor, step, 1, n - 2):
            if slope[i - 1] < -threshold and slope[i] > threshold:
                return i
        return None
    return strategy


def curvature_flip(threshold: float) -> Strategy:
    """2차 미분 부호 전환 (진행 방향으로 오목 → 볼록) 후 볼록 구간의 최소

    anchor 쪽 이웃이 오목하고 현재 위치가 볼록하면 밸리 구간에 들어온 것으로
    보고, 볼록 구간이 끝날 때까지 진행하며 최솟값 위치를 반환한다.
    """
    def strategy(values: np.ndarray, anchor: int, step: int) -> Optional[int]:
        n = len(values)
        # curvature[k] 는 k+1 위치의 2차 차분
        curvature = np.diff(values, n=2)

        def concave(i: int) -> bool:
            return 1 <= i <= n - 2 and curvature[i - 1] < -threshold

        def convex(i: int) -> bool:
            return 1 <= i <= n - 2 and curvature[i - 1] > threshold

        for i in _walk(anchor, step, 1, n - 2):
            if not (concave(i - step) and convex(i)):
                continue
            best = i
            j = i + step
            while convex(j):
                if values[j] < values[best]:
                    best = j
                j += step
            return best
        return None
    return strategy


def trend_reversal_minimum(threshold: float) -> Strategy:
    """추세가 뚜렷하게 반전되기 전까지의 국소 최소"""
    def strategy(values: np.ndarray, anchor: int, step: int) -> Optional[int]:
        n = len(values)
        best = anchor
        for i in _walk(anchor, step, 0, n - 1):
            if values[i] < values[best]:
                best = i
            nxt = i + step
            if 0 <= nxt < n and values[nxt] - values[i] > threshold:
                return best
        return None
    return strategy


def side_minimum(values: np.ndarray, anchor: int, step: int) -> Optional[int]:
    """anchor 한쪽 전체의 최소 (한쪽이 비어 있으면 anchor)"""
    if step < 0:
        side = values[:anchor + 1]
        offset = 0
    else:
        side = values[anchor:]
        offset = anchor
    if len(side) == 0:
        return None
    # 같은 값이면 anchor 에 가까운 쪽
    order = np.arange(len(side))[::-1] if step < 0 else np.arange(len(side))
    best = order[int(np.argmin(side[order]))]
    return offset + int(best)


def standard_strategies(
    reversal_threshold: float,
) -> List[Tuple[str, Strategy]]:
    """HYB / UESO / UESC 용: 1차 미분 → 추세 반전 → 국소 최소"""
    return [
        ('slope_flip', slope_flip(0.0)),
        ('trend_reversal', trend_reversal_minimum(reversal_threshold)),
        ('local_minimum', side_minimum),
    ]


def vestibule_strategies(
    curvature_threshold: float, slope_threshold: float,
) -> List[Tuple[str, Strategy]]:
    """LVC / LVCoff 용: 2차 미분 → 1차 미분 → 추세 반전 → 국소 최소"""
    return [
        ('curvature_flip', curvature_flip(curvature_threshold)),
        ('slope_flip', slope_flip(slope_threshold)),
        ('trend_reversal', trend_reversal_minimum(slope_threshold)),
        ('local_minimum', side_minimum),
    ]


def search_valley(
    values: np.ndarray,
    anchor: int,
    step: int,
    strategies: List[Tuple[str, Strategy]],
) -> Optional[Tuple[int, str]]:
    for name, strategy in strategies:
        index = strategy(values, anchor, step)
        if index is not None:
            return index, name
    return None
