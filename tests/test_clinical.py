import numpy as np
import pytest

from swallow_analyzer.clinical import ClinicalParameterExtractor, contraction_ratio, nearest_rank
from swallow_analyzer.config import AnalyzerConfig
from swallow_analyzer.models import ClinicalParameters, SwallowCycle


FRAMES = 40


def _tent(center, half_width, peak, frame_count=FRAMES):
    """center 에서 최대, center ± half_width 에서 밸리, 그 밖에서는 다시 상승"""
    frames = np.arange(frame_count, dtype=float)
    distance = np.abs(frames - center)
    valley = peak - half_width
    return np.where(distance <= half_width, peak - distance, valley + (distance - half_width))


def _signals(hyoid=None, ues=None, vestibule=None, pharynx=None, frame_count=FRAMES):
    missing = np.full(frame_count, np.nan)
    zscores = {
        'pharynx': missing if pharynx is None else pharynx,
        'hyoid_c4_distance': missing if hyoid is None else hyoid,
        'ues_length': missing if ues is None else ues,
        'vestibule': missing if vestibule is None else vestibule,
    }
    normalized = {
        'bolus_vestibule_overlap': missing.copy(),
        'vestibule': missing.copy(),
    }
    return zscores, normalized


# ─── PCR ───

def test_nearest_rank_without_interpolation() -> None:
    values = np.arange(20, dtype=float)
    assert nearest_rank(values, 0.05) == 1.0
    assert nearest_rank(values, 0.95) == 19.0


def test_contraction_ratio_both_negative_uses_magnitudes() -> None:
    pcr, adjusted_p5, adjusted_p95 = contraction_ratio(-2.0, -8.0, min_value=-9.0)
    assert pcr == pytest.approx(0.25)
    assert (adjusted_p5, adjusted_p95) == (2.0, 8.0)


def test_contraction_ratio_positive_is_plain_ratio() -> None:
    pcr, _, _ = contraction_ratio(1.0, 4.0, min_value=0.5)
    assert pcr == pytest.approx(0.25)


def test_contraction_ratio_mixed_sign_shifts_by_minimum() -> None:
    pcr, adjusted_p5, adjusted_p95 = contraction_ratio(-1.0, 3.0, min_value=-1.5, offset_margin=0.1)
    assert adjusted_p5 == pytest.approx(0.6)
    assert adjusted_p95 == pytest.approx(4.6)
    assert pcr == pytest.approx(0.6 / 4.6)


def test_contraction_ratio_zero_denominator_is_undefined() -> None:
    pcr, _, _ = contraction_ratio(0.0, 0.0, min_value=0.0)
    assert pcr is None


def test_pcr_over_cycle_frames() -> None:
    pharynx = np.linspace(1.0, 20.0, FRAMES)
    extractor = ClinicalParameterExtractor()
    cycle = SwallowCycle(1, 10, 20, 30, 1.0, 30.0)

    result = extractor.compute_pcr(pharynx, cycle)

    # 21 프레임: p5 = sorted[1], p95 = sorted[19]
    assert result['pcr_frames'] == 21
    assert result['pcr'] == pytest.approx(pharynx[11] / pharynx[29])
    assert result['pcr_has_negative_values'] is False


# ─── 흡인 위험 ───

def test_aspiration_threshold_is_inclusive() -> None:
    extractor = ClinicalParameterExtractor()
    cycle = SwallowCycle(1, 0, 2, 4, 1.0, 30.0)
    vestibule = np.ones(5)

    at_threshold = extractor.compute_aspiration(
        np.array([0.2, 0.1, 0.0, 0.05, 0.1]), vestibule, cycle)
    below = extractor.compute_aspiration(
        np.array([0.199999, 0.1, 0.0, 0.05, 0.1]), vestibule, cycle)

    assert at_threshold['max_overlap_ratio'] == pytest.approx(0.2)
    assert at_threshold['aspiration_risk'] is True
    assert below['aspiration_risk'] is False


def test_aspiration_clamps_small_overlap_and_small_vestibule() -> None:
    extractor = ClinicalParameterExtractor()
    cycle = SwallowCycle(1, 0, 1, 2, 1.0, 30.0)

    result = extractor.compute_aspiration(
        np.array([0.0, 0.5, 0.0]), np.array([1.0, 0.001, 0.0]), cycle)

    first, second, third = result['overlap_samples']
    assert first.adjusted_overlap == 0.01
    assert first.ratio == pytest.approx(0.01)
    assert second.adjusted_vestibule == 0.01
    assert second.ratio == pytest.approx(50.0)
    # vestibule 보정이 우선하므로 overlap 은 0 그대로
    assert third.adjusted_overlap == 0.0
    assert result['aspiration_risk'] is True


def test_aspiration_without_samples_is_undetermined() -> None:
    extractor = ClinicalParameterExtractor()
    cycle = SwallowCycle(1, 0, 1, 2, 1.0, 30.0)

    result = extractor.compute_aspiration(np.full(3, np.nan), np.ones(3), cycle)

    assert 'aspiration_risk' not in result
    assert result['overlap_samples'] == ()


# ─── 랜드마크 ───

def test_search_window_widens_to_neighbouring_cycles() -> None:
    first = SwallowCycle(1, 10, 20, 30, 1.0, 30.0)
    second = SwallowCycle(2, 50, 60, 70, 1.0, 30.0)

    assert ClinicalParameterExtractor.search_window(first, None, second) == (10, 50)
    assert ClinicalParameterExtractor.search_window(second, first, None) == (30, 70)


def test_landmarks_bracket_the_cycle_peak() -> None:
    extractor = ClinicalParameterExtractor(fps=30.0)
    cycle = SwallowCycle(1, 10, 20, 30, 1.0, 30.0)
    zscores, normalized = _signals(ues=_tent(20, 8, 5.0), vestibule=_tent(20, 8, 5.0))

    params = extractor.extract(cycle, zscores, normalized)

    assert params.landmark_frame('ueso') == 12
    assert params.landmark_frame('uesc') == 28
    assert params.ueso.strategy == 'slope_flip'
    assert params.ueso.anchor_frame == 20
    assert params.lvc.frame == 12
    assert params.lvc_off.frame == 28
    assert params.lvc.strategy == 'slope_flip'
    assert params.intervals['ues_open_duration'] == 16
    assert params.intervals['lv_closure_duration'] == 16
    assert params.intervals_s['ues_open_duration'] == pytest.approx(0.533)


def test_missing_hyoid_leaves_dependent_intervals_undetermined(caplog) -> None:
    extractor = ClinicalParameterExtractor(fps=30.0)
    cycle = SwallowCycle(1, 10, 20, 30, 1.0, 30.0)
    zscores, normalized = _signals(ues=_tent(20, 8, 5.0), vestibule=_tent(20, 8, 5.0))

    params = extractor.extract(cycle, zscores, normalized)

    assert params.hyb is None
    assert params.intervals['hyb_from_start'] is None
    assert params.intervals['ueso_from_hyb'] is None
    assert params.intervals['lvc_from_hyb'] is None
    assert params.intervals_s['hyb_from_start'] is None
    assert 'hyb' in caplog.text


def test_hyoid_burst_before_cycle_start_gives_negative_interval() -> None:
    extractor = ClinicalParameterExtractor(fps=30.0)
    first = SwallowCycle(1, 10, 20, 30, 1.0, 30.0)
    second = SwallowCycle(2, 50, 60, 70, 1.0, 30.0)
    zscores, normalized = _signals(hyoid=_tent(60, 15, 10.0, frame_count=80), frame_count=80)

    params = extractor.extract(second, zscores, normalized, previous=first)

    assert params.hyb.frame == 45
    assert params.intervals['hyb_from_start'] == -5


def test_missing_frames_are_skipped_but_frame_numbers_kept() -> None:
    extractor = ClinicalParameterExtractor(fps=30.0)
    cycle = SwallowCycle(1, 10, 20, 30, 1.0, 30.0)
    ues = _tent(20, 8, 5.0)
    ues[11] = np.nan
    ues[16] = np.nan
    zscores, normalized = _signals(ues=ues)

    params = extractor.extract(cycle, zscores, normalized)

    assert params.ueso.frame == 12
    assert params.uesc.frame == 28


def test_extract_all_returns_new_cycles_with_same_boundaries() -> None:
    extractor = ClinicalParameterExtractor(fps=30.0)
    cycle = SwallowCycle(1, 10, 20, 30, 1.0, 30.0)
    zscores, normalized = _signals(ues=_tent(20, 8, 5.0))

    result = extractor.extract_all([cycle], zscores, normalized)

    assert cycle.parameters is None
    assert result[0].parameters is not None
    assert (result[0].start_frame, result[0].peak_frame, result[0].end_frame) == (10, 20, 30)


def test_vestibule_valleys_from_second_derivative_bracket_the_peak() -> None:
    extractor = ClinicalParameterExtractor(fps=30.0)
    cycle = SwallowCycle(1, 20, 30, 40, 1.0, 30.0)
    frames = np.arange(50, dtype=float)

    def g(center, sigma, amplitude):
        return amplitude * np.exp(-((frames - center) ** 2) / (2.0 * sigma ** 2))

    vestibule = g(30, 1.5, 3.0) - g(25, 1.2, 1.0) - g(35, 1.2, 1.0)
    zscores, normalized = _signals(vestibule=vestibule, frame_count=50)

    params = extractor.extract(cycle, zscores, normalized)

    assert params.lvc.strategy == 'curvature_flip'
    assert params.lvc_off.strategy == 'curvature_flip'
    assert params.lvc.frame == 25
    assert params.lvc_off.frame == 35
    assert params.lvc.anchor_frame == 30
    assert params.intervals['lv_closure_duration'] == 10


def test_aspiration_threshold_defaults_to_configured_value() -> None:
    assert ClinicalParameters().aspiration_threshold == AnalyzerConfig.ASPIRATION_THRESHOLD

    extractor = ClinicalParameterExtractor(aspiration_threshold=0.5)
    cycle = SwallowCycle(1, 10, 20, 30, 1.0, 30.0)
    zscores, normalized = _signals()

    params = extractor.extract(cycle, zscores, normalized)

    assert params.aspiration_threshold == 0.5
