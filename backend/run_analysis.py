"""독립 실행 분석 스크립트 - 삼킴 주기/임상 파라미터 산출

Usage:
    python run_analysis.py <signals.json> [--fps FPS] [--output-dir DIR] [--verbose]

입력 JSON 형태 (셋 중 하나):
    - [ {pharynx, vestibule, ...}, ... ]                  프레임별 측정값 목록
    - { "fps": 30, "areas": [...] }
    - { "summary": { "fps": 30, "signals": { "areas": [...] } } }  분할 서버 결과

결과는 <stem>_analysis.json 과 <stem>_advanced.csv 로 저장합니다.
"""

import sys
import json
import argparse
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

# backend 디렉토리를 path에 추가
BACKEND_DIR = Path(__file__).parent
sys.path.insert(0, str(BACKEND_DIR))

from swallow_analyzer import AnalyzerConfig, SwallowAnalyzer


def load_signals(path: Path) -> Tuple[List[Dict], Optional[float]]:
    """signals JSON 로드 → (프레임별 dict 목록, fps)"""
    data = json.loads(path.read_text(encoding='utf-8'))

    if isinstance(data, list):
        return _validate_rows(data), None
    if not isinstance(data, dict):
        raise ValueError("지원하지 않는 입력 형식입니다")

    if 'summary' in data:
        summary = data['summary'] if isinstance(data['summary'], dict) else {}
        signals = summary.get('signals')
        areas = signals.get('areas') if isinstance(signals, dict) else None
        fps = summary.get('fps')
    else:
        areas = data.get('areas')
        fps = data.get('fps')

    if not isinstance(areas, list):
        raise ValueError("프레임별 측정값(areas) 목록이 없습니다")
    return _validate_rows(areas), _parse_fps(fps)


def _validate_rows(rows: List) -> List[Dict]:
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValueError(f"프레임 {i} 의 측정값이 객체가 아닙니다: {row!r}")
    return rows


def _parse_fps(value) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"fps 값을 해석할 수 없습니다: {value!r}") from None


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def run_single_analysis(path: Path, fps: Optional[float] = None) -> Tuple[Dict, str]:
    """파일 1건 분석 → (결과 dict, CSV 텍스트)"""
    rows, file_fps = load_signals(path)
    effective_fps = fps if fps is not None else file_fps
    if effective_fps is None:
        effective_fps = AnalyzerConfig.DEFAULT_FPS

    analyzer = SwallowAnalyzer(fps=effective_fps)
    result = analyzer.analyze_rows(rows)

    output = result.to_dict()
    output['_meta'] = {
        'source': path.name,
        'total_frames': result.frame_count,
        'fps': effective_fps,
    }
    return output, result.to_csv()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='삼킴 조영검사 주기/임상 파라미터 분석')
    parser.add_argument('signals_path', help='프레임별 측정값 JSON 경로')
    parser.add_argument('--fps', type=float, default=None, help='영상 FPS (파일 값보다 우선)')
    parser.add_argument('--output-dir', default=None, help='결과 저장 디렉토리')
    parser.add_argument('--verbose', action='store_true', help='DEBUG 로그 출력')
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    signals_path = Path(args.signals_path)
    output_dir = Path(args.output_dir) if args.output_dir else signals_path.parent
    output_dir.mkdir(parents=True, exist_ok=True)

    try:
        output, csv_text = run_single_analysis(signals_path, args.fps)
    except (OSError, ValueError) as e:
        print(f"[Analysis] 분석 실패: {e}", file=sys.stderr)
        return 1

    stem = signals_path.stem
    json_path = output_dir / f"{stem}_analysis.json"
    csv_path = output_dir / f"{stem}_advanced.csv"
    json_path.write_text(json.dumps(output, ensure_ascii=False, indent=2), encoding='utf-8')
    csv_path.write_text(csv_text, encoding='utf-8')

    # 요약 출력
    analysis = output['swallowing_analysis']
    print("=" * 60)
    print(f"  Swallow analysis: {stem}")
    print(f"  Frames: {output['frame_count']}  Reference C2-C4: {output['reference']}")
    print(f"  Swallows: {analysis['total_swallows']}"
          f"{' (relaxed parameters)' if analysis['relaxed'] else ''}")
    print("=" * 60)
    for cycle in analysis['cycles']:
        pcr = cycle.get('pcr')
        print(f"  #{cycle['cycle_number']}: frames {cycle['start_frame']}-{cycle['end_frame']} "
              f"(peak {cycle['peak_frame']}) "
              f"PCR={pcr if pcr is None else round(pcr, 3)} "
              f"aspiration={cycle.get('aspiration_risk')} "
              f"HYB={cycle.get('hyb')} UESO={cycle.get('ueso')} UESC={cycle.get('uesc')} "
              f"LVC={cycle.get('lvc')} LVCoff={cycle.get('lvc_off')}")
    print(f"\n  Results saved to: {output_dir}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
