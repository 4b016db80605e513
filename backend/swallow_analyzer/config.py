# swallow_analyzer/config.py

class AnalyzerConfig:
    """분석기 설정값"""

    # 평활화 (가우시안 가중 이동평균)
    SMOOTHING_WINDOW = 5

    # 측정 항목
    AREA_PARAMETERS = [
        'bolus_pharynx_overlap',
        'bolus_vestibule_overlap',
        'pharynx',
        'vestibule',
        'bolus',
    ]
    DISTANCE_PARAMETERS = ['hyoid_c4_distance', 'ues_length']
    REFERENCE_PARAMETER = 'c2c4_length'

    # Z-score 표준편차 하한
    STD_EPSILON = 1e-6

    # 삼킴 주기 검출
    DRIVER_PARAMETER = 'bolus_pharynx_overlap'
    MIN_PEAK_HEIGHT = 0.3
    MIN_CYCLE_LENGTH = 15
    PEAK_WINDOW = 3
    FIRST_RISE_THRESHOLD = 0.02
    RISE_THRESHOLD = 0.015
    END_RISE_THRESHOLD = 0.02
    STABILITY_THRESHOLD = 0.015
    END_SEARCH_FRAMES = 100
    STABILITY_SEARCH_FRAMES = 30
    MIN_CYCLE_DURATION = 5
    MAX_CYCLE_DURATION = 200

    # 주기 미검출 시 완화 파라미터로 1회 재시도
    RELAXED_MIN_PEAK_HEIGHT = 0.1
    RELAXED_MIN_CYCLE_LENGTH = 10

    # PCR (Pharyngeal Contraction Ratio)
    PCR_LOW_PERCENTILE = 0.05
    PCR_HIGH_PERCENTILE = 0.95
    PCR_OFFSET_MARGIN = 0.1

    # 흡인 위험 (overlap / vestibule)
    ASPIRATION_THRESHOLD = 0.2
    ASPIRATION_MIN_AREA = 0.01

    # 랜드마크 탐색
    TREND_REVERSAL_THRESHOLD = 0.05
    LV_CURVATURE_THRESHOLD = 0.1
    LV_SLOPE_THRESHOLD = 0.15

    # 기본값
    DEFAULT_FPS = 30.0
