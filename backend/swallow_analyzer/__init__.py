# swallow_analyzer/__init__.py

from .config import AnalyzerConfig
from .records import FrameRecord, records_from_rows
from .filter import GaussianSmoother
from .calibration import ScaleCalibrator
from .standardization import GroupStandardizer, GroupStatistics
from .segmentation import CycleSegmenter, SegmentationResult
from .clinical import ClinicalParameterExtractor, contraction_ratio
from .models import SwallowCycle, ClinicalParameters, Landmark, KeyFrame
from .key_frames import detect_key_frames
from .pipeline import SwallowAnalyzer, SwallowAnalysisResult

__all__ = [
    'AnalyzerConfig',
    'FrameRecord',
    'records_from_rows',
    'GaussianSmoother',
    'ScaleCalibrator',
    'GroupStandardizer',
    'GroupStatistics',
    'CycleSegmenter',
    'SegmentationResult',
    'ClinicalParameterExtractor',
    'contraction_ratio',
    'SwallowCycle',
    'ClinicalParameters',
    'Landmark',
    'KeyFrame',
    'detect_key_frames',
    'SwallowAnalyzer',
    'SwallowAnalysisResult',
]
