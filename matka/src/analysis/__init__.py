"""
마트카 결과 분석 모듈

이 패키지는 관련 값 규칙, 빈도 분석, 패널/패턴 분석 기능을 제공합니다.
"""

from .frequency import FrequencyTables, analyze_frequency
from .pattern_analyzer import AnalysisResult, PatternAnalyzer, analyze_records
from .relations import cut_value, digit_sum, family_of, mirror, related_values, reverse

__all__ = [
    'FrequencyTables', 'analyze_frequency', 'AnalysisResult', 'PatternAnalyzer', 'analyze_records',
    'cut_value', 'digit_sum', 'family_of', 'mirror', 'related_values', 'reverse',
]
