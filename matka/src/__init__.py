"""
마트카 결과 분석 시스템 - 소스 코드

이 패키지는 분석/예측/위험도 평가 파이프라인의 핵심 기능을 구현합니다.
"""

from .analysis.pattern_analyzer import PatternAnalyzer
from .utils.data_loader import DataManager

__all__ = ['PatternAnalyzer', 'DataManager']
