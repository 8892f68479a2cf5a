"""
마트카 결과 분석 시스템

이 패키지는 마트카 결과 레코드의 패턴 분석, 후보 예측, 위험도 평가 기능을 제공합니다.
"""

from pathlib import Path
from .src.utils.config import Config
from .src.utils.data_loader import DataManager, DrawRecord, parse_records
from .src.analysis.pattern_analyzer import PatternAnalyzer
from .src.pipeline import analyze, assess_risk, backtest, predict, run_pipeline

# 프로젝트 루트 디렉토리
ROOT_DIR = Path(__file__).parent

# 버전
__version__ = "2.0.0"

__all__ = [
    'Config', 'DataManager', 'DrawRecord', 'PatternAnalyzer',
    'parse_records', 'analyze', 'predict', 'assess_risk', 'backtest', 'run_pipeline',
]
