"""
후보 예측 모듈
"""

from .combination import Emission, ScoredCandidate, combine, select_final
from .predictor import MultiMethodPredictor, PredictionResult, jackpot_candidates

__all__ = [
    'Emission', 'ScoredCandidate', 'combine', 'select_final',
    'MultiMethodPredictor', 'PredictionResult', 'jackpot_candidates',
]
