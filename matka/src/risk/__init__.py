"""
위험도 및 백테스트 평가 모듈
"""

from .risk_assessor import RiskAssessor, RiskMetrics, backtest, backtest_details

__all__ = ['RiskAssessor', 'RiskMetrics', 'backtest', 'backtest_details']
