"""
위험도 및 백테스트 평가 모듈

결합 후보 점수로 신뢰 구간, 위험 점수, 변동성을 계산하고,
잭팟 후보 함수의 과거 적중률을 미래 정보 없이(no lookahead) 측정합니다.
"""

import warnings
from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, Optional, Sequence, Tuple

import numpy as np

from shared.error_handler import InsufficientDataWarning, get_logger, log_performance
from ..prediction.combination import round_half_up
from ..prediction.predictor import PredictionResult, jackpot_candidates
from ..utils.config import Config, resolve_config
from ..utils.data_loader import DrawRecord

logger = get_logger(__name__)

NEUTRAL_RISK = 50
HIGH_SPREAD = 50
LOW_SPREAD = 20
HIGH_SPREAD_PENALTY = 20
LOW_SPREAD_RELIEF = 15

RISK_LEVELS = ((25, 'Low'), (50, 'Medium-Low'), (75, 'Medium-High'))

CandidateFn = Callable[[Sequence[DrawRecord]], Iterable[str]]


@dataclass(frozen=True)
class ConfidenceInterval:
    lower: int
    upper: int
    average: int


@dataclass(frozen=True)
class RiskMetrics:
    """위험도 지표"""
    confidence_interval: ConfidenceInterval
    risk_score: int
    risk_level: str
    volatility: int
    success_probability: int
    recommendations: Tuple[str, ...]


@dataclass(frozen=True)
class BacktestTransition:
    """백테스트 전이 하나 (day -> day+1)"""
    index: int
    candidates: Tuple[str, ...]
    next_open: str
    next_close: str
    hit: bool


def confidence_interval(scores: Sequence[float]) -> ConfidenceInterval:
    """평균/최대 점수 비율 기반 신뢰 구간 (후보가 없으면 모두 0)"""
    if len(scores) == 0:
        return ConfidenceInterval(0, 0, 0)
    max_score = max(scores)
    if max_score <= 0:
        return ConfidenceInterval(0, 0, 0)
    ratio = float(np.mean(scores)) / max_score
    return ConfidenceInterval(
        lower=round_half_up(50 * ratio),
        upper=round_half_up(85 * ratio),
        average=round_half_up(100 * ratio),
    )


def risk_score(scores: Sequence[float]) -> int:
    """상위 3개 점수 폭으로 중립값 50을 조정 ([0, 100])"""
    score = NEUTRAL_RISK
    top = list(scores[:3])
    if top:
        spread = max(top) - min(top)
        if spread > HIGH_SPREAD:
            score += HIGH_SPREAD_PENALTY
        if spread < LOW_SPREAD:
            score -= LOW_SPREAD_RELIEF
    return max(0, min(100, score))


def risk_level(score: int) -> str:
    for threshold, label in RISK_LEVELS:
        if score <= threshold:
            return label
    return 'High'


def volatility(scores: Sequence[float]) -> int:
    """점수 모표준편차 (후보 2개 미만이면 0)"""
    if len(scores) < 2:
        return 0
    return round_half_up(float(np.std(scores)))


def success_probability(values: Sequence[str], records: Sequence[DrawRecord], window: int = 30) -> int:
    """후보 pair 중 최근 window개 레코드에 나온 비율 (%)"""
    if not values:
        return 0
    recent_pairs = {record.pair for record in records[-window:]}
    hits = sum(1 for value in values if value in recent_pairs)
    return round_half_up(hits / len(values) * 100)


def risk_recommendations(score: int, interval: ConfidenceInterval) -> Tuple[str, ...]:
    recommendations = []
    if score > 70:
        recommendations.append('Consider reducing position size due to high risk')
        recommendations.append('Wait for more consistent patterns to emerge')
    if interval.average < 60:
        recommendations.append('Low confidence level - verify with additional analysis')
    if not recommendations:
        recommendations.append('Risk level acceptable for standard analysis')
    return tuple(recommendations)


class RiskAssessor:
    """위험도 평가기"""

    def __init__(self, config: Optional[Config] = None):
        """
        위험도 평가기 초기화

        Args:
            config: 설정 객체
        """
        self.config = resolve_config(config)

    @log_performance
    def assess(self, prediction: PredictionResult, records: Sequence[DrawRecord]) -> RiskMetrics:
        """
        위험도 평가

        Args:
            prediction: 예측 결과
            records: 전체 레코드 시퀀스

        Returns:
            RiskMetrics
        """
        ranked = prediction.ranked_pairs[:self.config.prediction.ranked_pair_limit]
        scores = [candidate.score for candidate in ranked]

        interval = confidence_interval(scores)
        score = risk_score(scores)
        metrics = RiskMetrics(
            confidence_interval=interval,
            risk_score=score,
            risk_level=risk_level(score),
            volatility=volatility(scores),
            success_probability=success_probability(
                [c.value for c in ranked], records, self.config.risk.success_window
            ),
            recommendations=risk_recommendations(score, interval),
        )
        logger.info(f"위험도 평가: {metrics.risk_level} ({metrics.risk_score})")
        return metrics

    def default_candidate_fn(self, window_size: Optional[int] = None) -> CandidateFn:
        """잭팟 후보 풀을 기본 백테스트 후보 함수로 사용"""
        return partial(jackpot_candidates, window_size=window_size, config=self.config)


@log_performance
def backtest_details(
    records: Sequence[DrawRecord],
    candidate_fn: CandidateFn,
    lookback_days: int
) -> Tuple[BacktestTransition, ...]:
    """
    백테스트 전이별 결과

    최근 lookback_days개 레코드의 연속 쌍 (day, day+1)마다, day까지(포함)의 레코드만으로
    후보를 계산하고 day+1의 open 또는 close가 후보에 있으면 적중으로 봅니다.
    """
    if lookback_days < 1:
        raise ValueError(f"lookback_days는 1 이상이어야 합니다: {lookback_days}")

    total = len(records)
    start = max(0, total - lookback_days)
    if total - start < 2:
        warnings.warn("백테스트할 전이가 없습니다 (레코드 2개 미만).", InsufficientDataWarning)
        return ()

    transitions = []
    for index in range(start, total - 1):
        history = records[:index + 1]
        candidates = tuple(candidate_fn(history))
        upcoming = records[index + 1]
        hit = upcoming.open_triple in candidates or upcoming.close_triple in candidates
        transitions.append(BacktestTransition(
            index=index,
            candidates=candidates,
            next_open=upcoming.open_triple,
            next_close=upcoming.close_triple,
            hit=hit,
        ))
    return tuple(transitions)


def backtest(
    records: Sequence[DrawRecord],
    candidate_fn: Optional[CandidateFn] = None,
    lookback_days: Optional[int] = None,
    config: Optional[Config] = None
) -> float:
    """
    백테스트 적중률 (%, 소수 첫째 자리)

    Args:
        records: 전체 레코드 시퀀스
        candidate_fn: 레코드 접두부 -> 후보 triple (기본값: 잭팟 후보 풀)
        lookback_days: 최근 검증 구간 (기본값: 설정의 backtest_lookback)
        config: 설정 객체
    """
    config = resolve_config(config)
    if candidate_fn is None:
        candidate_fn = RiskAssessor(config).default_candidate_fn()
    if lookback_days is None:
        lookback_days = config.risk.backtest_lookback

    transitions = backtest_details(records, candidate_fn, lookback_days)
    if not transitions:
        return 0.0

    hits = sum(1 for t in transitions if t.hit)
    accuracy = round_half_up(hits / len(transitions) * 1000) / 10
    logger.info(f"백테스트: {hits}/{len(transitions)} 적중 ({accuracy}%)")
    return accuracy
