"""
분석 보고서 생성 모듈

분석/예측/위험도/백테스트 결과를 하나의 보고서 딕셔너리로 모읍니다.
새로운 계산은 없고 집계와 직렬화(marshmallow)만 수행합니다.
"""

import datetime
from typing import Any, Dict, List, Optional

from marshmallow import Schema, fields

from shared.error_handler import get_logger
from ..analysis.frequency import top_indexes
from ..analysis.pattern_analyzer import AnalysisResult
from ..prediction.combination import round_half_up
from ..prediction.predictor import PredictionResult
from ..risk.risk_assessor import RiskMetrics

logger = get_logger(__name__)

ALGORITHM_VERSION = '2.0.0'
HIGH_CONFIDENCE_JACKPOT_SCORE = 1000
STRONG_ACCURACY = 70
WEAK_ACCURACY = 40

DATA_QUALITY_LEVELS = ((80, 'Excellent'), (60, 'Good'), (40, 'Fair'))
PATTERN_STRENGTH_LEVELS = ((50, 'Strong'), (25, 'Moderate'), (10, 'Weak'))


class ScoredCandidateSchema(Schema):
    value = fields.String()
    score = fields.Float()
    supporting_methods = fields.List(fields.String())
    rationale = fields.List(fields.String())


class JackpotCandidateSchema(Schema):
    value = fields.String()
    cut_value = fields.String()
    score = fields.Integer()
    frequency = fields.Integer()
    quality_score = fields.Float()
    sources = fields.List(fields.String())


class ConfidenceIntervalSchema(Schema):
    lower = fields.Integer()
    upper = fields.Integer()
    average = fields.Integer()


class RiskMetricsSchema(Schema):
    confidence_interval = fields.Nested(ConfidenceIntervalSchema)
    risk_score = fields.Integer()
    risk_level = fields.String()
    volatility = fields.Integer()
    success_probability = fields.Integer()
    recommendations = fields.List(fields.String())


class SummarySchema(Schema):
    total_predictions = fields.Integer()
    confidence_level = fields.Integer()
    data_quality = fields.String()
    pattern_strength = fields.String()
    probability_insights = fields.List(fields.String())
    frequent_digits = fields.List(fields.Integer())
    top_open_sums = fields.List(fields.Integer())
    top_close_sums = fields.List(fields.Integer())


class MetadataSchema(Schema):
    generated_at = fields.DateTime()
    dataset_id = fields.String(allow_none=True)
    record_count = fields.Integer()
    window_size = fields.Integer()
    algorithm_version = fields.String()


class ReportSchema(Schema):
    """보고서 직렬화 스키마"""
    summary = fields.Nested(SummarySchema)
    key_findings = fields.List(fields.String())
    recommendations = fields.List(fields.String())
    ranked_pairs = fields.List(fields.Nested(ScoredCandidateSchema))
    combined_panel_pairs = fields.List(fields.Nested(ScoredCandidateSchema))
    final_pairs = fields.List(fields.String())
    final_pairs_fallback = fields.Boolean()
    jackpot_candidates = fields.List(fields.Nested(JackpotCandidateSchema))
    jackpot_fallback = fields.Boolean()
    risk = fields.Nested(RiskMetricsSchema)
    historical_accuracy = fields.Float()
    metadata = fields.Nested(MetadataSchema)


def _level(value: int, levels, default: str, inclusive: bool = True) -> str:
    for threshold, label in levels:
        if (value >= threshold) if inclusive else (value > threshold):
            return label
    return default


def overall_confidence(prediction: PredictionResult) -> int:
    """최상위 pair 점수 / 최대 점수 (%)"""
    if not prediction.ranked_pairs:
        return 0
    max_score = max(c.score for c in prediction.ranked_pairs)
    if max_score <= 0:
        return 0
    return round_half_up(prediction.ranked_pairs[0].score / max_score * 100)


def data_quality(record_count: int) -> str:
    """레코드 수 기반 데이터 품질 (100건 이상이면 만점)"""
    if record_count == 0:
        return 'Poor'
    return _level(min(100, record_count), DATA_QUALITY_LEVELS, 'Poor')


def pattern_strength(pattern_count: int) -> str:
    return _level(pattern_count, PATTERN_STRENGTH_LEVELS, 'Very Weak', inclusive=False)


def probability_insights(analysis: AnalysisResult) -> List[str]:
    frequency = analysis.frequency
    top_digits = top_indexes(frequency.digit_probabilities, 3)
    top_sums = top_indexes(frequency.sum_probabilities, 2)
    return [
        f"Most frequent digits: {', '.join(str(d) for d in top_digits)}",
        f"Most common sums: {', '.join(str(s) for s in top_sums)}",
    ]


def key_findings(analysis: AnalysisResult, prediction: PredictionResult) -> List[str]:
    findings = []
    if prediction.ranked_pairs:
        top = prediction.ranked_pairs[0]
        findings.append(f"Highest confidence pair: {top.value} (score: {top.score})")
    findings.append(f"Jackpot triples identified: {len(prediction.jackpot_values())}")
    findings.append(f"Patterns detected: {analysis.patterns.total_count}")
    return findings


def report_recommendations(prediction: PredictionResult, accuracy: Optional[float]) -> List[str]:
    recommendations = []
    if prediction.ranked_pairs:
        focus = [c.value for c in prediction.ranked_pairs[:3]]
        recommendations.append(f"Focus on pairs: {', '.join(focus)}")

    if not prediction.jackpot_fallback:
        strong = [
            c.value for c in prediction.jackpot_candidates
            if c.score > HIGH_CONFIDENCE_JACKPOT_SCORE
        ][:3]
        if strong:
            recommendations.append(f"High-confidence triples: {', '.join(strong)}")

    if accuracy is not None:
        if accuracy > STRONG_ACCURACY:
            recommendations.append('Historical accuracy is strong - high confidence in predictions')
        elif accuracy < WEAK_ACCURACY:
            recommendations.append('Historical accuracy is low - use predictions with caution')
    return recommendations


def build_report(
    analysis: AnalysisResult,
    prediction: PredictionResult,
    risk: RiskMetrics,
    accuracy: Optional[float] = None,
    dataset_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    보고서 생성

    Args:
        analysis: 분석 결과
        prediction: 예측 결과
        risk: 위험도 지표
        accuracy: 백테스트 적중률 (%)
        dataset_id: 데이터셋 식별자

    Returns:
        직렬화된 보고서 딕셔너리 (생성 시각만 호출마다 달라짐)
    """
    report = {
        'summary': {
            'total_predictions': len(prediction.ranked_pairs),
            'confidence_level': overall_confidence(prediction),
            'data_quality': data_quality(len(analysis.records)),
            'pattern_strength': pattern_strength(analysis.patterns.total_count),
            'probability_insights': probability_insights(analysis),
            'frequent_digits': prediction.frequent_digits,
            'top_open_sums': prediction.top_open_sums,
            'top_close_sums': prediction.top_close_sums,
        },
        'key_findings': key_findings(analysis, prediction),
        'recommendations': report_recommendations(prediction, accuracy),
        'ranked_pairs': prediction.ranked_pairs,
        'combined_panel_pairs': prediction.combined_panel_pairs,
        'final_pairs': prediction.final_pairs,
        'final_pairs_fallback': prediction.final_pairs_fallback,
        'jackpot_candidates': prediction.jackpot_candidates,
        'jackpot_fallback': prediction.jackpot_fallback,
        'risk': risk,
        'historical_accuracy': accuracy if accuracy is not None else 0.0,
        'metadata': {
            'generated_at': datetime.datetime.now(datetime.timezone.utc),
            'dataset_id': dataset_id,
            'record_count': len(analysis.records),
            'window_size': analysis.window_size,
            'algorithm_version': ALGORITHM_VERSION,
        },
    }
    logger.debug(f"보고서 생성: {dataset_id or '(이름 없음)'}")
    return ReportSchema().dump(report)
