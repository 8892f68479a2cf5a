"""
분석 파이프라인

레코드 파싱부터 분석, 예측, 위험도 평가, 백테스트, 보고서 생성까지를
하나의 호출로 묶습니다. 각 단계는 입력 레코드와 윈도우 크기만으로 결정되며
파일/네트워크 입출력을 하지 않습니다.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Union

from shared.error_handler import ParseError, get_logger, log_performance
from shared.result_cache import ResultCache
from .analysis.pattern_analyzer import AnalysisResult, PatternAnalyzer
from .prediction.predictor import MultiMethodPredictor, PredictionResult, jackpot_candidates
from .report.report_builder import build_report
from .risk.risk_assessor import RiskAssessor, RiskMetrics, backtest
from .utils.config import Config, resolve_config
from .utils.data_loader import DrawRecord, parse_records

logger = get_logger('pipeline')

__all__ = [
    'PipelineResult', 'MatkaPipeline', 'parse_records', 'analyze', 'predict',
    'assess_risk', 'backtest', 'jackpot_candidates', 'run_pipeline',
]


@dataclass(frozen=True)
class PipelineResult:
    """파이프라인 실행 결과"""
    analysis: AnalysisResult
    prediction: PredictionResult
    risk: RiskMetrics
    accuracy: float
    report: Dict[str, Any]


def analyze(
    records: Sequence[DrawRecord],
    window_size: Optional[int] = None,
    config: Optional[Config] = None
) -> AnalysisResult:
    """
    레코드 분석

    Raises:
        ParseError: 레코드가 비어 있는 경우
    """
    return PatternAnalyzer(config, records).analyze(window_size)


def predict(
    analysis: AnalysisResult,
    window_size: Optional[int] = None,
    config: Optional[Config] = None
) -> PredictionResult:
    """분석 결과로 pair/triple 후보 예측"""
    return MultiMethodPredictor(config).predict(analysis, window_size)


def assess_risk(
    prediction: PredictionResult,
    records: Sequence[DrawRecord],
    config: Optional[Config] = None
) -> RiskMetrics:
    """예측 결과 위험도 평가"""
    return RiskAssessor(config).assess(prediction, records)


class MatkaPipeline:
    """전체 분석 파이프라인 (선택적 결과 캐시)"""

    def __init__(self, config: Optional[Config] = None, cache: Optional[ResultCache] = None):
        """
        파이프라인 초기화

        Args:
            config: 설정 객체
            cache: 결과 캐시 (없고 설정에서 켜져 있으면 새로 생성)
        """
        self.config = resolve_config(config)
        if cache is None and self.config.cache.enabled:
            cache = ResultCache(self.config.cache.capacity)
        self.cache = cache

    def _compute(self, records: Sequence[DrawRecord], window_size: int, lookback_days: int):
        analysis = analyze(records, window_size, self.config)
        prediction = predict(analysis, window_size, self.config)
        risk = assess_risk(prediction, records, self.config)
        candidate_fn = RiskAssessor(self.config).default_candidate_fn(window_size)
        accuracy = backtest(records, candidate_fn, lookback_days, self.config)
        return analysis, prediction, risk, accuracy

    @log_performance
    def run(
        self,
        records: Union[str, Sequence[DrawRecord]],
        window_size: Optional[int] = None,
        lookback_days: Optional[int] = None,
        dataset_id: Optional[str] = None
    ) -> PipelineResult:
        """
        파이프라인 실행

        Args:
            records: DrawRecord 시퀀스 또는 원본 결과표 문자열
            window_size: 분석 윈도우 크기
            lookback_days: 백테스트 구간
            dataset_id: 보고서에 기록할 데이터셋 식별자

        Raises:
            ParseError: 유효한 레코드가 없는 경우
        """
        if isinstance(records, str):
            records = parse_records(records)
        records = tuple(records)
        if not records:
            raise ParseError("분석할 레코드가 없습니다.")

        if window_size is None:
            window_size = self.config.analysis.window_size
        if lookback_days is None:
            lookback_days = self.config.risk.backtest_lookback

        key = None
        computed = None
        if self.cache is not None:
            key = ResultCache.make_key(records, window_size, lookback_days, str(self.config))
            computed = self.cache.get(key)

        if computed is None:
            computed = self._compute(records, window_size, lookback_days)
            if self.cache is not None:
                self.cache.put(key, computed)

        analysis, prediction, risk, accuracy = computed
        report = build_report(analysis, prediction, risk, accuracy, dataset_id)
        logger.info(
            f"파이프라인 완료: 최종 pair {', '.join(prediction.final_pairs)}, "
            f"위험도 {risk.risk_level}, 적중률 {accuracy}%"
        )
        return PipelineResult(analysis, prediction, risk, accuracy, report)


def run_pipeline(
    records: Union[str, Sequence[DrawRecord]],
    window_size: Optional[int] = None,
    lookback_days: Optional[int] = None,
    config: Optional[Config] = None,
    cache: Optional[ResultCache] = None,
    dataset_id: Optional[str] = None
) -> PipelineResult:
    """MatkaPipeline 단축 함수 (cache를 넘기면 호출 간 결과를 재사용)"""
    return MatkaPipeline(config, cache).run(records, window_size, lookback_days, dataset_id)
