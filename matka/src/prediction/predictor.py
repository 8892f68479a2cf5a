"""
다중 방법 예측 모듈

다섯 가지 독립 점수 방법의 출력을 결합하여 pair 순위와 최종 4개 pair를 만들고,
패널 기반 triple 순위와 잭팟 triple 후보 풀을 함께 계산합니다.

방법:
- panel: 패널 적중률 (appearances ≥ 2)
- transition: 1차 전이 횟수 기반 인접 후보
- hot_digit: 최근 pair 빈출 숫자 조합
- gap: 오래 나오지 않은 ("due") pair
- mirror: 최신 pair의 미러/역순

패널 pair 순위에 패턴 탐지 결과(연속, 반복, 미러 재출현, 패밀리 시퀀스)를 더한
패널-패턴 결합 순위도 별도로 계산합니다.
"""

import math
import warnings
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from shared.error_handler import InsufficientDataWarning, get_logger, log_performance, safe_execute
from ..analysis.frequency import analyze_frequency
from ..analysis.pattern_analyzer import AnalysisResult, PanelStats, PatternLists
from ..analysis.relations import PAIR_FAMILIES, cut_value, digit_sum, mirror, reverse
from ..utils.config import Config, resolve_config
from ..utils.data_loader import DrawRecord
from .combination import (
    METHOD_CROSS_ROLE, METHOD_GAP, METHOD_HOT_DIGIT, METHOD_MIRROR, METHOD_PANEL, METHOD_PATTERN,
    METHOD_TRANSITION, Emission, ScoredCandidate, combine, round_half_up, select_final,
)
from .jackpot import FamilySelection, JackpotCandidate, JackpotPool, build_jackpot_pool

logger = get_logger(__name__)

# 패널 점수 상수 (pair)
PAIR_HIT_WEIGHT = 100
PAIR_FREQUENCY_WEIGHT = 10
PAIR_RECENCY_WEIGHT = 50
PAIR_MIN_HIT_RATE = 0.05

# 패널 점수 상수 (triple)
TRIPLE_HIT_WEIGHT = 100
TRIPLE_FREQUENCY_WEIGHT = 15
TRIPLE_RECENCY_WEIGHT = 60
TRIPLE_ROLE_WEIGHT = 40
TRIPLE_MIN_HIT_RATE = 0.03

PANEL_MIN_APPEARANCES = 2

HOT_DIGIT_SCORE = 60
MIRROR_SCORE = 65
REVERSE_SCORE = 60
GAP_SCORE_WEIGHT = 70

# triple 순위 가중치
TRIPLE_RANK_BASE = 120
TRIPLE_RANK_STEP = 4
CROSS_ROLE_BONUS = 50

# 패널-패턴 결합 가중치 (pair)
PANEL_RANK_BASE = 100
PANEL_RANK_STEP = 3
SEQUENTIAL_BONUS = 25
REPEATING_BONUS = 30
MIRROR_RECURRENCE_BONUS = 35
FAMILY_SEQUENCE_WEIGHT = 40


@dataclass(frozen=True)
class PredictionResult:
    """예측 결과"""
    window_size: int
    ranked_pairs: Tuple[ScoredCandidate, ...]
    ranked_open_triples: Tuple[ScoredCandidate, ...]
    ranked_close_triples: Tuple[ScoredCandidate, ...]
    final_pairs: Tuple[str, ...]
    final_pairs_fallback: bool
    jackpot_candidates: Tuple[JackpotCandidate, ...]
    jackpot_fallback: bool
    best_guess_triples: Tuple[str, ...] = ()
    open_families: Tuple[FamilySelection, ...] = ()
    close_families: Tuple[FamilySelection, ...] = ()
    frequent_digits: Tuple[int, ...] = ()
    top_open_sums: Tuple[int, ...] = ()
    top_close_sums: Tuple[int, ...] = ()
    top_frequent_pairs: Tuple[str, ...] = ()
    combined_panel_pairs: Tuple[ScoredCandidate, ...] = ()
    method_emissions: Dict[str, Tuple[Emission, ...]] = field(default_factory=dict)

    @property
    def ranked_triples(self) -> Dict[str, Tuple[ScoredCandidate, ...]]:
        return {'open': self.ranked_open_triples, 'close': self.ranked_close_triples}

    def jackpot_values(self, limit: Optional[int] = None) -> Tuple[str, ...]:
        """잭팟 후보 값 (대체 집합이면 빈 튜플)"""
        if self.jackpot_fallback:
            return ()
        chosen = self.jackpot_candidates if limit is None else self.jackpot_candidates[:limit]
        return tuple(c.value for c in chosen)


class MultiMethodPredictor:
    """다중 방법 pair/triple 예측기"""

    def __init__(self, config: Optional[Config] = None):
        """
        예측기 초기화

        Args:
            config: 설정 객체
        """
        self.config = resolve_config(config)
        self.analysis_config = self.config.analysis
        self.prediction_config = self.config.prediction

    def method_window(self, records: Sequence[DrawRecord], window_size: int) -> Sequence[DrawRecord]:
        """전이/빈출/갭/미러 방법에 쓰는 최근 구간 (상한 transition_window_cap)"""
        size = min(window_size, self.analysis_config.transition_window_cap)
        return records[-size:]

    @log_performance
    def predict(self, analysis: AnalysisResult, window_size: Optional[int] = None) -> PredictionResult:
        """
        예측 수행

        Args:
            analysis: 분석 결과
            window_size: 방법 윈도우 크기 (기본값: 분석 윈도우 크기)
        """
        if window_size is None:
            window_size = analysis.window_size
        if window_size < 1:
            raise ValueError(f"window_size는 1 이상이어야 합니다: {window_size}")

        records = self.method_window(analysis.records, window_size)
        limit = self.prediction_config.ranked_pair_limit

        emissions: Dict[str, Tuple[Emission, ...]] = {
            METHOD_PANEL: tuple(self._panel_pair_method(analysis.pair_panels)),
            METHOD_TRANSITION: tuple(self._transition_method(records)),
            METHOD_HOT_DIGIT: tuple(self._hot_digit_method(records)),
            METHOD_GAP: tuple(self._gap_method(records)),
            METHOD_MIRROR: tuple(self._mirror_method(records)),
        }
        ranked_pairs = combine(emissions)

        recent_pairs = [r.pair for r in records[-self.prediction_config.freshness_exclusion:]]
        final_pairs, final_fallback = select_final(
            ranked_pairs, recent_pairs, self.prediction_config.final_pair_count
        )

        open_triples = self._panel_triple_method(analysis.open_panels, 'open')
        close_triples = self._panel_triple_method(analysis.close_panels, 'close')
        ranked_open, ranked_close = self._rank_triples(open_triples, close_triples)
        combined_panel = self._combine_panel_patterns(emissions[METHOD_PANEL], analysis.patterns)

        frequency = analysis.frequency
        pool = build_jackpot_pool(frequency, analysis.window, self.prediction_config)

        result = PredictionResult(
            window_size=window_size,
            ranked_pairs=ranked_pairs,
            ranked_open_triples=ranked_open,
            ranked_close_triples=ranked_close,
            final_pairs=final_pairs,
            final_pairs_fallback=final_fallback,
            jackpot_candidates=pool.candidates,
            jackpot_fallback=pool.fallback,
            best_guess_triples=pool.best_guesses,
            open_families=pool.open_families,
            close_families=pool.close_families,
            frequent_digits=tuple(frequency.top_digits(self.prediction_config.frequent_digit_count)),
            top_open_sums=tuple(frequency.top_open_sums(3)),
            top_close_sums=tuple(frequency.top_close_sums(3)),
            top_frequent_pairs=tuple(frequency.top_pairs(6)),
            combined_panel_pairs=combined_panel,
            method_emissions=emissions,
        )
        logger.info(
            f"예측 완료: pair 후보 {len(ranked_pairs)}개, 최종 {', '.join(final_pairs)}, "
            f"잭팟 {len(pool.values())}개"
        )
        if ranked_pairs[:limit]:
            logger.debug(f"상위 pair: {[c.value for c in ranked_pairs[:limit]]}")
        return result

    @safe_execute(default_return=[])
    def _panel_pair_method(self, panels: Mapping[str, PanelStats]) -> List[Emission]:
        """패널 적중률 방법 (pair)"""
        scored = []
        for value, stats in panels.items():
            if stats.appearances < PANEL_MIN_APPEARANCES:
                continue
            hit_rate = stats.hit_rate
            if hit_rate < PAIR_MIN_HIT_RATE:
                continue
            recency = max(stats.last_seen_offset, 1)
            score = (hit_rate * PAIR_HIT_WEIGHT
                     + math.log(stats.appearances + 1) * PAIR_FREQUENCY_WEIGHT
                     + PAIR_RECENCY_WEIGHT / recency)
            scored.append(Emission(
                value,
                round(score, 2),
                f"Panel hit-rate {hit_rate:.0%} over {stats.appearances} appearances "
                f"(family {digit_sum(value)}, last seen {recency} ago)"
            ))

        if not scored:
            warnings.warn("패널 점수를 계산할 수 있는 pair가 없습니다.", InsufficientDataWarning)
        scored.sort(key=lambda e: (-e.score, e.value))
        return scored[:self.prediction_config.ranked_pair_limit]

    @safe_execute(default_return=[])
    def _panel_triple_method(self, panels: Mapping[str, PanelStats], role: str) -> List[Emission]:
        """패널 적중률 방법 (triple, 역할별)"""
        scored = []
        for value, stats in panels.items():
            if stats.appearances < PANEL_MIN_APPEARANCES:
                continue
            hit_rate = stats.hit_rate
            if hit_rate < TRIPLE_MIN_HIT_RATE:
                continue
            recency = max(stats.last_seen_offset, 1)
            role_hits = stats.as_open if role == 'open' else stats.as_close
            role_rate = role_hits / stats.appearances
            score = (hit_rate * TRIPLE_HIT_WEIGHT
                     + math.log(stats.appearances + 1) * TRIPLE_FREQUENCY_WEIGHT
                     + TRIPLE_RECENCY_WEIGHT / recency
                     + role_rate * TRIPLE_ROLE_WEIGHT)
            scored.append(Emission(
                value,
                round(score, 2),
                f"Panel {role} hit-rate {hit_rate:.0%} (cut {cut_value(value)}, "
                f"family {digit_sum(value)}, role rate {role_rate:.0%})"
            ))

        scored.sort(key=lambda e: (-e.score, e.value))
        return scored[:self.prediction_config.ranked_triple_limit]

    def _rank_triples(
        self,
        open_triples: Sequence[Emission],
        close_triples: Sequence[Emission]
    ) -> Tuple[Tuple[ScoredCandidate, ...], Tuple[ScoredCandidate, ...]]:
        """패널 triple 순위 가중치 + 양쪽 역할 공통 보너스"""
        def weighted(emissions):
            return tuple(
                Emission(e.value, TRIPLE_RANK_BASE - index * TRIPLE_RANK_STEP, e.reason)
                for index, e in enumerate(emissions)
            )

        shared = sorted({e.value for e in open_triples} & {e.value for e in close_triples})
        cross = tuple(Emission(v, CROSS_ROLE_BONUS, f"Ranked as both open and close: {v}")
                      for v in shared)

        ranked_open = combine({METHOD_PANEL: weighted(open_triples), METHOD_CROSS_ROLE: cross})
        ranked_close = combine({METHOD_PANEL: weighted(close_triples), METHOD_CROSS_ROLE: cross})
        return ranked_open, ranked_close

    def _combine_panel_patterns(
        self,
        panel_pairs: Sequence[Emission],
        patterns: PatternLists
    ) -> Tuple[ScoredCandidate, ...]:
        """
        패널 pair 순위와 패턴 탐지 결과 결합

        패널 순위 i번째 pair는 100 - 3i, 연속 pair는 +25, 반복 pair는 +30,
        미러 재출현 pair는 +35를 받고, 패밀리 시퀀스마다 예측 패밀리의 모든 pair가
        40 x 신뢰도를 받습니다. 목록에 여러 번 나온 값은 그만큼 더해집니다.

        Returns:
            상위 ranked_pair_limit개 ScoredCandidate
        """
        panel = tuple(
            Emission(e.value, PANEL_RANK_BASE - index * PANEL_RANK_STEP, f"Panel rank {index + 1}")
            for index, e in enumerate(panel_pairs)
        )

        pattern: List[Emission] = []
        pattern.extend(Emission(v, SEQUENTIAL_BONUS, f"Sequential pair {v}")
                       for v in patterns.sequential)
        pattern.extend(Emission(v, REPEATING_BONUS, f"Repeating pair {v}")
                       for v in patterns.repeating)
        pattern.extend(Emission(v, MIRROR_RECURRENCE_BONUS, f"Mirror recurrence {v}")
                       for v in patterns.mirror_recurrence)
        for sequence in patterns.family_sequences:
            weight = FAMILY_SEQUENCE_WEIGHT * sequence.confidence
            reason = (f"Family sequence {'-'.join(map(str, sequence.sequence))} "
                      f"-> family {sequence.predicted_family}")
            pattern.extend(Emission(v, weight, reason)
                           for v in PAIR_FAMILIES[sequence.predicted_family])

        ranked = combine({METHOD_PANEL: panel, METHOD_PATTERN: tuple(pattern)})
        return ranked[:self.prediction_config.ranked_pair_limit]

    @safe_execute(default_return=[])
    def _transition_method(self, records: Sequence[DrawRecord]) -> List[Emission]:
        """1차 전이 방법: 최근 pair 3개마다 상위 후속 pair 2개"""
        if len(records) < 2:
            warnings.warn("전이 표를 만들 레코드가 부족합니다.", InsufficientDataWarning)
            return []

        transitions: Dict[str, Counter] = {}
        for previous, current in zip(records, records[1:]):
            transitions.setdefault(previous.pair, Counter())[current.pair] += 1

        emissions = []
        recent_states = [r.pair for r in records[-self.analysis_config.transition_recent_states:]]
        for state in recent_states:
            successors = transitions.get(state)
            if not successors:
                continue
            total = sum(successors.values())
            ranked = sorted(successors.items(), key=lambda item: (-item[1], item[0]))
            for successor, count in ranked[:self.analysis_config.transition_top_successors]:
                emissions.append(Emission(
                    successor,
                    round_half_up(100 * count / total),
                    f"Transition: {state} -> {successor}"
                ))
        return emissions

    @safe_execute(default_return=[])
    def _hot_digit_method(self, records: Sequence[DrawRecord]) -> List[Emission]:
        """빈출 숫자 방법: 최근 pair 자릿수 상위 3개의 서로 다른 숫자 조합"""
        recent = records[-self.analysis_config.hot_digit_lookback:]
        counts = [0] * 10
        for record in recent:
            for d in record.pair:
                counts[int(d)] += 1

        hot_digits = sorted(range(10), key=lambda d: -counts[d])[:self.analysis_config.hot_digit_count]
        return [
            Emission(f"{a}{b}", HOT_DIGIT_SCORE, f"Hot digits {a}+{b}")
            for a in hot_digits for b in hot_digits if a != b
        ]

    @safe_execute(default_return=[])
    def _gap_method(self, records: Sequence[DrawRecord]) -> List[Emission]:
        """갭 방법: 평균 간격 대비 오래 나오지 않은 pair"""
        total = len(records)
        last_seen: Dict[str, int] = {}
        occurrences: Counter = Counter()
        for index, record in enumerate(records):
            last_seen[record.pair] = index
            occurrences[record.pair] += 1

        config = self.prediction_config
        emissions = []
        for pair in sorted(last_seen):
            days_since = total - last_seen[pair] - 1
            if not config.gap_min_days <= days_since <= config.gap_max_days:
                continue
            avg_gap = total / (occurrences[pair] + 1)
            if days_since >= avg_gap * config.gap_ratio:
                emissions.append(Emission(
                    pair,
                    round_half_up(days_since / avg_gap * GAP_SCORE_WEIGHT),
                    f"Due after {days_since} days (avg gap {round_half_up(avg_gap)})"
                ))
        return emissions

    @safe_execute(default_return=[])
    def _mirror_method(self, records: Sequence[DrawRecord]) -> List[Emission]:
        """미러/역순 방법: 최신 pair의 미러(65)와 역순(60, 다를 때만)"""
        if not records:
            return []
        last_pair = records[-1].pair
        emissions = [Emission(mirror(last_pair), MIRROR_SCORE, f"Mirror of {last_pair}")]
        reversed_pair = reverse(last_pair)
        if reversed_pair != last_pair:
            emissions.append(Emission(reversed_pair, REVERSE_SCORE, f"Reverse of {last_pair}"))
        return emissions


def jackpot_candidates(
    records: Sequence[DrawRecord],
    window_size: Optional[int] = None,
    config: Optional[Config] = None
) -> Tuple[str, ...]:
    """
    잭팟 후보 값만 계산 (백테스트 기본 후보 함수)

    대체 집합이 사용되면 빈 튜플을 반환합니다.
    """
    config = resolve_config(config)
    if window_size is None:
        window_size = config.analysis.window_size
    if window_size < 1:
        raise ValueError(f"window_size는 1 이상이어야 합니다: {window_size}")
    window = records[-window_size:]
    if not window:
        return ()
    pool: JackpotPool = build_jackpot_pool(analyze_frequency(window), window, config.prediction)
    return pool.values(config.prediction.jackpot_limit)
