"""
잭팟 triple 후보 풀

세 가지 소스의 triple을 모아 점수를 매기고 높은 임계값으로 거릅니다.
- 패밀리 최적화: 상위 합 패밀리에서 품질 점수가 높은 triple
- 베스트 게스: 패밀리 후보 중 빈출 숫자를 하나 이상 포함한 상위 5개
- 최근 재출현: 최근 15개 레코드에서 2회 이상 나온 triple
"""

import warnings
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from shared.error_handler import DegenerateInputFallback, get_logger
from ..analysis.frequency import FrequencyTables
from ..analysis.relations import TRIPLE_FAMILIES, cut_value
from ..utils.config import PredictionConfig
from ..utils.data_loader import DrawRecord
from .combination import round_half_up

logger = get_logger(__name__)

FAMILY_BONUS = 200
BEST_GUESS_BONUS = 500
RECENT_RECURRENCE_BONUS = 300
FREQUENCY_WEIGHT = 50
QUALITY_WEIGHT = 100

SOURCE_FAMILY = 'family'
SOURCE_BEST_GUESS = 'best_guess'
SOURCE_RECENT = 'recent_recurrence'
SOURCE_FALLBACK = 'fallback'

SOURCE_BONUS = {
    SOURCE_FAMILY: FAMILY_BONUS,
    SOURCE_BEST_GUESS: BEST_GUESS_BONUS,
    SOURCE_RECENT: RECENT_RECURRENCE_BONUS,
}

FALLBACK_BEST_GUESSES = ('127', '136', '145', '128', '137')

# 미러 쌍 숫자 보너스는 모든 숫자에 해당하므로 기본값에 포함
BASE_PATTERN_SCORE = 0.7
ADJACENT_RUN_BONUS = 0.2
REPETITION_PENALTY = {1: 0.3, 2: 0.6}


def digit_variety(triple: str) -> float:
    return len(set(triple)) / 3


def pattern_score(triple: str) -> float:
    """인접 숫자 연속이면 가산, 같은 숫자 반복이면 감산 (최대 1.0)"""
    digits = [int(d) for d in triple]
    adjacent = abs(digits[0] - digits[1]) == 1 or abs(digits[1] - digits[2]) == 1

    score = BASE_PATTERN_SCORE
    if adjacent:
        score += ADJACENT_RUN_BONUS
    score *= REPETITION_PENALTY.get(len(set(digits)), 1.0)
    return min(score, 1.0)


def quality_score(triple: str, triple_counts: Mapping[str, int]) -> float:
    """frequency·0.4 + digitVariety·0.3 + patternScore·0.3"""
    frequency = triple_counts.get(triple, 0)
    return frequency * 0.4 + digit_variety(triple) * 0.3 + pattern_score(triple) * 0.3


@dataclass(frozen=True)
class FamilySelection:
    """최적화된 패밀리 (합 키, 평균 품질, 상위 triple)"""
    family_key: int
    family_score: float
    triples: Tuple[str, ...]


@dataclass(frozen=True)
class JackpotCandidate:
    """잭팟 후보"""
    value: str
    cut_value: str
    score: int
    frequency: int
    quality_score: float
    sources: Tuple[str, ...]


@dataclass(frozen=True)
class JackpotPool:
    """잭팟 풀 계산 결과"""
    candidates: Tuple[JackpotCandidate, ...]
    open_families: Tuple[FamilySelection, ...]
    close_families: Tuple[FamilySelection, ...]
    best_guesses: Tuple[str, ...]
    recent_recurrences: Tuple[str, ...]
    fallback: bool = False

    def values(self, limit: Optional[int] = None) -> Tuple[str, ...]:
        """후보 값 (대체 집합이면 빈 튜플)"""
        if self.fallback:
            return ()
        chosen = self.candidates if limit is None else self.candidates[:limit]
        return tuple(candidate.value for candidate in chosen)


def optimize_families(
    family_keys: Iterable[int],
    triple_counts: Mapping[str, int],
    max_families: int = 3,
    max_triples: int = 6
) -> Tuple[FamilySelection, ...]:
    """
    패밀리 최적화

    각 패밀리의 평균 품질 점수로 패밀리를 정렬하고, 패밀리마다 품질 상위 triple을 고릅니다.
    """
    selections = []
    for key in family_keys:
        members = TRIPLE_FAMILIES[key]
        scores = {triple: quality_score(triple, triple_counts) for triple in members}
        family_score = float(np.mean(list(scores.values()))) if scores else 0.0
        best = sorted(members, key=lambda t: (-scores[t], t))[:max_triples]
        selections.append(FamilySelection(key, round(family_score, 2), tuple(best)))

    selections.sort(key=lambda s: -s.family_score)
    return tuple(selections[:max_families])


def select_best_guesses(
    families: Sequence[FamilySelection],
    frequent_digits: Sequence[int],
    limit: int = 5
) -> Tuple[str, ...]:
    """패밀리 후보 중 빈출 숫자를 포함한 triple (순서 유지, 없으면 고정 대체값)"""
    seen = []
    for family in families:
        for triple in family.triples:
            if triple not in seen:
                seen.append(triple)

    digits = {str(d) for d in frequent_digits}
    guesses = tuple(t for t in seen if digits.intersection(t))[:limit]
    if not guesses:
        logger.debug("베스트 게스 후보가 없어 고정 대체값 사용")
        return FALLBACK_BEST_GUESSES[:limit]
    return guesses


def recent_recurrences(records: Sequence[DrawRecord], window: int = 15) -> Tuple[str, ...]:
    """최근 window개 레코드에서 open/close로 2회 이상 나온 triple"""
    counts: Dict[str, int] = {}
    for record in records[-window:]:
        for triple in record.triples:
            counts[triple] = counts.get(triple, 0) + 1
    return tuple(sorted(t for t, c in counts.items() if c >= 2))


def _fallback_candidates() -> Tuple[JackpotCandidate, ...]:
    return tuple(
        JackpotCandidate(value=t, cut_value=cut_value(t), score=0, frequency=0,
                         quality_score=0.0, sources=(SOURCE_FALLBACK,))
        for t in FALLBACK_BEST_GUESSES
    )


def build_jackpot_pool(
    frequency: FrequencyTables,
    window: Sequence[DrawRecord],
    config: Optional[PredictionConfig] = None
) -> JackpotPool:
    """
    잭팟 후보 풀 계산

    소스별 보너스를 더한 뒤 50·frequency + 100·quality를 더하고,
    점수 800 이상이면서 품질 0.5 이상인 후보만 남깁니다.

    Args:
        frequency: 윈도우 빈도표
        window: 분석 윈도우 레코드
        config: 예측 설정

    Returns:
        JackpotPool (남은 후보가 없으면 fallback=True와 고정 대체 후보)
    """
    config = config or PredictionConfig()
    triple_counts = frequency.triple_counts

    open_families = optimize_families(frequency.top_open_sums(3), triple_counts)
    close_families = optimize_families(frequency.top_close_sums(3), triple_counts)
    best_guesses = select_best_guesses(
        open_families + close_families,
        frequency.top_digits(config.frequent_digit_count),
        config.best_guess_limit
    )
    recent = tuple(
        t for t in recent_recurrences(window, config.recent_recurrence_window)
        if triple_counts.get(t, 0) >= 2
    )

    sources: Dict[str, List[str]] = {}
    for family in open_families + close_families:
        for triple in family.triples:
            sources.setdefault(triple, [])
            if SOURCE_FAMILY not in sources[triple]:
                sources[triple].append(SOURCE_FAMILY)
    for triple in best_guesses:
        sources.setdefault(triple, []).append(SOURCE_BEST_GUESS)
    for triple in recent:
        sources.setdefault(triple, []).append(SOURCE_RECENT)

    survivors = []
    for triple, triple_sources in sources.items():
        frequency_count = triple_counts.get(triple, 0)
        quality = quality_score(triple, triple_counts)
        base = sum(SOURCE_BONUS[s] for s in triple_sources)
        score = round_half_up(base + frequency_count * FREQUENCY_WEIGHT + quality * QUALITY_WEIGHT)
        rounded_quality = round(quality, 2)
        if score >= config.jackpot_min_score and rounded_quality >= config.jackpot_min_quality:
            survivors.append(JackpotCandidate(
                value=triple,
                cut_value=cut_value(triple),
                score=score,
                frequency=frequency_count,
                quality_score=rounded_quality,
                sources=tuple(triple_sources),
            ))

    survivors.sort(key=lambda c: (-c.score, c.value))

    if not survivors:
        warnings.warn(
            "잭팟 임계값을 통과한 triple이 없어 고정 대체 후보를 반환합니다.",
            DegenerateInputFallback
        )
        return JackpotPool(_fallback_candidates(), open_families, close_families,
                           best_guesses, recent, fallback=True)

    logger.debug(f"잭팟 후보 {len(survivors)}개 (소스 triple {len(sources)}개)")
    return JackpotPool(tuple(survivors), open_families, close_families, best_guesses, recent)
