"""
후보 결합 규칙

각 방법의 (값, 점수, 이유) 출력을 값별 누적기로 접어(fold) 순위를 만듭니다.
순위 기준은 (기여한 방법 수 내림차순, 총점 내림차순, 값 오름차순) 뿐이며
누적 순서는 결과에 영향을 주지 않습니다.
"""

import math
import warnings
from dataclasses import dataclass
from functools import reduce
from typing import Dict, FrozenSet, Iterable, List, Mapping, NamedTuple, Sequence, Tuple

from shared.error_handler import DegenerateInputFallback

METHOD_PANEL = 'panel'
METHOD_TRANSITION = 'transition'
METHOD_HOT_DIGIT = 'hot_digit'
METHOD_GAP = 'gap'
METHOD_MIRROR = 'mirror'
METHOD_CROSS_ROLE = 'cross_role'
METHOD_PATTERN = 'pattern'

METHOD_ORDER = (
    METHOD_PANEL, METHOD_TRANSITION, METHOD_HOT_DIGIT, METHOD_GAP, METHOD_MIRROR, METHOD_CROSS_ROLE,
    METHOD_PATTERN,
)
_METHOD_RANK = {tag: rank for rank, tag in enumerate(METHOD_ORDER)}

PLACEHOLDER_PAIR = '00'
FALLBACK_FINAL_PAIRS = ('13', '31', '68', '86')


def round_half_up(value: float) -> int:
    """0.5는 올림 (파이썬 round의 은행가 반올림 대신)"""
    return int(math.floor(value + 0.5))


def method_rank(tag: str) -> int:
    return _METHOD_RANK.get(tag, len(METHOD_ORDER))


class Emission(NamedTuple):
    """단일 방법의 후보 출력"""
    value: str
    score: float
    reason: str


@dataclass(frozen=True)
class ScoredCandidate:
    """결합된 후보"""
    value: str
    score: float
    supporting_methods: Tuple[str, ...]
    rationale: Tuple[str, ...]

    @property
    def method_count(self) -> int:
        return len(self.supporting_methods)


class _Tally(NamedTuple):
    scores: Tuple[float, ...]
    methods: FrozenSet[str]
    reasons: Tuple[Tuple[int, int, str], ...]


_EMPTY_TALLY = _Tally((), frozenset(), ())


def _fold(acc: Mapping[str, _Tally], item: Tuple[str, int, Emission]) -> Dict[str, _Tally]:
    tag, index, emission = item
    previous = acc.get(emission.value, _EMPTY_TALLY)
    updated = _Tally(
        scores=previous.scores + (float(emission.score),),
        methods=previous.methods | {tag},
        reasons=previous.reasons + ((method_rank(tag), index, emission.reason),),
    )
    return {**acc, emission.value: updated}


def combine(method_emissions: Mapping[str, Sequence[Emission]]) -> Tuple[ScoredCandidate, ...]:
    """
    방법별 출력을 결합하여 순위 리스트 생성

    같은 방법이 같은 값을 두 번 내도 점수는 모두 더하고 방법 태그는 한 번만 남깁니다.

    Args:
        method_emissions: 방법 태그 -> 출력 리스트

    Returns:
        순위순 ScoredCandidate 튜플
    """
    items = (
        (tag, index, emission)
        for tag, emissions in method_emissions.items()
        for index, emission in enumerate(emissions)
    )
    tallies = reduce(_fold, items, {})

    candidates = [
        ScoredCandidate(
            value=value,
            score=round(math.fsum(tally.scores), 2),
            supporting_methods=tuple(sorted(tally.methods, key=method_rank)),
            rationale=tuple(reason for _, _, reason in sorted(tally.reasons)),
        )
        for value, tally in tallies.items()
    ]
    return tuple(sorted(candidates, key=lambda c: (-c.method_count, -c.score, c.value)))


def select_final(
    ranked: Iterable[ScoredCandidate],
    recent_values: Iterable[str],
    count: int = 4
) -> Tuple[Tuple[str, ...], bool]:
    """
    최종 N개 선택

    순위 리스트를 따라가며 최근 값에 없는 후보를 N개까지 받습니다. 부족하면
    PLACEHOLDER_PAIR로 채우고, 하나도 없으면 FALLBACK_FINAL_PAIRS를 반환합니다.

    Returns:
        (선택된 값 튜플, 대체 집합 사용 여부)
    """
    recent = set(recent_values)
    final: List[str] = []
    for candidate in ranked:
        if len(final) == count:
            break
        if candidate.value not in recent:
            final.append(candidate.value)

    if not final:
        warnings.warn(
            "최근 값에 없는 후보가 없어 고정 대체 pair 집합을 반환합니다.",
            DegenerateInputFallback
        )
        return FALLBACK_FINAL_PAIRS[:count], True

    while len(final) < count:
        final.append(PLACEHOLDER_PAIR)
    return tuple(final), False
