"""
숫자 관계 테이블

미러(0↔5, 1↔6, 2↔7, 3↔8, 4↔9), 자릿수 합 기준 패밀리, 컷 값, 패널(관련 값 폐포)을
제공합니다. 모든 테이블은 모듈 로드 시 한 번 생성되며 변경되지 않습니다.
"""

from functools import lru_cache
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

DIGIT_MIRROR: Mapping[str, str] = MappingProxyType({
    '0': '5', '1': '6', '2': '7', '3': '8', '4': '9',
    '5': '0', '6': '1', '7': '2', '8': '3', '9': '4',
})

PAIR_LENGTH = 2
TRIPLE_LENGTH = 3


def digit_sum(value: str) -> int:
    """자릿수 합의 일의 자리 (패밀리 키)"""
    return sum(int(d) for d in value) % 10


def mirror(value: str) -> str:
    """각 자릿수를 미러 숫자로 변환"""
    return ''.join(DIGIT_MIRROR[d] for d in value)


def reverse(value: str) -> str:
    return value[::-1]


def cut_value(triple: str) -> str:
    """미러 변환 후 오름차순 정렬한 정규화 값 (그룹 키로만 사용)"""
    return ''.join(sorted(mirror(triple)))


def _build_families(length: int) -> Mapping[int, Tuple[str, ...]]:
    families: Dict[int, List[str]] = {key: [] for key in range(10)}
    for number in range(10 ** length):
        value = str(number).zfill(length)
        families[digit_sum(value)].append(value)
    return MappingProxyType({key: tuple(members) for key, members in families.items()})


PAIR_FAMILIES: Mapping[int, Tuple[str, ...]] = _build_families(PAIR_LENGTH)
TRIPLE_FAMILIES: Mapping[int, Tuple[str, ...]] = _build_families(TRIPLE_LENGTH)


def family_of(value: str) -> Tuple[str, ...]:
    """값이 속한 패밀리 전체 (pair 또는 triple)"""
    if len(value) == PAIR_LENGTH:
        return PAIR_FAMILIES[digit_sum(value)]
    return TRIPLE_FAMILIES[digit_sum(value)]


@lru_cache(maxsize=None)
def related_values(value: str) -> Tuple[str, ...]:
    """
    관련 값 폐포 (패널)

    pair: 자신, 미러, 패밀리 전체, 패밀리 구성원의 미러
    triple: 자신, 미러, 컷 값, 자신의 패밀리, 미러의 패밀리

    Returns:
        정렬된 튜플 (폐포의 어떤 원소에 다시 적용해도 부분집합)
    """
    related = {value, mirror(value)}
    family = family_of(value)
    related.update(family)

    if len(value) == PAIR_LENGTH:
        related.update(mirror(member) for member in family)
    else:
        related.add(cut_value(value))
        related.update(family_of(mirror(value)))

    return tuple(sorted(related))
