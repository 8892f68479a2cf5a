"""
마트카 결과의 패널 및 패턴을 분석하는 모듈

이 모듈은 최근 윈도우의 결과를 분석하여 다음과 같은 정보를 제공합니다:
- 관련 값(패널) 기준 출현/적중 통계 (pair, open triple, close triple)
- 연속 pair 패턴 (차이 5 이하)
- 같은 숫자 반복 pair
- 미러 재출현 pair
- 패밀리 시퀀스 반복 (길이 3 시퀀스의 정확한 재출현)
- 빈도 및 분포 통계
"""

import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from shared.error_handler import InsufficientDataWarning, ParseError, get_logger, log_performance
from ..utils.config import Config, resolve_config
from ..utils.data_loader import DrawRecord
from .frequency import FrequencyTables, analyze_frequency
from .relations import digit_sum, mirror, related_values

# 로거 설정
logger = get_logger('pattern_analyzer')


@dataclass(frozen=True)
class PanelStats:
    """관련 그룹(패널) 통계"""
    hits: int
    appearances: int
    last_seen_offset: int
    as_open: int = 0
    as_close: int = 0

    @property
    def hit_rate(self) -> float:
        return self.hits / self.appearances if self.appearances else 0.0


@dataclass(frozen=True)
class FamilySequence:
    """반복된 패밀리 시퀀스와 그 다음에 나왔던 패밀리"""
    sequence: Tuple[int, ...]
    predicted_family: int
    confidence: float
    earlier_offset: int
    position: int


@dataclass(frozen=True)
class PatternLists:
    """패턴 탐지 결과"""
    sequential: Tuple[str, ...] = ()
    repeating: Tuple[str, ...] = ()
    mirror_recurrence: Tuple[str, ...] = ()
    family_sequences: Tuple[FamilySequence, ...] = ()

    @property
    def total_count(self) -> int:
        return (len(self.sequential) + len(self.repeating)
                + len(self.mirror_recurrence) + len(self.family_sequences))


@dataclass(frozen=True)
class AnalysisResult:
    """(레코드 시퀀스, 윈도우 크기) 한 쌍에 대한 분석 결과"""
    records: Tuple[DrawRecord, ...]
    window_size: int
    frequency: FrequencyTables
    patterns: PatternLists
    pair_panels: Dict[str, PanelStats] = field(default_factory=dict)
    open_panels: Dict[str, PanelStats] = field(default_factory=dict)
    close_panels: Dict[str, PanelStats] = field(default_factory=dict)

    @property
    def window(self) -> Tuple[DrawRecord, ...]:
        """전체 시퀀스의 마지막 window_size개 (순서 유지)"""
        return self.records[-self.window_size:]


class _PanelAccumulator:
    """패널 통계 누적용 내부 버퍼"""

    def __init__(self):
        self._stats: Dict[str, List[int]] = {}

    def touch(self, key: str, offset: int, hit: bool, role: Optional[str] = None):
        stats = self._stats.setdefault(key, [0, 0, 0, 0, 0])
        stats[1] += 1
        stats[2] = offset
        if hit:
            stats[0] += 1
            if role == 'open':
                stats[3] += 1
            elif role == 'close':
                stats[4] += 1

    def freeze(self) -> Dict[str, PanelStats]:
        return {
            key: PanelStats(hits=s[0], appearances=s[1], last_seen_offset=s[2],
                            as_open=s[3], as_close=s[4])
            for key, s in sorted(self._stats.items())
        }


class PatternAnalyzer:
    """마트카 결과 패널/패턴 분석"""

    def __init__(
        self,
        config: Optional[Config] = None,
        records: Optional[Sequence[DrawRecord]] = None
    ):
        """
        패턴 분석기 초기화

        Args:
            config: 설정 객체
            records: 시간순 레코드 시퀀스
        """
        self.config = resolve_config(config)
        self.records: Tuple[DrawRecord, ...] = tuple(records or ())

    def _window(self, window_size: int) -> Tuple[DrawRecord, ...]:
        return self.records[-window_size:]

    @log_performance
    def analyze(self, window_size: Optional[int] = None) -> AnalysisResult:
        """
        전체 분석 수행

        Args:
            window_size: 분석 윈도우 크기 (기본값: 설정의 window_size)

        Raises:
            ParseError: 레코드가 없는 경우
        """
        if not self.records:
            raise ParseError("분석할 레코드가 없습니다.")

        if window_size is None:
            window_size = self.config.analysis.window_size
        if window_size < 1:
            raise ValueError(f"window_size는 1 이상이어야 합니다: {window_size}")

        window = self._window(window_size)
        pair_panels, open_panels, close_panels = self._expand_panels(window)

        patterns = PatternLists(
            sequential=self._analyze_sequential(window),
            repeating=self._analyze_repeating(window),
            mirror_recurrence=self._analyze_mirror_recurrence(window),
            family_sequences=self._analyze_family_sequences(window),
        )

        result = AnalysisResult(
            records=self.records,
            window_size=window_size,
            frequency=analyze_frequency(window),
            patterns=patterns,
            pair_panels=pair_panels,
            open_panels=open_panels,
            close_panels=close_panels,
        )
        logger.info(
            f"분석 완료: 레코드 {len(self.records)}건, 윈도우 {len(window)}건, "
            f"패턴 {patterns.total_count}개"
        )
        return result

    def _expand_panels(
        self,
        window: Sequence[DrawRecord]
    ) -> Tuple[Dict[str, PanelStats], Dict[str, PanelStats], Dict[str, PanelStats]]:
        """
        패널 확장

        각 레코드의 pair와 triple을 관련 값으로 확장하고, 관련 값마다 출현 수를 올립니다.
        last_seen_offset은 윈도우 끝으로부터의 거리(가장 최근 = 1)이며,
        적중은 관련 값이 그날 실제 값과 같을 때만 셉니다.
        """
        pairs = _PanelAccumulator()
        opens = _PanelAccumulator()
        closes = _PanelAccumulator()
        total = len(window)

        for index, record in enumerate(window):
            offset = total - index

            for value in related_values(record.pair):
                pairs.touch(value, offset, value == record.pair)

            for value in related_values(record.open_triple):
                opens.touch(value, offset, value == record.open_triple, role='open')

            for value in related_values(record.close_triple):
                closes.touch(value, offset, value == record.close_triple, role='close')

        return pairs.freeze(), opens.freeze(), closes.freeze()

    def _analyze_sequential(self, window: Sequence[DrawRecord]) -> Tuple[str, ...]:
        """연속 패턴: 직전 pair와의 차이가 5 이하"""
        return tuple(
            window[i].pair for i in range(1, len(window))
            if abs(int(window[i].pair) - int(window[i - 1].pair)) <= 5
        )

    def _analyze_repeating(self, window: Sequence[DrawRecord]) -> Tuple[str, ...]:
        """반복 패턴: 두 자릿수가 같은 pair (첫 레코드는 비교 대상이 없어 제외)"""
        return tuple(
            window[i].pair for i in range(1, len(window))
            if window[i].pair[0] == window[i].pair[1]
        )

    def _analyze_mirror_recurrence(self, window: Sequence[DrawRecord]) -> Tuple[str, ...]:
        """미러 재출현: 미러 pair가 윈도우 어딘가에 존재"""
        seen = {record.pair for record in window}
        return tuple(
            window[i].pair for i in range(1, len(window))
            if mirror(window[i].pair) in seen
        )

    def _analyze_family_sequences(self, window: Sequence[DrawRecord]) -> Tuple[FamilySequence, ...]:
        """
        패밀리 시퀀스 반복 탐지

        pair 자릿수 합을 기호열로 보고, 길이 L 시퀀스가 이전 위치에서 정확히 같은 형태로
        나온 적이 있으면 그때 뒤따른 패밀리를 예측 패밀리(신뢰도 1.0)로 기록합니다.
        """
        length = self.config.analysis.family_sequence_length
        history = [digit_sum(record.pair) for record in window]
        if len(history) <= length:
            warnings.warn(
                f"패밀리 시퀀스 분석에 필요한 기록이 부족합니다: {len(history)}건",
                InsufficientDataWarning
            )
            return ()

        found = []
        for i in range(length, len(history) + 1):
            sequence = history[i - length:i]
            for j in range(i - length):
                if history[j:j + length] == sequence:
                    found.append(FamilySequence(
                        sequence=tuple(sequence),
                        predicted_family=history[j + length],
                        confidence=1.0,
                        earlier_offset=j,
                        position=i - length,
                    ))
        return tuple(found)


def analyze_records(
    records: Sequence[DrawRecord],
    window_size: Optional[int] = None,
    config: Optional[Config] = None
) -> AnalysisResult:
    """PatternAnalyzer 단축 함수"""
    return PatternAnalyzer(config, records).analyze(window_size)
