"""
빈도 및 분포 분석 모듈

레코드 윈도우에 대해 다음 통계를 계산합니다:
- 자릿수별 출현 빈도 (open/close triple의 모든 자릿수)
- open/close triple 자릿수 합(일의 자리) 빈도
- triple, pair 값별 출현 횟수
- 실제 표본 수를 분모로 한 확률
- 자릿수 분포 균일성 카이제곱 검정
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from shared.error_handler import get_logger, log_performance
from ..utils.data_loader import DrawRecord, records_to_frame
from .relations import digit_sum

logger = get_logger(__name__)

BUCKETS = 10


def top_indexes(counts: Sequence[float], top_n: int) -> List[int]:
    """값이 큰 순서의 인덱스 (동점이면 작은 인덱스 우선)"""
    return sorted(range(len(counts)), key=lambda i: -counts[i])[:top_n]


@dataclass(frozen=True)
class FrequencyTables:
    """윈도우 빈도표"""
    digit_counts: Tuple[int, ...]
    open_sum_counts: Tuple[int, ...]
    close_sum_counts: Tuple[int, ...]
    triple_counts: Dict[str, int]
    pair_counts: Dict[str, int]
    total_digits: int
    total_sum_samples: int
    digit_probabilities: Tuple[float, ...]
    sum_probabilities: Tuple[float, ...]
    digit_chi2: float
    digit_p_value: float

    def top_digits(self, top_n: int = 5) -> List[int]:
        return top_indexes(self.digit_counts, top_n)

    def top_open_sums(self, top_n: int = 3) -> List[int]:
        return top_indexes(self.open_sum_counts, top_n)

    def top_close_sums(self, top_n: int = 3) -> List[int]:
        return top_indexes(self.close_sum_counts, top_n)

    def top_pairs(self, top_n: int = 6) -> List[str]:
        """출현 횟수 순 pair (동점이면 값 오름차순)"""
        ranked = sorted(self.pair_counts.items(), key=lambda item: (-item[1], item[0]))
        return [pair for pair, _ in ranked[:top_n]]


def _probabilities(counts: np.ndarray, total: int) -> Tuple[float, ...]:
    if total <= 0:
        return tuple(0.0 for _ in counts)
    return tuple(float(c) / total for c in counts)


def _value_counts(series: pd.Series) -> Dict[str, int]:
    counts = series.value_counts()
    return {str(value): int(count) for value, count in sorted(counts.items())}


@log_performance
def analyze_frequency(records: Sequence[DrawRecord]) -> FrequencyTables:
    """
    빈도 분석 수행

    Args:
        records: 분석할 레코드 윈도우

    Returns:
        FrequencyTables
    """
    digits = np.fromiter(
        (int(d) for record in records for triple in record.triples for d in triple),
        dtype=np.int64
    )
    digit_counts = np.bincount(digits, minlength=BUCKETS)

    open_sums = np.fromiter((digit_sum(r.open_triple) for r in records), dtype=np.int64)
    close_sums = np.fromiter((digit_sum(r.close_triple) for r in records), dtype=np.int64)
    open_sum_counts = np.bincount(open_sums, minlength=BUCKETS)
    close_sum_counts = np.bincount(close_sums, minlength=BUCKETS)

    frame = records_to_frame(records)
    triple_counts = _value_counts(pd.concat([frame['open'], frame['close']], ignore_index=True))
    pair_counts = _value_counts(frame['pair'])

    total_digits = int(digit_counts.sum())
    total_sum_samples = int(open_sum_counts.sum() + close_sum_counts.sum())

    if total_digits > 0:
        chi2, p_value = stats.chisquare(digit_counts)
        chi2, p_value = float(chi2), float(p_value)
    else:
        chi2, p_value = 0.0, 1.0

    tables = FrequencyTables(
        digit_counts=tuple(int(c) for c in digit_counts),
        open_sum_counts=tuple(int(c) for c in open_sum_counts),
        close_sum_counts=tuple(int(c) for c in close_sum_counts),
        triple_counts=triple_counts,
        pair_counts=pair_counts,
        total_digits=total_digits,
        total_sum_samples=total_sum_samples,
        digit_probabilities=_probabilities(digit_counts, total_digits),
        sum_probabilities=_probabilities(open_sum_counts + close_sum_counts, total_sum_samples),
        digit_chi2=chi2,
        digit_p_value=p_value,
    )
    logger.debug(f"빈도 분석: 자릿수 {total_digits}개, triple {len(triple_counts)}종")
    return tables
