"""
분석 결과 캐시

레코드 시퀀스의 해시와 윈도우 크기를 키로 전체 분석 결과를 보관하는
고정 용량 LRU 캐시입니다. 캐시 유무는 결과에 영향을 주지 않습니다.
"""

import hashlib
import threading
from collections import OrderedDict
from typing import Any, Hashable, Iterable, Optional, Tuple

from .error_handler import get_logger

logger = get_logger(__name__)


def records_digest(records: Iterable[Any]) -> str:
    """
    레코드 시퀀스의 SHA-256 해시 계산

    Args:
        records: DrawRecord 시퀀스 (date, open_triple, pair, close_triple 속성 필요)

    Returns:
        16진수 해시 문자열
    """
    digest = hashlib.sha256()
    for record in records:
        date_text = record.date.isoformat() if record.date is not None else '-'
        digest.update(
            f"{date_text}|{record.open_triple}|{record.pair}|{record.close_triple}\n".encode()
        )
    return digest.hexdigest()


class ResultCache:
    """결과 캐시 관리 (최근 사용 순서 기반 제거)"""

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError("캐시 용량은 1 이상이어야 합니다.")
        self.capacity = capacity
        self.cache: 'OrderedDict[Hashable, Any]' = OrderedDict()
        self.hits = 0
        self.misses = 0
        self._lock = threading.Lock()

    @staticmethod
    def make_key(records, *params: Hashable) -> Tuple[Hashable, ...]:
        """레코드 해시와 파라미터로 캐시 키 생성"""
        return (records_digest(records),) + tuple(params)

    def get(self, key: Hashable) -> Optional[Any]:
        """캐시에서 결과 조회"""
        with self._lock:
            if key in self.cache:
                self.cache.move_to_end(key)
                self.hits += 1
                logger.debug(f"캐시 적중: {str(key[0])[:12] if isinstance(key, tuple) else key}")
                return self.cache[key]
            self.misses += 1
            return None

    def put(self, key: Hashable, value: Any) -> None:
        """결과를 캐시에 저장"""
        with self._lock:
            if key in self.cache:
                self.cache.move_to_end(key)
            self.cache[key] = value
            if len(self.cache) > self.capacity:
                self._evict()

    def _evict(self):
        """가장 오래전에 사용된 항목 제거"""
        evicted_key, _ = self.cache.popitem(last=False)
        logger.debug(f"캐시 항목 제거: {evicted_key!r:.40}")

    def clear(self) -> None:
        with self._lock:
            self.cache.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self.cache)

    def __contains__(self, key: Hashable) -> bool:
        return key in self.cache
