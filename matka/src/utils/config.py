"""
설정 관리 모듈

이 모듈은 프로젝트의 설정을 관리하는 Config 클래스를 제공합니다.
"""

from typing import Any, Dict, Optional
from dataclasses import dataclass, asdict
from pathlib import Path
import copy
import yaml

from shared.error_handler import get_logger

logger = get_logger(__name__)

@dataclass
class AnalysisConfig:
    """분석 설정"""
    window_size: int = 30
    transition_window_cap: int = 90
    transition_recent_states: int = 3
    transition_top_successors: int = 2
    hot_digit_lookback: int = 12
    hot_digit_count: int = 3
    family_sequence_length: int = 3

@dataclass
class PredictionConfig:
    """예측 설정"""
    final_pair_count: int = 4
    freshness_exclusion: int = 5
    ranked_pair_limit: int = 8
    ranked_triple_limit: int = 6
    gap_min_days: int = 7
    gap_max_days: int = 30
    gap_ratio: float = 0.7
    jackpot_min_score: int = 800
    jackpot_min_quality: float = 0.5
    jackpot_limit: int = 8
    recent_recurrence_window: int = 15
    best_guess_limit: int = 5
    frequent_digit_count: int = 5

@dataclass
class RiskConfig:
    """위험도 평가 설정"""
    backtest_lookback: int = 30
    success_window: int = 30

@dataclass
class CacheConfig:
    """결과 캐시 설정"""
    enabled: bool = True
    capacity: int = 100

class Config:
    """설정 관리 클래스"""

    SECTIONS = {
        'analysis': AnalysisConfig,
        'prediction': PredictionConfig,
        'risk': RiskConfig,
        'cache': CacheConfig,
    }

    def __init__(self, config_dict: Dict[str, Any] = None):
        """
        설정 객체 초기화

        Args:
            config_dict: 설정 딕셔너리 (없는 섹션은 기본값 사용)
        """
        self._config = copy.deepcopy(config_dict) if config_dict else {}

        # 섹션별 설정 초기화
        self.analysis = AnalysisConfig(**self._config.get('analysis', {}))
        self.prediction = PredictionConfig(**self._config.get('prediction', {}))
        self.risk = RiskConfig(**self._config.get('risk', {}))
        self.cache = CacheConfig(**self._config.get('cache', {}))

        if self.analysis.window_size < 1:
            raise ValueError(f"window_size는 1 이상이어야 합니다: {self.analysis.window_size}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        설정값 조회

        Args:
            key: 설정 키
            default: 기본값

        Returns:
            설정값
        """
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        설정값 설정

        섹션 키인 경우 해당 섹션 객체도 다시 생성합니다.
        """
        self._config[key] = value
        if key in self.SECTIONS:
            setattr(self, key, self.SECTIONS[key](**value))

    def update(self, config_dict: Dict[str, Any]) -> None:
        """
        설정 업데이트

        Args:
            config_dict: 업데이트할 설정 딕셔너리
        """
        for key, value in config_dict.items():
            self.set(key, value)

    def save(self, filepath: str) -> None:
        """
        설정 저장

        Args:
            filepath: 저장할 파일 경로
        """
        try:
            save_dir = Path(filepath).parent
            save_dir.mkdir(parents=True, exist_ok=True)

            # YAML 형식으로 저장
            with open(filepath, 'w', encoding='utf-8') as f:
                yaml.safe_dump(self.to_dict(), f, allow_unicode=True,
                               default_flow_style=False, sort_keys=False)
            logger.info(f'설정 저장 완료: {filepath}')
        except Exception as e:
            logger.error(f'설정 저장 실패: {str(e)}')
            raise

    def load(self, filepath: str) -> None:
        """
        설정 로드

        Args:
            filepath: 로드할 파일 경로
        """
        try:
            if not Path(filepath).exists():
                raise FileNotFoundError(f'설정 파일을 찾을 수 없습니다: {filepath}')

            # YAML 형식으로 로드
            with open(filepath, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
            logger.info(f'설정 로드 완료: {filepath}')

            # 설정 객체 재초기화
            self.__init__(loaded)
        except Exception as e:
            logger.error(f'설정 로드 실패: {str(e)}')
            raise

    @classmethod
    def from_file(cls, filepath: str) -> 'Config':
        """YAML 파일에서 설정 객체 생성"""
        config = cls()
        config.load(filepath)
        return config

    def to_dict(self) -> Dict[str, Any]:
        """
        설정을 딕셔너리로 변환

        Returns:
            설정 딕셔너리
        """
        return {name: asdict(getattr(self, name)) for name in self.SECTIONS}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Config):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __str__(self) -> str:
        """문자열 표현"""
        return str(self.to_dict())

    def __repr__(self) -> str:
        """표현식 문자열"""
        return f'Config({self.to_dict()})'


def resolve_config(config: Optional[Config] = None) -> Config:
    """None이면 기본 설정 반환"""
    return config if config is not None else Config()
