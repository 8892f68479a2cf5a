"""
분석 결과 시각화

결과 객체만 읽어 PNG 차트를 저장합니다. 화면 출력 없이 Agg 백엔드를 사용합니다.
"""

from pathlib import Path
from typing import Optional, Sequence, Union

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns

from shared.error_handler import get_logger
from ..analysis.frequency import FrequencyTables
from ..prediction.combination import ScoredCandidate

logger = get_logger(__name__)

PathLike = Union[str, Path]


def _apply_style():
    """시각화 스타일 설정"""
    plt.style.use('default')
    sns.set_theme(style="whitegrid")
    sns.set_palette("husl")
    plt.rcParams['axes.unicode_minus'] = False


def _save(fig, output_path: PathLike) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(output_path)
    plt.close(fig)
    logger.info(f"차트 저장: {output_path}")
    return output_path


def plot_digit_frequency(frequency: FrequencyTables, output_path: PathLike) -> Path:
    """자릿수 빈도 막대 차트"""
    _apply_style()
    fig, ax = plt.subplots(figsize=(10, 5))
    sns.barplot(x=list(range(10)), y=list(frequency.digit_counts), ax=ax)
    ax.set_xlabel('Digit')
    ax.set_ylabel('Count')
    ax.set_title(f'Digit frequency (chi2={frequency.digit_chi2:.2f}, p={frequency.digit_p_value:.3f})')
    return _save(fig, output_path)


def plot_sum_distribution(frequency: FrequencyTables, output_path: PathLike) -> Path:
    """open/close 자릿수 합 분포"""
    _apply_style()
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 5), sharey=True)
    sns.barplot(x=list(range(10)), y=list(frequency.open_sum_counts), ax=ax1)
    ax1.set_title('Open sum')
    ax1.set_xlabel('Sum (mod 10)')
    ax1.set_ylabel('Count')
    sns.barplot(x=list(range(10)), y=list(frequency.close_sum_counts), ax=ax2)
    ax2.set_title('Close sum')
    ax2.set_xlabel('Sum (mod 10)')
    return _save(fig, output_path)


def plot_candidate_scores(
    candidates: Sequence[ScoredCandidate],
    output_path: PathLike,
    limit: Optional[int] = 10
) -> Path:
    """결합 후보 점수 (지지 방법 수별 색상)"""
    _apply_style()
    chosen = list(candidates[:limit]) if limit else list(candidates)
    fig, ax = plt.subplots(figsize=(10, 5))
    if chosen:
        sns.barplot(
            x=[c.value for c in chosen],
            y=[c.score for c in chosen],
            hue=[str(c.method_count) for c in chosen],
            dodge=False,
            ax=ax,
        )
        ax.legend(title='Methods')
    else:
        ax.text(0.5, 0.5, 'No candidates', ha='center', va='center', transform=ax.transAxes)
    ax.set_xlabel('Candidate')
    ax.set_ylabel('Score')
    ax.set_title('Combined candidate scores')
    return _save(fig, output_path)
