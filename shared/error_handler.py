"""
오류 처리 및 로깅 유틸리티

콘솔 로그는 레벨별 색상으로 표시하고, 필요한 경우에만 파일 핸들러를 추가합니다.
분석 파이프라인에서 사용하는 예외/경고 분류도 이 모듈에서 정의합니다.
"""

import logging
import traceback
import functools
import time
from functools import wraps
from pathlib import Path
from typing import Callable, Optional, TypeVar, Union

# 로거 이름 (패키지 루트)
PACKAGE_LOGGER = 'matka'

# ANSI 컬러 코드
COLORS = {
    'DEBUG': '\033[94m',  # 파란색
    'INFO': '\033[92m',   # 녹색
    'WARNING': '\033[93m', # 노란색
    'ERROR': '\033[91m',  # 빨간색
    'CRITICAL': '\033[41m\033[97m', # 배경 빨간색, 글자 흰색
    'RESET': '\033[0m'    # 리셋
}

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class MatkaError(Exception):
    """분석 파이프라인 기본 예외"""


class ParseError(MatkaError, ValueError):
    """유효한 레코드를 찾지 못했거나 레코드 형식이 잘못된 경우"""


class InsufficientDataWarning(UserWarning):
    """윈도우가 특정 방법의 최소 표본보다 작은 경우 (치명적이지 않음)"""


class DegenerateInputFallback(UserWarning):
    """후보가 없어 고정 대체 집합을 반환한 경우 ("신호 없음")"""


class ColoredFormatter(logging.Formatter):
    """컬러 로그 포매터"""

    def format(self, record):
        levelname = record.levelname
        message = super().format(record)

        if levelname in COLORS:
            return f"{COLORS[levelname]}{message}{COLORS['RESET']}"
        return message


def _install_console_handler() -> None:
    """패키지 로거에 콘솔 핸들러를 한 번만 설치"""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if any(getattr(h, '_matka_console', False) for h in package_logger.handlers):
        return

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    console_handler._matka_console = True

    package_logger.addHandler(console_handler)
    package_logger.setLevel(logging.DEBUG)


_install_console_handler()


def get_logger(name: str) -> logging.Logger:
    """모듈별 로거 생성 (패키지 로거 하위로 묶음)"""
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + '.'):
        name = f'{PACKAGE_LOGGER}.{name}'
    return logging.getLogger(name)


def setup_logger(name: str, log_file: Optional[Union[str, Path]] = None,
                 level: int = logging.DEBUG) -> logging.Logger:
    """로거 설정

    Args:
        name: 로거 이름
        log_file: 로그 파일 경로 (없으면 파일 핸들러를 추가하지 않음)
        level: 파일 핸들러 레벨

    Returns:
        설정된 로거
    """
    logger = get_logger(name)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        already_attached = any(
            isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_path.resolve()
            for h in logger.handlers
        )
        if not already_attached:
            file_handler = logging.FileHandler(log_path, encoding='utf-8')
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(
                LOG_FORMAT + ' - [%(filename)s:%(lineno)d]',
                datefmt=DATE_FORMAT
            ))
            logger.addHandler(file_handler)

    return logger


# 성능 측정 데코레이터
def log_performance(func: Callable) -> Callable:
    """
    함수 실행 시간을 로깅하는 데코레이터

    실패 시 실행 시간과 오류를 기록한 뒤 예외를 다시 발생시킵니다.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        logger.debug(f"Starting {func.__name__}")
        start_time = time.perf_counter()

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            execution_time = time.perf_counter() - start_time
            logger.error(
                f"함수 {func.__name__} 실행 실패: "
                f"시간={execution_time:.3f}초, "
                f"오류={str(e)}"
            )
            raise

        execution_time = time.perf_counter() - start_time
        logger.debug(f"Finished {func.__name__} in {execution_time:.4f} seconds")
        return result

    return wrapper


# 안전한 실행 데코레이터
T = TypeVar('T')


def safe_execute(default_return: Optional[T] = None, reraise: bool = False) -> Callable:
    """
    함수 실행을 안전하게 처리하는 데코레이터

    Args:
        default_return: 오류 발생 시 반환할 기본값 (호출마다 새 리스트/딕셔너리로 복사)
        reraise: 예외를 다시 발생시킬지 여부

    ParseError는 호출자에게 그대로 전달됩니다.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except ParseError:
                raise
            except Exception as e:
                logger = get_logger(func.__module__)
                logger.error(
                    f"함수 {func.__name__} 실행 중 오류 발생:\n"
                    f"오류: {str(e)}\n"
                    f"스택 트레이스:\n{traceback.format_exc()}"
                )

                if reraise:
                    raise
                if isinstance(default_return, (list, dict, set)):
                    return type(default_return)(default_return)
                return default_return
        return wrapper
    return decorator
