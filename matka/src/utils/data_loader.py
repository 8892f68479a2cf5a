"""
마트카 결과 데이터 로더

이 모듈은 원본 결과표(HTML 표 또는 구분자 텍스트)를 검증된 DrawRecord
시퀀스로 변환하는 기능을 제공합니다. 파일 읽기는 DataManager에서만 수행하고
parse_records 자체는 입력 문자열만 다룹니다.
"""

import datetime
import re
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd
from bs4 import BeautifulSoup
from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, pre_load, validate

from shared.error_handler import ParseError, get_logger, log_performance
from .config import Config, resolve_config

# 로거 설정
logger = get_logger(__name__)

TRIPLE_PATTERN = re.compile(r"\A[0-9]{3}\Z")
PAIR_PATTERN = re.compile(r"\A[0-9]{2}\Z")
_DIGITS_RE = re.compile(r"\A[0-9]+\Z")

_MARKUP_RE = re.compile(r'<t[dr]\b', re.IGNORECASE)
_DATE_RE = re.compile(r'(?<![0-9])([0-9]{4}[-/.][0-9]{1,2}[-/.][0-9]{1,2}|[0-9]{1,2}[-/.][0-9]{1,2}[-/.][0-9]{2,4})(?![0-9])')
_LINE_RE = re.compile(r'(?<![0-9])([0-9]{3})\s*[-,|;/\s]\s*([0-9]{2})\s*[-,|;/\s]\s*([0-9]{3})(?![0-9])')


@dataclass(frozen=True)
class DrawRecord:
    """하루 결과 레코드 (open 3자리, pair 2자리, close 3자리)"""
    open_triple: str
    pair: str
    close_triple: str
    date: Optional[datetime.date] = None

    def __post_init__(self):
        if not isinstance(self.open_triple, str) or not TRIPLE_PATTERN.match(self.open_triple):
            raise ParseError(f"open 값이 3자리 숫자가 아닙니다: {self.open_triple!r}")
        if not isinstance(self.pair, str) or not PAIR_PATTERN.match(self.pair):
            raise ParseError(f"pair 값이 2자리 숫자가 아닙니다: {self.pair!r}")
        if not isinstance(self.close_triple, str) or not TRIPLE_PATTERN.match(self.close_triple):
            raise ParseError(f"close 값이 3자리 숫자가 아닙니다: {self.close_triple!r}")

    @property
    def triples(self) -> Tuple[str, str]:
        return (self.open_triple, self.close_triple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat() if self.date is not None else None,
            'open': self.open_triple,
            'pair': self.pair,
            'close': self.close_triple,
        }


class DrawRecordSchema(Schema):
    """구조화된 입력(dict/JSON)용 레코드 스키마"""

    class Meta:
        unknown = EXCLUDE

    date = fields.Date(load_default=None, allow_none=True)
    open = fields.String(attribute='open_triple', data_key='open', required=True,
                         validate=validate.Regexp(TRIPLE_PATTERN))
    pair = fields.String(required=True, validate=validate.Regexp(PAIR_PATTERN))
    close = fields.String(attribute='close_triple', data_key='close', required=True,
                          validate=validate.Regexp(TRIPLE_PATTERN))

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        if 'pair' not in data and 'jodi' in data:
            data['pair'] = data.pop('jodi')
        for key, width in (('open', 3), ('pair', 2), ('close', 3)):
            if isinstance(data.get(key), int) and not isinstance(data.get(key), bool):
                data[key] = str(data[key]).zfill(width)
        if isinstance(data.get('date'), datetime.datetime):
            data['date'] = data['date'].date().isoformat()
        elif isinstance(data.get('date'), datetime.date):
            data['date'] = data['date'].isoformat()
        return data

    @post_load
    def make_record(self, data, **kwargs) -> DrawRecord:
        return DrawRecord(**data)


def _cell_texts(cells) -> List[str]:
    """셀 텍스트 (태그 제거, 공백 정리)"""
    return [cell.get_text(strip=True) for cell in cells]


def _parse_date(text: str) -> Optional[datetime.date]:
    """날짜 문자열 파싱 (일-월 우선, ISO 형식은 연-월-일)"""
    match = _DATE_RE.search(text)
    if not match:
        return None
    token = match.group(1)
    iso_like = bool(re.match(r'^[0-9]{4}', token))
    with warnings.catch_warnings():
        warnings.simplefilter('ignore')
        parsed = pd.to_datetime(token, dayfirst=not iso_like, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.date()


def _records_from_cells(cells: Sequence[str]) -> List[Tuple[str, str, str]]:
    """연속된 (3자리, 2자리, 3자리) 셀 묶음 추출"""
    found = []
    i = 0
    while i + 2 < len(cells):
        open_cell, pair_cell, close_cell = cells[i], cells[i + 1], cells[i + 2]
        if (TRIPLE_PATTERN.match(open_cell) and PAIR_PATTERN.match(pair_cell)
                and TRIPLE_PATTERN.match(close_cell)):
            found.append((open_cell, pair_cell, close_cell))
            i += 3
        else:
            i += 1
    return found


def _parse_markup(raw_source: str) -> List[DrawRecord]:
    soup = BeautifulSoup(raw_source, "html.parser")
    rows = soup.find_all("tr")
    records: List[DrawRecord] = []

    if not rows:
        # 행 구분이 없는 결과표: 숫자 셀을 3개씩 묶음
        digit_cells = [text for text in _cell_texts(soup.find_all("td")) if _DIGITS_RE.match(text)]
        for i in range(0, len(digit_cells) - 2, 3):
            open_cell, pair_cell, close_cell = digit_cells[i:i + 3]
            if (TRIPLE_PATTERN.match(open_cell) and PAIR_PATTERN.match(pair_cell)
                    and TRIPLE_PATTERN.match(close_cell)):
                records.append(DrawRecord(open_cell, pair_cell, close_cell))
        return records

    for row in rows:
        cells = _cell_texts(row.find_all(["td", "th"], recursive=False))
        found = _records_from_cells(cells)
        if not found:
            continue
        row_date = None
        if len(found) == 1:
            for cell in cells:
                row_date = _parse_date(cell)
                if row_date is not None:
                    break
        for open_cell, pair_cell, close_cell in found:
            records.append(DrawRecord(open_cell, pair_cell, close_cell, row_date))
    return records


def _parse_lines(raw_source: str) -> List[DrawRecord]:
    records: List[DrawRecord] = []
    for line in raw_source.splitlines():
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        record_date = _parse_date(line)
        body = _DATE_RE.sub(' ', line)
        match = _LINE_RE.search(body)
        if match is None:
            logger.debug(f"레코드 형식이 아닌 줄 건너뜀: {line[:40]}")
            continue
        records.append(DrawRecord(match.group(1), match.group(2), match.group(3), record_date))
    return records


@log_performance
def parse_records(raw_source: str) -> List[DrawRecord]:
    """
    원본 결과표를 DrawRecord 시퀀스로 변환

    Args:
        raw_source: HTML 표 또는 구분자 텍스트

    Returns:
        시간순 DrawRecord 리스트

    Raises:
        ParseError: 유효한 레코드가 하나도 없는 경우
    """
    if not isinstance(raw_source, str):
        raise ParseError(f"원본 데이터는 문자열이어야 합니다: {type(raw_source).__name__}")

    if _MARKUP_RE.search(raw_source):
        records = _parse_markup(raw_source)
    else:
        records = _parse_lines(raw_source)

    if not records:
        raise ParseError("원본 데이터에서 유효한 레코드를 찾을 수 없습니다.")

    if all(record.date is not None for record in records):
        records = sorted(records, key=lambda record: record.date)

    logger.info(f"레코드 파싱 완료: {len(records)}건")
    return records


def load_records(rows: Iterable[Mapping[str, Any]]) -> List[DrawRecord]:
    """
    구조화된 레코드(dict) 목록 검증 및 변환

    Raises:
        ParseError: 입력이 비었거나 스키마 검증에 실패한 경우
    """
    rows = list(rows)
    if not rows:
        raise ParseError("레코드 목록이 비어 있습니다.")
    try:
        records = DrawRecordSchema(many=True).load(rows)
    except ValidationError as e:
        raise ParseError(f"레코드 검증 실패: {e.messages}") from e

    if all(record.date is not None for record in records):
        records = sorted(records, key=lambda record: record.date)
    return records


def records_to_frame(records: Sequence[DrawRecord]) -> pd.DataFrame:
    """레코드 시퀀스를 데이터프레임으로 변환 (date, open, pair, close)"""
    return pd.DataFrame(
        [(r.date, r.open_triple, r.pair, r.close_triple) for r in records],
        columns=['date', 'open', 'pair', 'close']
    )


class DataManager:
    """데이터 관리자"""

    def __init__(self, config: Optional[Config] = None):
        """
        데이터 관리자 초기화

        Args:
            config: 설정 객체
        """
        self.config = resolve_config(config)
        self.records: Optional[List[DrawRecord]] = None
        self.source_path: Optional[Path] = None

    def load_data(self, path: str) -> List[DrawRecord]:
        """결과표 파일 로드 및 파싱"""
        try:
            data_path = Path(path)
            if not data_path.exists():
                raise FileNotFoundError(f"데이터 파일을 찾을 수 없습니다: {data_path}")

            raw_source = data_path.read_text(encoding='utf-8', errors='replace')
            self.records = parse_records(raw_source)
            self.source_path = data_path
            logger.info(f"데이터 로드 완료: {data_path.name}, {len(self.records)} 행")
            return self.records
        except Exception as e:
            logger.error(f"데이터 로드 실패: {str(e)}")
            raise

    def get_latest_record(self) -> DrawRecord:
        """
        최신 결과 반환

        Returns:
            마지막 DrawRecord
        """
        if not self.records:
            raise ValueError("데이터가 로드되지 않았습니다.")
        return self.records[-1]

    def get_window(self, window_size: Optional[int] = None) -> List[DrawRecord]:
        """최근 window_size개 레코드 (순서 유지)"""
        if not self.records:
            raise ValueError("데이터가 로드되지 않았습니다.")
        size = window_size if window_size is not None else self.config.analysis.window_size
        if size < 1:
            raise ValueError(f"window_size는 1 이상이어야 합니다: {size}")
        return self.records[-size:]

    def to_frame(self) -> pd.DataFrame:
        if not self.records:
            raise ValueError("데이터가 로드되지 않았습니다.")
        return records_to_frame(self.records)
