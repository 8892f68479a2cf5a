"""
데이터 로더 테스트 모듈

결과표 파싱, 구조화 레코드 검증, 파일 로드 기능을 테스트합니다.
"""

import unittest
import shutil
import sys
import tempfile
from datetime import date
from pathlib import Path

# 프로젝트 루트 디렉토리를 Python 경로에 추가
project_root = str(Path(__file__).parent.parent.parent)
if project_root not in sys.path:
    sys.path.append(project_root)

from shared.error_handler import ParseError
from matka.src.utils.data_loader import (
    DataManager, DrawRecord, load_records, parse_records, records_to_frame,
)

MARKUP_SOURCE = """
<table>
  <tr><th>Date</th><th>Open</th><th>Jodi</th><th>Close</th></tr>
  <tr><td>05-01-2024</td><td>123</td><td>45</td><td>678</td></tr>
  <tr><td>06-01-2024</td><td>***</td><td>**</td><td>***</td></tr>
  <tr><td>04-01-2024</td><td><b>234</b></td><td>56</td><td>789</td></tr>
</table>
"""

TEXT_SOURCE = """# date open pair close
01-02-2024 123-45-678
02/02/2024, 234, 56, 789
not a record line
"""


class TestDrawRecord(unittest.TestCase):
    def test_valid_record(self):
        record = DrawRecord('123', '45', '678')
        self.assertEqual(record.triples, ('123', '678'))
        self.assertIsNone(record.date)
        self.assertEqual(record.to_dict(), {'date': None, 'open': '123', 'pair': '45', 'close': '678'})

    def test_malformed_record(self):
        with self.assertRaises(ParseError):
            DrawRecord('12', '45', '678')
        with self.assertRaises(ParseError):
            DrawRecord('123', '4', '678')
        with self.assertRaises(ParseError):
            DrawRecord('123', '45', '6789')

    def test_rejects_trailing_newline_and_fullwidth(self):
        """ASCII 숫자만 허용 (끝 개행, 전각 숫자 거부)"""
        with self.assertRaises(ParseError):
            DrawRecord('123\n', '45', '678')
        with self.assertRaises(ParseError):
            DrawRecord('123', '45\n', '678')
        with self.assertRaises(ParseError):
            DrawRecord('１２３', '45', '678')


class TestParseRecords(unittest.TestCase):
    def test_empty_source(self):
        """유효한 레코드가 없으면 ParseError"""
        with self.assertRaises(ParseError):
            parse_records('')
        with self.assertRaises(ParseError):
            parse_records('no draw results here')

    def test_non_string_source(self):
        with self.assertRaises(ParseError):
            parse_records(None)

    def test_markup_rows(self):
        """표 행 파싱, 자리표시 셀 건너뛰기, 날짜순 정렬"""
        records = parse_records(MARKUP_SOURCE)
        self.assertEqual(len(records), 2)
        self.assertEqual(records[0], DrawRecord('234', '56', '789', date(2024, 1, 4)))
        self.assertEqual(records[1], DrawRecord('123', '45', '678', date(2024, 1, 5)))

    def test_markup_without_rows(self):
        source = '<td>123</td><td>45</td><td>678</td><td>234</td><td>56</td><td>789</td>'
        records = parse_records(source)
        self.assertEqual([r.pair for r in records], ['45', '56'])
        self.assertIsNone(records[0].date)

    def test_text_lines(self):
        records = parse_records(TEXT_SOURCE)
        self.assertEqual(len(records), 2)
        self.assertEqual(records[0].date, date(2024, 2, 1))
        self.assertEqual(records[1].open_triple, '234')
        self.assertEqual(records[1].close_triple, '789')

    def test_fullwidth_line_skipped(self):
        records = parse_records("１２３-45-678\n234-56-789")
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].open_triple, '234')

    def test_commented_rows_ignored(self):
        """주석 안의 표 행은 레코드가 아님"""
        source = ('<table><!-- <tr><td>111</td><td>33</td><td>999</td></tr> -->'
                  '<tr><td>123</td><td>45</td><td>678</td></tr></table>')
        records = parse_records(source)
        self.assertEqual(records, [DrawRecord('123', '45', '678')])

    def test_undated_lines_keep_order(self):
        records = parse_records("345 67 890\n123 45 678\n")
        self.assertEqual([r.open_triple for r in records], ['345', '123'])


class TestLoadRecords(unittest.TestCase):
    def test_schema_load(self):
        records = load_records([
            {'date': '2024-01-03', 'open': '123', 'jodi': '45', 'close': 678, 'extra': 1},
            {'date': '2024-01-02', 'open': 234, 'pair': '56', 'close': '789'},
        ])
        self.assertEqual(records[0], DrawRecord('234', '56', '789', date(2024, 1, 2)))
        self.assertEqual(records[1], DrawRecord('123', '45', '678', date(2024, 1, 3)))

    def test_schema_rejects_bad_values(self):
        with self.assertRaises(ParseError):
            load_records([{'open': '12', 'pair': '45', 'close': '678'}])
        with self.assertRaises(ParseError):
            load_records([])

    def test_schema_rejects_trailing_newline(self):
        with self.assertRaises(ParseError):
            load_records([{'open': '123\n', 'pair': '45', 'close': '678'}])
        with self.assertRaises(ParseError):
            load_records([{'open': '１２３', 'pair': '45', 'close': '678'}])

    def test_records_to_frame(self):
        frame = records_to_frame([DrawRecord('123', '45', '678')])
        self.assertEqual(list(frame.columns), ['date', 'open', 'pair', 'close'])
        self.assertEqual(frame.loc[0, 'pair'], '45')


class TestDataManager(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_load_data(self):
        path = Path(self.temp_dir) / 'results.txt'
        path.write_text(TEXT_SOURCE, encoding='utf-8')

        manager = DataManager()
        records = manager.load_data(str(path))
        self.assertEqual(len(records), 2)
        self.assertEqual(manager.get_latest_record().pair, '56')
        self.assertEqual(len(manager.get_window(1)), 1)
        self.assertEqual(len(manager.to_frame()), 2)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            DataManager().load_data(str(Path(self.temp_dir) / 'missing.txt'))

    def test_not_loaded(self):
        with self.assertRaises(ValueError):
            DataManager().get_latest_record()

    def test_invalid_window(self):
        manager = DataManager()
        manager.records = [DrawRecord('123', '45', '678')]
        with self.assertRaises(ValueError):
            manager.get_window(0)


if __name__ == '__main__':
    unittest.main()
