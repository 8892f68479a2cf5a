"""
패턴 분석기 테스트 모듈

이 모듈은 패턴 분석기의 기능을 테스트합니다.
"""

import unittest
import sys
from pathlib import Path

# 프로젝트 루트 디렉토리를 Python 경로에 추가
project_root = str(Path(__file__).parent.parent.parent)
if project_root not in sys.path:
    sys.path.append(project_root)

from shared.error_handler import ParseError
from matka.src.utils.config import Config
from matka.src.utils.data_loader import DrawRecord
from matka.src.analysis.frequency import analyze_frequency, top_indexes
from matka.src.analysis.pattern_analyzer import PatternAnalyzer, analyze_records
from matka.tests.sample_data import make_records, records_with_pairs

SCENARIO = [
    DrawRecord('123', '45', '678'),
    DrawRecord('234', '56', '789'),
]


class TestFrequency(unittest.TestCase):
    def test_digit_frequency_scenario(self):
        """숫자 2는 두 open triple에 한 번씩 나타남"""
        frequency = analyze_frequency(SCENARIO)
        self.assertEqual(frequency.digit_counts[2], 2)
        self.assertEqual(frequency.total_digits, 12)
        self.assertAlmostEqual(sum(frequency.digit_probabilities), 1.0)

    def test_sum_counts(self):
        frequency = analyze_frequency(SCENARIO)
        # 123 -> 6, 234 -> 9, 678 -> 1, 789 -> 4
        self.assertEqual(frequency.open_sum_counts[6], 1)
        self.assertEqual(frequency.open_sum_counts[9], 1)
        self.assertEqual(frequency.close_sum_counts[1], 1)
        self.assertEqual(frequency.close_sum_counts[4], 1)
        self.assertEqual(frequency.total_sum_samples, 4)

    def test_value_counts(self):
        frequency = analyze_frequency(SCENARIO + [DrawRecord('123', '45', '000')])
        self.assertEqual(frequency.triple_counts['123'], 2)
        self.assertEqual(frequency.pair_counts['45'], 2)
        self.assertEqual(frequency.top_pairs(1), ['45'])

    def test_empty_window(self):
        frequency = analyze_frequency([])
        self.assertEqual(frequency.total_digits, 0)
        self.assertEqual(frequency.digit_p_value, 1.0)
        self.assertEqual(frequency.digit_probabilities, (0.0,) * 10)

    def test_top_indexes_ties(self):
        self.assertEqual(top_indexes([1, 3, 3, 0], 2), [1, 2])


class TestPatternAnalyzer(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        """테스트 클래스 설정"""
        cls.config = Config()
        cls.records = make_records(60)

    def test_empty_records(self):
        """빈 레코드는 빈 결과가 아니라 ParseError"""
        with self.assertRaises(ParseError):
            PatternAnalyzer(self.config, []).analyze()

    def test_invalid_window(self):
        with self.assertRaises(ValueError):
            PatternAnalyzer(self.config, SCENARIO).analyze(-1)

    def test_zero_window(self):
        """0은 기본 윈도우로 바뀌지 않음"""
        with self.assertRaises(ValueError):
            PatternAnalyzer(self.config, SCENARIO).analyze(0)

    def test_scenario(self):
        result = analyze_records(SCENARIO, window_size=2)
        self.assertEqual(result.frequency.digit_counts[2], 2)
        self.assertEqual(len(result.window), 2)

    def test_pair_panels(self):
        """적중은 실제 값, 출현은 관련 값 전체"""
        result = analyze_records(SCENARIO, window_size=2)
        panel = result.pair_panels['45']
        self.assertEqual((panel.hits, panel.appearances, panel.last_seen_offset), (1, 1, 2))
        self.assertEqual(result.pair_panels['56'].last_seen_offset, 1)
        mirror_panel = result.pair_panels['90']
        self.assertEqual((mirror_panel.hits, mirror_panel.appearances), (0, 1))
        self.assertEqual(mirror_panel.hit_rate, 0.0)

    def test_triple_panels(self):
        result = analyze_records(SCENARIO, window_size=2)
        panel = result.open_panels['123']
        self.assertEqual(panel.hits, 1)
        self.assertEqual(panel.as_open, 1)
        self.assertEqual(panel.as_close, 0)
        self.assertEqual(result.close_panels['789'].as_close, 1)
        for stats in result.pair_panels.values():
            self.assertGreaterEqual(stats.last_seen_offset, 1)

    def test_pair_patterns(self):
        result = analyze_records(records_with_pairs(['10', '12', '33', '38', '83']))
        self.assertEqual(result.patterns.sequential, ('12', '38'))
        self.assertEqual(result.patterns.repeating, ('33',))
        self.assertEqual(result.patterns.mirror_recurrence, ('38', '83'))

    def test_family_sequences(self):
        """길이 3 패밀리 시퀀스의 재출현과 그 다음 패밀리"""
        result = analyze_records(records_with_pairs(['01', '02', '03', '01', '02', '03', '04']))
        sequences = result.patterns.family_sequences
        self.assertEqual(len(sequences), 1)
        self.assertEqual(sequences[0].sequence, (1, 2, 3))
        self.assertEqual(sequences[0].predicted_family, 1)
        self.assertEqual(sequences[0].earlier_offset, 0)
        self.assertEqual(sequences[0].position, 3)
        self.assertEqual(sequences[0].confidence, 1.0)

    def test_window_selection(self):
        result = PatternAnalyzer(self.config, self.records).analyze(20)
        self.assertEqual(result.window, tuple(self.records[-20:]))
        self.assertEqual(result.frequency.total_digits, 20 * 6)

    def test_default_window(self):
        result = PatternAnalyzer(self.config, self.records).analyze()
        self.assertEqual(result.window_size, self.config.analysis.window_size)

    def test_determinism(self):
        """같은 입력이면 같은 결과"""
        first = PatternAnalyzer(self.config, self.records).analyze(30)
        second = PatternAnalyzer(self.config, self.records).analyze(30)
        self.assertEqual(first, second)


if __name__ == '__main__':
    unittest.main()
