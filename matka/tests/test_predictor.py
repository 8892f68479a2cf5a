"""
예측기 테스트 모듈

후보 결합 규칙, 최종 pair 선택, 개별 점수 방법, 잭팟 후보 풀을 테스트합니다.
"""

import math
import unittest
import sys
import warnings
from pathlib import Path

# 프로젝트 루트 디렉토리를 Python 경로에 추가
project_root = str(Path(__file__).parent.parent.parent)
if project_root not in sys.path:
    sys.path.append(project_root)

from shared.error_handler import DegenerateInputFallback
from matka.src.utils.config import Config
from matka.src.utils.data_loader import DrawRecord
from matka.src.analysis.frequency import analyze_frequency
from matka.src.analysis.pattern_analyzer import FamilySequence, PanelStats, PatternLists, analyze_records
from matka.src.analysis.relations import PAIR_FAMILIES
from matka.src.prediction.combination import (
    FALLBACK_FINAL_PAIRS, PLACEHOLDER_PAIR, Emission, ScoredCandidate, combine, round_half_up,
    select_final,
)
from matka.src.prediction import jackpot as jackpot_module
from matka.src.prediction.jackpot import (
    build_jackpot_pool, pattern_score, quality_score, recent_recurrences,
)
from matka.src.prediction.predictor import MultiMethodPredictor, jackpot_candidates
from matka.tests.sample_data import make_records, records_with_pairs


def _gap_scores(total, positions):
    """positions에만 77이 나오는 total개 레코드의 갭 점수"""
    fillers = iter(f"{n:02d}" for n in range(10, 99) if n != 77)
    pairs = ['77' if i in positions else next(fillers) for i in range(total)]
    emissions = MultiMethodPredictor(Config())._gap_method(records_with_pairs(pairs))
    return {e.value: e.score for e in emissions if e.value == '77'}


def _ranked(values):
    return [ScoredCandidate(v, 10.0, ('panel',), ()) for v in values]


class TestCombination(unittest.TestCase):
    def test_consensus_outranks_score(self):
        """기여 방법 수가 점수보다 우선"""
        ranked = combine({
            'panel': [Emission('33', 500, 'a'), Emission('11', 10, 'b')],
            'transition': [Emission('11', 10, 'c')],
        })
        self.assertEqual([c.value for c in ranked], ['11', '33'])
        self.assertEqual(ranked[0].supporting_methods, ('panel', 'transition'))
        self.assertEqual(ranked[0].score, 20.0)

    def test_method_tag_counted_once(self):
        ranked = combine({'mirror': [Emission('44', 65, 'm'), Emission('44', 60, 'r')]})
        self.assertEqual(ranked[0].supporting_methods, ('mirror',))
        self.assertEqual(ranked[0].method_count, 1)
        self.assertEqual(ranked[0].score, 125.0)
        self.assertEqual(ranked[0].rationale, ('m', 'r'))

    def test_order_independent(self):
        emissions = {
            'panel': [Emission('12', 40, 'p'), Emission('34', 30, 'p')],
            'gap': [Emission('34', 10, 'g')],
            'hot_digit': [Emission('56', 60, 'h'), Emission('12', 60, 'h')],
        }
        reordered = dict(reversed(list(emissions.items())))
        self.assertEqual(combine(emissions), combine(reordered))

    def test_value_tie_break(self):
        ranked = combine({'hot_digit': [Emission('21', 60, 'h'), Emission('12', 60, 'h')]})
        self.assertEqual([c.value for c in ranked], ['12', '21'])

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(0.5), 1)
        self.assertEqual(round_half_up(66.6), 67)


class TestSelectFinal(unittest.TestCase):
    def test_freshness_exclusion(self):
        final, fallback = select_final(_ranked(['11', '22', '33', '44', '55', '66']), ['22', '44'])
        self.assertEqual(final, ('11', '33', '55', '66'))
        self.assertFalse(fallback)

    def test_placeholder_padding(self):
        final, fallback = select_final(_ranked(['11', '22']), [])
        self.assertEqual(final, ('11', '22', PLACEHOLDER_PAIR, PLACEHOLDER_PAIR))
        self.assertFalse(fallback)

    def test_fallback(self):
        """후보가 모두 최근 값이면 고정 대체 집합"""
        with self.assertWarns(DegenerateInputFallback):
            final, fallback = select_final(_ranked(['11']), ['11'])
        self.assertEqual(final, FALLBACK_FINAL_PAIRS)
        self.assertTrue(fallback)


class TestScoringMethods(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.predictor = MultiMethodPredictor(Config())

    def test_mirror_method(self):
        emissions = self.predictor._mirror_method(records_with_pairs(['12', '45']))
        self.assertEqual(emissions, [
            Emission('90', 65, 'Mirror of 45'),
            Emission('54', 60, 'Reverse of 45'),
        ])

    def test_mirror_method_palindrome(self):
        emissions = self.predictor._mirror_method(records_with_pairs(['33']))
        self.assertEqual([e.value for e in emissions], ['88'])

    def test_transition_method(self):
        records = records_with_pairs(['12', '34', '12', '34', '12', '56'])
        emissions = self.predictor._transition_method(records)
        self.assertEqual([(e.value, e.score) for e in emissions], [('12', 100), ('34', 67), ('56', 33)])

    def test_hot_digit_method(self):
        emissions = self.predictor._hot_digit_method(records_with_pairs(['12'] * 12))
        self.assertEqual({e.value for e in emissions}, {'12', '10', '21', '20', '01', '02'})
        self.assertTrue(all(e.score == 60 for e in emissions))

    def test_gap_method(self):
        pairs = ['77'] + [f"{n:02d}" for n in range(10, 19)] + ['77'] + [f"{n:02d}" for n in range(20, 29)]
        emissions = self.predictor._gap_method(records_with_pairs(pairs))
        values = {e.value for e in emissions}
        self.assertIn('77', values)
        # 최근 7일 이내 pair는 제외
        self.assertNotIn('28', values)

    def test_panel_pair_method(self):
        analysis = analyze_records(make_records(60), window_size=30)
        emissions = self.predictor._panel_pair_method(analysis.pair_panels)
        self.assertLessEqual(len(emissions), 8)
        scores = [e.score for e in emissions]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_gap_method_day_bounds(self):
        """7일, 30일은 포함 / 6일, 31일은 제외 (평균 간격 8)"""
        # 40개 중 4회 출현 -> avg_gap = 40 / 5 = 8, 비율 하한 5.6
        self.assertEqual(_gap_scores(40, (0, 1, 2, 40 - 1 - 6)), {})
        self.assertEqual(_gap_scores(40, (0, 1, 2, 40 - 1 - 7)), {'77': 61})
        self.assertEqual(_gap_scores(40, (0, 1, 2, 40 - 1 - 30)), {'77': 263})
        self.assertEqual(_gap_scores(40, (0, 1, 2, 40 - 1 - 31)), {})

    def test_gap_method_ratio_cutoff(self):
        """days_since >= 0.7 x avg_gap (평균 간격 15, 하한 10.5)"""
        self.assertEqual(_gap_scores(30, (30 - 1 - 10,)), {})
        self.assertEqual(_gap_scores(30, (30 - 1 - 11,)), {'77': 51})

    def test_panel_pair_exact_score(self):
        panels = {
            '12': PanelStats(hits=1, appearances=2, last_seen_offset=1),
            '34': PanelStats(hits=1, appearances=20, last_seen_offset=3),
            '56': PanelStats(hits=1, appearances=21, last_seen_offset=1),
            '78': PanelStats(hits=0, appearances=5, last_seen_offset=1),
            '90': PanelStats(hits=1, appearances=1, last_seen_offset=1),
        }
        emissions = self.predictor._panel_pair_method(panels)
        expected_12 = round(50 + math.log(3) * 10 + 50, 2)
        expected_34 = round(5 + math.log(21) * 10 + 50 / 3, 2)
        self.assertEqual([(e.value, e.score) for e in emissions],
                         [('12', expected_12), ('34', expected_34)])
        self.assertEqual(expected_12, 110.99)
        self.assertEqual(expected_34, 52.11)

    def test_panel_triple_exact_score(self):
        panels = {
            '123': PanelStats(hits=1, appearances=2, last_seen_offset=2, as_open=2, as_close=0),
            '456': PanelStats(hits=1, appearances=40, last_seen_offset=1, as_open=1, as_close=1),
        }
        opens = self.predictor._panel_triple_method(panels, 'open')
        closes = self.predictor._panel_triple_method(panels, 'close')
        self.assertEqual([(e.value, e.score) for e in opens], [('123', 136.48)])
        self.assertEqual([(e.value, e.score) for e in closes], [('123', 96.48)])

    def test_combine_panel_patterns(self):
        panel = [Emission('12', 110.99, 'a'), Emission('34', 52.11, 'b')]
        patterns = PatternLists(
            sequential=('12',),
            repeating=('55',),
            mirror_recurrence=('34', '34'),
            family_sequences=(FamilySequence((1, 2), 3, 0.5, 4, 6),),
        )
        ranked = self.predictor._combine_panel_patterns(panel, patterns)
        self.assertEqual(len(ranked), 8)
        self.assertEqual([(c.value, c.score) for c in ranked[:3]],
                         [('34', 167.0), ('12', 145.0), ('55', 30.0)])
        self.assertEqual(ranked[0].supporting_methods, ('panel', 'pattern'))
        family = sorted(v for v in PAIR_FAMILIES[3] if v != '12')
        self.assertEqual([(c.value, c.score) for c in ranked[3:]],
                         [(v, 20.0) for v in family[:5]])


class TestJackpot(unittest.TestCase):
    def test_logger_under_package(self):
        self.assertTrue(jackpot_module.logger.name.startswith('matka.'))

    def test_pattern_score(self):
        self.assertAlmostEqual(pattern_score('123'), 0.9)
        self.assertAlmostEqual(pattern_score('159'), 0.7)
        self.assertAlmostEqual(pattern_score('111'), 0.21)

    def test_quality_score(self):
        self.assertAlmostEqual(quality_score('123', {'123': 2}), 0.8 + 0.3 + 0.27)

    def test_recent_recurrences(self):
        records = [DrawRecord('123', '69', '456'), DrawRecord('123', '61', '789')]
        self.assertEqual(recent_recurrences(records), ('123',))

    def test_pool_thresholds(self):
        records = [DrawRecord('123', '69', '456') for _ in range(10)]
        pool = build_jackpot_pool(analyze_frequency(records), records)
        self.assertFalse(pool.fallback)
        self.assertIn('123', pool.values())
        scores = [c.score for c in pool.candidates]
        self.assertEqual(scores, sorted(scores, reverse=True))
        for candidate in pool.candidates:
            self.assertGreaterEqual(candidate.score, 800)
            self.assertGreaterEqual(candidate.quality_score, 0.5)

    def test_pool_fallback(self):
        """임계값을 통과한 triple이 없으면 대체 후보와 경고"""
        records = [DrawRecord('000', '00', '555')]
        with self.assertWarns(DegenerateInputFallback):
            pool = build_jackpot_pool(analyze_frequency(records), records)
        self.assertTrue(pool.fallback)
        self.assertEqual(pool.values(), ())

        with warnings.catch_warnings():
            warnings.simplefilter('ignore')
            self.assertEqual(jackpot_candidates(records), ())

    def test_jackpot_candidates_zero_window(self):
        with self.assertRaises(ValueError):
            jackpot_candidates([DrawRecord('123', '69', '456')], window_size=0)

    def test_jackpot_candidates_limit(self):
        records = [DrawRecord('123', '69', '456') for _ in range(10)]
        self.assertLessEqual(len(jackpot_candidates(records)), 8)


class TestMultiMethodPredictor(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.config = Config()
        cls.records = make_records(60)
        with warnings.catch_warnings():
            warnings.simplefilter('ignore')
            cls.analysis = analyze_records(cls.records, 30, cls.config)
            cls.result = MultiMethodPredictor(cls.config).predict(cls.analysis)

    def test_final_pairs_fresh(self):
        """최종 pair는 최근 5개 실제 pair에 없음"""
        recent = {r.pair for r in self.records[-5:]}
        self.assertEqual(len(self.result.final_pairs), 4)
        for pair in self.result.final_pairs:
            if pair != PLACEHOLDER_PAIR:
                self.assertNotIn(pair, recent)

    def test_ranking_order(self):
        keys = [(-c.method_count, -c.score, c.value) for c in self.result.ranked_pairs]
        self.assertEqual(keys, sorted(keys))

    def test_method_emissions(self):
        self.assertEqual(
            set(self.result.method_emissions),
            {'panel', 'transition', 'hot_digit', 'gap', 'mirror'}
        )
        self.assertTrue(self.result.method_emissions['mirror'])

    def test_combined_panel_pairs(self):
        combined = self.result.combined_panel_pairs
        self.assertLessEqual(len(combined), 8)
        keys = [(-c.method_count, -c.score, c.value) for c in combined]
        self.assertEqual(keys, sorted(keys))
        for candidate in combined:
            self.assertTrue(set(candidate.supporting_methods) <= {'panel', 'pattern'})

    def test_zero_window_rejected(self):
        """window_size 0은 기본값으로 바뀌지 않고 거부됨"""
        with self.assertRaises(ValueError):
            MultiMethodPredictor(self.config).predict(self.analysis, 0)

    def test_ranked_triples(self):
        self.assertEqual(set(self.result.ranked_triples), {'open', 'close'})
        for candidate in self.result.ranked_open_triples:
            self.assertEqual(len(candidate.value), 3)

    def test_frequency_summaries(self):
        self.assertEqual(len(self.result.frequent_digits), 5)
        self.assertEqual(len(self.result.top_open_sums), 3)
        self.assertEqual(len(self.result.top_close_sums), 3)

    def test_determinism(self):
        with warnings.catch_warnings():
            warnings.simplefilter('ignore')
            again = MultiMethodPredictor(self.config).predict(self.analysis)
        self.assertEqual(again, self.result)


if __name__ == '__main__':
    unittest.main()
