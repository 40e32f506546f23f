from mailposture.analyzers.mx import NOT_FOUND_RECOMMENDATIONS, analyze_mx, score_mx, sort_mx
from mailposture.errors import ResolutionError

from conftest import FakeLookup


def mx(exchange, priority):
    return {'exchange': exchange, 'priority': priority}


def test_sort_is_stable_by_priority():
    records = [mx('c', 20), mx('a', 10), mx('b', 10)]
    assert [r['exchange'] for r in sort_mx(records)] == ['a', 'b', 'c']


def test_distinct_priorities_score_full():
    result, warnings, _ = score_mx([mx('a', 10), mx('b', 20)])
    assert result.value == 3
    assert result.level == 'Excellent'
    assert warnings == []


def test_duplicate_priorities_warn():
    result, warnings, _ = score_mx([mx('a', 10), mx('b', 10), mx('c', 20)])
    assert result.value == 2
    assert result.level == 'Good'
    assert 'Multiple MX records for redundancy (+1 point)' in result.details
    assert warnings == ['Some MX records have the same priority']


def test_single_record_recommends_backup():
    result, _, recommendations = score_mx([mx('a', 10)])
    assert result.value == 2
    assert 'Consider adding backup MX records for redundancy' in recommendations


def test_empty_set_scores_zero():
    result, warnings, _ = score_mx([])
    assert result.value == 0
    assert warnings == ['No MX records found']


def test_analyze_sorts_records(healthy_lookup):
    result = analyze_mx('example.com', healthy_lookup)
    assert result.success
    assert result.parsed == ['mx.example.com', 'alt1.mx.example.com']
    assert result.records[0] == {'exchange': 'mx.example.com', 'priority': 10}
    assert result.score.value == 3


def test_analyze_not_found():
    result = analyze_mx('example.com', FakeLookup())
    assert not result.success
    assert result.error == 'No MX records found'
    assert result.recommendations == NOT_FOUND_RECOMMENDATIONS


def test_analyze_empty_answer_is_not_found():
    result = analyze_mx('example.com', FakeLookup(mx={'example.com': []}))
    assert result.error == 'No MX records found'


def test_analyze_resolution_failure():
    result = analyze_mx('example.com', FakeLookup(mx={'example.com': ResolutionError('timeout')}))
    assert result.error == 'timeout'


def test_analyze_unexpected_lookup_error():
    result = analyze_mx('example.com', FakeLookup(mx={'example.com': OSError('socket closed')}))
    assert not result.success
    assert result.error == 'socket closed'
