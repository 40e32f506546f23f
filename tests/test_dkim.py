from mailposture.analyzers.dkim import (
    LOOKUP_FAILED_RECOMMENDATIONS,
    NOT_FOUND_RECOMMENDATIONS,
    analyze_dkim,
    parse_dkim,
    score_dkim,
)
from mailposture.errors import ResolutionError

from conftest import RSA_DKIM, FakeLookup


def test_full_rsa_sha256_key_scores_five():
    result, warnings, recommendations = score_dkim(RSA_DKIM)
    assert result.value == 5
    assert result.level == 'Excellent'
    assert warnings == []
    assert recommendations == []


def test_revoked_key_warns():
    result, warnings, _ = score_dkim('v=DKIM1; k=rsa; p=;')
    assert result.value == 2
    assert 'No public key found in DKIM record' in warnings


def test_sha1_gets_half_point_and_upgrade_hint():
    result, _, recommendations = score_dkim('v=DKIM1; h=sha1; p=MIGfMA0')
    assert result.value == 3.5
    assert result.level == 'Good'
    assert 'Consider upgrading to SHA-256 for better security' in recommendations


def test_record_without_marker_is_invalid():
    result, warnings, _ = score_dkim('some unrelated text')
    assert result.value == 0
    assert warnings == ['Invalid DKIM record format']


def test_verifier_lines_include_info():
    verification = {'status': {'result': 'pass'}, 'info': 'rsa key, 2048 bits'}
    result, _, _ = score_dkim(RSA_DKIM, verification)
    assert result.details[-2:] == ['Verifier DKIM check: pass', 'DKIM info: rsa key, 2048 bits']


def test_parse_tags():
    assert parse_dkim(RSA_DKIM) == {
        'v': 'DKIM1',
        'k': 'rsa',
        'h': 'sha256',
        'p': 'MIGfMA0GCSqGSIb3DQEBAQUAA4GNADCBiQKBgQC',
    }


def test_parse_is_lenient_with_malformed_lists():
    assert parse_dkim('v=DKIM1; junk; p=abc') == {'v': 'DKIM1', 'p': 'abc'}


def test_analyze_default_selector(healthy_lookup):
    result = analyze_dkim('example.com', healthy_lookup)
    assert result.success
    assert result.selector == 'default'
    assert result.checked_record == 'default._domainkey.example.com'
    assert result.score.value == 5
    assert result.parsed['k'] == 'rsa'


def test_analyze_custom_selector():
    lookup = FakeLookup(txt={'google._domainkey.example.com': [['v=DKIM1; k=rsa; ', 'p=MIIBIjAN']]})
    result = analyze_dkim('example.com', lookup, selector='google')
    assert result.success
    assert result.raw_record == 'v=DKIM1; k=rsa; p=MIIBIjAN'
    assert result.to_dict()['checkedRecord'] == 'google._domainkey.example.com'


def test_missing_selector_name_suggests_other_selectors():
    result = analyze_dkim('example.com', FakeLookup(), selector='s1')
    assert not result.success
    assert result.error == "DKIM record not found for selector 's1'"
    assert result.recommendations == LOOKUP_FAILED_RECOMMENDATIONS


def test_resolution_failure_suggests_other_selectors():
    lookup = FakeLookup(txt={'default._domainkey.example.com': ResolutionError('timeout')})
    result = analyze_dkim('example.com', lookup)
    assert result.recommendations == LOOKUP_FAILED_RECOMMENDATIONS


def test_txt_without_key_is_not_found():
    lookup = FakeLookup(txt={'default._domainkey.example.com': ['unrelated']})
    result = analyze_dkim('example.com', lookup)
    assert not result.success
    assert result.selector == 'default'
    assert result.recommendations == NOT_FOUND_RECOMMENDATIONS


def test_verifier_receives_selector(healthy_lookup, fake_verifier):
    result = analyze_dkim('example.com', healthy_lookup, fake_verifier, selector='default')
    assert fake_verifier.calls == [('dkim', 'example.com', 'default')]
    assert 'DKIM info: probe accepted' in result.score.details


class EncodingVerifier:
    def verify_dkim(self, domain, selector='default'):
        raise UnicodeEncodeError('ascii', domain, 1, 2, 'ordinal not in range(128)')


def test_any_verifier_error_is_ignored():
    lookup = FakeLookup(txt={'default._domainkey.bücher.de': [RSA_DKIM]})
    result = analyze_dkim('bücher.de', lookup, EncodingVerifier())
    assert result.success
    assert result.verification is None
    assert result.score.value == 5


def test_unexpected_lookup_error_is_a_failure():
    lookup = FakeLookup(txt={'default._domainkey.example.com': OSError('socket closed')})
    result = analyze_dkim('example.com', lookup)
    assert not result.success
    assert result.error == 'socket closed'
    assert result.recommendations == LOOKUP_FAILED_RECOMMENDATIONS
