"""DKIM public key record analysis for one selector, scored out of 5."""

from typing import Dict, Optional

from mailposture.analyzers.common import matching_txt_records, run_verifier, verification_details
from mailposture.console import log_message
from mailposture.errors import MailPostureError
from mailposture.models import AnalysisResult
from mailposture.scoring import DKIM_LEVELS, ScoreCard
from mailposture.tags import try_parse_tag_list

DEFAULT_SELECTOR = 'default'
KEY_MARKERS = ('v=DKIM1', 'k=rsa', 'p=')

NOT_FOUND_RECOMMENDATIONS = [
    'Set up DKIM signing for your domain',
    'Common selectors to try: default, google, mail, dkim',
    'Contact your email provider for DKIM setup instructions',
]

LOOKUP_FAILED_RECOMMENDATIONS = [
    'Try common selectors: default, google, mail, dkim, selector1, selector2',
    'Check with your email provider for the correct DKIM selector',
    'Ensure DKIM is properly configured in your DNS',
]


def has_key_marker(record: str) -> bool:
    return any(marker in record for marker in KEY_MARKERS)


def parse_dkim(record: str) -> Dict[str, str]:
    """Key record tags, lower-cased keys; lenient when the list is malformed"""
    tags = try_parse_tag_list(record)
    if tags is not None:
        return tags

    tags = {}
    for segment in record.split(';'):
        key, sep, value = segment.strip().partition('=')
        if key and sep:
            tags[key.strip().lower()] = value.strip()
    return tags


def score_dkim(record: str, verification: Optional[dict] = None):
    """Score a key record; returns (ScoreBreakdown, warnings, recommendations)"""
    warnings = []
    recommendations = []

    if not has_key_marker(record):
        warnings.append('Invalid DKIM record format')
        return ScoreCard.zero(5), warnings, recommendations

    score = ScoreCard(5, DKIM_LEVELS)
    score.add(1, 'Valid DKIM record found (+1 point)')

    if 'p=' in record and 'p=;' not in record:
        score.add(2, 'Public key present (+2 points)')
    else:
        warnings.append('No public key found in DKIM record')

    if 'k=rsa' in record:
        score.add(1, 'RSA key type (+1 point)')

    if 'h=sha256' in record:
        score.add(1, 'SHA-256 hash algorithm (+1 point)')
    elif 'h=sha1' in record:
        score.add(0.5, 'SHA-1 hash algorithm (+0.5 points)')
        recommendations.append('Consider upgrading to SHA-256 for better security')

    for detail in verification_details('DKIM', verification):
        score.note(detail)

    return score.result(), warnings, recommendations


def analyze_dkim(domain: str, lookup, verifier=None, selector: str = DEFAULT_SELECTOR) -> AnalysisResult:
    """Fetch and score the DKIM key published at `<selector>._domainkey.<domain>`"""
    selector = selector or DEFAULT_SELECTOR
    checked_record = f"{selector}._domainkey.{domain}"
    not_found = f"DKIM record not found for selector '{selector}'"
    log_message(f"Checking DKIM selector {selector} for {domain}")

    try:
        records = matching_txt_records(lookup, checked_record, has_key_marker)
    except MailPostureError as e:
        log_message(f"DKIM lookup failed for {checked_record}: {e}", "WARNING")
        return AnalysisResult.failure(domain, not_found, selector=selector, checked_record=checked_record,
                                      recommendations=list(LOOKUP_FAILED_RECOMMENDATIONS))
    except Exception as e:
        log_message(f"DKIM lookup failed for {checked_record}: {e}", "ERROR")
        return AnalysisResult.failure(domain, str(e), selector=selector, checked_record=checked_record,
                                      recommendations=list(LOOKUP_FAILED_RECOMMENDATIONS))

    if not records:
        return AnalysisResult.failure(domain, not_found, selector=selector, checked_record=checked_record,
                                      recommendations=list(NOT_FOUND_RECOMMENDATIONS))

    dkim_key = records[0]
    verification = None
    if verifier is not None:
        verification = run_verifier('DKIM', lambda: verifier.verify_dkim(domain, selector))

    score, warnings, recommendations = score_dkim(dkim_key, verification)

    log_message(f"DKIM score for {domain} ({selector}): {score.value}/5 ({score.level})", "SUCCESS")
    return AnalysisResult(
        success=True,
        domain=domain,
        selector=selector,
        checked_record=checked_record,
        raw_record=dkim_key,
        parsed=parse_dkim(dkim_key),
        warnings=warnings,
        recommendations=recommendations,
        score=score,
        verification=verification,
    )
