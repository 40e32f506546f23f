"""
DMARC record analysis

Looks up `_dmarc.<domain>`, parses the policy record, scores it out of 10
and explains each tag in plain language.
"""

import math
import re
from typing import Dict, Optional

from mailposture.analyzers.common import matching_txt_records, run_verifier, verification_details
from mailposture.console import log_message
from mailposture.errors import MailPostureError, RecordNotFound, RecordParseError
from mailposture.models import AnalysisResult
from mailposture.scoring import DMARC_LEVELS, ScoreCard
from mailposture.tags import try_parse_tag_list

DEFAULT_PCT = 100
DEFAULT_RI = 86400


def _int_tag(default: int, valid):
    def parse(value):
        try:
            number = int(value)
        except (TypeError, ValueError):
            return default
        return number if valid(number) else default
    return parse


def _address_list(value):
    return [addr.strip() for addr in value.split(',')]


def _text(value):
    return value


TAG_HANDLERS = {
    'v': _text,
    'p': _text,
    'sp': _text,
    'adkim': _text,
    'aspf': _text,
    'fo': _text,
    'rf': _text,
    'pct': _int_tag(DEFAULT_PCT, lambda n: 0 <= n <= 100),
    'ri': _int_tag(DEFAULT_RI, lambda n: n > 0),
    'rua': _address_list,
    'ruf': _address_list,
}


def _apply_tag_handlers(pairs) -> Dict:
    parsed = {}
    for key, value in pairs:
        key = key.lower()
        handler = TAG_HANDLERS.get(key, _text)
        parsed[key] = handler(value)
    return parsed


def library_parse(record: str) -> Optional[Dict]:
    """First stage: the strict RFC tag=value parser"""
    tags = try_parse_tag_list(record)
    if tags is None:
        return None
    return _apply_tag_handlers(tags.items())


def fallback_parse(record: str) -> Dict:
    """Second stage: whitespace-insensitive hand-written parser"""
    pairs = []
    for part in re.sub(r'\s+', '', record).split(';'):
        if not part:
            continue
        key, _, value = part.partition('=')
        if key and value:
            pairs.append((key, value))
    return _apply_tag_handlers(pairs)


def parse_dmarc(record: str) -> Dict:
    """
    Parse a DMARC record into a tag mapping.

    The library stage runs first; its result is discarded in favour of the
    hand-written parser when it is missing (malformed list), empty, or has no
    'v' tag. Raises RecordParseError when the final result has no DMARC1
    version tag.
    """
    parsed = library_parse(record)
    if not parsed or 'v' not in parsed:
        log_message("Strict tag parser gave no usable result, using fallback parser", "DEBUG")
        parsed = fallback_parse(record)

    if 'DMARC1' not in parsed.get('v', ''):
        raise RecordParseError('Invalid DMARC record: missing or incorrect version')

    return parsed


def score_dmarc(parsed: Dict, verification: Optional[dict] = None):
    """Score a parsed policy; returns (ScoreBreakdown, warnings, recommendations)"""
    score = ScoreCard(10, DMARC_LEVELS)
    warnings = []
    recommendations = []

    # Policy scoring and analysis
    policy = parsed.get('p')
    if policy == 'reject':
        score.add(5, 'Strong policy: reject (+5 points)')
    elif policy == 'quarantine':
        score.add(3, 'Moderate policy: quarantine (+3 points)')
        recommendations.append('Consider upgrading to "p=reject" for maximum security')
    elif policy == 'none':
        warnings.append('Policy "p=none" offers no protection. Consider "quarantine" or "reject".')
        recommendations.append('Start with "p=quarantine" and monitor reports before moving to "p=reject"')
    else:
        warnings.append(f"Unknown or missing policy: {policy if policy is not None else 'undefined'}")
        score.add(-2)

    # Reporting configuration
    if parsed.get('rua'):
        score.add(1, 'Aggregate reports configured (+1 point)')
    else:
        warnings.append('No rua tag configured - you will not receive aggregate reports.')
        recommendations.append('Add rua=mailto:dmarc-reports@yourdomain.com to receive aggregate reports')

    if parsed.get('ruf'):
        score.add(1, 'Forensic reports configured (+1 point)')
    else:
        recommendations.append('Consider adding ruf=mailto:dmarc-forensic@yourdomain.com for detailed failure reports')

    # Subdomain policy
    if parsed.get('sp'):
        score.add(1, 'Subdomain policy defined (+1 point)')
        if parsed['sp'] == 'reject':
            score.add(0.5, 'Strong subdomain policy (+0.5 points)')
    else:
        recommendations.append('Consider adding sp= to explicitly define subdomain policy')

    # Coverage percentage
    pct = parsed.get('pct', DEFAULT_PCT)
    if pct < 100:
        warnings.append(f"Only {pct}% of mail is subject to DMARC policy.")
        score.add(-(100 - pct) / 50)
        if pct < 50:
            warnings.append('Very low policy coverage - consider increasing pct value')
    else:
        score.add(0.5, 'Full policy coverage (+0.5 points)')

    # Alignment modes
    if parsed.get('adkim') == 's':
        score.add(0.5, 'Strict DKIM alignment (+0.5 points)')
    if parsed.get('aspf') == 's':
        score.add(0.5, 'Strict SPF alignment (+0.5 points)')

    for detail in verification_details('DMARC', verification):
        score.note(detail)

    return score.result(), warnings, recommendations


POLICY_MEANINGS = {
    'none': 'No enforcement - just monitor and collect reports',
    'quarantine': 'Suspicious emails are sent to spam/junk folder',
    'reject': 'Unauthenticated emails are completely blocked',
}


def _alignment(mode):
    return 'strict' if mode == 's' else 'relaxed'


def explain_dmarc(parsed: Dict) -> Dict[str, str]:
    """Plain-language description of every known tag"""
    rua = parsed.get('rua')
    ruf = parsed.get('ruf')
    pct = parsed.get('pct', DEFAULT_PCT)
    ri = parsed.get('ri')
    policy = parsed.get('p')

    return {
        'v': f"DMARC version: {parsed.get('v')}",
        'p': POLICY_MEANINGS.get(policy, f"Unknown policy: {policy}"),
        'rua': (f"Aggregate reports will be sent to: {', '.join(rua)}" if rua
                else 'No aggregate report address configured'),
        'ruf': (f"Forensic reports will be sent to: {', '.join(ruf)}" if ruf
                else 'No forensic report address configured'),
        'adkim': (f"DKIM alignment: {_alignment(parsed['adkim'])}" if parsed.get('adkim')
                  else 'DKIM alignment: relaxed (default)'),
        'aspf': (f"SPF alignment: {_alignment(parsed['aspf'])}" if parsed.get('aspf')
                 else 'SPF alignment: relaxed (default)'),
        'sp': (f"Subdomain policy: {parsed['sp']}" if parsed.get('sp')
               else 'Subdomain policy: inherits from main policy'),
        'pct': f"{pct}% of emails are subject to this DMARC policy",
        'fo': (f"Failure reporting options: {parsed['fo']}" if parsed.get('fo')
               else 'Failure reporting: default (any failure)'),
        'ri': (f"Report interval: {ri} seconds ({math.floor(ri / 86400 + 0.5)} days)" if ri
               else 'Report interval: 86400 seconds (1 day, default)'),
    }


def _evaluate(domain, record, verification=None, checked_record=None) -> AnalysisResult:
    parsed = parse_dmarc(record)
    score, warnings, recommendations = score_dmarc(parsed, verification)
    return AnalysisResult(
        success=True,
        domain=domain,
        checked_record=checked_record,
        raw_record=record,
        parsed=parsed,
        explanations=explain_dmarc(parsed),
        warnings=warnings,
        recommendations=recommendations,
        score=score,
        verification=verification,
    )


def find_dmarc_record(lookup, domain: str) -> str:
    records = matching_txt_records(lookup, f"_dmarc.{domain}", lambda txt: txt.startswith('v=DMARC1'))
    if not records:
        raise RecordNotFound('DMARC record not found')
    return records[0]


def lookup_dmarc(domain: str, lookup) -> Dict:
    """Lookup only: whether a DMARC record is published and its text"""
    try:
        record = find_dmarc_record(lookup, domain)
    except RecordNotFound:
        return {'found': False, 'record': None, 'message': 'DMARC record not found'}
    except MailPostureError as e:
        log_message(f"DMARC lookup failed for {domain}: {e}", "WARNING")
        return {'found': False, 'record': None, 'message': str(e)}
    return {'found': True, 'record': record}


def analyze_dmarc(domain: str, lookup, verifier=None) -> AnalysisResult:
    """Fetch, parse, score and explain the DMARC policy of `domain`"""
    checked_record = f"_dmarc.{domain}"
    log_message(f"Checking DMARC record for {domain}")

    try:
        record = find_dmarc_record(lookup, domain)
    except RecordNotFound:
        log_message(f"No DMARC record found at {checked_record}", "WARNING")
        return AnalysisResult.failure(domain, 'DMARC record not found', checked_record=checked_record)
    except MailPostureError as e:
        return AnalysisResult.failure(domain, str(e), checked_record=checked_record)
    except Exception as e:
        log_message(f"DMARC lookup failed for {checked_record}: {e}", "ERROR")
        return AnalysisResult.failure(domain, str(e), checked_record=checked_record)

    verification = None
    if verifier is not None:
        verification = run_verifier('DMARC', lambda: verifier.verify_dmarc(domain))

    try:
        result = _evaluate(domain, record, verification, checked_record)
    except RecordParseError as e:
        return AnalysisResult.failure(domain, str(e), checked_record=checked_record, raw_record=record)
    except Exception as e:
        log_message(f"DMARC analysis failed for {domain}: {e}", "ERROR")
        return AnalysisResult.failure(domain, str(e), checked_record=checked_record, raw_record=record)

    log_message(f"DMARC score for {domain}: {result.score.value}/10 ({result.score.level})", "SUCCESS")
    return result


def analyze_dmarc_record(record: str) -> AnalysisResult:
    """Parse, score and explain a caller-supplied record without any lookup"""
    try:
        return _evaluate(None, record)
    except RecordParseError as e:
        return AnalysisResult.failure(None, str(e), raw_record=record)
