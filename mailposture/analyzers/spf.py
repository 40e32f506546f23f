"""SPF record analysis, scored out of 5."""

from typing import List, Optional

from mailposture.analyzers.common import matching_txt_records, run_verifier, verification_details
from mailposture.console import log_message
from mailposture.errors import MailPostureError, RecordNotFound
from mailposture.models import AnalysisResult
from mailposture.scoring import SPF_LEVELS, ScoreCard

SPF_VERSION = 'v=spf1'
MAX_DNS_LOOKUPS = 10

# Terms that cost a DNS query during evaluation (RFC 7208 section 4.6.4)
LOOKUP_TERMS = {'include', 'a', 'mx', 'ptr', 'exists', 'redirect'}

NOT_FOUND_RECOMMENDATIONS = [
    'Add an SPF record to your domain to specify which mail servers are authorized to send emails',
    'Example: "v=spf1 include:_spf.google.com ~all" for Google Workspace',
]


def parse_spf(record: str) -> List[str]:
    """Ordered tokens split on single spaces, version tag removed"""
    return [token for token in record.split(' ') if token != SPF_VERSION]


def _term_name(mechanism: str) -> str:
    name = mechanism.lstrip('+-~?')
    for separator in (':', '/', '='):
        name = name.split(separator, 1)[0]
    return name.lower()


def count_dns_lookups(mechanisms: List[str]) -> int:
    return sum(1 for m in mechanisms if _term_name(m) in LOOKUP_TERMS)


def score_spf(record: str, mechanisms: List[str], verification: Optional[dict] = None):
    """Score an SPF record; returns (ScoreBreakdown, warnings, recommendations)"""
    warnings = []
    recommendations = []

    if not record.startswith(SPF_VERSION):
        warnings.append('Invalid SPF record format')
        return ScoreCard.zero(5), warnings, recommendations

    score = ScoreCard(5, SPF_LEVELS)
    score.add(1, 'Valid SPF record format (+1 point)')

    if any(m.startswith('include:') for m in mechanisms):
        score.add(1, 'Uses include mechanism (+1 point)')

    if any(m.startswith('a') or m.startswith('mx') for m in mechanisms):
        score.add(1, 'Uses a/mx mechanism (+1 point)')

    # Check for proper ending
    ending = mechanisms[-1] if mechanisms else None
    if ending == '~all':
        score.add(1.5, 'Soft fail policy (~all) (+1.5 points)')
    elif ending == '-all':
        score.add(2, 'Hard fail policy (-all) (+2 points)')
    elif ending == '?all':
        score.add(0.5, 'Neutral policy (?all) (+0.5 points)')
        recommendations.append('Consider using ~all or -all for better security')
    else:
        warnings.append('SPF record should end with an "all" mechanism')
        recommendations.append('Add ~all or -all at the end of your SPF record')

    # Advisory checks, no points
    if '+all' in mechanisms:
        warnings.append('SPF uses Pass (+all) - allows any server to send mail (security risk)')
    if any(_term_name(m) == 'ptr' for m in mechanisms):
        warnings.append('PTR mechanism is deprecated and should be avoided')
    lookups = count_dns_lookups(mechanisms)
    if lookups > MAX_DNS_LOOKUPS:
        warnings.append(f"Too many DNS lookups ({lookups}/{MAX_DNS_LOOKUPS}) - may cause SPF validation failures")

    for detail in verification_details('SPF', verification, include_info=False):
        score.note(detail)

    return score.result(), warnings, recommendations


def analyze_spf(domain: str, lookup, verifier=None) -> AnalysisResult:
    """Fetch and score the SPF record published on the bare domain"""
    log_message(f"Checking SPF record for {domain}")

    try:
        records = matching_txt_records(lookup, domain, lambda txt: txt.startswith(SPF_VERSION))
        if not records:
            raise RecordNotFound('SPF record not found')
    except RecordNotFound:
        log_message(f"No SPF record found for {domain}", "WARNING")
        return AnalysisResult.failure(domain, 'SPF record not found',
                                      recommendations=list(NOT_FOUND_RECOMMENDATIONS))
    except MailPostureError as e:
        return AnalysisResult.failure(domain, str(e))
    except Exception as e:
        log_message(f"SPF lookup failed for {domain}: {e}", "ERROR")
        return AnalysisResult.failure(domain, str(e))

    spf_record = records[0]
    verification = None
    if verifier is not None:
        verification = run_verifier('SPF', lambda: verifier.verify_spf(domain))

    mechanisms = parse_spf(spf_record)
    score, warnings, recommendations = score_spf(spf_record, mechanisms, verification)
    if len(records) > 1:
        warnings.append('Multiple SPF records found (should be only one)')

    log_message(f"SPF score for {domain}: {score.value}/5 ({score.level})", "SUCCESS")
    return AnalysisResult(
        success=True,
        domain=domain,
        raw_record=spf_record,
        parsed=mechanisms,
        warnings=warnings,
        recommendations=recommendations,
        score=score,
        verification=verification,
    )
