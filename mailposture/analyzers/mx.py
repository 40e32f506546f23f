"""MX record set analysis, scored out of 3."""

from typing import Dict, List

from mailposture.console import log_message
from mailposture.errors import MailPostureError, RecordNotFound
from mailposture.models import AnalysisResult
from mailposture.scoring import MX_LEVELS, ScoreCard

NOT_FOUND_RECOMMENDATIONS = [
    'Add MX records to enable email delivery to your domain',
    'MX records specify which mail servers handle email for your domain',
]


def sort_mx(records: List[Dict]) -> List[Dict]:
    """Lower priority number first; equal priorities keep answer order"""
    return sorted(records, key=lambda r: r['priority'])


def score_mx(records: List[Dict]):
    """Score an MX set; returns (ScoreBreakdown, warnings, recommendations)"""
    warnings = []
    recommendations = []

    if not records:
        warnings.append('No MX records found')
        return ScoreCard.zero(3), warnings, recommendations

    score = ScoreCard(3, MX_LEVELS)
    score.add(1, 'MX records present (+1 point)')

    if len(records) >= 2:
        score.add(1, 'Multiple MX records for redundancy (+1 point)')
    else:
        recommendations.append('Consider adding backup MX records for redundancy')

    priorities = [r['priority'] for r in records]
    if len(set(priorities)) == len(priorities):
        score.add(1, 'Proper priority configuration (+1 point)')
    else:
        warnings.append('Some MX records have the same priority')

    return score.result(), warnings, recommendations


def analyze_mx(domain: str, lookup) -> AnalysisResult:
    log_message(f"Querying MX records for {domain}")

    try:
        records = lookup.resolve_mx(domain)
        if not records:
            raise RecordNotFound('No MX records found')
    except RecordNotFound:
        log_message(f"No MX records found for {domain}", "WARNING")
        return AnalysisResult.failure(domain, 'No MX records found',
                                      recommendations=list(NOT_FOUND_RECOMMENDATIONS))
    except MailPostureError as e:
        return AnalysisResult.failure(domain, str(e))
    except Exception as e:
        log_message(f"MX lookup failed for {domain}: {e}", "ERROR")
        return AnalysisResult.failure(domain, str(e))

    sorted_mx = sort_mx(records)
    score, warnings, recommendations = score_mx(sorted_mx)

    log_message(f"Found {len(sorted_mx)} MX records", "SUCCESS")
    return AnalysisResult(
        success=True,
        domain=domain,
        records=sorted_mx,
        parsed=[r['exchange'] for r in sorted_mx],
        warnings=warnings,
        recommendations=recommendations,
        score=score,
    )
