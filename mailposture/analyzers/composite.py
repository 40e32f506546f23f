"""
Composite email security analysis

Runs the DMARC, SPF, DKIM and MX analyzers in parallel and folds their
scores into one overall score out of 10.
"""

import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Optional

from mailposture.analyzers.dkim import DEFAULT_SELECTOR, analyze_dkim
from mailposture.analyzers.dmarc import analyze_dmarc
from mailposture.analyzers.mx import analyze_mx
from mailposture.analyzers.spf import analyze_spf
from mailposture.console import log_message
from mailposture.models import AnalysisResult, CompositeResult, ScoreBreakdown
from mailposture.scoring import OVERALL_LEVELS, level_for, round_score

PROTOCOLS = ('dmarc', 'spf', 'dkim', 'mx')
DEFAULT_WEIGHTS = {name: 1.0 for name in PROTOCOLS}


def validate_weights(weights: Optional[Dict]) -> Dict[str, float]:
    """Per-protocol weights as floats; missing, non-numeric or negative entries fall back to 1.0"""
    validated = dict(DEFAULT_WEIGHTS)
    if not isinstance(weights, dict):
        if weights is not None:
            log_message(f"Ignoring composite weights, expected a mapping: {weights!r}", "WARNING")
        return validated

    for name, value in weights.items():
        if name not in validated:
            log_message(f"Ignoring weight for unknown protocol: {name}", "WARNING")
            continue
        try:
            weight = float(value)
        except (TypeError, ValueError):
            log_message(f"Invalid weight for {name}: {value!r}, using 1.0", "WARNING")
            continue
        if not math.isfinite(weight) or weight < 0:
            log_message(f"Weight for {name} must be a non-negative number: {value!r}, using 1.0", "WARNING")
            continue
        validated[name] = weight
    return validated


def combine_scores(results: Dict[str, AnalysisResult], weights: Optional[Dict[str, float]] = None):
    """
    Fold per-protocol scores into (overall ScoreBreakdown, total points, max points).

    The overall value is the weighted share of points earned by the protocols
    that succeeded, scaled to 10. Failed protocols are left out of both sides.
    Total and max points are the unweighted sums.
    """
    weights = validate_weights(weights)
    weighted_total = weighted_max = 0.0
    total_points = max_points = 0.0
    details = []

    for name in PROTOCOLS:
        result = results.get(name)
        if result is None:
            continue
        if not (result.success and result.score):
            details.append(f"{name.upper()}: not scored ({result.error})")
            continue

        weight = weights[name]
        weighted_total += weight * result.score.value
        weighted_max += weight * result.score.out_of
        total_points += result.score.value
        max_points += result.score.out_of
        details.append(f"{name.upper()}: {result.score.value}/{result.score.out_of}")

    overall = (weighted_total / weighted_max) * 10 if weighted_max > 0 else 0
    overall = max(min(overall, 10), 0)
    breakdown = ScoreBreakdown(
        value=round_score(overall),
        out_of=10,
        level=level_for(overall, OVERALL_LEVELS),
        details=details,
    )
    return breakdown, round_score(total_points), round_score(max_points)


class EmailSecurityAnalyzer:
    """Comprehensive email security check for a single domain"""

    def __init__(self, lookup, verifier=None, weights: Optional[Dict[str, float]] = None):
        self.lookup = lookup
        self.verifier = verifier
        self.weights = validate_weights(weights)

    @classmethod
    def from_config(cls, config: dict, lookup, verifier=None) -> 'EmailSecurityAnalyzer':
        return cls(lookup, verifier, weights=config.get('composite', {}).get('weights'))

    def analyze(self, domain: str, dkim_selector: str = DEFAULT_SELECTOR) -> CompositeResult:
        tasks = {
            'dmarc': lambda: analyze_dmarc(domain, self.lookup, self.verifier),
            'spf': lambda: analyze_spf(domain, self.lookup, self.verifier),
            'dkim': lambda: analyze_dkim(domain, self.lookup, self.verifier, selector=dkim_selector),
            'mx': lambda: analyze_mx(domain, self.lookup),
        }

        results = {}
        with ThreadPoolExecutor(max_workers=len(tasks)) as executor:
            future_to_protocol = {executor.submit(task): name for name, task in tasks.items()}

            for future in as_completed(future_to_protocol):
                name = future_to_protocol[future]
                try:
                    results[name] = future.result()
                except Exception as e:
                    log_message(f"{name.upper()} analysis failed for {domain}: {e}", "ERROR")
                    results[name] = AnalysisResult.failure(domain, str(e))

        overall, total_points, max_points = combine_scores(results, self.weights)
        log_message(f"Overall email security for {domain}: {overall.value}/10 ({overall.level})", "SUCCESS")

        return CompositeResult(
            domain=domain,
            dmarc=results['dmarc'],
            spf=results['spf'],
            dkim=results['dkim'],
            mx=results['mx'],
            overall_score=overall,
            total_points=total_points,
            max_points=max_points,
        )
