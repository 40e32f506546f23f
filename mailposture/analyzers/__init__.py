"""Per-protocol record analyzers and the composite email security analyzer."""

from mailposture.analyzers.dmarc import analyze_dmarc, analyze_dmarc_record, lookup_dmarc
from mailposture.analyzers.spf import analyze_spf
from mailposture.analyzers.dkim import analyze_dkim
from mailposture.analyzers.mx import analyze_mx
from mailposture.analyzers.composite import EmailSecurityAnalyzer, combine_scores

__all__ = [
    'analyze_dmarc',
    'analyze_dmarc_record',
    'lookup_dmarc',
    'analyze_spf',
    'analyze_dkim',
    'analyze_mx',
    'EmailSecurityAnalyzer',
    'combine_scores',
]
