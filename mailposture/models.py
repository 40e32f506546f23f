"""Result types returned by the analyzers."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

POOR = 'Poor'
FAIR = 'Fair'
GOOD = 'Good'
EXCELLENT = 'Excellent'

LEVELS = (POOR, FAIR, GOOD, EXCELLENT)


@dataclass(frozen=True)
class ScoreBreakdown:
    """Bounded score with its level and itemized contributions"""
    value: float
    out_of: float
    level: str
    details: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'value': self.value,
            'outOf': self.out_of,
            'level': self.level,
            'details': list(self.details),
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one protocol analysis for one domain"""
    success: bool
    domain: Optional[str]
    error: Optional[str] = None
    checked_record: Optional[str] = None
    selector: Optional[str] = None
    raw_record: Optional[str] = None
    parsed: Any = None
    records: Optional[List[Dict[str, Any]]] = None
    explanations: Optional[Dict[str, str]] = None
    warnings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    score: Optional[ScoreBreakdown] = None
    verification: Optional[Dict[str, Any]] = None

    @classmethod
    def failure(cls, domain, error, **context) -> 'AnalysisResult':
        return cls(success=False, domain=domain, error=error, **context)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase response body, omitting unset fields"""
        body = {
            'success': self.success,
            'domain': self.domain,
            'error': self.error,
            'checkedRecord': self.checked_record,
            'selector': self.selector,
            'rawRecord': self.raw_record,
            'parsed': self.parsed,
            'records': self.records,
            'explanations': self.explanations,
            'warnings': list(self.warnings),
            'recommendations': list(self.recommendations),
            'score': self.score.to_dict() if self.score else None,
            'verification': self.verification,
        }
        return {key: value for key, value in body.items() if value is not None}


@dataclass(frozen=True)
class CompositeResult:
    """Four protocol analyses folded into one overall score"""
    domain: str
    dmarc: AnalysisResult
    spf: AnalysisResult
    dkim: AnalysisResult
    mx: AnalysisResult
    overall_score: ScoreBreakdown
    total_points: float
    max_points: float

    def protocols(self) -> Dict[str, AnalysisResult]:
        return {'dmarc': self.dmarc, 'spf': self.spf, 'dkim': self.dkim, 'mx': self.mx}

    def to_dict(self) -> Dict[str, Any]:
        body = {'domain': self.domain}
        for name, result in self.protocols().items():
            body[name] = result.to_dict()
        body['overallScore'] = self.overall_score.to_dict()
        body['totalPoints'] = self.total_points
        body['maxPoints'] = self.max_points
        return body
