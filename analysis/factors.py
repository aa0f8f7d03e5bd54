# analysis/factors.py

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Severity(Enum):
    """How a factor moved a score"""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    POSITIVE = "positive"
    NEGATIVE = "negative"
    INFO = "info"


@dataclass(frozen=True)
class ScoreFactor:
    """One human-readable contribution to a score, shared by all scorers"""
    severity: Severity
    message: str
    impact: float
    metric: Optional[str] = None
    value: Optional[str] = None
    max_impact: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'severity': self.severity.value,
            'message': self.message,
            'impact': self.impact,
        }
        if self.metric is not None:
            data['metric'] = self.metric
        if self.value is not None:
            data['value'] = self.value
        if self.max_impact is not None:
            data['max_impact'] = self.max_impact
        return data
