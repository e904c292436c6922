# ============================================================================
# src/medibill_client/core/models.py
# ============================================================================
"""
Data models

- Backend payloads (pydantic): users, login/register responses, analysis report
- Client-side values (dataclasses): AnalysisOutcome, DashboardSummary
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# Login responses carry no user id; this stands in until a profile fetch
PLACEHOLDER_USER_ID = 0


# ============================================================================
# Backend payloads
# ============================================================================

class User(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_id: int = Field(validation_alias=AliasChoices("user_id", "id"))
    username: str
    email: Optional[str] = None


class ProfileResponse(BaseModel):
    profile: User


class LoginResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)
    username: str


class RegisterResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    msg: str = ""
    user_id: int
    username: str


class ValidationFlag(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    rule: str = ""
    severity: str = "info"  # "error", "warning", "info"
    description: str = ""
    evidence: Optional[str] = None
    created_at: Optional[str] = None


class ValidationSummary(BaseModel):
    model_config = ConfigDict(extra="allow")

    compliance_score: float = Field(ge=0.0, le=1.0)
    issues_found: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class ValidationResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    flags: List[ValidationFlag] = Field(default_factory=list)
    summary: ValidationSummary


class ConfidenceScores(BaseModel):
    ocr_confidence: float = 0.0
    extraction_confidence: float = 0.0
    overall_confidence: float = 0.0


class AnalysisReport(BaseModel):
    """
    Report returned by POST /api/files/upload-and-analyze.

    Only `validation` is required; the rest is passed through to the views.
    """
    model_config = ConfigDict(extra="allow")

    file_id: Optional[str] = None
    extracted_id: Optional[str] = None
    file: Optional[Dict[str, Any]] = None
    raw_text: Optional[str] = None
    structured: Optional[Dict[str, Any]] = None
    validation: ValidationResult
    analysis_details: Optional[Dict[str, Any]] = None
    confidence_scores: Optional[ConfidenceScores] = None
    report: Optional[Dict[str, Any]] = None

    @property
    def line_items(self) -> List[Dict[str, Any]]:
        return (self.structured or {}).get("line_items", [])

    @property
    def meta(self) -> Dict[str, Any]:
        return (self.structured or {}).get("meta", {})


# ============================================================================
# Client-side values
# ============================================================================

@dataclass(frozen=True)
class AnalysisOutcome:
    """Part of an analysis report that feeds the dashboard summary."""
    compliance_score: float
    flag_count: int

    def __post_init__(self):
        if not 0.0 <= self.compliance_score <= 1.0:
            raise ValueError(f"compliance_score out of range: {self.compliance_score}")
        if self.flag_count < 0:
            raise ValueError(f"flag_count must be >= 0: {self.flag_count}")

    @classmethod
    def from_report(cls, report: AnalysisReport) -> "AnalysisOutcome":
        return cls(
            compliance_score=report.validation.summary.compliance_score,
            flag_count=len(report.validation.flags),
        )


@dataclass(frozen=True)
class DashboardSummary:
    """Approximate, locally persisted aggregate of past analyses."""
    total_analyzed: int = 0
    high_compliance: int = 0
    flagged_issues: int = 0

    def __post_init__(self):
        if min(self.total_analyzed, self.high_compliance, self.flagged_issues) < 0:
            raise ValueError(f"Summary counters must be >= 0: {self}")
        if self.high_compliance > self.total_analyzed:
            raise ValueError(f"high_compliance exceeds total_analyzed: {self}")

    @classmethod
    def zero(cls) -> "DashboardSummary":
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DashboardSummary":
        """
        Build from the stored dict, clamping counters back into the invariant.

        Negative counters become 0 and high_compliance is capped at
        total_analyzed. Raises ValueError if the data is not a dict of numbers.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a dict, got {type(data).__name__}")
        try:
            total = max(0, int(data.get("total_analyzed", 0)))
            high = max(0, int(data.get("high_compliance", 0)))
            flagged = max(0, int(data.get("flagged_issues", 0)))
        except (TypeError, OverflowError) as e:
            raise ValueError(str(e)) from e

        return cls(
            total_analyzed=total,
            high_compliance=min(high, total),
            flagged_issues=flagged,
        )

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def fold(self, outcome: AnalysisOutcome, high_compliance_threshold: float) -> "DashboardSummary":
        """Return the summary with one more analysis counted."""
        is_high = outcome.compliance_score > high_compliance_threshold
        return DashboardSummary(
            total_analyzed=self.total_analyzed + 1,
            high_compliance=self.high_compliance + (1 if is_high else 0),
            flagged_issues=self.flagged_issues + outcome.flag_count,
        )
