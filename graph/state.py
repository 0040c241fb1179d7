from typing import TypedDict, Optional, List, Dict, Any, Literal

LeadScore = Literal["hot", "warm", "cold"]
LeadTag = Literal["assessment_complete", "high_score", "ready_to_buy", "needs_nurture", "unengaged"]

ProspectCategory = Literal[
    "enterprise_ai",
    "ministry_coaching",
    "investment_fund",
    "strategic_consulting",
    "speaking_engagement",
    "platform_user",
    "undetermined",
]
ProspectTier = Literal["tier_1", "tier_2", "tier_3", "tier_4"]
ProspectStatus = Literal["new", "qualified", "contacted", "nurturing", "opportunity", "closed"]

# Fixed order: used for argmin tie-breaking in the nurture sequence
SCORE_DIMENSIONS = ["current_state", "strategy_vision", "team_capabilities", "implementation"]


class ScoreBreakdown(TypedDict):
    current_state: float
    strategy_vision: float
    team_capabilities: float
    implementation: float


class LeadScoringData(TypedDict, total=False):
    """Snapshot of assessment and engagement facts for one prospect."""
    assessment_completed: bool
    overall_score: Optional[float]
    score_breakdown: Optional[ScoreBreakdown]
    email_opened: bool
    email_clicked: bool
    calendar_booked: bool
    chat_used: bool
    days_since_signup: Optional[int]
    days_since_assessment: Optional[int]


class LeadScoreResult(TypedDict):
    score: LeadScore
    points: int                      # 0-100
    tags: List[LeadTag]
    priority: int                    # 1-5 (5 = highest)
    recommended_action: str
    next_follow_up_days: int


class ProspectProfile(TypedDict, total=False):
    id: str
    email: Optional[str]
    name: Optional[str]
    company: Optional[str]
    role: Optional[str]
    lead_score: int
    category: ProspectCategory
    tier: ProspectTier
    interests: List[str]
    assessment_data: Optional[Dict[str, Any]]
    source: str
    utm_data: Optional[Dict[str, Any]]
    status: ProspectStatus
    created_at: str
    last_engagement_at: str


class ScoringHistoryEntry(TypedDict):
    prospect_id: str
    score_change: int
    new_total_score: int
    reason: str
    source_event: str
    event_data: Dict[str, Any]
    created_at: str


class SignalScore(TypedDict, total=False):
    """Contribution of one evidence source to a prospect profile."""
    kind: str                        # "assessment" | "page_views" | "form" | "company"
    score: int
    category: Optional[ProspectCategory]   # applied only if no earlier signal set one
    interests: List[str]


class BookingRecommendation(TypedDict):
    call_type: Literal["executive_strategy", "divine_strategy", "ai_implementation", "general_discovery"]
    calendly_url: str
    preparation_guide: str
    priority: Literal["high", "medium", "standard"]
    estimated_value: int


class NurtureSequenceData(TypedDict, total=False):
    email: str
    name: str
    industry: str
    team_size: str
    role: str
    biggest_challenge: str
    timeline: str
    overall_score: float
    scores: ScoreBreakdown


class NurtureEmail(TypedDict, total=False):
    subject: str
    preheader: str
    html: str
    send_after_days: int
    email_number: int
    weakest_area: str                # email 3 only
    offer_type: str                  # email 6 only: "consulting" | "course"


class LeadState(TypedDict, total=False):
    """State shape for the prospect processing workflow."""
    event: str                       # "assessment" | "form" | "lead_magnet"
    raw: Dict[str, Any]              # original request payload
    normalized: Dict[str, Any]       # email, name, company, role, utm, signals...
    validation_errors: List[str]
    scoring_data: LeadScoringData
    score_result: LeadScoreResult
    profile: ProspectProfile
    recommendation: BookingRecommendation
    tracking_url: str
    nurture_data: NurtureSequenceData
    nurture_emails: List[NurtureEmail]
    prospect_id: Optional[str]       # stored id once persisted
    notifications: List[str]         # Slack message ids
    errors: List[str]
