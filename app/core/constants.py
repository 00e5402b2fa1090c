"""Application constants.

Contains the approval email sequence, status banner labels, Telegram
reply texts (BG), the sales funnel order, and the default tag set.
"""

from app.models.enums import CandidateStatus, SalesStage

# ---------------------------------------------------------------------------
# Approval email sequence
# Mirrors the Brevo automation; template ids refer to Brevo templates.
# ---------------------------------------------------------------------------
EMAIL_SEQUENCE_VERSION: str = "2025-01-casting-v1"

EMAIL_SEQUENCE: tuple[dict[str, int | str], ...] = (
    {
        "email_number": 1,
        "template_id": 3,
        "subject": "Твоят кастинг номер е генериран",
        "delay_hours": 0,
    },
    {
        "email_number": 2,
        "template_id": 4,
        "subject": "Кой всъщност ще те обучава?",
        "delay_hours": 24,
    },
    {
        "email_number": 3,
        "template_id": 5,
        "subject": "Поемам целия риск вместо теб",
        "delay_hours": 72,  # 24h + 2 days
    },
)

# ---------------------------------------------------------------------------
# Status banners (emoji, label) -- every CandidateStatus must be present
# ---------------------------------------------------------------------------
STATUS_BANNERS: dict[CandidateStatus, tuple[str, str]] = {
    CandidateStatus.PENDING: ("⏳", "ИЗЧАКВА"),
    CandidateStatus.APPROVED: ("✅", "ОДОБРЕН"),
    CandidateStatus.REJECTED: ("❌", "ОТХВЪРЛЕН"),
}

# Past-participle used in "already reviewed" replies
STATUS_VERDICTS: dict[CandidateStatus, str] = {
    CandidateStatus.PENDING: "изчакващ",
    CandidateStatus.APPROVED: "одобрен",
    CandidateStatus.REJECTED: "отхвърлен",
}

# ---------------------------------------------------------------------------
# Telegram texts
# ---------------------------------------------------------------------------
TELEGRAM_NOT_FOUND_TEXT: str = "❌ Кандидатът не е намерен."
TELEGRAM_ALREADY_REVIEWED_TEXT: str = "ℹ️ Този кандидат вече е бил {verdict}."
TELEGRAM_CALLBACK_ANSWERS: dict[CandidateStatus, str] = {
    CandidateStatus.APPROVED: "Кандидатът е одобрен!",
    CandidateStatus.REJECTED: "Кандидатът е отхвърлен.",
}
TELEGRAM_APPROVE_BUTTON: str = "✅ Одобри"
TELEGRAM_REJECT_BUTTON: str = "❌ Отхвърли"

DEFAULT_REVIEWER: str = "Admin"
DEFAULT_TELEGRAM_REVIEWER: str = "Telegram Admin"

# ---------------------------------------------------------------------------
# Sales funnel (ordered)
# ---------------------------------------------------------------------------
SALES_FUNNEL: tuple[SalesStage, ...] = (
    SalesStage.contacted,
    SalesStage.presentation_scheduled,
    SalesStage.presentation_done,
    SalesStage.contract_sent,
    SalesStage.signed,
)

# ---------------------------------------------------------------------------
# Tags seeded when the tags table is empty
# ---------------------------------------------------------------------------
DEFAULT_TAGS: tuple[str, ...] = (
    "VIP",
    "Urgent",
    "Follow-up",
    "Hot lead",
    "Waiting on them",
    "Question",
)
