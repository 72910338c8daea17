"""
Build HealthContext objects from stored user documents.

The functions here are pure: they take the plain documents a persistence layer
returns (user, health profile, health records, conversations) and derive the
context handed to the adapters, plus a small record analysis and rule-based
insights. HealthContextCache keeps built contexts per user for a short TTL.
"""

from __future__ import annotations

import time
from collections import Counter
from collections.abc import Mapping, Sequence
from datetime import date, datetime, timezone
from typing import Any, Callable

from pydantic import BaseModel, Field

from sahayak.health.languages import DEFAULT_LANGUAGE
from sahayak.health.models import ConversationTurn, HealthContext, Lifestyle, UserProfile
from sahayak.shared.logging import get_logger

logger = get_logger(__name__)

MESSAGES_PER_CONVERSATION = 5
RECENT_RECORDS_FOR_SYMPTOMS = 5
TOP_SYMPTOMS = 3
TRENDED_VITALS = ("blood_pressure", "heart_rate", "weight", "blood_sugar")
DEFAULT_CACHE_TTL_SECONDS = 15 * 60
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class VitalTrend(BaseModel):
    """Trend of one vital sign across the two most recent records."""

    current: Any
    trend: str
    status: str | None = None
    change_percent: float | None = None


class SymptomFrequency(BaseModel):
    symptom: str
    frequency: int


class RecordAnalysis(BaseModel):
    """Summary of recent health records."""

    record_count: int = 0
    last_record_date: datetime | None = None
    vital_trends: dict[str, VitalTrend] = Field(default_factory=dict)
    symptoms_pattern: list[SymptomFrequency] = Field(default_factory=list)


class HealthInsight(BaseModel):
    type: str
    level: str
    message: str


def _to_datetime(value: Any) -> datetime | None:
    """Parse a stored date into an aware datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Unparseable date in health document", extra={"value": value})
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def calculate_age(date_of_birth: Any, today: date | None = None) -> int | None:
    """Whole years between ``date_of_birth`` and ``today``."""
    born = _to_datetime(date_of_birth)
    if born is None:
        return None
    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def build_health_context(
    user: Mapping[str, Any],
    profile: Mapping[str, Any] | None = None,
    conversations: Sequence[Mapping[str, Any]] = (),
    today: date | None = None,
) -> HealthContext:
    """Derive a HealthContext from a user document and its health profile.

    Only active conditions are kept. The last five messages of each
    conversation are included, conversations in the order supplied.
    """
    profile = profile or {}
    personal = profile.get("personal_info") or {}
    history = profile.get("medical_history") or {}

    fields: dict[str, Any] = {}

    dob = user.get("date_of_birth") or personal.get("date_of_birth")
    if dob:
        fields["age"] = calculate_age(dob, today=today)

    if personal.get("gender"):
        fields["gender"] = personal["gender"]

    conditions = [
        c["name"]
        for c in history.get("conditions") or []
        if c.get("status") == "active" and c.get("name")
    ]
    if conditions:
        fields["conditions"] = conditions

    medications = [m["name"] for m in profile.get("current_medications") or [] if m.get("name")]
    if medications:
        fields["medications"] = medications

    allergies = [a["allergen"] for a in history.get("allergies") or [] if a.get("allergen")]
    if allergies:
        fields["allergies"] = allergies

    if profile.get("lifestyle"):
        fields["lifestyle"] = Lifestyle.model_validate(profile["lifestyle"])

    language = user.get("language") or DEFAULT_LANGUAGE
    user_profile = UserProfile(language=language, **fields) if fields else None

    turns: list[ConversationTurn] = []
    for conversation in conversations:
        for message in (conversation.get("messages") or [])[-MESSAGES_PER_CONVERSATION:]:
            turns.append(
                ConversationTurn(
                    role=message["role"],
                    content=message["content"],
                    timestamp=_to_datetime(message.get("timestamp")),
                )
            )

    return HealthContext(
        user_profile=user_profile,
        conversation_history=turns,
        language=language,
    )


def blood_pressure_trend(current: Mapping[str, Any] | None, previous: Mapping[str, Any] | None) -> str:
    if not current or not previous or not current.get("systolic") or not previous.get("systolic"):
        return "unknown"

    current_avg = (current["systolic"] + current.get("diastolic", 0)) / 2
    previous_avg = (previous["systolic"] + previous.get("diastolic", 0)) / 2
    diff = current_avg - previous_avg

    if abs(diff) < 3:
        return "stable"
    return "increasing" if diff > 0 else "decreasing"


def blood_pressure_status(reading: Mapping[str, Any] | None) -> str:
    """Classify a blood pressure reading (ACC/AHA categories)."""
    if not reading or not reading.get("systolic") or not reading.get("diastolic"):
        return "unknown"

    systolic = reading["systolic"]
    diastolic = reading["diastolic"]

    if systolic < 120 and diastolic < 80:
        return "normal"
    if systolic < 130 and diastolic < 80:
        return "elevated"
    if systolic < 140 or diastolic < 90:
        return "stage1_hypertension"
    if systolic < 180 or diastolic < 120:
        return "stage2_hypertension"
    return "crisis"


def _newest_first(records: Sequence[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    return sorted(records, key=lambda r: _to_datetime(r.get("date")) or _OLDEST, reverse=True)


def latest_vitals(records: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """Vitals of the most recent record that has any."""
    for record in _newest_first(records):
        if record.get("vitals"):
            return dict(record["vitals"])
    return {}


def analyze_recent_health_records(records: Sequence[Mapping[str, Any]]) -> RecordAnalysis:
    """Summarize vital trends and recurring symptoms from health records."""
    if not records:
        return RecordAnalysis()

    ordered = _newest_first(records)
    analysis = RecordAnalysis(
        record_count=len(ordered),
        last_record_date=_to_datetime(ordered[0].get("date")),
    )

    for vital in TRENDED_VITALS:
        values = [
            (r.get("vitals") or {}).get(vital)
            for r in ordered
            if (r.get("vitals") or {}).get(vital) is not None
        ]
        if len(values) < 2:
            continue

        recent, previous = values[0], values[1]
        if vital == "blood_pressure":
            analysis.vital_trends[vital] = VitalTrend(
                current=recent,
                trend=blood_pressure_trend(recent, previous),
                status=blood_pressure_status(recent),
            )
        else:
            if recent > previous:
                trend = "increasing"
            elif recent < previous:
                trend = "decreasing"
            else:
                trend = "stable"
            change = round((recent - previous) / previous * 100, 1) if previous != 0 else 0.0
            analysis.vital_trends[vital] = VitalTrend(
                current=recent,
                trend=trend,
                change_percent=change,
            )

    counts = Counter(
        symptom
        for record in ordered[:RECENT_RECORDS_FOR_SYMPTOMS]
        for symptom in record.get("symptoms") or []
        if symptom
    )
    analysis.symptoms_pattern = [
        SymptomFrequency(symptom=symptom, frequency=count)
        for symptom, count in counts.most_common(TOP_SYMPTOMS)
    ]
    return analysis


def generate_health_insights(
    context: HealthContext,
    latest_vitals: Mapping[str, Any] | None = None,
) -> list[HealthInsight]:
    """Rule-based insights from the profile and latest vitals."""
    insights: list[HealthInsight] = []

    bmi = (latest_vitals or {}).get("bmi")
    if bmi is not None:
        bmi = float(bmi)
        if bmi < 18.5:
            insights.append(
                HealthInsight(
                    type="bmi",
                    level="attention",
                    message="Your BMI indicates underweight. Consider consulting a nutritionist for a healthy weight gain plan.",
                )
            )
        elif bmi > 25:
            insights.append(
                HealthInsight(
                    type="bmi",
                    level="attention",
                    message="Your BMI indicates overweight. Consider a balanced diet and regular exercise.",
                )
            )

    profile = context.user_profile
    lifestyle = profile.lifestyle if profile else None

    if lifestyle and lifestyle.exercise_frequency in ("never", "rarely"):
        insights.append(
            HealthInsight(
                type="exercise",
                level="recommendation",
                message="Regular physical activity is crucial for good health. Start with 30 minutes of moderate exercise 3-4 times per week.",
            )
        )

    if lifestyle and lifestyle.sleep_hours is not None and lifestyle.sleep_hours < 7:
        insights.append(
            HealthInsight(
                type="sleep",
                level="attention",
                message="You may not be getting enough sleep. Adults need 7-9 hours of quality sleep for optimal health.",
            )
        )

    if profile and profile.medications:
        insights.append(
            HealthInsight(
                type="medication",
                level="reminder",
                message=f"Remember to take your medications as prescribed: {', '.join(profile.medications)}",
            )
        )

    return insights


class HealthContextCache:
    """Per-user TTL cache of built contexts.

    Not shared across processes; entries expire after ``ttl_seconds``.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, HealthContext]] = {}

    def get(self, user_id: str) -> HealthContext | None:
        entry = self._entries.get(user_id)
        if entry is None:
            return None
        stored_at, context = entry
        if self._clock() - stored_at >= self._ttl_seconds:
            del self._entries[user_id]
            return None
        return context

    def put(self, user_id: str, context: HealthContext) -> None:
        self._entries[user_id] = (self._clock(), context)

    def invalidate(self, user_id: str | None = None) -> None:
        """Drop one user's entry, or every entry when no user is given."""
        if user_id is None:
            self._entries.clear()
        else:
            self._entries.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._entries)


def get_user_health_context(
    user: Mapping[str, Any],
    profile: Mapping[str, Any] | None = None,
    conversations: Sequence[Mapping[str, Any]] = (),
    cache: HealthContextCache | None = None,
    today: date | None = None,
) -> HealthContext:
    """build_health_context, cached per user id.

    The user document's ``id`` (or ``_id``) is the cache key; documents
    without one are built fresh on every call.
    """
    user_id = user.get("id") or user.get("_id")
    key = str(user_id) if user_id is not None else None

    if cache is not None and key is not None:
        cached = cache.get(key)
        if cached is not None:
            logger.debug("Health context cache hit", extra={"user_id": key})
            return cached

    context = build_health_context(user, profile, conversations, today=today)

    if cache is not None and key is not None:
        cache.put(key, context)
    return context
