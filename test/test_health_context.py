"""Tests for the health context builder, record analysis and cache."""

from datetime import date, datetime, timezone

import pytest

from sahayak.health.context import (
    HealthContextCache,
    analyze_recent_health_records,
    blood_pressure_status,
    blood_pressure_trend,
    build_health_context,
    calculate_age,
    generate_health_insights,
    get_user_health_context,
    latest_vitals,
)
from sahayak.health.models import HealthContext, Lifestyle, UserProfile

TODAY = date(2024, 6, 15)


class TestCalculateAge:
    def test_birthday_passed(self) -> None:
        assert calculate_age("1980-01-10", today=TODAY) == 44

    def test_birthday_not_yet(self) -> None:
        assert calculate_age(date(1980, 12, 1), today=TODAY) == 43

    def test_missing_or_unparseable(self) -> None:
        assert calculate_age(None, today=TODAY) is None
        assert calculate_age("yesterday", today=TODAY) is None


class TestBuildHealthContext:
    def test_full_documents(self) -> None:
        user = {"language": "mr", "date_of_birth": "1990-06-15T00:00:00Z"}
        profile = {
            "personal_info": {"gender": "male"},
            "medical_history": {
                "conditions": [
                    {"name": "asthma", "status": "active"},
                    {"name": "fracture", "status": "resolved"},
                ],
                "allergies": [{"allergen": "peanuts"}],
            },
            "current_medications": [{"name": "salbutamol"}],
            "lifestyle": {"exercise_frequency": "daily", "sleep_hours": 8},
        }
        conversations = [
            {"messages": [{"role": "user", "content": f"m{i}"} for i in range(7)]},
            {"messages": [{"role": "assistant", "content": "later"}]},
        ]

        context = build_health_context(user, profile, conversations, today=TODAY)

        assert context.language == "mr"
        assert context.user_profile.age == 34
        assert context.user_profile.gender == "male"
        assert context.user_profile.conditions == ["asthma"]
        assert context.user_profile.medications == ["salbutamol"]
        assert context.user_profile.allergies == ["peanuts"]
        assert context.user_profile.lifestyle.exercise_frequency == "daily"
        assert [t.content for t in context.conversation_history] == ["m2", "m3", "m4", "m5", "m6", "later"]

    def test_bare_user_has_no_profile(self) -> None:
        context = build_health_context({})

        assert context.user_profile is None
        assert context.language == "en"
        assert context.conversation_history == []


class TestBloodPressure:
    @pytest.mark.parametrize(
        "reading,expected",
        [
            ({"systolic": 115, "diastolic": 75}, "normal"),
            ({"systolic": 125, "diastolic": 75}, "elevated"),
            ({"systolic": 135, "diastolic": 85}, "stage1_hypertension"),
            ({"systolic": 150, "diastolic": 95}, "stage2_hypertension"),
            ({"systolic": 185, "diastolic": 125}, "crisis"),
            ({"systolic": 120}, "unknown"),
            (None, "unknown"),
        ],
    )
    def test_status(self, reading, expected: str) -> None:
        assert blood_pressure_status(reading) == expected

    def test_trend(self) -> None:
        assert blood_pressure_trend({"systolic": 140, "diastolic": 90}, {"systolic": 120, "diastolic": 80}) == "increasing"
        assert blood_pressure_trend({"systolic": 121, "diastolic": 80}, {"systolic": 120, "diastolic": 80}) == "stable"
        assert blood_pressure_trend({"systolic": 110, "diastolic": 70}, {"systolic": 130, "diastolic": 85}) == "decreasing"
        assert blood_pressure_trend(None, {"systolic": 120}) == "unknown"


class TestAnalyzeRecords:
    def test_empty(self) -> None:
        analysis = analyze_recent_health_records([])

        assert analysis.record_count == 0
        assert analysis.vital_trends == {}

    def test_trends_and_symptoms(self) -> None:
        records = [
            {
                "date": "2024-06-01",
                "vitals": {"weight": 80, "blood_pressure": {"systolic": 120, "diastolic": 80}},
                "symptoms": ["headache"],
            },
            {
                "date": "2024-06-10",
                "vitals": {"weight": 84, "blood_pressure": {"systolic": 142, "diastolic": 92}},
                "symptoms": ["headache", "fatigue"],
            },
            {"date": "2024-05-01", "symptoms": ["fatigue", "headache", "cough"]},
        ]

        analysis = analyze_recent_health_records(records)

        assert analysis.record_count == 3
        assert analysis.last_record_date.date() == date(2024, 6, 10)
        weight = analysis.vital_trends["weight"]
        assert weight.trend == "increasing"
        assert weight.change_percent == 5.0
        bp = analysis.vital_trends["blood_pressure"]
        assert bp.trend == "increasing"
        assert bp.status == "stage2_hypertension"
        assert analysis.symptoms_pattern[0].symptom == "headache"
        assert analysis.symptoms_pattern[0].frequency == 3
        assert len(analysis.symptoms_pattern) == 3

    def test_mixed_date_forms_sort_without_error(self) -> None:
        records = [
            {"date": "2024-05-01T10:00:00Z", "vitals": {"heart_rate": 80}},
            {"date": None, "vitals": {"heart_rate": 70}},
            {"date": date(2024, 4, 1), "vitals": {"heart_rate": 75}},
            {"date": datetime(2024, 3, 1, 8, 0), "vitals": {"heart_rate": 90}},
        ]

        analysis = analyze_recent_health_records(records)

        assert analysis.record_count == 4
        assert analysis.last_record_date == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        heart_rate = analysis.vital_trends["heart_rate"]
        assert heart_rate.current == 80
        assert heart_rate.trend == "increasing"


class TestHealthInsights:
    def test_rules(self) -> None:
        context = HealthContext(
            user_profile=UserProfile(
                medications=["metformin"],
                lifestyle=Lifestyle(exercise_frequency="never", sleep_hours=5),
            )
        )

        insights = generate_health_insights(context, {"bmi": "27.3"})

        assert [i.type for i in insights] == ["bmi", "exercise", "sleep", "medication"]
        assert "metformin" in insights[-1].message

    def test_no_profile_no_insights(self) -> None:
        assert generate_health_insights(HealthContext()) == []


class TestHealthContextCache:
    def test_expires_after_ttl(self) -> None:
        now = [1000.0]
        cache = HealthContextCache(ttl_seconds=900, clock=lambda: now[0])
        context = HealthContext(language="hi")

        cache.put("u1", context)
        now[0] += 899
        assert cache.get("u1") is context

        now[0] += 1
        assert cache.get("u1") is None
        assert len(cache) == 0

    def test_invalidate(self) -> None:
        cache = HealthContextCache()
        cache.put("u1", HealthContext())
        cache.put("u2", HealthContext())

        cache.invalidate("u1")
        assert cache.get("u1") is None
        assert len(cache) == 1

        cache.invalidate()
        assert len(cache) == 0


class TestCachedLookup:
    def test_cached_by_user_id(self) -> None:
        cache = HealthContextCache()
        first = get_user_health_context({"id": "u1", "language": "hi"}, cache=cache)

        second = get_user_health_context({"id": "u1", "language": "ta"}, cache=cache)

        assert second is first
        assert second.language == "hi"

    def test_user_without_id_is_not_cached(self) -> None:
        cache = HealthContextCache()

        get_user_health_context({"language": "hi"}, cache=cache)

        assert len(cache) == 0

    def test_latest_vitals_skips_records_without_vitals(self) -> None:
        records = [
            {"date": "2024-06-01", "vitals": {"bmi": 22}},
            {"date": "2024-06-05T09:00:00Z"},
            {"date": "2024-05-01", "vitals": {"bmi": 30}},
        ]

        assert latest_vitals(records) == {"bmi": 22}
        assert latest_vitals([]) == {}
