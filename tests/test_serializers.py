"""
Tests for document parsing and serialization.

Parsing must be total: missing, mistyped or legacy-shaped fields produce a
fully populated model and nothing is raised.
"""

import pytest

from gym_tracker.io.serializers import (
    ValidationError,
    as_bool,
    as_float,
    as_int,
    parse_plan,
    parse_session,
    parse_session_exercise,
    parse_session_set,
    parse_sets_string,
    parse_template,
    session_set_to_doc,
    session_to_doc,
    template_to_doc,
)


# =============================================================================
# Coercion
# =============================================================================


class TestCoercion:
    """Scalar coercion helpers."""

    def test_as_float(self):
        assert as_float("62.5") == 62.5
        assert as_float(None) == 0.0
        assert as_float("abc", 7.0) == 7.0
        assert as_float(float("inf")) == 0.0

    def test_as_int_truncates(self):
        assert as_int("8") == 8
        assert as_int(7.9) == 7
        assert as_int([]) == 0

    def test_as_bool(self):
        assert as_bool(True) is True
        assert as_bool("true") is True
        assert as_bool("no") is False
        assert as_bool(None) is False


# =============================================================================
# Templates
# =============================================================================


class TestParseTemplate:
    """Template documents, current and legacy."""

    def test_garbage_gives_empty_template(self):
        t = parse_template(None, "t1")
        assert t.id == "t1"
        assert t.name == "Template"
        assert t.created_at == 0
        assert t.exercises == []
        assert t.muscles_worked == []

    def test_current_shape(self):
        t = parse_template(
            {
                "name": "Push",
                "createdAt": 1700000000000,
                "musclesWorked": ["chest"],
                "exercises": [
                    {
                        "id": "te1",
                        "ref": {"exerciseId": "Bench", "name": "Bench", "primaryMuscles": ["chest"]},
                        "sets": [{"id": "a", "targetReps": "10", "targetKg": 60}, {"id": "b", "targetReps": -2}],
                    }
                ],
            },
            "t1",
        )
        ex = t.exercises[0]
        assert ex.ref.exercise_id == "Bench"
        assert ex.ref.primary_muscles == ("chest",)
        assert [(s.id, s.target_reps, s.target_kg) for s in ex.sets] == [("a", 10, 60.0), ("b", 0, 0.0)]

    def test_legacy_bare_refs_get_three_default_sets(self):
        t = parse_template(
            {
                "name": "Old",
                "exercises": [
                    {"exerciseId": "Barbell_Squat", "name": "Squat", "primaryMuscles": ["quadriceps"]},
                    {"exerciseId": "Leg_Press", "name": "Leg Press"},
                ],
            },
            "t-old",
        )
        assert len(t.exercises) == 2
        squat = t.exercises[0]
        assert squat.ref.exercise_id == "Barbell_Squat"
        assert squat.ref.name == "Squat"
        assert [s.id for s in squat.sets] == ["s1", "s2", "s3"]
        assert all(s.target_reps == 8 and s.target_kg == 0.0 for s in squat.sets)

    def test_round_trip_is_stable(self):
        raw = {
            "name": "Pull",
            "createdAt": 5,
            "musclesWorked": ["upper-back"],
            "exercises": [{"id": "te1", "ref": {"exerciseId": "Pullups"}, "sets": [{"id": "a", "targetReps": 8}]}],
        }
        first = parse_template(raw, "t1")
        assert parse_template(template_to_doc(first), "t1") == first


# =============================================================================
# Sessions
# =============================================================================


class TestParseSession:
    """Session documents, including cleared values and status derivation."""

    def test_absent_value_is_zero_and_null_is_cleared(self):
        assert parse_session_set({"id": "s"}).target_reps == 0
        s = parse_session_set({"id": "s", "targetReps": None, "targetKg": None})
        assert s.target_reps is None
        assert s.target_kg is None

    def test_negative_values_clamped(self):
        s = parse_session_set({"id": "s", "targetReps": -3, "targetKg": "-2.5"})
        assert s.target_reps == 0
        assert s.target_kg == 0.0

    def test_exercise_done_follows_sets(self):
        ex = parse_session_exercise(
            {"id": "e", "done": False, "sets": [{"id": "a", "done": True}, {"id": "b", "done": True}]}
        )
        assert ex.done is True

    def test_exercise_without_sets_keeps_legacy_flag(self):
        assert parse_session_exercise({"id": "e", "done": True}).done is True
        assert parse_session_exercise({"id": "e"}).done is False

    def test_defaults(self):
        s = parse_session({}, "s1")
        assert s.name == "Workout"
        assert s.started_at == 0
        assert s.status == "in-progress"
        assert s.finished_at is None
        assert s.template_id is None

    @pytest.mark.parametrize(
        "doc,expected",
        [
            ({"exercises": []}, "in-progress"),
            ({"finishedAt": 10, "exercises": [{"id": "e", "sets": [{"id": "a", "done": False}]}]}, "unfinished"),
            ({"finishedAt": 10, "exercises": [{"id": "e", "sets": [{"id": "a", "done": True}]}]}, "finished"),
            ({"status": "unfinished", "finishedAt": 10, "exercises": []}, "unfinished"),
            ({"status": "bogus"}, "in-progress"),
        ],
    )
    def test_status_derivation(self, doc, expected):
        assert parse_session(doc, "s1").status == expected

    def test_template_set_id_only_written_when_linked(self):
        assert "templateSetId" not in session_set_to_doc(parse_session_set({"id": "a"}))
        assert session_set_to_doc(parse_session_set({"id": "a", "templateSetId": "t"}))["templateSetId"] == "t"

    def test_round_trip_is_stable(self):
        raw = {
            "name": "Legs",
            "startedAt": 1000,
            "templateId": "t1",
            "exercises": [
                {
                    "id": "e1",
                    "templateExerciseId": "te1",
                    "ref": {"exerciseId": "Barbell_Squat"},
                    "sets": [
                        {"id": "a", "targetReps": 5, "targetKg": 100, "done": True, "templateSetId": "ts1"},
                        {"id": "b", "targetReps": None, "targetKg": 100},
                    ],
                }
            ],
        }
        first = parse_session(raw, "s1")
        assert parse_session(session_to_doc(first), "s1") == first


# =============================================================================
# Plans
# =============================================================================


class TestParsePlan:
    """Legacy plan/workout documents."""

    def test_plan_items_coerced(self):
        plan = parse_plan(
            {
                "title": "Split",
                "workouts": [
                    {
                        "id": "w1",
                        "name": "Push",
                        "items": [{"exerciseId": "Bench", "sets": "3", "repMin": 8, "stepKg": "2.5"}],
                    },
                    "junk",
                ],
            },
            "p1",
        )
        assert plan.title == "Split"
        item = plan.workouts[0].items[0]
        assert item.sets == 3
        assert item.rep_min == 8
        assert item.step_kg == 2.5
        assert item.require_all_sets is True
        assert plan.workouts[1].items == []


# =============================================================================
# Text input
# =============================================================================


class TestParseSetsString:
    """Prescription strings used by the CLI."""

    def test_mixed_groups(self):
        assert parse_sets_string("3x8@60, 8@62.5, 12") == [
            (8, 60.0),
            (8, 60.0),
            (8, 60.0),
            (8, 62.5),
            (12, 0.0),
        ]

    def test_upper_case_x_and_kg_suffix(self):
        assert parse_sets_string("2X10@20kg") == [(10, 20.0), (10, 20.0)]

    def test_comma_decimal_weight(self):
        assert parse_sets_string("3x8@62,5") == [(8, 62.5)] * 3
        assert parse_sets_string("8@62,5kg,6@65") == [(8, 62.5), (6, 65.0)]

    def test_comma_and_space_starts_a_new_group(self):
        assert parse_sets_string("8@62, 5") == [(8, 62.0), (5, 0.0)]
        assert parse_sets_string("8@62.5,5") == [(8, 62.5), (5, 0.0)]

    @pytest.mark.parametrize("bad",["", "   ", "abc", "8@", "0x8@20"])
    def test_invalid_raises(self, bad):
        with pytest.raises(ValidationError):
            parse_sets_string(bad)
