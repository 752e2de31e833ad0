"""
Tests for progressive overload and plan persistence.
"""

import pytest

from gym_tracker.core.config import PLAN_LOGS_COLLECTION
from gym_tracker.core.errors import PreconditionError
from gym_tracker.core.models import (
    ExerciseRef,
    PerformedExercise,
    PerformedSet,
    Plan,
    PlanExercise,
    Session,
    SessionExercise,
    SessionSet,
    Workout,
)
from gym_tracker.core.overload import (
    PlanStore,
    apply_progressive_overload,
    meets_threshold,
    performed_from_inputs,
    performed_from_session,
    plan_item_from_ref,
)
from gym_tracker.core.store import Query


def _item(exercise_id="Bench", sets=3, rep_min=8, weight=50.0, step=2.5) -> PlanExercise:
    return PlanExercise(
        exercise_id=exercise_id,
        name=exercise_id,
        sets=sets,
        rep_min=rep_min,
        rep_max=12,
        current_weight_kg=weight,
        step_kg=step,
    )


def _plan(*items: PlanExercise) -> Plan:
    return Plan(id="p1", title="Split", workouts=[Workout(id="w1", name="Push", items=list(items))])


def _performed(exercise_id: str, *reps: int, kg: float = 50.0) -> PerformedExercise:
    return PerformedExercise(exercise_id=exercise_id, sets=[PerformedSet(reps=r, weight_kg=kg) for r in reps])


def _weights(plan: Plan) -> dict[str, float]:
    return {i.exercise_id: i.current_weight_kg for i in plan.workouts[0].items}


class TestThreshold:
    """When a weight increase is earned."""

    @pytest.mark.parametrize(
        "reps,expected",
        [
            ([8, 8, 8], True),
            ([10, 9, 8], True),
            ([8, 8, 7], False),
            ([8, 8], False),
            ([8, 8, 8, 2], True),
            ([7, 8, 8, 8], False),
            ([], False),
        ],
    )
    def test_meets_threshold(self, reps, expected):
        sets = [PerformedSet(reps=r, weight_kg=50) for r in reps]
        assert meets_threshold(_item(), sets) is expected

    def test_zero_prescribed_sets_never_progress(self):
        assert meets_threshold(_item(sets=0), [PerformedSet(reps=20, weight_kg=0)]) is False


class TestApplyOverload:
    """Raising working weights."""

    def test_increase_by_step(self):
        plan = _plan(_item())
        out = apply_progressive_overload(plan, "w1", [_performed("Bench", 8, 8, 8)])
        assert _weights(out) == {"Bench": 52.5}
        assert _weights(plan) == {"Bench": 50.0}

    def test_short_set_keeps_weight(self):
        out = apply_progressive_overload(_plan(_item()), "w1", [_performed("Bench", 8, 8, 7)])
        assert _weights(out) == {"Bench": 50.0}

    def test_exercises_judged_independently(self):
        plan = _plan(_item("Bench"), _item("Dips", weight=10.0, step=5.0), _item("Fly", weight=20.0))
        out = apply_progressive_overload(
            plan,
            "w1",
            [_performed("Bench", 8, 8, 6), _performed("Dips", 9, 9, 9)],
        )
        assert _weights(out) == {"Bench": 50.0, "Dips": 15.0, "Fly": 20.0}

    def test_zero_step_never_changes(self):
        out = apply_progressive_overload(_plan(_item(step=0.0)), "w1", [_performed("Bench", 12, 12, 12)])
        assert _weights(out) == {"Bench": 50.0}

    def test_unknown_workout_returns_copy(self):
        plan = _plan(_item())
        out = apply_progressive_overload(plan, "w9", [_performed("Bench", 8, 8, 8)])
        assert out == plan
        assert out is not plan

    def test_weight_never_decreases(self):
        plan = _plan(_item())
        for reps in ([8, 8, 8], [1, 1, 1], [8, 8, 8]):
            plan = apply_progressive_overload(plan, "w1", [_performed("Bench", *reps)])
        assert _weights(plan) == {"Bench": 55.0}


class TestPerformedConversion:
    """Building performed sets from user input and tracked sessions."""

    def test_from_inputs(self):
        workout = Workout(id="w1", name="Push", items=[_item("Bench"), _item("Dips")])
        performed = performed_from_inputs(
            workout,
            {"Bench": [{"reps": "8", "weightKg": "52,5"}, {"reps": "x", "weightKg": "-5"}]},
        )
        assert performed[0] == PerformedExercise(
            "Bench", [PerformedSet(reps=8, weight_kg=52.5), PerformedSet(reps=0, weight_kg=0.0)]
        )
        assert performed[1] == PerformedExercise("Dips", [])

    def test_from_session_counts_done_sets(self):
        ex = SessionExercise(
            id="e1",
            ref=ExerciseRef("Bench", "Bench"),
            sets=[
                SessionSet(id="a", target_reps=8, target_kg=50.0, done=True),
                SessionSet(id="b", target_reps=None, target_kg=50.0, done=True),
                SessionSet(id="c", target_reps=8, target_kg=50.0, done=False),
            ],
        )
        session = Session(id="s1", name="Push", started_at=0, exercises=[ex])
        assert performed_from_session(session) == [
            PerformedExercise("Bench", [PerformedSet(8, 50.0), PerformedSet(0, 50.0)])
        ]

    def test_plan_item_defaults(self):
        item = plan_item_from_ref(ExerciseRef("Bench", "Bench Press", primary_muscles=("chest",)))
        assert (item.sets, item.rep_min, item.rep_max, item.rest_sec, item.step_kg) == (3, 6, 10, 90, 2.5)
        assert item.current_weight_kg == 0.0
        assert item.primary_muscles == ["chest"]


class TestPlanStore:
    """Plans and workout logs in the store."""

    def test_create_list_delete(self, ctx):
        plans = PlanStore(ctx)
        b = plans.create("  Upper  ", [Workout(id="w1", name="Push", items=[_item()])])
        a = plans.create("Lower", [])

        assert [p.title for p in plans.list()] == ["Lower", "Upper"]
        assert plans.get(b).workouts[0].items[0] == _item()

        plans.delete(a)
        assert plans.get(a) is None

    def test_blank_title_rejected(self, ctx):
        with pytest.raises(PreconditionError):
            PlanStore(ctx).create(" ", [])

    def test_log_workout_progresses_and_records(self, ctx, store):
        plans = PlanStore(ctx)
        plan_id = plans.create("Upper", [Workout(id="w1", name="Push", items=[_item(), _item("Dips")])])

        updated = plans.log_workout(plan_id, "w1", [_performed("Bench", 8, 8, 8), _performed("Dips", 5, 5, 5)])

        assert _weights(updated) == {"Bench": 52.5, "Dips": 50.0}
        assert _weights(plans.get(plan_id)) == {"Bench": 52.5, "Dips": 50.0}

        logs = store.query("user-1", PLAN_LOGS_COLLECTION, Query())
        assert len(logs) == 1
        log = logs[0][1]
        assert log["planId"] == plan_id
        assert log["workoutId"] == "w1"
        assert log["overloadApplied"] is True
        assert log["performed"][0] == {
            "exerciseId": "Bench",
            "sets": [{"reps": 8, "weightKg": 50.0}] * 3,
        }

    def test_log_unknown_workout_writes_nothing(self, ctx, store):
        plans = PlanStore(ctx)
        plan_id = plans.create("Upper", [Workout(id="w1", name="Push", items=[_item()])])

        with pytest.raises(PreconditionError):
            plans.log_workout(plan_id, "w9", [_performed("Bench", 8, 8, 8)])

        assert store.query("user-1", PLAN_LOGS_COLLECTION, Query()) == []
        assert _weights(plans.get(plan_id)) == {"Bench": 50.0}

    def test_log_unknown_plan(self, ctx):
        with pytest.raises(PreconditionError):
            PlanStore(ctx).log_workout("nope", "w1", [])
