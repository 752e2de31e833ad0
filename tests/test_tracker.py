"""
Tests for in-session tracking and the session repository.
"""

import pytest

from gym_tracker.core.errors import PreconditionError, SessionLockedError
from gym_tracker.core.models import ExerciseRef, Session, SessionExercise, SessionSet
from gym_tracker.core.sessions import SessionRepository, is_complete, is_unfinished, pick_previous
from gym_tracker.core.tracker import (
    add_set,
    edit_set,
    elapsed_seconds,
    finish,
    format_elapsed,
    parse_set_value,
    previous_set_values,
    remove_set,
    toggle_set,
)

START = 1_700_000_000_000


def _session(*done_flags: bool, status="in-progress", session_id="s1", template_id="t1", started_at=START) -> Session:
    """One Squat exercise with a set per flag (8 reps at 60 kg)."""
    sets = [
        SessionSet(id=f"set{i}", target_reps=8, target_kg=60.0, done=flag, template_set_id=f"ts{i}")
        for i, flag in enumerate(done_flags)
    ]
    ex = SessionExercise(id="ex1", ref=ExerciseRef("Squat", "Squat"), sets=sets, template_exercise_id="te1")
    ex.recompute_done()
    return Session(
        id=session_id,
        name="Legs",
        started_at=started_at,
        status=status,
        exercises=[ex],
        template_id=template_id,
    )


# =============================================================================
# Toggle
# =============================================================================


class TestToggle:
    """Marking sets done."""

    def test_exercise_done_when_all_sets_done(self):
        session = toggle_set(_session(True, False), "ex1", "set1")
        assert session.exercises[0].done is True

    def test_exercise_undone_when_any_set_undone(self):
        session = toggle_set(_session(True, True), "ex1", "set0")
        assert session.exercises[0].done is False

    def test_two_toggles_cancel(self):
        original = _session(False, True, False)
        assert toggle_set(toggle_set(original, "ex1", "set2"), "ex1", "set2") == original

    def test_input_not_mutated(self):
        original = _session(False)
        toggle_set(original, "ex1", "set0")
        assert original.exercises[0].sets[0].done is False

    def test_unknown_ids(self):
        with pytest.raises(PreconditionError):
            toggle_set(_session(False), "nope", "set0")
        with pytest.raises(PreconditionError):
            toggle_set(_session(False), "ex1", "nope")

    def test_finished_session_is_locked(self):
        with pytest.raises(SessionLockedError):
            toggle_set(_session(True, status="finished"), "ex1", "set0")


# =============================================================================
# Edit
# =============================================================================


class TestEdit:
    """Typing into a set's reps/kg fields."""

    @pytest.mark.parametrize(
        "field,raw,expected",
        [
            ("target_reps", "10", 10),
            ("target_reps", " 12 ", 12),
            ("target_reps", "", None),
            ("target_reps", "abc", 8),
            ("target_reps", "-1", 8),
            ("target_reps", "7.5", 8),
            ("target_reps", "1_0", 8),
            ("target_reps", "+9", 8),
            ("target_kg", "6_0.5", 60.0),
            ("target_kg", "1e2", 60.0),
            ("target_kg", "-2.5", 60.0),
            ("target_kg", "62.5", 62.5),
            ("target_kg", "62,5", 62.5),
            ("target_kg", "   ", None),
            ("target_kg", "heavy", 60.0),
            ("target_kg", "nan", 60.0),
        ],
    )
    def test_parse_set_value(self, field, raw, expected):
        previous = 8 if field == "target_reps" else 60.0
        assert parse_set_value(field, raw, previous) == expected

    def test_edit_set(self):
        session = edit_set(_session(False, False), "ex1", "set1", "target_kg", "70")
        assert [s.target_kg for s in session.exercises[0].sets] == [60.0, 70.0]

    def test_blank_clears(self):
        session = edit_set(_session(False), "ex1", "set0", "target_reps", "")
        assert session.exercises[0].sets[0].target_reps is None

    def test_unknown_field(self):
        with pytest.raises(PreconditionError):
            edit_set(_session(False), "ex1", "set0", "done", "1")

    def test_locked(self):
        with pytest.raises(SessionLockedError):
            edit_set(_session(True, status="finished"), "ex1", "set0", "target_kg", "100")


# =============================================================================
# Add / remove
# =============================================================================


class TestAddRemove:
    """Changing the set count mid-session."""

    def test_add_copies_last_set_and_undoes_exercise(self):
        session = add_set(edit_set(_session(True), "ex1", "set0", "target_kg", "65"), "ex1", "new")
        ex = session.exercises[0]
        assert [(s.id, s.target_reps, s.target_kg, s.done) for s in ex.sets] == [
            ("set0", 8, 65.0, True),
            ("new", 8, 65.0, False),
        ]
        assert ex.sets[1].template_set_id is None
        assert ex.done is False

    def test_add_to_empty_exercise(self):
        session = _session()
        out = add_set(session, "ex1", "new")
        assert [(s.target_reps, s.target_kg) for s in out.exercises[0].sets] == [(8, 0.0)]

    def test_remove_last_undone_set_completes_exercise(self):
        session = remove_set(_session(True, False), "ex1", "set1")
        assert [s.id for s in session.exercises[0].sets] == ["set0"]
        assert session.exercises[0].done is True


# =============================================================================
# Finish
# =============================================================================


class TestFinish:
    """Ending a session."""

    def test_all_done_finishes(self):
        now = START + 45 * 60 * 1000
        session = finish(_session(True, True), confirm_incomplete=False, now_ms=now)
        assert session.status == "finished"
        assert session.finished_at == now
        assert session.duration_sec == 45 * 60
        assert session.started_at == START
        assert session.is_locked

    def test_incomplete_without_confirmation_is_unchanged(self):
        original = _session(True, False)
        assert finish(original, confirm_incomplete=False, now_ms=START + 1000) == original

    def test_incomplete_with_confirmation_is_unfinished(self):
        session = finish(_session(True, False), confirm_incomplete=True, now_ms=START + 1000)
        assert session.status == "unfinished"
        assert session.finished_at == START + 1000
        assert session.duration_sec == 1
        assert not session.is_locked

    def test_unfinished_session_can_still_be_edited_and_finished(self):
        unfinished = finish(_session(True, False), confirm_incomplete=True, now_ms=START + 1000)
        done = finish(toggle_set(unfinished, "ex1", "set1"), confirm_incomplete=False, now_ms=START + 2000)
        assert done.status == "finished"
        assert done.finished_at == START + 2000

    def test_finished_session_cannot_be_finished_again(self):
        with pytest.raises(SessionLockedError):
            finish(_session(True, status="finished"), confirm_incomplete=True, now_ms=START)

    def test_status_helpers(self):
        assert is_unfinished(_session(True, False))
        assert not is_unfinished(_session(True))
        assert is_unfinished(_session())
        empty = Session(id="e", name="Empty", started_at=START)
        assert not is_unfinished(empty)
        assert is_complete(_session(True))
        assert not is_complete(empty)


class TestElapsed:
    """Timer display."""

    def test_running_and_finished(self):
        running = _session(False)
        assert elapsed_seconds(running, START + 61_500) == 61
        running.finished_at = START + 10_000
        assert elapsed_seconds(running, START + 61_500) == 10

    def test_clock_skew_clamps_to_zero(self):
        assert elapsed_seconds(_session(False), START - 5000) == 0

    @pytest.mark.parametrize("seconds,text", [(0, "0:00"), (754, "12:34"), (3723, "1:02:03")])
    def test_format(self, seconds, text):
        assert format_elapsed(seconds) == text


# =============================================================================
# Previous values
# =============================================================================


class TestPreviousSetValues:
    """The "last time" column shown next to each set."""

    def test_none_previous(self):
        assert previous_set_values(None, _session(False)) == {}

    def test_by_template_set_id_then_position(self):
        previous = _session(True, True, session_id="old")
        previous.exercises[0].sets[0].target_kg = 55.0
        # set1's link is duplicated so it resolves by position
        previous.exercises[0].sets.append(
            SessionSet(id="extra", target_reps=5, target_kg=70.0, done=True, template_set_id="ts1")
        )

        current = _session(False, False, False)
        assert previous_set_values(previous, current) == {
            "set0": (8, 55.0),
            "set1": (8, 60.0),
            "set2": (5, 70.0),
        }


# =============================================================================
# Repository
# =============================================================================


class TestSessionRepository:
    """Persistence and template lookups."""

    def _stored(self, repo, *, status, started_at, template_id="t1") -> str:
        return repo.create(_session(True, status=status, started_at=started_at, template_id=template_id))

    def test_round_trip_and_save(self, ctx):
        repo = SessionRepository(ctx)
        session_id = repo.create(_session(False))
        session = repo.get(session_id)
        assert session.id == session_id
        assert session.exercises[0].sets[0].template_set_id == "ts0"

        done = finish(toggle_set(session, "ex1", "set0"), confirm_incomplete=False, now_ms=START + 5000)
        repo.save(done)
        assert repo.get(session_id) == done

    def test_missing_session(self, ctx):
        assert SessionRepository(ctx).get("nope") is None

    def test_recent_and_range(self, ctx):
        repo = SessionRepository(ctx)
        a = self._stored(repo, status="finished", started_at=START)
        b = self._stored(repo, status="finished", started_at=START + 10)
        c = self._stored(repo, status="finished", started_at=START + 20)

        assert [s.id for s in repo.recent(2)] == [c, b]
        assert [s.id for s in repo.in_range(START, START + 20)] == [b, a]

    def test_latest_prefers_finished(self, ctx):
        repo = SessionRepository(ctx)
        finished = self._stored(repo, status="finished", started_at=START)
        self._stored(repo, status="in-progress", started_at=START + 10)
        self._stored(repo, status="finished", started_at=START + 20, template_id="other")

        assert repo.latest_for_template("t1").id == finished

    def test_previous_for_template_skips_current(self, ctx):
        repo = SessionRepository(ctx)
        older = self._stored(repo, status="finished", started_at=START)
        current = self._stored(repo, status="in-progress", started_at=START + 10)

        assert repo.previous_for_template("t1", current).id == older
        assert repo.previous_for_template("t1").id == current

    def test_previous_for_template_only_looks_two_back(self, ctx):
        repo = SessionRepository(ctx)
        self._stored(repo, status="finished", started_at=START)
        newest = self._stored(repo, status="in-progress", started_at=START + 20)
        middle = self._stored(repo, status="unfinished", started_at=START + 10)

        assert repo.previous_for_template("t1", newest).id == middle

    def test_pick_previous(self):
        a = _session(True, status="in-progress", session_id="a")
        b = _session(True, status="finished", session_id="b")
        assert pick_previous([a, b]).id == "b"
        assert pick_previous([a, b], exclude_session_id="b").id == "a"
        assert pick_previous([]) is None

    def test_subscribe_follows_one_session(self, ctx):
        repo = SessionRepository(ctx)
        session_id = repo.create(_session(False))
        seen = []

        unsubscribe = repo.subscribe(session_id, lambda s: seen.append(s.status if s else None))
        repo.save(finish(repo.get(session_id), confirm_incomplete=True, now_ms=START + 1000))
        repo.delete(session_id)
        unsubscribe()

        assert seen == ["in-progress", "unfinished", None]
