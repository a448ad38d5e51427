"""
Unit tests for the override engine.

Overrides are plain objects here; the engine only reads id, scope,
week_number, session_key and patch.
"""

from dataclasses import dataclass
from typing import Any

import pytest

from liftplan.models.enums import ExerciseRole, OverrideScope
from liftplan.schemas.session import PlannedExercise, PlannedSet, SessionContext, SessionDraft
from liftplan.services.overrides import apply_overrides, collect_param_overrides, select_overrides


@dataclass
class MockOverride:
    id: int
    scope: OverrideScope
    patch: Any
    week_number: int | None = None
    session_key: str | None = None


def make_draft() -> SessionDraft:
    ctx = SessionContext(week=2, day=3, session_date="2026-01-07", session_key="W2D3", timezone="UTC")
    exercises = [
        PlannedExercise(
            exercise_name="Back Squat",
            source_target="SQUAT",
            order=0,
            sets=[PlannedSet(set_number=1, reps=5, weight_kg=100.0)],
        ),
        PlannedExercise(
            exercise_name="Bench Press",
            source_target="BENCH",
            order=1,
            sets=[PlannedSet(set_number=1, reps=5, weight_kg=80.0)],
        ),
    ]
    return SessionDraft(context=ctx, exercises=exercises)


def accessory(name: str, order: int = 99) -> dict:
    return {"op": "ADD_ACCESSORY", "value": {"exerciseName": name, "order": order, "sets": [{"reps": 10}]}}


class TestSelectOverrides:
    """Scope matching."""

    def test_scope_filtering(self):
        overrides = [
            MockOverride(1, OverrideScope.PLAN, accessory("Dips")),
            MockOverride(2, OverrideScope.WEEK, accessory("Curls"), week_number=2),
            MockOverride(3, OverrideScope.WEEK, accessory("Rows"), week_number=3),
            MockOverride(4, OverrideScope.SESSION, accessory("Plank"), session_key="W2D3"),
            MockOverride(5, OverrideScope.SESSION, accessory("Shrugs"), session_key="W2D1"),
        ]

        selected = select_overrides(overrides, 2, "W2D3")

        assert [o.id for o in selected] == [1, 2, 4]

    def test_order_preserved(self):
        """Creation order, not scope, decides application order."""
        overrides = [
            MockOverride(1, OverrideScope.SESSION, accessory("Plank"), session_key="W2D3"),
            MockOverride(2, OverrideScope.PLAN, accessory("Dips")),
        ]

        assert [o.id for o in select_overrides(overrides, 2, "W2D3")] == [1, 2]


class TestApplyOverrides:

    def test_accessories_follow_generated_work(self):
        """Equal-order accessories keep creation order, after generated exercises."""
        overrides = [
            MockOverride(1, OverrideScope.PLAN, accessory("Dips", order=10)),
            MockOverride(2, OverrideScope.WEEK, accessory("Curls", order=10), week_number=2),
            MockOverride(3, OverrideScope.SESSION, accessory("Plank", order=5), session_key="W2D3"),
        ]

        result = apply_overrides(make_draft(), overrides, 2, "W2D3")

        assert [e.exercise_name for e in result.exercises] == [
            "Back Squat",
            "Bench Press",
            "Plank",
            "Dips",
            "Curls",
        ]
        plank = result.exercises[2]
        assert plank.role == ExerciseRole.ASSIST
        assert plank.source_target == "ACCESSORY"
        assert plank.meta == {"overrideId": 3}
        assert [a["overrideId"] for a in result.overrides_applied] == [1, 2, 3]
        assert result.overrides_applied[1] == {"overrideId": 2, "op": "ADD_ACCESSORY", "scope": "WEEK"}

    def test_input_draft_untouched(self):
        draft = make_draft()
        overrides = [
            MockOverride(1, OverrideScope.PLAN, {"op": "REMOVE_EXERCISE", "target": {"blockTarget": "SQUAT"}}),
        ]

        apply_overrides(draft, overrides, 2, "W2D3")

        assert len(draft.exercises) == 2

    def test_replace_by_block_target(self):
        overrides = [
            MockOverride(1, OverrideScope.PLAN, {
                "op": "REPLACE_EXERCISE",
                "target": {"blockTarget": "squat"},
                "value": {"exerciseName": "Front Squat"},
            }),
        ]

        result = apply_overrides(make_draft(), overrides, 2, "W2D3")

        squat = result.exercises[0]
        assert squat.exercise_name == "Front Squat"
        assert squat.meta["replacedFrom"] == "Back Squat"
        assert squat.sets[0].weight_kg == 100.0
        assert result.warnings == []

    def test_remove_by_exercise_name(self):
        overrides = [
            MockOverride(1, OverrideScope.PLAN, {
                "op": "REMOVE_EXERCISE",
                "target": {"exerciseName": "bench press"},
            }),
        ]

        result = apply_overrides(make_draft(), overrides, 2, "W2D3")

        assert [e.exercise_name for e in result.exercises] == ["Back Squat"]

    def test_remove_without_match_warns(self):
        overrides = [
            MockOverride(7, OverrideScope.PLAN, {"op": "REMOVE_EXERCISE", "target": {"blockTarget": "OHP"}}),
        ]

        result = apply_overrides(make_draft(), overrides, 2, "W2D3")

        assert len(result.exercises) == 2
        assert result.overrides_applied == []
        assert result.warnings == [{
            "overrideId": 7,
            "op": "REMOVE_EXERCISE",
            "reason": "no_match",
            "details": {"blockTarget": "OHP"},
        }]

    def test_reorder_blocks(self):
        overrides = [
            MockOverride(1, OverrideScope.PLAN, accessory("Dips")),
            MockOverride(2, OverrideScope.PLAN, {"op": "REORDER_BLOCKS", "value": {"order": ["BENCH", "SQUAT"]}}),
        ]

        result = apply_overrides(make_draft(), overrides, 2, "W2D3")

        assert [e.exercise_name for e in result.exercises] == ["Bench Press", "Back Squat", "Dips"]

    def test_unknown_op_is_skipped_with_warning(self):
        """An op this engine does not know never fails generation."""
        overrides = [
            MockOverride(1, OverrideScope.PLAN, {"op": "SWAP_DAYS", "value": {}}),
            MockOverride(2, OverrideScope.PLAN, accessory("Dips")),
        ]

        result = apply_overrides(make_draft(), overrides, 2, "W2D3")

        assert [e.exercise_name for e in result.exercises][-1] == "Dips"
        assert result.warnings == [{"overrideId": 1, "op": "SWAP_DAYS", "reason": "unknown_op"}]
        assert [a["overrideId"] for a in result.overrides_applied] == [2]

    def test_invalid_payload_warns(self):
        overrides = [
            MockOverride(1, OverrideScope.PLAN, {"op": "ADD_ACCESSORY", "value": {"sets": []}}),
        ]

        result = apply_overrides(make_draft(), overrides, 2, "W2D3")

        assert len(result.exercises) == 2
        assert result.warnings[0]["reason"] == "invalid_payload"
        assert result.warnings[0]["op"] == "ADD_ACCESSORY"

    def test_existing_warnings_kept(self):
        draft = make_draft()
        draft.warnings = [{"source": "generator", "reason": "training_max_fallback"}]
        overrides = [MockOverride(1, OverrideScope.PLAN, "not a patch")]

        result = apply_overrides(draft, overrides, 2, "W2D3")

        assert result.warnings[0]["reason"] == "training_max_fallback"
        assert result.warnings[1] == {"overrideId": 1, "op": None, "reason": "unknown_op"}

    def test_set_param_recorded_as_applied(self):
        overrides = [
            MockOverride(1, OverrideScope.PLAN, {"op": "SET_PARAM", "value": {"key": "tmPercent", "value": 0.85}}),
        ]

        result = apply_overrides(make_draft(), overrides, 2, "W2D3")

        assert result.overrides_applied == [{"overrideId": 1, "op": "SET_PARAM", "scope": "PLAN"}]
        assert len(result.exercises) == 2


class TestCollectParamOverrides:

    def test_last_write_wins(self):
        overrides = [
            MockOverride(1, OverrideScope.PLAN, {"op": "SET_PARAM", "value": {"key": "tmPercent", "value": 0.85}}),
            MockOverride(2, OverrideScope.WEEK, {"op": "SET_PARAM", "value": {"key": "tmPercent", "value": 0.8}}, week_number=2),
            MockOverride(3, OverrideScope.WEEK, {"op": "SET_PARAM", "value": {"key": "tmPercent", "value": 0.7}}, week_number=9),
            MockOverride(4, OverrideScope.PLAN, {"op": "SET_PARAM", "value": {"key": "plateIncrementKg", "value": 2.5}}),
            MockOverride(5, OverrideScope.PLAN, accessory("Dips")),
        ]

        params = collect_param_overrides(overrides, 2, "W2D3")

        assert params == {"tmPercent": 0.8, "plateIncrementKg": 2.5}

    def test_malformed_set_param_ignored(self):
        overrides = [MockOverride(1, OverrideScope.PLAN, {"op": "SET_PARAM", "value": {}})]

        assert collect_param_overrides(overrides, 1, "W1D1") == {}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
