"""
Tests for the YAML-backed exercise catalog.
"""

import pytest

from gym_tracker.core.exercises import ExerciseCatalog, build_tags, image_url, subtitle, to_ref
from gym_tracker.core.exercises.loader import get_bundled_exercises_dir, load_exercises_from_yaml


@pytest.fixture
def catalog(tmp_path, monkeypatch) -> ExerciseCatalog:
    # Keep a real ~/.gym-tracker/exercises from leaking into the tests
    monkeypatch.setenv("HOME", str(tmp_path))
    return ExerciseCatalog.from_yaml()


class TestBundledCatalog:
    """The catalog shipped with the package."""

    def test_loads_bundled_entries(self, catalog):
        assert len(catalog) == 12
        assert "Barbell_Squat" in catalog

    def test_entry_fields(self, catalog):
        squat = catalog.get("Barbell_Squat")
        assert squat.name == "Barbell Squat"
        assert squat.primary_muscles == ("quadriceps",)
        assert "hamstrings" in squat.secondary_muscles
        assert squat.equipment == "barbell"
        assert squat.images[0] == "Barbell_Squat/0.jpg"

    def test_unknown_id_lists_valid_ids(self, catalog):
        with pytest.raises(ValueError, match="Valid IDs"):
            catalog.get("Nope")

    def test_search_by_name(self, catalog):
        names = [ex.name for ex in catalog.search("PRESS")]
        assert names == ["Barbell Bench Press - Medium Grip", "Leg Press", "Standing Military Press"]

    def test_search_by_tag(self, catalog):
        assert [ex.exercise_id for ex in catalog.search(tag_filters=["cable"])] == ["Triceps_Pushdown"]
        assert [ex.exercise_id for ex in catalog.search("", ["Cardio"])] == ["Jogging_Treadmill"]

    def test_search_all_tags_required(self, catalog):
        assert catalog.search(tag_filters=["Dumbbell", "Back"]) == []


class TestTagsAndRefs:
    """Derived display data."""

    def test_tags(self, catalog):
        assert build_tags(catalog.get("Dumbbell_Bicep_Curl")) == ["Dumbbell", "Arms"]
        assert build_tags(catalog.get("Jogging_Treadmill")) == ["Cardio", "Machine"]
        assert build_tags(catalog.get("Pullups")) == ["Bodyweight", "Back"]
        assert build_tags(catalog.get("Plank")) == ["Bodyweight", "Core"]
        assert build_tags(catalog.get("Barbell_Squat")) == ["Back"]

    def test_image_url(self):
        assert image_url("") == ""
        assert image_url("https://example.com/a.jpg") == "https://example.com/a.jpg"
        assert image_url("Plank/0.jpg").endswith("/exercises/Plank/0.jpg")
        assert image_url("Plank/0.jpg").startswith("https://")

    def test_to_ref(self, catalog):
        ref = to_ref(catalog.get("Triceps_Pushdown"))
        assert ref.exercise_id == "Triceps_Pushdown"
        assert ref.equipment == ("cable",)
        assert ref.tags == ("Cable", "Arms")
        assert ref.image.endswith("Triceps_Pushdown/0.jpg")

    def test_subtitle(self, catalog):
        assert subtitle(catalog.ref("Barbell_Squat")) == "Legs • Barbell"
        assert subtitle(catalog.ref("Pullups")) == "Back • Bodyweight"


class TestUserOverrides:
    """Files in the user directory merge over bundled entries."""

    def test_override_merges_over_bundled(self, tmp_path):
        user = tmp_path / "user"
        user.mkdir()
        (user / "Barbell_Squat.yaml").write_text("name: Back Squat\n")

        loaded = load_exercises_from_yaml(get_bundled_exercises_dir(), user)
        squat = loaded["Barbell_Squat"]
        assert squat.name == "Back Squat"
        assert squat.primary_muscles == ("quadriceps",)

    def test_user_only_file_adds_exercise(self, tmp_path):
        user = tmp_path / "user"
        user.mkdir()
        (user / "Kettlebell_Swing.yaml").write_text(
            "id: Kettlebell_Swing\nname: Kettlebell Swing\nequipment: kettlebells\nprimaryMuscles: [hamstrings]\n"
        )

        loaded = load_exercises_from_yaml(get_bundled_exercises_dir(), user)
        assert loaded["Kettlebell_Swing"].primary_muscles == ("hamstrings",)
        assert len(loaded) == 13

    def test_malformed_file_is_skipped_with_warning(self, tmp_path):
        bundled = tmp_path / "bundled"
        bundled.mkdir()
        (bundled / "Good.yaml").write_text("id: Good\nname: Good One\n")
        (bundled / "Broken.yaml").write_text("name: [unclosed\n")
        (bundled / "Nameless.yaml").write_text("id: Nameless\n")

        with pytest.warns(UserWarning):
            loaded = load_exercises_from_yaml(bundled, tmp_path / "missing")
        assert list(loaded) == ["Good"]

    def test_empty_catalog_is_an_error(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        with pytest.raises(RuntimeError):
            ExerciseCatalog.from_yaml(empty, empty)
