"""
Test: Topic resolution — standard lookup, keyword scoring, pass-through, bold spans, fallback.
"""
import pytest
from diagnostic_engine.services.topic_resolver import (
    ALL_SUBJECTS, best_keyword_match, fallback_label, resolve_standard_topic,
    resolve_topic_name, subject_from_class_name,
)


class TestCatalog:
    def test_pooled_scope_has_every_entry(self, catalog):
        subjects = [k for k in catalog if k != ALL_SUBJECTS]
        assert len(catalog[ALL_SUBJECTS]) == sum(len(catalog[s]) for s in subjects)

    def test_subjects_loaded(self, catalog):
        for subject in ("geometry", "algebra1", "algebra2", "precalculus"):
            assert len(catalog[subject]) > 0

    def test_keywords_lowercase_and_long_enough(self, catalog):
        for entry in catalog[ALL_SUBJECTS]:
            for keyword in entry["keywords"]:
                assert keyword == keyword.lower()
                assert len(keyword) >= 3

    def test_short_words_dropped(self, catalog):
        entry = next(e for e in catalog["geometry"] if e["standard_code"] == "G.GMD.B.4")
        assert "of" not in entry["keywords"]
        assert "three-dimensional" in entry["keywords"]


class TestStandardCodeStep:
    def test_code_in_subject(self, catalog):
        name = resolve_topic_name("The student struggled with this problem", "A.REI.B.4", "algebra1", catalog)
        assert name == "Quadratic Formula"

    def test_code_falls_back_to_all(self, catalog):
        assert resolve_standard_topic("G.SRT.C.8", "algebra1", catalog) == "Special Right Triangles"

    def test_unknown_code(self, small_catalog):
        assert resolve_standard_topic("Z.ZZ.Z.9", "geometry", small_catalog) is None


class TestKeywordStep:
    def test_exact_name_bonus(self, catalog):
        assert resolve_topic_name("Quadratic Formula", None, "algebra1", catalog) == "Quadratic Formula"

    def test_exact_name_inside_sentence(self, catalog):
        text = "Student had trouble with special right triangles on the exam"
        assert resolve_topic_name(text, None, "geometry", catalog) == "Special Right Triangles"

    def test_longer_keyword_wins(self, small_catalog):
        name = resolve_topic_name("congruent triangle work with volume", None, "geometry", small_catalog)
        assert name == "Triangle Congruence"

    def test_single_word_topic(self, small_catalog):
        assert resolve_topic_name("slope practice quiz", None, "algebra1", small_catalog) == "Slope"

    def test_score_below_five_ignored(self, small_catalog):
        name, score = best_keyword_match("area and stuff", "geometry", small_catalog)
        assert name == "Area Models" and score == 4
        assert resolve_topic_name("area and stuff", None, "geometry", small_catalog) == "area and stuff"

    def test_subject_scope_limits_matches(self, small_catalog):
        assert resolve_topic_name("slope of the line", None, "geometry", small_catalog) == "slope of the line"

    def test_unknown_subject_uses_all(self, small_catalog):
        name = resolve_topic_name("quadratic formula review", None, "chemistry", small_catalog)
        assert name == "Quadratic Formula"


class TestTextSteps:
    def test_short_clean_text_passes_through(self, small_catalog):
        assert resolve_topic_name("Exit ticket", None, "algebra1", small_catalog) == "Exit ticket"

    def test_bold_span_extracted(self, small_catalog):
        text = "Based on the work shown, the student is working on **Circle Theorems** and made errors."
        assert resolve_topic_name(text, None, "geometry", small_catalog) == "Circle Theorems"

    def test_bold_code_rejected(self, small_catalog):
        text = "The student demonstrated partial understanding of **G.CO.A.1** today overall"
        name = resolve_topic_name(text, None, "geometry", small_catalog)
        assert name != "G.CO.A.1"
        assert name.endswith("...")
        assert len(name) == 35

    def test_bold_sentence_fragment_rejected(self, small_catalog):
        text = "The student wrote **the answer is negative** in the final box of the page"
        assert resolve_topic_name(text, None, "geometry", small_catalog) != "the answer is negative"

    def test_empty_bold_falls_back_to_topic(self, small_catalog):
        assert resolve_topic_name("**   **", None, "geometry", small_catalog) == "Topic"

    def test_empty_text(self, small_catalog):
        assert resolve_topic_name("", None, "geometry", small_catalog) == "Unknown Topic"


class TestFallbackLabel:
    def test_leading_filler_and_truncation(self):
        label = fallback_label("Based on rubric: proportional reasoning with multiple representations shown in detail")
        assert label == "l reasoning with multiple repres..."

    def test_short_result_untouched(self):
        assert fallback_label("**Ratios** review") == "Ratios review"

    def test_empty_result(self):
        assert fallback_label("****") == "Topic"


class TestSubjectFromClassName:
    @pytest.mark.parametrize("name,expected", [
        ("Geometry Period 2", "geometry"),
        ("Algebra II Honors", "algebra2"),
        ("Alg 1 - Period 4", "algebra1"),
        ("Algebra", "algebra1"),
        ("Pre-Calc", "precalculus"),
        ("Precalculus B", "precalculus"),
        ("Homeroom", "all"),
        (None, "all"),
    ])
    def test_subjects(self, name, expected):
        assert subject_from_class_name(name) == expected
