"""
Test: Performance grouping — band lookup, exclusion of no-data students,
weak-topic selection relative to the band midpoint.
"""
import pytest
from diagnostic_engine.services.performance_groups import (
    BAND_LEVELS, PERFORMANCE_BANDS, band_for_score, band_midpoint,
    build_student_mastery, group_students, validate_bands,
)


class TestBands:
    def test_fixed_order(self):
        assert BAND_LEVELS == ("advanced", "proficient", "developing", "needs-support")

    def test_bands_valid(self):
        assert validate_bands(PERFORMANCE_BANDS) is PERFORMANCE_BANDS

    def test_gap_rejected(self):
        bands = [dict(b) for b in PERFORMANCE_BANDS]
        bands[0]["min_score"] = 86
        with pytest.raises(ValueError):
            validate_bands(bands)

    def test_overlap_rejected(self):
        bands = [dict(b) for b in PERFORMANCE_BANDS]
        bands[1]["max_score"] = 90
        with pytest.raises(ValueError):
            validate_bands(bands)

    @pytest.mark.parametrize("score,level", [
        (100, "advanced"), (85, "advanced"), (84.5, "advanced"),
        (84, "proficient"), (70, "proficient"),
        (69, "developing"), (55, "developing"),
        (54, "needs-support"), (0, "needs-support"),
    ])
    def test_band_for_score(self, score, level):
        assert band_for_score(score)["level"] == level

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            band_for_score(101)

    def test_midpoint(self):
        assert band_midpoint(PERFORMANCE_BANDS[0]) == 92.5


class TestGroupStudents:
    def test_four_groups_in_order(self, sample_students, topics):
        groups = group_students(sample_students, topics)
        assert [g["level"] for g in groups] == list(BAND_LEVELS)

    def test_membership(self, sample_students, topics):
        groups = {g["level"]: g for g in group_students(sample_students, topics)}
        assert [s["student_id"] for s in groups["advanced"]["students"]] == ["a", "b"]
        assert [s["student_id"] for s in groups["developing"]["students"]] == ["c"]
        assert groups["proficient"]["students"] == []
        assert groups["needs-support"]["students"] == []

    def test_no_data_student_excluded(self, sample_students, topics):
        groups = group_students(sample_students, topics)
        grouped = [s["student_id"] for g in groups for s in g["students"]]
        assert "z" not in grouped

    def test_weak_topics_below_midpoint(self, sample_students, topics):
        groups = {g["level"]: g for g in group_students(sample_students, topics)}
        assert groups["advanced"]["weak_topics"] == [
            {"topic_id": "t1", "topic_name": "Slope", "average_score": 85},
        ]
        assert groups["developing"]["weak_topics"] == [
            {"topic_id": "t1", "topic_name": "Slope", "average_score": 50},
        ]
        assert groups["proficient"]["weak_topics"] == []

    def test_weak_topics_sorted_and_capped(self):
        scores = [91, 60, 80, 70, 50, 85, 40]
        student = {"student_id": "x", "overall_mastery": 90, "topics": [
            {"topic_id": f"t{i}", "avg_score": s, "total_attempts": 1} for i, s in enumerate(scores)
        ]}
        weak = group_students([student])[0]["weak_topics"]
        assert [t["average_score"] for t in weak] == [40, 50, 60, 70, 80]
        assert all(t["topic_name"] == "Unknown" for t in weak)

    def test_average_at_midpoint_is_not_weak(self):
        students = [
            {"student_id": "p", "overall_mastery": 60,
             "topics": [{"topic_id": "t1", "avg_score": 61, "total_attempts": 1}]},
            {"student_id": "q", "overall_mastery": 61,
             "topics": [{"topic_id": "t1", "avg_score": 62, "total_attempts": 2}]},
        ]
        developing = group_students(students)[2]
        assert developing["weak_topics"] == []

    def test_invalid_mastery_rejected(self):
        with pytest.raises(ValueError):
            group_students([{"student_id": "x", "overall_mastery": 120, "topics": []}])

    def test_empty(self):
        assert all(g["students"] == [] for g in group_students([]))

    def test_null_topics_skipped(self):
        groups = group_students([{"student_id": "a", "overall_mastery": 80, "topics": None}])
        proficient = groups[1]
        assert [s["student_id"] for s in proficient["students"]] == ["a"]
        assert proficient["weak_topics"] == []


class TestBuildStudentMastery:
    def test_aggregates_attempts(self, topics):
        students = [{"id": "s1", "name": "Ana"}, {"id": "s2", "name": "Ben"}]
        attempts = [
            {"student_id": "s1", "topic_id": "t1", "score": 80},
            {"student_id": "s1", "topic_id": "t1", "score": 91},
            {"student_id": "s1", "topic_id": "t2", "score": 60},
        ]
        ana, ben = build_student_mastery(students, attempts, topics)

        assert ana["overall_mastery"] == 73
        assert [t["avg_score"] for t in ana["topics"]] == [86, 60, 0]
        assert [t["total_attempts"] for t in ana["topics"]] == [2, 1, 0]
        assert ben["overall_mastery"] == 0

    def test_feeds_group_students(self, topics):
        mastery = build_student_mastery(
            [{"id": "s1", "name": "Ana"}],
            [{"student_id": "s1", "topic_id": "t1", "score": 20}],
            topics,
        )
        groups = group_students(mastery, topics)
        assert groups[3]["weak_topics"] == [{"topic_id": "t1", "topic_name": "Slope", "average_score": 20}]
