"""
Shared test fixtures for the diagnostic engine.
Zero network calls — catalog fixtures are built in memory or read from the
bundled topic file.
"""
import pytest


@pytest.fixture
def catalog():
    """The bundled NYS math topic catalog."""
    from diagnostic_engine.services.topic_resolver import load_catalog
    return load_catalog()


@pytest.fixture
def small_catalog():
    """A tiny two-subject catalog with predictable keywords."""
    from diagnostic_engine.services.topic_resolver import build_catalog
    return build_catalog({
        "geometry": [
            {"name": "Triangle Congruence", "standard": "G.SRT.B.5"},
            {"name": "Volume of Solids", "standard": "G.GMD.A.3"},
            {"name": "Area Models", "standard": "G.MG.A.2"},
        ],
        "algebra1": [
            {"name": "Quadratic Formula", "standard": "A.REI.B.4"},
            {"name": "Slope", "standard": "F.IF.B.6"},
        ],
    })


@pytest.fixture
def sample_justification():
    """A typical AI grade justification with mixed-severity issues."""
    return (
        "The student set up the equation correctly. "
        "However, there was a major error in distributing the negative sign. "
        "The final answer had a minor rounding error. "
        "The student forgot to label the units on the graph."
    )


@pytest.fixture
def topics():
    return [
        {"id": "t1", "name": "Slope"},
        {"id": "t2", "name": "Quadratic Formula"},
        {"id": "t3", "name": "Residuals"},
    ]


@pytest.fixture
def sample_students():
    """Students in the per-student mastery shape, one with no data."""
    return [
        {"student_id": "a", "student_name": "Alice Johnson", "overall_mastery": 92, "topics": [
            {"topic_id": "t1", "avg_score": 80, "total_attempts": 2},
            {"topic_id": "t2", "avg_score": 95, "total_attempts": 1},
        ]},
        {"student_id": "b", "student_name": "Bob Martinez", "overall_mastery": 85, "topics": [
            {"topic_id": "t1", "avg_score": 90, "total_attempts": 1},
            {"topic_id": "t3", "avg_score": 0, "total_attempts": 0},
        ]},
        {"student_id": "c", "student_name": "Carol Williams", "overall_mastery": 60, "topics": [
            {"topic_id": "t1", "avg_score": 50, "total_attempts": 3},
            {"topic_id": "t2", "avg_score": 70, "total_attempts": 1},
        ]},
        {"student_id": "z", "student_name": "Emma Davis", "overall_mastery": 0, "topics": []},
    ]


@pytest.fixture
def app():
    from diagnostic_engine.app import create_app
    return create_app({"TESTING": True})


@pytest.fixture
def client(app):
    return app.test_client()
