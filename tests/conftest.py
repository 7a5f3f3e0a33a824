import random

import pytest

from models import FacialFeatures, SurveyAnswer
from report_generator import ReportGenerator
from survey import QUESTIONS, calculate_trait_scores

BEAR_FEATURES = FacialFeatures(
    eyebrow_angle=0.0,
    lip_curvature=0.0,
    jawline_angle=96.0,
    face_width_ratio=1.7,
    eye_distance=90.0,
)


def answers_for(mapping):
    return [SurveyAnswer(question_id=q_id, answer=answer) for q_id, answer in mapping.items()]


@pytest.fixture
def egen_answers():
    return answers_for({q.id: "A" if q.emotion_weight > 0 else "D" for q in QUESTIONS})


@pytest.fixture
def teto_answers():
    return answers_for({q.id: "D" if q.emotion_weight > 0 else "A" for q in QUESTIONS})


@pytest.fixture
def sample_report():
    answers = answers_for({q.id: "B" for q in QUESTIONS})
    report = ReportGenerator(engine=None, rng=random.Random(7)).generate(
        "tegen", "bear", 0.5, BEAR_FEATURES, "female", calculate_trait_scores(answers)
    )
    return report.to_dict()
