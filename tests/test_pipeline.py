import random

from models import ANIMAL_TYPES, SurveyAnswer
from pipeline import analyze, analyze_photo

from conftest import BEAR_FEATURES


def test_analyze_combines_both_paths(egen_answers):
    result = analyze(BEAR_FEATURES, egen_answers, "female", rng=random.Random(2))

    assert result.personality_type == "egen"
    assert result.animal_type == "bear"
    assert result.emotion_score == 1.0
    assert result.report.title == "당신은 🐻 곰상 에겐형입니다"
    assert [a.question_id for a in result.survey_answers] == list(range(1, 11))


def test_duplicate_answers_are_collapsed():
    answers = [
        SurveyAnswer(question_id=2, answer="A"),
        SurveyAnswer(question_id=1, answer="D"),
        SurveyAnswer(question_id=1, answer="A"),
    ]
    result = analyze(BEAR_FEATURES, answers, "male", rng=random.Random(2))
    assert [(a.question_id, a.answer) for a in result.survey_answers] == [(1, "A"), (2, "A")]


def test_same_seed_same_result(teto_answers):
    first = analyze(BEAR_FEATURES, teto_answers, "male", rng=random.Random(9))
    second = analyze(BEAR_FEATURES, teto_answers, "male", rng=random.Random(9))
    assert first == second


def test_analyze_photo_without_image(teto_answers):
    result = analyze_photo(None, teto_answers, "male", rng=random.Random(4))
    assert result.personality_type == "teto"
    assert result.animal_type in ANIMAL_TYPES
    assert result.to_dict()["report"]["keywords"]
