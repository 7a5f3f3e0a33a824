from __future__ import annotations

import logging
import random
from typing import Iterable, Optional

from facial_analysis import classify_animal_type, extract_features
from models import AnalysisResult, FacialFeatures, SurveyAnswer
from report_generator import ReportGenerator
from survey import (
    calculate_emotion_score,
    calculate_trait_scores,
    classify_personality_type,
    normalize_answers,
)
from text_engine import TextEngine

logger = logging.getLogger(__name__)


def analyze(
    facial_features: FacialFeatures,
    survey_answers: Iterable[SurveyAnswer],
    gender: str,
    engine: Optional[TextEngine] = None,
    rng: Optional[random.Random] = None,
    animal_type: Optional[str] = None,
) -> AnalysisResult:
    rng = rng or random.Random()
    answers = tuple(
        SurveyAnswer(question_id=question_id, answer=answer)
        for question_id, answer in sorted(normalize_answers(survey_answers).items())
    )

    emotion_score = calculate_emotion_score(answers)
    personality_type = classify_personality_type(emotion_score)
    trait_scores = calculate_trait_scores(answers)
    if animal_type is None:
        animal_type = classify_animal_type(facial_features, rng)

    report = ReportGenerator(engine=engine, rng=rng).generate(
        personality_type,
        animal_type,
        emotion_score,
        facial_features,
        gender,
        trait_scores,
    )
    logger.info(
        f"[Pipeline] Action: ANALYZE, Status: SUCCESS, Type: {personality_type}, "
        f"Animal: {animal_type}, Emotion: {emotion_score:.2f}"
    )

    return AnalysisResult(
        personality_type=personality_type,
        animal_type=animal_type,
        emotion_score=emotion_score,
        facial_features=facial_features,
        survey_answers=answers,
        gender=gender,
        report=report,
    )


def analyze_photo(
    image_bytes: Optional[bytes],
    survey_answers: Iterable[SurveyAnswer],
    gender: str,
    engine: Optional[TextEngine] = None,
    rng: Optional[random.Random] = None,
) -> AnalysisResult:
    rng = rng or random.Random()
    face = extract_features(image_bytes, rng)
    return analyze(
        face.features,
        survey_answers,
        gender,
        engine=engine,
        rng=rng,
        animal_type=face.animal_type,
    )
