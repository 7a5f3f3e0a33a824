from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from models import SurveyAnswer, TraitScores


@dataclass(frozen=True)
class Question:
    id: int
    prompt: str
    emotion_weight: int  # +1 pushes toward empathy, -1 toward logic

    @property
    def field_name(self) -> str:
        return f"q{self.id}"


ANSWER_OPTIONS: List[Dict[str, object]] = [
    {"value": "A", "label": "매우 그렇다", "weight": 2},
    {"value": "B", "label": "그렇다", "weight": 1},
    {"value": "C", "label": "아니다", "weight": -1},
    {"value": "D", "label": "매우 아니다", "weight": -2},
]

ANSWER_WEIGHTS: Dict[str, int] = {
    str(option["value"]): int(option["weight"]) for option in ANSWER_OPTIONS  # type: ignore[call-overload]
}

QUESTIONS: List[Question] = [
    Question(id=1, prompt="새로운 사람들을 만나는 것이 즐겁고 에너지가 생긴다", emotion_weight=1),
    Question(id=2, prompt="결정을 내릴 때 감정보다 논리와 분석을 우선한다", emotion_weight=-1),
    Question(id=3, prompt="계획을 세우고 그 계획대로 실행하는 것을 선호한다", emotion_weight=-1),
    Question(id=4, prompt="상대방의 감정과 분위기를 섬세하게 파악하는 편이다", emotion_weight=1),
    Question(id=5, prompt="여러 사람과 함께 있으면 에너지가 충전된다", emotion_weight=1),
    Question(id=6, prompt="문제 해결 시 객관적인 사실과 데이터를 중시한다", emotion_weight=-1),
    Question(id=7, prompt="즉흥적인 것보다 미리 준비된 일정을 좋아한다", emotion_weight=-1),
    Question(id=8, prompt="다른 사람의 기분이 상하지 않도록 신경을 많이 쓴다", emotion_weight=1),
    Question(id=9, prompt="혼자만의 시간이 많으면 외로움을 느낀다", emotion_weight=1),
    Question(
        id=10,
        prompt="토론할 때 상대방의 감정보다 논리적 타당성을 중요하게 생각한다",
        emotion_weight=-1,
    ),
]

QUESTIONS_BY_ID: Dict[int, Question] = {question.id: question for question in QUESTIONS}

# Four fixed, non-overlapping groups covering all ten ids.
TRAIT_GROUPS: List[Tuple[str, Tuple[int, ...]]] = [
    ("extraversion", (1, 5, 9)),
    ("thinking", (2, 6, 10)),
    ("judging", (3, 7)),
    ("sensing", (4, 8)),
]

EGEN_THRESHOLD = 0.65
TETO_THRESHOLD = 0.35


def normalize_answers(answers: Iterable[SurveyAnswer]) -> Dict[int, str]:
    """Collapse answers to one per question id; the last answer for an id wins."""
    collected: Dict[int, str] = {}
    for answer in answers:
        collected[answer.question_id] = answer.answer
    return collected


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_trait_scores(answers: Iterable[SurveyAnswer]) -> TraitScores:
    by_id = normalize_answers(answers)
    scores: Dict[str, int] = {}

    for trait, ids in TRAIT_GROUPS:
        total = 0
        for question_id in ids:
            answer = by_id.get(question_id)
            if answer is not None:
                total += ANSWER_WEIGHTS.get(answer, 0)
        raw = 50 + (total / len(ids)) * 25
        scores[trait] = round_half_up(max(0.0, min(100.0, raw)))

    return TraitScores(**scores)


def calculate_emotion_score(answers: Iterable[SurveyAnswer]) -> float:
    total_weight = 0
    max_possible_weight = 0

    for question_id, answer in normalize_answers(answers).items():
        question = QUESTIONS_BY_ID.get(question_id)
        if question is None:
            continue
        answer_weight = ANSWER_WEIGHTS.get(answer, 0)
        max_possible_weight += abs(question.emotion_weight) * 2
        total_weight += question.emotion_weight * answer_weight

    if max_possible_weight == 0:
        return 0.5

    normalized = (total_weight + max_possible_weight) / (2 * max_possible_weight)
    return max(0.0, min(1.0, normalized))


def classify_personality_type(emotion_score: float) -> str:
    if emotion_score >= EGEN_THRESHOLD:
        return "egen"
    if emotion_score <= TETO_THRESHOLD:
        return "teto"
    return "tegen"


def answers_from_form(form_data: Dict[str, str]) -> List[SurveyAnswer]:
    answers: List[SurveyAnswer] = []
    for question in QUESTIONS:
        value = form_data.get(question.field_name)
        if value in ANSWER_WEIGHTS:
            answers.append(SurveyAnswer(question_id=question.id, answer=value))
    return answers


def missing_question_ids(form_data: Dict[str, str]) -> List[int]:
    return [
        question.id
        for question in QUESTIONS
        if form_data.get(question.field_name) not in ANSWER_WEIGHTS
    ]
