from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

ANIMAL_TYPES: Tuple[str, ...] = ("dog", "cat", "fox", "rabbit", "bear", "deer")
PERSONALITY_TYPES: Tuple[str, ...] = ("teto", "egen", "tegen")
GENDERS: Tuple[str, ...] = ("male", "female")

ANIMAL_EMOJIS: Dict[str, str] = {
    "dog": "🐶",
    "cat": "🐱",
    "fox": "🦊",
    "rabbit": "🐰",
    "bear": "🐻",
    "deer": "🦌",
}

ANIMAL_NAMES: Dict[str, str] = {
    "dog": "강아지상",
    "cat": "고양이상",
    "fox": "여우상",
    "rabbit": "토끼상",
    "bear": "곰상",
    "deer": "사슴상",
}

PERSONALITY_NAMES: Dict[str, str] = {
    "teto": "테토형",
    "egen": "에겐형",
    "tegen": "테겐형",
}

GENDER_LABELS: Dict[str, str] = {
    "male": "남성",
    "female": "여성",
}

TRAIT_NAMES: Tuple[str, ...] = ("extraversion", "sensing", "thinking", "judging")


class ReportShapeError(ValueError):
    """Raised when a report does not satisfy the report-shape contract."""


@dataclass(frozen=True)
class FacialFeatures:
    eyebrow_angle: float
    lip_curvature: float
    jawline_angle: float
    face_width_ratio: float
    eye_distance: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "eyebrowAngle": self.eyebrow_angle,
            "lipCurvature": self.lip_curvature,
            "jawlineAngle": self.jawline_angle,
            "faceWidthRatio": self.face_width_ratio,
            "eyeDistance": self.eye_distance,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "FacialFeatures":
        return cls(
            eyebrow_angle=float(data["eyebrowAngle"]),
            lip_curvature=float(data["lipCurvature"]),
            jawline_angle=float(data["jawlineAngle"]),
            face_width_ratio=float(data["faceWidthRatio"]),
            eye_distance=float(data["eyeDistance"]),
        )


@dataclass(frozen=True)
class SurveyAnswer:
    question_id: int
    answer: str  # "A".."D", strongest agreement first

    def to_dict(self) -> Dict[str, object]:
        return {"questionId": self.question_id, "answer": self.answer}

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "SurveyAnswer":
        return cls(question_id=int(data["questionId"]), answer=str(data["answer"]))


@dataclass(frozen=True)
class TraitScores:
    extraversion: int
    sensing: int
    thinking: int
    judging: int

    def to_dict(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in TRAIT_NAMES}

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> "TraitScores":
        return cls(**{name: int(data[name]) for name in TRAIT_NAMES})


@dataclass(frozen=True)
class AnimalCompatibility:
    animal_type: str
    score: int
    reason: str

    def to_dict(self) -> Dict[str, object]:
        return {"animalType": self.animal_type, "score": self.score, "reason": self.reason}

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "AnimalCompatibility":
        return cls(
            animal_type=str(data["animalType"]),
            score=int(data["score"]),
            reason=str(data["reason"]),
        )


@dataclass(frozen=True)
class CompatibilityScore:
    teto: int
    tegen: int
    egen: int
    recommended_animals: Tuple[AnimalCompatibility, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, object]:
        return {
            "teto": self.teto,
            "tegen": self.tegen,
            "egen": self.egen,
            "recommendedAnimals": [item.to_dict() for item in self.recommended_animals],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "CompatibilityScore":
        return cls(
            teto=int(data["teto"]),
            tegen=int(data["tegen"]),
            egen=int(data["egen"]),
            recommended_animals=tuple(
                AnimalCompatibility.from_dict(item) for item in data["recommendedAnimals"]  # type: ignore[union-attr]
            ),
        )


@dataclass(frozen=True)
class PersonalityReport:
    title: str
    personality_summary: str
    physiognomy_analysis: str
    keywords: Tuple[str, ...]
    dating_style: str
    one_liner: str
    compatibility_scores: CompatibilityScore
    trait_scores: TraitScores

    def __post_init__(self) -> None:
        problems = report_shape_problems(self)
        if problems:
            raise ReportShapeError("; ".join(problems))

    def to_dict(self) -> Dict[str, object]:
        return {
            "title": self.title,
            "personalitySummary": self.personality_summary,
            "physiognomyAnalysis": self.physiognomy_analysis,
            "keywords": list(self.keywords),
            "datingStyle": self.dating_style,
            "oneLiner": self.one_liner,
            "compatibilityScores": self.compatibility_scores.to_dict(),
            "traitScores": self.trait_scores.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "PersonalityReport":
        return cls(
            title=str(data["title"]),
            personality_summary=str(data["personalitySummary"]),
            physiognomy_analysis=str(data["physiognomyAnalysis"]),
            keywords=tuple(str(k) for k in data["keywords"]),  # type: ignore[union-attr]
            dating_style=str(data["datingStyle"]),
            one_liner=str(data["oneLiner"]),
            compatibility_scores=CompatibilityScore.from_dict(data["compatibilityScores"]),  # type: ignore[arg-type]
            trait_scores=TraitScores.from_dict(data["traitScores"]),  # type: ignore[arg-type]
        )


def report_shape_problems(report: PersonalityReport) -> List[str]:
    problems: List[str] = []
    for name in ("title", "personality_summary", "physiognomy_analysis", "dating_style", "one_liner"):
        value = getattr(report, name)
        if not isinstance(value, str) or not value.strip():
            problems.append(f"{name} is empty")

    if len(report.keywords) != 3:
        problems.append(f"expected 3 keywords, got {len(report.keywords)}")
    elif any(not keyword.strip() for keyword in report.keywords):
        problems.append("keywords must not be blank")

    for name in TRAIT_NAMES:
        value = getattr(report.trait_scores, name)
        if not 0 <= value <= 100:
            problems.append(f"trait {name}={value} out of range")

    compatibility = report.compatibility_scores
    for name in PERSONALITY_TYPES:
        value = getattr(compatibility, name)
        if not 10 <= value <= 100:
            problems.append(f"compatibility {name}={value} out of range")

    animals = compatibility.recommended_animals
    if len(animals) != 3:
        problems.append(f"expected 3 recommended animals, got {len(animals)}")
    for item in animals:
        if item.animal_type not in ANIMAL_TYPES:
            problems.append(f"unknown animal {item.animal_type!r}")
        if not 60 <= item.score <= 100:
            problems.append(f"animal score {item.score} out of range")
    scores = [item.score for item in animals]
    if scores != sorted(scores, reverse=True):
        problems.append("recommended animals are not sorted by score")
    return problems


@dataclass(frozen=True)
class AnalysisResult:
    personality_type: str
    animal_type: str
    emotion_score: float
    facial_features: FacialFeatures
    survey_answers: Tuple[SurveyAnswer, ...]
    gender: str
    report: PersonalityReport

    def to_dict(self) -> Dict[str, object]:
        return {
            "personalityType": self.personality_type,
            "animalType": self.animal_type,
            "emotionScore": self.emotion_score,
            "facialFeatures": self.facial_features.to_dict(),
            "surveyAnswers": [answer.to_dict() for answer in self.survey_answers],
            "gender": self.gender,
            "report": self.report.to_dict(),
        }
