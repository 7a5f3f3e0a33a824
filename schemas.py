"""
Request schemas

Pydantic models validating payloads at the HTTP boundary. A payload that does
not match is a caller defect and is answered with a 400, unlike runtime
degradations inside the pipeline which never surface as errors.
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, StrictStr, model_validator

from models import FacialFeatures, PersonalityReport, SurveyAnswer

AnimalLiteral = Literal["dog", "cat", "fox", "rabbit", "bear", "deer"]
PersonalityLiteral = Literal["teto", "egen", "tegen"]
GenderLiteral = Literal["male", "female"]


class FacialFeaturesIn(BaseModel):
    eyebrowAngle: float = Field(..., description="Eyebrow tilt in degrees")
    lipCurvature: float = Field(..., description="Lip corner curvature ratio")
    jawlineAngle: float = Field(..., description="Jawline angle in degrees")
    faceWidthRatio: float = Field(..., gt=0, description="Face width / height")
    eyeDistance: float = Field(..., ge=0, description="Distance between eye centres in pixels")

    def to_domain(self) -> FacialFeatures:
        return FacialFeatures.from_dict(self.model_dump())


class SurveyAnswerIn(BaseModel):
    questionId: int = Field(..., ge=1, le=10)
    answer: Literal["A", "B", "C", "D"]

    def to_domain(self) -> SurveyAnswer:
        return SurveyAnswer(question_id=self.questionId, answer=self.answer)


class AnalyzeRequest(BaseModel):
    facialFeatures: Optional[FacialFeaturesIn] = Field(None, description="Omit to use the fallback features")
    surveyAnswers: List[SurveyAnswerIn] = Field(..., max_length=50)
    gender: GenderLiteral


class TraitScoresIn(BaseModel):
    extraversion: int = Field(..., ge=0, le=100, strict=True)
    sensing: int = Field(..., ge=0, le=100, strict=True)
    thinking: int = Field(..., ge=0, le=100, strict=True)
    judging: int = Field(..., ge=0, le=100, strict=True)


class AnimalCompatibilityIn(BaseModel):
    animalType: AnimalLiteral
    score: int = Field(..., ge=60, le=100, strict=True)
    reason: str = Field(..., min_length=1, strict=True)


class CompatibilityScoreIn(BaseModel):
    teto: int = Field(..., ge=10, le=100, strict=True)
    tegen: int = Field(..., ge=10, le=100, strict=True)
    egen: int = Field(..., ge=10, le=100, strict=True)
    recommendedAnimals: List[AnimalCompatibilityIn] = Field(..., min_length=3, max_length=3)


class PersonalityReportIn(BaseModel):
    title: str = Field(..., min_length=1, strict=True)
    personalitySummary: str = Field(..., min_length=1, strict=True)
    physiognomyAnalysis: str = Field(..., min_length=1, strict=True)
    keywords: List[StrictStr] = Field(..., min_length=3, max_length=3)
    datingStyle: str = Field(..., min_length=1, strict=True)
    oneLiner: str = Field(..., min_length=1, strict=True)
    compatibilityScores: CompatibilityScoreIn
    traitScores: TraitScoresIn

    @model_validator(mode="after")
    def matches_report_contract(self) -> "PersonalityReportIn":
        # Blank keywords and unsorted recommendations are caught by the domain contract.
        try:
            PersonalityReport.from_dict(self.model_dump())
        except ValueError as e:
            raise ValueError(f"report does not match the report contract: {e}") from e
        return self


class TestResultCreate(BaseModel):
    """Insert payload for a stored result; id and timestamp are generated."""

    userId: Optional[str] = Field(None, max_length=255)
    personalityType: PersonalityLiteral
    animalType: AnimalLiteral
    gender: GenderLiteral
    emotionScore: int = Field(..., ge=0, le=100, description="Emotion score as a percentage")
    facialFeatures: FacialFeaturesIn
    surveyAnswers: List[SurveyAnswerIn]
    report: PersonalityReportIn

    def to_record(self) -> Dict[str, object]:
        return {
            "user_id": self.userId,
            "personality_type": self.personalityType,
            "animal_type": self.animalType,
            "gender": self.gender,
            "emotion_score": self.emotionScore,
            "facial_features": self.facialFeatures.model_dump(),
            "survey_answers": [answer.model_dump() for answer in self.surveyAnswers],
            "report": self.report.model_dump(),
        }
