from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import JSON, Column, DateTime, Integer, String, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TestResult(Base):
    """One finished analysis, stored with its report as an opaque JSON blob."""

    __tablename__ = "test_results"
    __test__ = False  # keep pytest from collecting the model

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), index=True)
    personality_type = Column(String(50), nullable=False)
    animal_type = Column(String(50), nullable=False)
    gender = Column(String(10), nullable=False)
    # Stored as an integer percentage.
    emotion_score = Column(Integer, nullable=False)
    facial_features = Column(JSON, nullable=False)
    survey_answers = Column(JSON, nullable=False)
    report = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "personalityType": self.personality_type,
            "animalType": self.animal_type,
            "gender": self.gender,
            "emotionScore": self.emotion_score,
            "facialFeatures": self.facial_features,
            "surveyAnswers": self.survey_answers,
            "report": self.report,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<TestResult(id={self.id}, user='{self.user_id}', type='{self.personality_type}')>"


class ReportStore:
    """Persistence for finished reports: save, list per user, get by id."""

    def __init__(self, database_url: str):
        engine_kwargs: Dict[str, object] = {}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
        self.engine = create_engine(database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    def save(self, record: Dict[str, object]) -> TestResult:
        result = TestResult(
            user_id=record.get("user_id"),
            personality_type=record["personality_type"],
            animal_type=record["animal_type"],
            gender=record["gender"],
            emotion_score=record["emotion_score"],
            facial_features=record["facial_features"],
            survey_answers=record["survey_answers"],
            report=record["report"],
        )
        with self.SessionLocal() as session:
            session.add(result)
            session.commit()
            session.refresh(result)
        logger.info(f"[ReportStore] Action: SAVE, Status: SUCCESS, ResultID: {result.id}, User: {result.user_id}")
        return result

    def list_for_user(self, user_id: str) -> List[TestResult]:
        with self.SessionLocal() as session:
            return (
                session.query(TestResult)
                .filter(TestResult.user_id == user_id)
                .order_by(TestResult.created_at.desc(), TestResult.id.desc())
                .all()
            )

    def get(self, result_id: int) -> Optional[TestResult]:
        with self.SessionLocal() as session:
            return session.get(TestResult, result_id)
