"""
Personality report generation.

The generator asks the text engine for a free-form narrative, parses it into
report fields and validates the parse. Any failure on the way (no engine,
engine error, malformed or echoed output) ends in the template report instead,
so callers always receive a complete PersonalityReport.
"""

from __future__ import annotations

import enum
import logging
import random
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Tuple

from compatibility import calculate_compatibility_scores
from models import ANIMAL_EMOJIS, ANIMAL_NAMES, PERSONALITY_NAMES, FacialFeatures, PersonalityReport, TraitScores
from report_templates import (
    DATING_STYLES,
    DEFAULT_ONE_LINER,
    DEFAULT_PHYSIOGNOMY,
    KEYWORD_SETS,
    ONE_LINERS,
    PERSONALITY_SUMMARIES,
    PHYSIOGNOMY_DESCRIPTIONS,
)
from text_engine import TextEngine, TextEngineError

logger = logging.getLogger(__name__)

GENERATION_TEMPERATURE = 0.8
GENERATION_MAX_TOKENS = 800
MAX_KEYWORDS = 3


class ReportStage(enum.Enum):
    INIT = "init"
    ENGINE_LOAD = "engine_load"
    PROMPT_BUILT = "prompt_built"
    RESPONSE_RECEIVED = "response_received"
    PARSED_VALID = "parsed_valid"
    PARSED_INVALID = "parsed_invalid"
    FINAL_AI = "final_ai"
    FINAL_TEMPLATE = "final_template"


# Section label probes. A section is "N. <label> ..." optionally wrapped in markdown;
# a probe matches the number and the whole label, never the body after it.
_SECTION_PREFIX = r"^\s*(?:#+\s*)?(?:\*\*)?\s*\d\s*[.)]\s*(?:\*\*)?\s*"

SECTION_PROBES: List[Tuple[str, Pattern[str]]] = [
    (
        "personality_summary",
        re.compile(_SECTION_PREFIX + r"(?:성격\s*요약?|personality(?:\s*summary)?)", re.IGNORECASE),
    ),
    (
        "physiognomy_analysis",
        re.compile(_SECTION_PREFIX + r"(?:관상학?적?\s*(?:특징|분석)|physiognomy(?:\s*analysis)?)", re.IGNORECASE),
    ),
    ("keywords", re.compile(_SECTION_PREFIX + r"(?:키워드(?:\s*\d+\s*개)?|keywords?)", re.IGNORECASE)),
    ("dating_style", re.compile(_SECTION_PREFIX + r"(?:연애\s*스타일|dating(?:\s*style)?)", re.IGNORECASE)),
    ("one_liner", re.compile(_SECTION_PREFIX + r"(?:한\s*줄\s*요?약?|one[\s-]*liner)", re.IGNORECASE)),
]

# Whatever may follow a label before the body: closing markdown, "(3-5문장)", a colon.
_LABEL_TAIL = re.compile(r"\s*(?:\*\*)?\s*(?:\([^)\n]*\))?\s*(?:\*\*)?\s*[:：]?\s*")

# Text that means the model echoed the prompt instead of answering it.
BOILERPLATE_PATTERNS: List[Pattern[str]] = [
    re.compile(r"명확히 구분하여 작성"),
    re.compile(r"출력 형식"),
    re.compile(r"입력 데이터"),
    re.compile(r"반드시.*명확"),
    re.compile(r"섹션을.*구분"),
    re.compile(r"output format", re.IGNORECASE),
    re.compile(r"input data", re.IGNORECASE),
]

_BLANK_LINE = re.compile(r"\n\s*\n")
_QUOTES = re.compile(r"[\"“”']")
_LIST_MARKER = re.compile(r"^(?:[-*•]\s*|\d+\s*[.)]\s*)+")


@dataclass(frozen=True)
class FieldRule:
    field: str
    longer_than: int = 0
    reject_boilerplate: bool = False


@dataclass(frozen=True)
class ParsedSections:
    personality_summary: str = ""
    physiognomy_analysis: str = ""
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    dating_style: str = ""
    one_liner: str = ""


VALIDATION_RULES: List[FieldRule] = [
    FieldRule("personality_summary", longer_than=20, reject_boilerplate=True),
    FieldRule("dating_style", longer_than=10, reject_boilerplate=True),
]
MIN_KEYWORDS = 2


def build_title(personality_type: str, animal_type: str) -> str:
    return (
        f"당신은 {ANIMAL_EMOJIS[animal_type]} {ANIMAL_NAMES[animal_type]} "
        f"{PERSONALITY_NAMES[personality_type]}입니다"
    )


def build_prompt(
    personality_type: str, animal_type: str, emotion_score: float, features: FacialFeatures
) -> str:
    return f"""당신은 관상학자이자 심리 분석 전문가입니다. 다음 데이터를 바탕으로 사용자의 인상과 성격을 따뜻하고 서정적인 한국어로 설명해주세요.

[입력 데이터]
유형: {PERSONALITY_NAMES[personality_type]}
동물형: {ANIMAL_NAMES[animal_type]}
감성지수: {emotion_score * 100:.0f}%
얼굴 특징: 눈썹 각도 {features.eyebrow_angle:.1f}°, 입꼬리 곡률 {features.lip_curvature:.2f}, 얼굴 폭비율 {features.face_width_ratio:.2f}

[출력 형식]
1. 성격 요약 (3-5문장)
2. 관상학적 특징 (3-5문장)
3. 키워드 3개 (이모지 포함, 예: ✨ #통찰력)
4. 연애스타일 (1문장)
5. 한줄 요약

각 섹션을 명확히 구분하여 작성해주세요."""


def _match_section(section: str) -> Optional[Tuple[str, str]]:
    """Return (field, body) when the section opens with a known label."""
    for name, probe in SECTION_PROBES:
        match = probe.match(section)
        if match is None:
            continue
        rest = section[match.end():]
        tail = _LABEL_TAIL.match(rest)
        return name, rest[tail.end():] if tail else rest
    return None


def split_sections(text: str) -> List[str]:
    """Split on blank lines, and before any line that opens a labelled section."""
    sections: List[str] = []
    for chunk in _BLANK_LINE.split(text.replace("\r\n", "\n")):
        current: List[str] = []
        for line in chunk.split("\n"):
            if current and _match_section(line) is not None:
                sections.append("\n".join(current))
                current = []
            current.append(line)
        sections.append("\n".join(current))
    return [section.strip() for section in sections if section.strip()]


def parse_keywords(body: str) -> Tuple[str, ...]:
    keywords: List[str] = []
    for item in re.split(r"[,\n]", body):
        cleaned = _LIST_MARKER.sub("", item.strip()).strip()
        if cleaned:
            keywords.append(cleaned)
    return tuple(keywords[:MAX_KEYWORDS])


def parse_response(text: str) -> ParsedSections:
    found: Dict[str, object] = {}
    for section in split_sections(text):
        matched = _match_section(section)
        if matched is None:
            continue
        name, body = matched
        body = body.strip()
        if name == "keywords":
            found[name] = parse_keywords(body)
        elif name == "one_liner":
            found[name] = _QUOTES.sub("", body).strip()
        else:
            found[name] = body
    return ParsedSections(**found)  # type: ignore[arg-type]


def has_boilerplate(value: str) -> bool:
    return any(pattern.search(value) for pattern in BOILERPLATE_PATTERNS)


def validate_parsed_sections(parsed: ParsedSections) -> List[str]:
    """Return the failed validation rules; an empty list means the parse is usable."""
    failures: List[str] = []
    for rule in VALIDATION_RULES:
        value = getattr(parsed, rule.field)
        if not value:
            failures.append(f"{rule.field}: missing")
            continue
        if len(value) <= rule.longer_than:
            failures.append(f"{rule.field}: too short ({len(value)} chars)")
        if rule.reject_boilerplate and has_boilerplate(value):
            failures.append(f"{rule.field}: echoes prompt instructions")
    if len(parsed.keywords) < MIN_KEYWORDS:
        failures.append(f"keywords: expected at least {MIN_KEYWORDS}, got {len(parsed.keywords)}")
    return failures


class ReportGenerator:
    def __init__(self, engine: Optional[TextEngine] = None, rng: Optional[random.Random] = None):
        self.engine = engine
        self.rng = rng or random.Random()
        self.stage = ReportStage.INIT

    def _advance(self, stage: ReportStage) -> None:
        logger.debug(f"[ReportGenerator] {self.stage.value} -> {stage.value}")
        self.stage = stage

    def generate(
        self,
        personality_type: str,
        animal_type: str,
        emotion_score: float,
        features: FacialFeatures,
        gender: str,
        trait_scores: TraitScores,
    ) -> PersonalityReport:
        self.stage = ReportStage.INIT
        title = build_title(personality_type, animal_type)

        text = self._request_narrative(personality_type, animal_type, emotion_score, features)
        if text is not None:
            parsed = parse_response(text)
            failures = validate_parsed_sections(parsed)
            if not failures:
                self._advance(ReportStage.PARSED_VALID)
                report = self._report_from_parsed(parsed, title, personality_type, animal_type, gender, trait_scores)
                self._advance(ReportStage.FINAL_AI)
                logger.info("[ReportGenerator] Action: GENERATE, Status: SUCCESS, Source: ai")
                return report
            self._advance(ReportStage.PARSED_INVALID)
            logger.warning(f"[ReportGenerator] AI parsing failed, using fallback report: {'; '.join(failures)}")

        report = self.fallback_report(personality_type, animal_type, title, gender, trait_scores)
        self._advance(ReportStage.FINAL_TEMPLATE)
        logger.info("[ReportGenerator] Action: GENERATE, Status: SUCCESS, Source: template")
        return report

    def _request_narrative(
        self, personality_type: str, animal_type: str, emotion_score: float, features: FacialFeatures
    ) -> Optional[str]:
        if self.engine is None:
            return None

        self._advance(ReportStage.ENGINE_LOAD)
        try:
            if not self.engine.initialize():
                return None
            prompt = build_prompt(personality_type, animal_type, emotion_score, features)
            self._advance(ReportStage.PROMPT_BUILT)
            text = self.engine.generate(
                prompt, temperature=GENERATION_TEMPERATURE, max_tokens=GENERATION_MAX_TOKENS
            )
        except TextEngineError as e:
            logger.error(f"[ReportGenerator] Action: AI_GENERATE, Status: FAIL, Error: {e}")
            return None
        except Exception:
            logger.exception("[ReportGenerator] Text generation failed, using fallback")
            return None

        self._advance(ReportStage.RESPONSE_RECEIVED)
        logger.debug(f"[ReportGenerator] Parsing AI response: {text[:200]}")
        return text

    def _report_from_parsed(
        self,
        parsed: ParsedSections,
        title: str,
        personality_type: str,
        animal_type: str,
        gender: str,
        trait_scores: TraitScores,
    ) -> PersonalityReport:
        keywords = list(parsed.keywords)
        for keyword in KEYWORD_SETS[personality_type][animal_type]:
            if len(keywords) >= MAX_KEYWORDS:
                break
            if keyword not in keywords:
                keywords.append(keyword)

        return PersonalityReport(
            title=title,
            personality_summary=parsed.personality_summary,
            physiognomy_analysis=parsed.physiognomy_analysis or DEFAULT_PHYSIOGNOMY,
            keywords=tuple(keywords),
            dating_style=parsed.dating_style,
            one_liner=parsed.one_liner or DEFAULT_ONE_LINER,
            compatibility_scores=calculate_compatibility_scores(personality_type, gender, self.rng),
            trait_scores=trait_scores,
        )

    def fallback_report(
        self,
        personality_type: str,
        animal_type: str,
        title: str,
        gender: str,
        trait_scores: TraitScores,
    ) -> PersonalityReport:
        return PersonalityReport(
            title=title,
            personality_summary=" ".join(PERSONALITY_SUMMARIES[personality_type]),
            physiognomy_analysis=" ".join(PHYSIOGNOMY_DESCRIPTIONS[animal_type]),
            keywords=tuple(KEYWORD_SETS[personality_type][animal_type]),
            dating_style=DATING_STYLES[personality_type][animal_type],
            one_liner=self.rng.choice(ONE_LINERS[personality_type]),
            compatibility_scores=calculate_compatibility_scores(personality_type, gender, self.rng),
            trait_scores=trait_scores,
        )
