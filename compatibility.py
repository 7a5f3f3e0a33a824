from __future__ import annotations

import random
from typing import Dict, List, Optional

from models import ANIMAL_TYPES, PERSONALITY_TYPES, AnimalCompatibility, CompatibilityScore

BASE_SCORES: Dict[str, Dict[str, int]] = {
    "teto": {"teto": 70, "tegen": 85, "egen": 45},
    "tegen": {"teto": 85, "tegen": 75, "egen": 80},
    "egen": {"teto": 45, "tegen": 80, "egen": 90},
}

GENDER_ADJUSTMENT: Dict[str, Dict[str, int]] = {
    "male": {"teto": -5, "tegen": 0, "egen": 5},
    "female": {"teto": 5, "tegen": 0, "egen": -5},
}

ANIMAL_COMPATIBILITY: Dict[str, Dict[str, Dict[str, object]]] = {
    "teto": {
        "dog": {"score": 75, "reason": "충성스럽고 신뢰할 수 있는 관계를 만들 수 있어요"},
        "cat": {"score": 85, "reason": "서로의 독립성을 존중하며 안정적인 관계를 유지해요"},
        "fox": {"score": 80, "reason": "영리하고 전략적인 사고로 서로를 이해합니다"},
        "rabbit": {"score": 65, "reason": "차분함과 섬세함이 조화를 이룹니다"},
        "bear": {"score": 90, "reason": "든든하고 믿음직한 파트너십을 형성해요"},
        "deer": {"score": 70, "reason": "우아함과 이성적 판단이 잘 어울립니다"},
    },
    "tegen": {
        "dog": {"score": 88, "reason": "밝고 긍정적인 에너지가 완벽하게 조화를 이뤄요"},
        "cat": {"score": 75, "reason": "균형잡힌 관계로 서로를 보완합니다"},
        "fox": {"score": 92, "reason": "유연한 사고와 적응력이 최고의 궁합이에요"},
        "rabbit": {"score": 85, "reason": "부드럽고 따뜻한 관계를 만들어갑니다"},
        "bear": {"score": 80, "reason": "안정감과 활력이 조화롭게 어우러져요"},
        "deer": {"score": 90, "reason": "우아하고 조화로운 관계를 형성해요"},
    },
    "egen": {
        "dog": {"score": 95, "reason": "따뜻한 마음과 충성심이 완벽한 조화를 이뤄요"},
        "cat": {"score": 70, "reason": "감성을 이해하고 존중하는 관계예요"},
        "fox": {"score": 75, "reason": "영리함과 감성이 균형을 맞춥니다"},
        "rabbit": {"score": 90, "reason": "순수하고 따뜻한 마음이 깊이 공감해요"},
        "bear": {"score": 85, "reason": "포근하고 안정적인 관계를 만들어요"},
        "deer": {"score": 88, "reason": "섬세하고 우아한 감성이 어울립니다"},
    },
}

ANIMAL_GENDER_BONUS: Dict[str, Dict[str, int]] = {
    "male": {"dog": 5, "rabbit": -3, "bear": 3},
    "female": {"cat": 5, "deer": 5, "fox": 3},
}

# Inclusive integer jitter ranges.
CATEGORY_JITTER = (-5, 4)
ANIMAL_JITTER = (-3, 2)
CATEGORY_BOUNDS = (10, 100)
ANIMAL_BOUNDS = (60, 100)
RECOMMENDATION_COUNT = 3


def _clamp(value: int, bounds) -> int:
    low, high = bounds
    return max(low, min(high, value))


def calculate_recommended_animals(
    personality_type: str, gender: str, rng: Optional[random.Random] = None
) -> List[AnimalCompatibility]:
    rng = rng or random.Random()
    table = ANIMAL_COMPATIBILITY[personality_type]
    bonus = ANIMAL_GENDER_BONUS[gender]

    candidates = []
    for animal in ANIMAL_TYPES:
        entry = table[animal]
        score = int(entry["score"]) + bonus.get(animal, 0) + rng.randint(*ANIMAL_JITTER)  # type: ignore[call-overload]
        candidates.append(
            AnimalCompatibility(animal_type=animal, score=_clamp(score, ANIMAL_BOUNDS), reason=str(entry["reason"]))
        )

    # sorted() is stable, so ties keep the canonical animal order.
    ranked = sorted(candidates, key=lambda item: item.score, reverse=True)
    return ranked[:RECOMMENDATION_COUNT]


def calculate_compatibility_scores(
    personality_type: str, gender: str, rng: Optional[random.Random] = None
) -> CompatibilityScore:
    rng = rng or random.Random()
    base = BASE_SCORES[personality_type]
    adjustment = GENDER_ADJUSTMENT[gender]

    scores: Dict[str, int] = {}
    for other in PERSONALITY_TYPES:
        raw = base[other] + adjustment[other] + rng.randint(*CATEGORY_JITTER)
        scores[other] = _clamp(raw, CATEGORY_BOUNDS)

    return CompatibilityScore(
        teto=scores["teto"],
        tegen=scores["tegen"],
        egen=scores["egen"],
        recommended_animals=tuple(calculate_recommended_animals(personality_type, gender, rng)),
    )
