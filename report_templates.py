from __future__ import annotations

from typing import Dict, List

PERSONALITY_SUMMARIES: Dict[str, List[str]] = {
    "teto": [
        "당신은 논리적이고 분석적인 사고를 가진 사람입니다. 감정보다는 이성을 우선시하며, 객관적인 판단을 내리는 것을 중요하게 생각합니다.",
        "문제 해결 능력이 뛰어나며, 복잡한 상황에서도 침착하게 대응합니다. 계획적이고 체계적인 접근을 선호합니다.",
        "다른 사람들은 당신의 냉철한 판단력과 안정적인 태도를 신뢰합니다.",
    ],
    "egen": [
        "당신은 따뜻하고 공감 능력이 뛰어난 사람입니다. 다른 사람의 감정을 잘 이해하고 배려하는 마음이 깊습니다.",
        "인간관계에서 정서적 교감을 중요하게 여기며, 주변 사람들에게 위로와 힘이 되어줍니다.",
        "당신의 진심 어린 관심과 따뜻한 성격은 많은 사람들에게 큰 영향을 미칩니다.",
    ],
    "tegen": [
        "당신은 감성과 이성의 균형을 잘 맞추는 사람입니다. 상황에 따라 논리적 판단과 감정적 공감을 적절히 활용합니다.",
        "유연한 사고방식으로 다양한 관점을 이해하며, 중재자 역할을 잘 수행합니다.",
        "이러한 균형감각은 당신을 신뢰할 수 있고 안정적인 사람으로 만들어줍니다.",
    ],
}

PHYSIOGNOMY_DESCRIPTIONS: Dict[str, List[str]] = {
    "dog": [
        "친근하고 밝은 인상을 가지고 있어 첫 만남에서도 호감을 줍니다.",
        "눈빛이 순수하고 맑아 사람들에게 편안함을 느끼게 합니다.",
        "표정이 풍부하고 감정 표현이 자연스러워 진정성이 느껴집니다.",
    ],
    "cat": [
        "세련되고 우아한 인상으로 신비로운 매력을 풍깁니다.",
        "눈매가 또렷하고 카리스마 있어 독특한 아우라가 있습니다.",
        "절제된 표정 속에서도 강한 존재감을 드러냅니다.",
    ],
    "fox": [
        "영리하고 날카로운 인상으로 지적인 매력이 있습니다.",
        "눈빛이 예리하고 통찰력 있어 보이며, 섬세한 아름다움이 돋보입니다.",
        "표정에서 기민함과 영리함이 느껴져 매력적입니다.",
    ],
    "rabbit": [
        "부드럽고 온화한 인상으로 친근감을 줍니다.",
        "동그란 얼굴형과 순한 눈빛이 사랑스러운 매력을 만듭니다.",
        "표정이 밝고 긍정적이어서 주변을 화사하게 만듭니다.",
    ],
    "bear": [
        "든든하고 믿음직한 인상으로 안정감을 줍니다.",
        "얼굴에서 포용력과 너그러움이 느껴집니다.",
        "부드러운 카리스마로 주변 사람들에게 편안함을 선사합니다.",
    ],
    "deer": [
        "청순하고 우아한 인상으로 순수한 아름다움이 있습니다.",
        "맑고 깨끗한 눈빛이 인상적이며 고요한 매력을 지녔습니다.",
        "섬세하고 품위 있는 분위기가 자연스럽게 풍깁니다.",
    ],
}

KEYWORD_SETS: Dict[str, Dict[str, List[str]]] = {
    "teto": {
        "dog": ["✨ 충직한분석가", "🎯 논리적사교성", "🔍 신뢰의지성"],
        "cat": ["🌙 냉철한독립성", "💎 이성적우아함", "🎭 통찰력"],
        "fox": ["🦊 전략적사고", "⚡ 날카로운분석", "🎯 영리한판단"],
        "rabbit": ["🌸 온화한이성", "💭 차분한논리", "🍀 부드러운지혜"],
        "bear": ["🏔️ 안정적판단", "🛡️ 믿음직한논리", "🌲 든든한분석"],
        "deer": ["🌿 우아한이성", "✨ 맑은통찰", "🎨 세련된판단"],
    },
    "egen": {
        "dog": ["❤️ 따뜻한공감", "🌟 순수한열정", "🤝 진심어린배려"],
        "cat": ["💫 감성적카리스마", "🎭 신비로운감수성", "🌙 섬세한직관"],
        "fox": ["🎨 영리한감성", "💡 예민한공감", "✨ 세심한배려"],
        "rabbit": ["🌸 사랑스런감성", "💕 순한마음", "🍀 다정한성격"],
        "bear": ["🤗 포근한감성", "💝 넉넉한마음", "🌻 따스한포용"],
        "deer": ["🌙 청순한감성", "✨ 순수한마음", "🎨 우아한감수성"],
    },
    "tegen": {
        "dog": ["⚖️ 균형잡힌성격", "🌈 유연한사고", "🎯 적응력"],
        "cat": ["🎭 조화로운카리스마", "💫 균형감각", "🌙 중립적매력"],
        "fox": ["🧩 융통성", "⚡ 상황판단력", "🎯 균형잡힌지혜"],
        "rabbit": ["🌸 조화로운성격", "💭 온화한균형", "🍀 부드러운융통성"],
        "bear": ["🏔️ 안정적균형", "🛡️ 중도적판단", "🌲 든든한조화"],
        "deer": ["🌿 우아한균형", "✨ 조화로운품격", "🎨 세련된중립"],
    },
}

DATING_STYLES: Dict[str, Dict[str, str]] = {
    "teto": {
        "dog": "충실하고 계획적인 관계형",
        "cat": "독립적이고 이성적인 파트너",
        "fox": "전략적이고 영리한 연인",
        "rabbit": "차분하고 안정적인 사랑",
        "bear": "믿음직하고 든든한 동반자",
        "deer": "우아하고 절제된 로맨스",
    },
    "egen": {
        "dog": "열정적이고 헌신적인 연인",
        "cat": "감성적이고 신비로운 사랑",
        "fox": "세심하고 배려 깊은 파트너",
        "rabbit": "다정하고 애정 넘치는 관계",
        "bear": "포근하고 따뜻한 사랑",
        "deer": "순수하고 깊은 감정 교류",
    },
    "tegen": {
        "dog": "균형잡힌 파트너십",
        "cat": "조화로운 독립적 관계",
        "fox": "유연하고 이해심 깊은 사랑",
        "rabbit": "안정적이고 편안한 연애",
        "bear": "든든하고 중도적인 파트너",
        "deer": "우아하고 절제된 로맨스",
    },
}

ONE_LINERS: Dict[str, List[str]] = {
    "teto": [
        "당신의 눈빛은 차분하지만 깊은 통찰력을 담고 있습니다.",
        "당신의 미소는 절제되어 있지만 신뢰감을 줍니다.",
        "당신의 표정에서 이성적이면서도 안정적인 아우라가 느껴집니다.",
    ],
    "egen": [
        "당신의 미소는 따뜻하고 진심이 느껴집니다.",
        "당신의 눈빛에서 깊은 공감과 이해가 전해집니다.",
        "당신의 표정은 주변 사람들에게 위로와 힘을 줍니다.",
    ],
    "tegen": [
        "당신의 얼굴에서 조화와 균형의 아름다움이 느껴집니다.",
        "당신의 표정은 상황에 따라 유연하게 변화하는 매력이 있습니다.",
        "당신의 인상은 안정적이면서도 다채로운 매력을 지녔습니다.",
    ],
}

DEFAULT_PHYSIOGNOMY = "당신만의 독특한 매력을 지니고 있습니다."
DEFAULT_ONE_LINER = "당신만의 독특한 매력을 지녔습니다."
