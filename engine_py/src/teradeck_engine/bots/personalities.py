"""
Named AI personalities used to seat computer players.
"""

import random
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..constants import AIDifficulty
from ..models import Player


@dataclass(frozen=True)
class AIPersonality:
    name: str
    preferred_difficulty: AIDifficulty
    description: Dict[str, str] = field(default_factory=dict)
    # 0-100 each: aggressive, defensive, opportunistic, methodical
    traits: Dict[str, int] = field(default_factory=dict)


def _traits(aggressive: int, defensive: int, opportunistic: int, methodical: int) -> Dict[str, int]:
    return {
        'aggressive': aggressive,
        'defensive': defensive,
        'opportunistic': opportunistic,
        'methodical': methodical,
    }


AI_PERSONALITIES: List[AIPersonality] = [
    AIPersonality(
        'DevBot Jr.', AIDifficulty.EASY,
        {'es': 'Un desarrollador novato que está aprendiendo. Hace movimientos básicos y a veces impredecibles.',
         'en': 'A novice developer who is learning. Makes basic and sometimes unpredictable moves.'},
        _traits(30, 20, 40, 10),
    ),
    AIPersonality(
        'CodeCrafter', AIDifficulty.NORMAL,
        {'es': 'Un programador competente que balancea ataque y defensa. Conoce las reglas bien.',
         'en': 'A competent programmer who balances attack and defense. Knows the rules well.'},
        _traits(50, 60, 55, 70),
    ),
    AIPersonality(
        'BugHunter', AIDifficulty.NORMAL,
        {'es': 'Especialista en encontrar y explotar vulnerabilidades. Le gusta sabotear a los oponentes.',
         'en': 'Specialist in finding and exploiting vulnerabilities. Likes to sabotage opponents.'},
        _traits(80, 40, 70, 60),
    ),
    AIPersonality(
        'ArchMaster', AIDifficulty.HARD,
        {'es': 'Arquitecto de software experimentado. Planifica estrategias complejas y anticipa movimientos.',
         'en': 'Experienced software architect. Plans complex strategies and anticipates moves.'},
        _traits(60, 80, 85, 95),
    ),
    AIPersonality(
        'SysAdmin', AIDifficulty.HARD,
        {'es': 'Administrador de sistemas veterano. Prioriza la estabilidad y bloquea amenazas eficientemente.',
         'en': 'Veteran system administrator. Prioritizes stability and efficiently blocks threats.'},
        _traits(40, 95, 60, 90),
    ),
    AIPersonality(
        'DataNinja', AIDifficulty.HARD,
        {'es': 'Científico de datos sigiloso. Usa operaciones especiales de manera muy efectiva.',
         'en': 'Stealthy data scientist. Uses special operations very effectively.'},
        _traits(70, 50, 95, 80),
    ),
    AIPersonality(
        'FrontendFox', AIDifficulty.NORMAL,
        {'es': 'Desarrollador frontend ágil. Rápido para adaptarse pero a veces impaciente.',
         'en': 'Agile frontend developer. Quick to adapt but sometimes impatient.'},
        _traits(60, 30, 80, 40),
    ),
    AIPersonality(
        'BackendBear', AIDifficulty.NORMAL,
        {'es': 'Desarrollador backend sólido. Construye bases fuertes y se defiende bien.',
         'en': 'Solid backend developer. Builds strong foundations and defends well.'},
        _traits(40, 80, 50, 85),
    ),
    AIPersonality(
        'MobileMonkey', AIDifficulty.EASY,
        {'es': 'Desarrollador mobile energético. Hace muchos movimientos pero no siempre los mejores.',
         'en': 'Energetic mobile developer. Makes many moves but not always the best ones.'},
        _traits(70, 20, 90, 30),
    ),
    AIPersonality(
        'QualityQueen', AIDifficulty.HARD,
        {'es': 'Especialista en QA meticulosa. Previene bugs y optimiza cada movimiento.',
         'en': 'Meticulous QA specialist. Prevents bugs and optimizes every move.'},
        _traits(30, 90, 65, 95),
    ),
]


def get_personality(name: str) -> Optional[AIPersonality]:
    for personality in AI_PERSONALITIES:
        if personality.name == name:
            return personality
    return None


def personalities_for(difficulty: AIDifficulty) -> List[AIPersonality]:
    return [p for p in AI_PERSONALITIES if p.preferred_difficulty == difficulty]


def pick_personalities(count: int, difficulty: Optional[AIDifficulty] = None,
                       rng: Optional[random.Random] = None) -> List[AIPersonality]:
    """
    Pick `count` personalities without repeats.

    Personalities preferring `difficulty` are chosen first while any remain
    unused; once the whole roster is used it starts over.

    Args:
        count: Number of personalities to pick
        difficulty: Preferred difficulty, if any
        rng: Random source

    Returns:
        Selected personalities in pick order
    """
    rng = rng or random.Random()
    used = set()
    picked = []

    for _ in range(count):
        available = [p for p in AI_PERSONALITIES if p.name not in used]
        if not available:
            used.clear()
            available = list(AI_PERSONALITIES)

        if difficulty is not None:
            matching = [p for p in available if p.preferred_difficulty == difficulty]
            if matching:
                available = matching

        personality = rng.choice(available)
        used.add(personality.name)
        picked.append(personality)

    return picked


def create_ai_players(count: int, difficulty: Optional[AIDifficulty] = None,
                      rng: Optional[random.Random] = None) -> List[Player]:
    """Create AI seats named after distinct personalities."""
    return [
        Player(id=f"ai_{uuid.uuid4().hex[:8]}", name=personality.name, is_ai=True)
        for personality in pick_personalities(count, difficulty, rng)
    ]
