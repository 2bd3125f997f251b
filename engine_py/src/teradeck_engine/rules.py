"""
Room settings and validation.
"""

from pydantic import BaseModel, Field, field_validator

from .constants import AIDifficulty, Language, MAX_PLAYERS, MIN_PLAYERS


class GameSettings(BaseModel):
    """Settings chosen by the host when the room is created."""

    max_players: int = Field(
        default=4,
        ge=MIN_PLAYERS,
        le=MAX_PLAYERS,
        description="Maximum number of seats, AI seats included"
    )
    ai_players: int = Field(
        default=0,
        ge=0,
        le=MAX_PLAYERS - 1,
        description="Number of AI seats created with the room"
    )
    ai_difficulty: AIDifficulty = Field(
        default=AIDifficulty.NORMAL,
        description="Decision tier used by every AI seat"
    )
    language: Language = Field(
        default=Language.SPANISH,
        description="Display language; carried for clients, ignored by the engine"
    )

    @field_validator('ai_players')
    @classmethod
    def validate_ai_players(cls, v, info):
        """AI seats must leave room for the host."""
        max_players = info.data.get('max_players', MAX_PLAYERS)
        if v >= max_players:
            raise ValueError(f'ai_players ({v}) must be < max_players ({max_players})')
        return v

    def validate_player_count(self, player_count: int) -> bool:
        """Check if a player count can start a game under these settings."""
        return MIN_PLAYERS <= player_count <= self.max_players


# Default configuration instance
default_settings = GameSettings()


def create_settings(**overrides) -> GameSettings:
    """Create GameSettings with optional overrides."""
    config_dict = default_settings.model_dump()
    config_dict.update(overrides)
    return GameSettings(**config_dict)
