"""Database repository helpers."""

from repositories.configurations import ConfigurationRegistry
from repositories.penalties import (
    add_list_to_configuration,
    apply_penalty,
    attach_list_penalty,
    create_penalty,
    update_penalty_value,
    validate_ranked_item,
)
from repositories.rankings import ConfigurationSnapshot, RankedListSnapshot, RankingRepository

__all__ = [
    "ConfigurationRegistry",
    "ConfigurationSnapshot",
    "RankedListSnapshot",
    "RankingRepository",
    "add_list_to_configuration",
    "apply_penalty",
    "attach_list_penalty",
    "create_penalty",
    "update_penalty_value",
    "validate_ranked_item",
]
