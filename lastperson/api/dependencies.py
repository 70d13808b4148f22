"""FastAPI dependencies for the Last Person Standing API."""

from lastperson.config.rules import RulesConfig, get_rules


def get_rules_config() -> RulesConfig:
    """Get rules configuration dependency."""
    return get_rules()
