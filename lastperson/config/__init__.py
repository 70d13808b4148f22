"""Configuration for the Last Person Standing engine."""

from lastperson.config.rules import RulesConfig, get_rules
from lastperson.config.settings import Settings, get_settings

__all__ = ["RulesConfig", "Settings", "get_rules", "get_settings"]
