from unit_extractor.config.loader import YamlConfigLoader
from unit_extractor.config.models import AppConfig, ConfigLoadRequest

__all__ = ["AppConfig", "ConfigLoadRequest", "YamlConfigLoader"]
