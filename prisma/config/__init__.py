"""Configuration loading for prisma."""

from prisma.config.manager import DEFAULT_CONFIG, ConfigManager, load_prisma_config

__all__ = ["DEFAULT_CONFIG", "ConfigManager", "load_prisma_config"]
