"""
Configuration loader for compared providers.

Loads provider YAML files and builds the provider streams for a run.
"""
import logging
from pathlib import Path

import yaml

from llm_compare.ai.agent import AgentProviderStream
from llm_compare.ai.base import DripConfig, ProviderConfig, ProviderStream
from llm_compare.ai.drip import DripProviderStream
from llm_compare.config import DEFAULT_PROVIDERS_DIR, Settings

logger = logging.getLogger(__name__)

# Wire ids of the two compared branches, in display order
COMPARED_MODEL_IDS = ("openai", "gemini")


class ProviderConfigError(Exception):
    """Raised when provider configuration is missing or malformed."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def parse_provider_config(data: dict) -> ProviderConfig:
    """Build a ProviderConfig from a parsed YAML mapping."""
    drip = data.get("drip") or {}
    return ProviderConfig(
        model_id=data["model_id"],
        provider=data["provider"],
        display_name=data.get("display_name", data["model_id"]),
        model_name=data["model_name"],
        agent_model=data.get("agent_model", data["model_name"]),
        price_per_1k=float(data.get("price_per_1k", 0.0)),
        drip=DripConfig(
            interval_ms=int(drip.get("interval_ms", 50)),
            reply_template=drip.get("reply_template", "Response to: {prompt}."),
        ),
    )


def load_provider_configs(directory: Path = DEFAULT_PROVIDERS_DIR) -> dict[str, ProviderConfig]:
    """Load all provider configurations from directory, keyed by model id."""
    if not directory.exists():
        logger.warning("Providers directory not found: %s", directory)
        return {}

    configs: dict[str, ProviderConfig] = {}
    for path in sorted(list(directory.glob("*.yaml")) + list(directory.glob("*.yml"))):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)

            config = parse_provider_config(data)
            configs[config.model_id] = config
            logger.debug("Loaded provider config: %s", config.model_id)

        except Exception as e:
            logger.error("Failed to load provider config %s: %s", path.name, e)

    logger.info("Loaded %d provider configurations", len(configs))
    return configs


def build_provider_stream(config: ProviderConfig, live: bool) -> ProviderStream:
    """Pick the live or mock stream implementation for a provider."""
    if live:
        return AgentProviderStream(config)
    return DripProviderStream(config)


def build_provider_streams(settings: Settings) -> tuple[ProviderStream, ProviderStream]:
    """
    Build the two compared provider streams.

    Returns:
        Tuple of (openai_stream, gemini_stream)

    Raises:
        ProviderConfigError: If either provider has no configuration
    """
    configs = load_provider_configs(settings.providers_dir)

    missing = [model_id for model_id in COMPARED_MODEL_IDS if model_id not in configs]
    if missing:
        raise ProviderConfigError(f"Missing provider configs: {', '.join(missing)}")

    openai_stream, gemini_stream = (
        build_provider_stream(configs[model_id], settings.use_live_providers)
        for model_id in COMPARED_MODEL_IDS
    )
    logger.info(
        "Provider streams ready (%s mode): %s, %s",
        settings.provider_mode,
        openai_stream.model_name,
        gemini_stream.model_name,
    )
    return openai_stream, gemini_stream
