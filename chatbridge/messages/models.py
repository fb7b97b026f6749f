"""Model name helpers.

By default the requested model name goes to the backend unchanged. A
deployment may enable a static renaming table instead (``model_map`` in the
config); it is a plain lookup with a fixed fallback, not a registry.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

NATIVE_MODEL_PREFIX = "claude-"

# Advertised on /v1/models when the config does not list any.
DEFAULT_MODELS = (
    "claude-sonnet-4-20250514",
    "claude-3-5-sonnet-20241022",
    "claude-3-5-haiku-20241022",
)

DEFAULT_FALLBACK_MODEL = "claude-sonnet-4-20250514"


@dataclass(frozen=True)
class ModelMap:
    """Static ``str -> str`` model renaming table with a default fallback."""

    aliases: Mapping[str, str] = field(default_factory=dict)
    default_model: str = DEFAULT_FALLBACK_MODEL

    def resolve(self, model_name: str) -> str:
        if model_name in self.aliases:
            return self.aliases[model_name]
        if model_name.startswith(NATIVE_MODEL_PREFIX):
            return model_name
        return self.default_model

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> Optional["ModelMap"]:
        """Build the table from the ``model_map`` config section.

        Returns None (pure pass-through) when the section is missing or
        ``enabled`` is false.
        """
        section = config.get("model_map") or {}
        if not section or not section.get("enabled", True):
            return None
        aliases = section.get("aliases") or {}
        return cls(
            aliases={str(k): str(v) for k, v in aliases.items()},
            default_model=str(section.get("default_model") or DEFAULT_FALLBACK_MODEL),
        )


def configured_model_ids(config: Mapping[str, Any]) -> list[str]:
    """Model ids to advertise, from config or the built-in defaults."""
    models = config.get("models") or []
    ids = [str(m) for m in models if m]
    return ids or list(DEFAULT_MODELS)
