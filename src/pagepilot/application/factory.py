"""
Application Layer - Agent Factory

Dependency injection factory for creating PageAgent instances from
configuration profiles.

Key Responsibilities:
- Load configuration profiles (configs/<profile>.yaml)
- Resolve settings (profile values, PAGEPILOT_* environment, secrets from env)
- Instantiate the model client
- Apply tool removals from the profile and custom tool overrides
- Wire everything into the core domain PageAgent
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog
import yaml

from pagepilot.application.settings import PagePilotSettings
from pagepilot.core.domain.agent import PageAgent
from pagepilot.core.domain.hooks import AgentHooks
from pagepilot.core.domain.registry import ToolRegistry
from pagepilot.core.interfaces.host import HostEnvironmentProtocol
from pagepilot.core.interfaces.llm import DecisionClientProtocol
from pagepilot.core.interfaces.tools import Tool
from pagepilot.core.tools.page_tools import create_builtin_tools
from pagepilot.infrastructure.events.event_bus import EventBus
from pagepilot.infrastructure.llm.litellm_client import LiteLLMDecisionClient, RetryPolicy


class AgentFactory:
    """
    Factory for creating page agents with dependency injection.

    Reads YAML configuration profiles, instantiates the model client and wires
    the host environment, tools, hooks and event bus into PageAgent.
    """

    def __init__(self, config_dir: str = "configs"):
        """
        Initialize AgentFactory with configuration directory.

        Args:
            config_dir: Path to directory containing profile YAML files
        """
        self.config_dir = Path(config_dir)
        self.logger = structlog.get_logger().bind(component="agent_factory")

    def create_agent(
        self,
        host: HostEnvironmentProtocol,
        profile: str = "dev",
        *,
        llm_client: DecisionClientProtocol | None = None,
        custom_tools: Mapping[str, Tool | None] | None = None,
        hooks: AgentHooks | None = None,
        event_bus: EventBus | None = None,
        **overrides: Any,
    ) -> PageAgent:
        """
        Create an agent for the given profile.

        Args:
            host: Host environment the agent drives
            profile: Configuration profile name
            llm_client: Model client override (built from settings if omitted)
            custom_tools: name -> Tool overrides; None removes a tool
            hooks: Lifecycle hooks
            event_bus: Event bus for progress events
            **overrides: Settings overriding the profile (e.g. max_steps=5)

        Returns:
            PageAgent instance with injected dependencies

        Raises:
            FileNotFoundError: If profile YAML not found
        """
        config = self._load_profile(profile)
        settings = self._build_settings(config, overrides)

        self.logger.info(
            "creating_agent",
            profile=profile,
            model=settings.model,
            max_steps=settings.max_steps,
            language=settings.language,
            disabled_tools=settings.disabled_tools,
        )

        return PageAgent(
            llm_client=llm_client or self._create_llm_client(settings),
            host=host,
            custom_tools=self._resolve_custom_tools(settings, custom_tools),
            hooks=hooks,
            event_bus=event_bus,
            max_steps=settings.max_steps,
            language=settings.language,
            step_delay=settings.step_delay,
        )

    def load_settings(self, profile: str = "dev", **overrides: Any) -> PagePilotSettings:
        return self._build_settings(self._load_profile(profile), overrides)

    def create_tools(
        self,
        profile: str = "dev",
        custom_tools: Mapping[str, Tool | None] | None = None,
    ) -> ToolRegistry:
        """Tool registry an agent of this profile would get (frozen)."""
        settings = self.load_settings(profile)
        registry = ToolRegistry(create_builtin_tools().values())
        registry.apply_overrides(self._resolve_custom_tools(settings, custom_tools))
        registry.freeze()
        return registry

    def _load_profile(self, profile: str) -> dict[str, Any]:
        """
        Load configuration profile from YAML file.

        Raises:
            FileNotFoundError: If profile YAML not found
        """
        profile_path = self.config_dir / f"{profile}.yaml"

        if not profile_path.exists():
            raise FileNotFoundError(f"Profile not found: {profile_path}")

        with open(profile_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        self.logger.debug("profile_loaded", profile=profile, config_keys=list(config.keys()))
        return config

    def _build_settings(
        self,
        config: dict[str, Any],
        overrides: Mapping[str, Any] | None = None,
    ) -> PagePilotSettings:
        """Flatten profile sections into settings; explicit overrides win."""
        llm_config = dict(config.get("llm", {}) or {})
        agent_config = config.get("agent", {}) or {}
        tools_config = config.get("tools", {}) or {}
        logging_config = config.get("logging", {}) or {}

        api_key_env = llm_config.pop("api_key_env", None)
        values: dict[str, Any] = {**llm_config, **agent_config}
        if "disabled" in tools_config:
            values["disabled_tools"] = list(tools_config["disabled"] or [])
        if "debug" in logging_config:
            values["debug"] = logging_config["debug"]

        if not values.get("api_key") and api_key_env and os.getenv(api_key_env):
            values["api_key"] = os.getenv(api_key_env)

        values.update({k: v for k, v in (overrides or {}).items() if v is not None})
        return PagePilotSettings(**{k: v for k, v in values.items() if v is not None})

    def _create_llm_client(self, settings: PagePilotSettings) -> LiteLLMDecisionClient:
        llm = settings.llm_config()
        return LiteLLMDecisionClient(
            model=llm.model,
            api_key=llm.api_key,
            base_url=llm.base_url,
            temperature=llm.temperature,
            max_tokens=llm.max_tokens,
            retry_policy=RetryPolicy(max_attempts=llm.max_retries + 1),
        )

    @staticmethod
    def _resolve_custom_tools(
        settings: PagePilotSettings,
        custom_tools: Mapping[str, Tool | None] | None,
    ) -> dict[str, Tool | None]:
        resolved: dict[str, Tool | None] = {name: None for name in settings.disabled_tools}
        resolved.update(custom_tools or {})
        return resolved
