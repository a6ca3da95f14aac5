"""
Unit Tests for AgentFactory

Tests profile loading, settings resolution and agent wiring.
"""

import pytest

from pagepilot.application.factory import AgentFactory
from pagepilot.core.domain.agent import PageAgent
from pagepilot.core.domain.hooks import AgentHooks
from pagepilot.infrastructure.events.event_bus import EventBus
from pagepilot.infrastructure.llm.litellm_client import LiteLLMDecisionClient


class TestAgentFactoryProfiles:
    """Tests for profile loading."""

    def test_missing_profile_raises(self, config_dir):
        """Test an unknown profile raises FileNotFoundError."""
        factory = AgentFactory(config_dir=str(config_dir))

        with pytest.raises(FileNotFoundError, match="Profile not found"):
            factory.create_agent(host=None, profile="prod")

    def test_empty_profile_uses_defaults(self, config_dir):
        """Test an empty profile falls back to default settings."""
        settings = AgentFactory(config_dir=str(config_dir)).load_settings("empty")

        assert settings.max_steps == 20
        assert settings.language == "en-US"
        assert settings.disabled_tools == []

    def test_profile_sections_flattened(self, config_dir):
        """Test llm, agent and tools sections map onto settings."""
        settings = AgentFactory(config_dir=str(config_dir)).load_settings("test")

        assert settings.model == "gpt-4.1-mini"
        assert settings.temperature == 0.1
        assert settings.max_retries == 1
        assert settings.max_steps == 7
        assert settings.language == "zh-CN"
        assert settings.step_delay == 0
        assert settings.disabled_tools == ["execute_javascript", "scroll_horizontally"]

    def test_api_key_from_environment(self, config_dir, monkeypatch):
        """Test the key is read from the variable named by api_key_env."""
        monkeypatch.setenv("PAGEPILOT_TEST_KEY", "sk-from-env")

        settings = AgentFactory(config_dir=str(config_dir)).load_settings("test")

        assert settings.api_key == "sk-from-env"

    def test_overrides_win(self, config_dir):
        """Test explicit overrides beat profile values; None overrides are ignored."""
        settings = AgentFactory(config_dir=str(config_dir)).load_settings("test", max_steps=3, language=None)

        assert settings.max_steps == 3
        assert settings.language == "zh-CN"


class TestAgentFactoryCreateAgent:
    """Tests for create_agent()."""

    def test_wires_agent_from_profile(self, config_dir, host, scripted_client, done_payload):
        """Test the agent gets the profile's settings and removed tools."""
        client = scripted_client([done_payload])
        bus = EventBus()
        hooks = AgentHooks()

        agent = AgentFactory(config_dir=str(config_dir)).create_agent(
            host, "test", llm_client=client, event_bus=bus, hooks=hooks
        )

        assert isinstance(agent, PageAgent)
        assert agent.llm_client is client
        assert agent.host is host
        assert agent.bus is bus
        assert agent.hooks is hooks
        assert agent.max_steps == 7
        assert agent.language == "zh-CN"
        assert "execute_javascript" not in agent.tools
        assert "scroll_horizontally" not in agent.tools
        assert "execute_javascript" not in agent.decision_schema

    def test_builds_litellm_client(self, config_dir, host, monkeypatch):
        """Test a LiteLLM client is created from the llm section."""
        monkeypatch.setenv("PAGEPILOT_TEST_KEY", "sk-from-env")

        agent = AgentFactory(config_dir=str(config_dir)).create_agent(host, "test")

        assert isinstance(agent.llm_client, LiteLLMDecisionClient)
        assert agent.llm_client.model == "gpt-4.1-mini"
        assert agent.llm_client.api_key == "sk-from-env"
        assert agent.llm_client.temperature == 0.1
        assert agent.llm_client.retry_policy.max_attempts == 2

    def test_custom_tools_applied_after_profile(self, config_dir, host, scripted_client, done_payload):
        """Test custom overrides are applied on top of profile removals."""
        agent = AgentFactory(config_dir=str(config_dir)).create_agent(
            host,
            "test",
            llm_client=scripted_client([done_payload]),
            custom_tools={"ask_user": None},
        )

        assert "ask_user" not in agent.tools
        assert "execute_javascript" not in agent.tools

    def test_create_tools(self, config_dir):
        """Test the tool registry of a profile can be built without an agent."""
        tools = AgentFactory(config_dir=str(config_dir)).create_tools("test")

        assert tools.frozen
        assert "done" in tools
        assert "scroll_horizontally" not in tools

    @pytest.mark.asyncio
    async def test_created_agent_runs(self, config_dir, host, scripted_client, done_payload):
        """Test a factory-built agent executes a task."""
        agent = AgentFactory(config_dir=str(config_dir)).create_agent(
            host, "test", llm_client=scripted_client([done_payload])
        )

        result = await agent.execute("提交")

        assert result.success is True
