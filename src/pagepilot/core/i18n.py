"""
Localized narrative strings.

The configured language only changes text shown to observers and the
working language announced in the system prompt; it never affects control
flow.
"""

from collections.abc import Mapping
from typing import Any, Literal

SupportedLanguage = Literal["en-US", "zh-CN"]
DEFAULT_LANGUAGE: SupportedLanguage = "en-US"

_CATALOG: dict[str, dict[str, str]] = {
    "en-US": {
        "ui.panel.thinking": "Thinking...",
        "ui.panel.taskCompleted": "Task completed",
        "tools.executing.default": "Executing {name}...",
        "tools.executing.click_element_by_index": "Clicking element [{index}]...",
        "tools.executing.input_text": 'Typing "{text}" into element [{index}]...',
        "tools.executing.select_dropdown_option": 'Selecting "{text}" in element [{index}]...',
        "tools.executing.scroll": "Scrolling the page...",
        "tools.executing.scroll_horizontally": "Scrolling horizontally...",
        "tools.executing.execute_javascript": "Running script...",
        "tools.executing.wait": "Waiting {seconds} seconds...",
        "tools.executing.ask_user": "Asking user: {question}",
        "tools.executing.done": "Finishing task...",
        "tools.completed.click_element_by_index": "Clicked element [{index}]",
        "tools.completed.input_text": 'Typed "{text}"',
        "tools.completed.select_dropdown_option": 'Selected "{text}"',
        "tools.completed.scroll": "Scrolled",
        "tools.completed.scroll_horizontally": "Scrolled",
        "tools.completed.wait": "Waited {seconds} seconds",
    },
    "zh-CN": {
        "ui.panel.thinking": "正在思考...",
        "ui.panel.taskCompleted": "任务结束",
        "tools.executing.default": "正在执行 {name}...",
        "tools.executing.click_element_by_index": "正在点击元素 [{index}]...",
        "tools.executing.input_text": '正在向元素 [{index}] 输入 "{text}"...',
        "tools.executing.select_dropdown_option": '正在元素 [{index}] 中选择 "{text}"...',
        "tools.executing.scroll": "正在滚动页面...",
        "tools.executing.scroll_horizontally": "正在水平滚动...",
        "tools.executing.execute_javascript": "正在运行脚本...",
        "tools.executing.wait": "等待 {seconds} 秒...",
        "tools.executing.ask_user": "询问用户: {question}",
        "tools.executing.done": "正在结束任务...",
        "tools.completed.click_element_by_index": "已点击元素 [{index}]",
        "tools.completed.input_text": '已输入 "{text}"',
        "tools.completed.select_dropdown_option": '已选择 "{text}"',
        "tools.completed.scroll": "已滚动",
        "tools.completed.scroll_horizontally": "已滚动",
        "tools.completed.wait": "已等待 {seconds} 秒",
    },
}


class _Params(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


class I18n:
    """String catalog lookup with en-US fallback."""

    def __init__(self, language: str | None = None):
        self.language = language if language in _CATALOG else DEFAULT_LANGUAGE

    def t(self, key: str, /, **params: Any) -> str:
        template = _CATALOG[self.language].get(key) or _CATALOG[DEFAULT_LANGUAGE].get(key)
        if template is None:
            return key
        return template.format_map(_Params(params))

    def has(self, key: str) -> bool:
        return key in _CATALOG[self.language] or key in _CATALOG[DEFAULT_LANGUAGE]

    def tool_executing_text(self, tool_name: str, args: Mapping[str, Any]) -> str:
        key = f"tools.executing.{tool_name}"
        if not self.has(key):
            return self.t("tools.executing.default", name=tool_name)
        return self.t(key, **args)

    def tool_completed_text(self, tool_name: str, args: Mapping[str, Any]) -> str | None:
        key = f"tools.completed.{tool_name}"
        if not self.has(key):
            return None
        return self.t(key, **args)
