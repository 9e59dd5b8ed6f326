"""
页面状态快照 (失败诊断用)

场景失败时记录最后观察到的页面状态:
- 当前 URL 与标题
- 压缩后的可访问性树 (基于 locator.aria_snapshot() 的 YAML)
"""

import logging
import re
from dataclasses import dataclass

from playwright.sync_api import Page

logger = logging.getLogger("signin")

# aria_snapshot YAML 行格式: - role "name" [attr=val]: text
_ARIA_LINE_RE = re.compile(r'^(?P<role>[\w-]+)(?:\s+"(?P<name>[^"]*)")?')

# 纯装饰角色 (无 name 时省略)
SKIP_ROLES = {
    "none", "presentation", "generic", "paragraph",
    "LineBreak", "InlineTextBox",
}

REDACTED = "******"


@dataclass
class PageState:
    url: str
    title: str = ""
    snapshot: str = ""

    def __str__(self) -> str:
        lines = [f"URL: {self.url}"]
        if self.title:
            lines.append(f"标题: {self.title}")
        if self.snapshot:
            lines.append("页面快照:")
            lines.append(self.snapshot)
        return "\n".join(lines)


def compress_aria_snapshot(yaml_str: str, max_lines: int = 80) -> str:
    """
    压缩 aria_snapshot() 的 YAML 文本。

    去掉无 name 的装饰性节点，保留缩进层级，超过 max_lines 时截断并注明剩余行数。
    """
    kept = []
    for line in yaml_str.split("\n"):
        stripped = line.lstrip()
        if not stripped.startswith("- "):
            continue
        content = stripped[2:]
        m = _ARIA_LINE_RE.match(content)
        if m and m.group("role") in SKIP_ROLES and not m.group("name"):
            # 容器节点本身没有信息量，但 "- generic: text" 这种带文本的要保留
            _, sep, text = content.partition(": ")
            if not sep or not text.strip():
                continue
        indent = len(line) - len(stripped)
        kept.append(" " * indent + content.rstrip(":"))

    if len(kept) > max_lines:
        omitted = len(kept) - max_lines
        kept = kept[:max_lines] + [f"... (省略 {omitted} 行)"]
    return "\n".join(kept)


def redact(text: str, secrets: list[str] | tuple[str, ...] = ()) -> str:
    """把文本中出现的敏感字符串替换为掩码"""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


def capture_page_state(page: Page, secrets: tuple[str, ...] = (), max_lines: int = 80) -> PageState:
    """
    记录页面当前状态。不抛异常: 页面已关闭或快照失败时返回尽可能多的信息。
    """
    try:
        url = page.url
    except Exception as e:
        logger.warning(f"[Snapshot] 读取 URL 失败: {e}")
        return PageState(url="(unknown)")

    state = PageState(url=redact(url, secrets))
    try:
        state.title = page.title()
    except Exception as e:
        logger.debug(f"[Snapshot] 读取标题失败: {e}")

    try:
        yaml_str = page.locator("body").aria_snapshot(timeout=2000)
        if yaml_str and yaml_str.strip():
            state.snapshot = redact(compress_aria_snapshot(yaml_str, max_lines), secrets)
    except Exception as e:
        logger.warning(f"[Snapshot] 获取可访问性快照失败: {e}")

    return state
