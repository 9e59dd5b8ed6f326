"""
登录场景

LoginScenario 按固定顺序驱动页面:
  1. 打开登录页
  2. 填写用户名
  3. 填写密码
  4. 点击登录按钮
  5. 等待 URL 进入 secure 区域
  6. 等待欢迎文字可见

任一步骤超时即终止本次场景，不做重试 (重试由外部 runner 决定)。
页面 (Page) 的生命周期由调用方管理，场景不会关闭它。
"""

import logging
import re
import time
from contextlib import contextmanager
from dataclasses import dataclass, field

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page, expect
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from signin.config import Credentials
from signin.snapshot import PageState, capture_page_state

logger = logging.getLogger("signin")


# ============================================================
# 错误类型
# ============================================================

class ScenarioFailure(AssertionError):
    """
    场景失败基类。继承 AssertionError，pytest 会将其报告为断言失败。

    Attributes:
        step: 失败的步骤名 (goto / username / password / submit / secure_url / welcome)
        target: 对应的选择器、URL 或正则
        state: 失败时的页面状态 (URL + 快照)
    """

    def __init__(self, message: str, step: str = "", target: str = "", state: PageState | None = None):
        super().__init__(message)
        self.step = step
        self.target = target
        self.state = state

    @property
    def url(self) -> str:
        return self.state.url if self.state else ""

    @property
    def snapshot(self) -> str:
        return self.state.snapshot if self.state else ""


class NavigationOrElementTimeout(ScenarioFailure):
    """导航失败，或元素 / URL 条件在超时前未满足"""


class UnexpectedPageState(ScenarioFailure):
    """页面结构不符合预期: 选择器匹配到 0 个或多个元素"""


# ============================================================
# 结果
# ============================================================

@dataclass
class ScenarioResult:
    final_url: str = ""
    elapsed: float = 0.0
    steps: list[str] = field(default_factory=list)


def build_url_pattern(patterns: list[str]) -> re.Pattern:
    """把多个可接受的 URL 正则合并为一个 (任一匹配即可)"""
    if not patterns:
        raise ValueError("secure_url_patterns 不能为空")
    return re.compile("|".join(f"(?:{p})" for p in patterns))


class LoginScenario:
    """
    登录验证场景。

    使用方法:
        scenario = LoginScenario(config)
        result = scenario.run(page, credentials)   # 失败时抛出 ScenarioFailure
    """

    STEPS = ("goto", "username", "password", "submit", "secure_url", "welcome")

    def __init__(self, config: dict):
        self.login_url = config["base_url"].rstrip("/") + config["login_path"]
        self.username_selector = config["username_selector"]
        self.password_selector = config["password_selector"]
        self.submit_selector = config["submit_selector"]
        self.secure_url_re = build_url_pattern(config["secure_url_patterns"])
        self.welcome_text = config["welcome_text"]
        self.timeout_navigation = config.get("timeout_navigation", 30000)
        self.timeout_expect = config.get("timeout_expect", 5000)

    def is_secure_url(self, url: str) -> bool:
        return self.secure_url_re.search(url) is not None

    def run(self, page: Page, credentials: Credentials) -> ScenarioResult:
        """执行完整登录流程并断言结果"""
        result = ScenarioResult()
        secrets = (credentials.password,)
        start = time.monotonic()

        with self._step(page, "goto", self.login_url, secrets):
            page.goto(self.login_url, timeout=self.timeout_navigation)
        result.steps.append("goto")

        with self._step(page, "username", self.username_selector, secrets):
            self._locate_unique(page, "username", self.username_selector, secrets).fill(
                credentials.username, timeout=self.timeout_expect
            )
        result.steps.append("username")

        with self._step(page, "password", self.password_selector, secrets):
            self._locate_unique(page, "password", self.password_selector, secrets).fill(
                credentials.password, timeout=self.timeout_expect
            )
        result.steps.append("password")

        with self._step(page, "submit", self.submit_selector, secrets):
            self._locate_unique(page, "submit", self.submit_selector, secrets).click(
                timeout=self.timeout_navigation
            )
        result.steps.append("submit")

        with self._step(page, "secure_url", self.secure_url_re.pattern, secrets):
            expect(page).to_have_url(self.secure_url_re, timeout=self.timeout_expect)
        result.steps.append("secure_url")

        with self._step(page, "welcome", self.welcome_text, secrets):
            expect(page.get_by_text(self.welcome_text)).to_be_visible(timeout=self.timeout_expect)
        result.steps.append("welcome")

        result.final_url = page.url
        result.elapsed = time.monotonic() - start
        logger.info(f"登录验证通过: {result.final_url} ({result.elapsed:.1f}s)")
        return result

    # ============================================================
    # 内部实现
    # ============================================================

    def _locate_unique(self, page: Page, step: str, selector: str, secrets: tuple[str, ...]) -> Locator:
        """
        等待选择器出现，并要求恰好匹配 1 个元素。
        多个匹配直接失败 (UnexpectedPageState)，不会默认取第一个；
        0 个匹配表现为 wait_for 超时，报告为 NavigationOrElementTimeout。
        """
        locator = page.locator(selector)
        locator.first.wait_for(state="attached", timeout=self.timeout_expect)
        count = locator.count()
        if count != 1:
            raise self._failure(
                UnexpectedPageState, page, step, selector,
                f"选择器匹配到 {count} 个元素 (期望 1 个)", secrets,
            )
        return locator

    @contextmanager
    def _step(self, page: Page, step: str, target: str, secrets: tuple[str, ...]):
        """执行单个步骤，把 Playwright 的异常转换为场景错误"""
        logger.info(f"[{step}] {target}")
        try:
            yield
        except ScenarioFailure:
            raise
        except PlaywrightTimeoutError as e:
            raise self._failure(NavigationOrElementTimeout, page, step, target, "等待超时", secrets) from e
        except AssertionError as e:
            # expect() 超时抛出的是 AssertionError
            raise self._failure(NavigationOrElementTimeout, page, step, target, "条件未满足", secrets) from e
        except PlaywrightError as e:
            if step == "goto":
                raise self._failure(NavigationOrElementTimeout, page, step, target, f"导航失败: {e.message}", secrets) from e
            # 典型情况: strict mode violation (匹配到多个元素)
            raise self._failure(UnexpectedPageState, page, step, target, e.message, secrets) from e

    def _failure(self, cls, page: Page, step: str, target: str, detail: str,
                 secrets: tuple[str, ...]) -> ScenarioFailure:
        state = capture_page_state(page, secrets)
        logger.error(f"[{step}] {detail}: {target} (当前 URL: {state.url})")
        logger.debug(f"[{step}] 页面状态:\n{state}")
        message = f"[{step}] {detail}: {target}\n{state}"
        return cls(message, step=step, target=target, state=state)
