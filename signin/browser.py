"""
浏览器生命周期管理 (命令行运行时使用；pytest 下由 pytest-playwright 的 fixture 负责)

支持两种模式:
  - launch: 启动新的 Playwright Chromium，并创建独立的 context
  - cdp: 连接已打开的 Chrome (--remote-debugging-port)，同样新建独立 context，
         不复用已有的登录会话
"""

import logging

from playwright.sync_api import Browser, BrowserContext, Page, Playwright

logger = logging.getLogger("signin")


def setup_dialog_handler(page: Page):
    """自动关闭 alert/confirm/prompt 弹窗并记录"""
    def handle_dialog(dialog):
        logger.warning(f"[Dialog] {dialog.type}: {dialog.message}")
        dialog.accept()

    page.on("dialog", handle_dialog)


class BrowserManager:
    """
    浏览器生命周期管理器。

    使用方法:
        bm = BrowserManager(config)
        bm.launch(playwright)   # 启动浏览器
        page = bm.page          # 获取 Page 对象
        # ... 使用 page ...
        bm.close()              # 关闭
    """

    def __init__(self, config: dict):
        self.config = config
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("浏览器未启动，请先调用 launch()")
        return self._page

    @property
    def context(self) -> BrowserContext:
        if self._context is None:
            raise RuntimeError("浏览器未启动，请先调用 launch()")
        return self._context

    def launch(self, playwright: Playwright):
        """根据 browser_mode 启动浏览器，并打开一个全新的 context + page"""
        mode = self.config.get("browser_mode", "launch")
        logger.info(f"浏览器模式: {mode}")

        if mode == "launch":
            self._browser = playwright.chromium.launch(
                headless=self.config.get("headless", True),
                slow_mo=self.config.get("slow_mo", 0),
            )
        elif mode == "cdp":
            cdp_url = self.config.get("cdp_url", "http://localhost:9222")
            logger.info(f"正在通过 CDP 连接 Chrome: {cdp_url}")
            try:
                self._browser = playwright.chromium.connect_over_cdp(cdp_url)
            except Exception as e:
                logger.error("无法连接到 Chrome，请确保已启动带远程调试端口的 Chrome:")
                logger.error("  chrome --remote-debugging-port=9222")
                raise ConnectionError(f"CDP 连接失败: {e}") from e
        else:
            raise ValueError(f"不支持的 browser_mode: {mode}")

        # 每次都用新 context，保证没有上一次运行遗留的 cookie / storage
        self._context = self._browser.new_context()
        self._context.set_default_navigation_timeout(self.config.get("timeout_navigation", 30000))
        self._page = self._context.new_page()
        setup_dialog_handler(self._page)

    def close(self):
        """关闭 context 和浏览器"""
        if self._context:
            try:
                self._context.close()
            except Exception as e:
                logger.debug(f"关闭 context 时异常 (可忽略): {e}")
        if self._browser:
            try:
                self._browser.close()
            except Exception as e:
                logger.debug(f"关闭浏览器时异常 (可忽略): {e}")
        self._browser = None
        self._context = None
        self._page = None
