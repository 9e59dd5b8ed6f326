"""
登录验证命令行入口 (不经过 pytest，直接跑一次场景)

使用方式:
    python -m signin                         # 默认配置 + 环境变量中的凭据
    python -m signin --config my.json        # 使用自定义配置
    python -m signin --headed --debug        # 显示浏览器窗口，输出调试日志

退出码: 0 通过 / 1 场景失败或浏览器启动失败 / 2 配置或凭据错误
"""

import argparse
import json
import logging
import re
import sys

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright
from rich.console import Console
from rich.table import Table

from signin.browser import BrowserManager
from signin.config import apply_log_level, load_config, load_credentials
from signin.scenario import LoginScenario, ScenarioFailure

logger = logging.getLogger("signin")

_console = Console()

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def _setup_logging():
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signin",
        description="登录页端到端验证 (打开登录页 -> 填写凭据 -> 确认进入 secure 区域)",
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="配置文件路径 (默认: 环境变量 SIGNIN_CONFIG，未设置则使用内置默认值)",
    )
    parser.add_argument("--base-url", type=str, default=None, help="覆盖配置中的 base_url")
    parser.add_argument("--headed", action="store_true", help="显示浏览器窗口")
    parser.add_argument("--debug", action="store_true", help="启用调试日志")
    return parser


def render_result(result, config: dict):
    table = Table(show_header=False, box=None)
    table.add_row("结果", "[bold green]通过[/]")
    table.add_row("最终 URL", result.final_url)
    table.add_row("耗时", f"{result.elapsed:.1f}s")
    table.add_row("步骤", " -> ".join(result.steps))
    table.add_row("欢迎文字", config["welcome_text"])
    _console.print(table)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging()

    # 加载配置
    try:
        config = load_config(args.config)
        if args.base_url:
            config["base_url"] = args.base_url
        credentials = load_credentials(config)
        scenario = LoginScenario(config)
    except FileNotFoundError as e:
        _console.print(f"[red]错误: {e}[/]")
        return EXIT_CONFIG
    except json.JSONDecodeError as e:
        _console.print(f"[red]配置文件 JSON 格式错误: {e}[/]")
        return EXIT_CONFIG
    except re.error as e:
        _console.print(f"[red]secure_url_patterns 正则无效: {e}[/]")
        return EXIT_CONFIG
    except KeyError as e:
        _console.print(f"[red]配置缺少必填项: {e}[/]")
        return EXIT_CONFIG
    except ValueError as e:
        _console.print(f"[red]{e}[/]")
        return EXIT_CONFIG

    if args.headed:
        config["headless"] = False
    if args.debug:
        config["log_level"] = "DEBUG"
    apply_log_level(config)

    _console.print(f"[dim]登录页: {scenario.login_url}  用户: {credentials.username}[/]")

    with sync_playwright() as pw:
        bm = BrowserManager(config)
        try:
            bm.launch(pw)
        except ValueError as e:
            _console.print(f"[red]{e}[/]")
            bm.close()
            return EXIT_CONFIG
        except (ConnectionError, PlaywrightError) as e:
            _console.print("[bold red]浏览器启动失败[/]")
            _console.print(str(e), markup=False, highlight=False)
            bm.close()
            return EXIT_FAILED

        try:
            result = scenario.run(bm.page, credentials)
        except ScenarioFailure as e:
            _console.print(f"[bold red]登录验证失败[/] ({type(e).__name__})")
            _console.print(str(e), markup=False, highlight=False)
            return EXIT_FAILED
        finally:
            bm.close()

    render_result(result, config)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
