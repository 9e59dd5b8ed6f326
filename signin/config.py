"""
统一配置加载模块

支持从 JSON 文件加载配置，缺失字段用默认值填充。
环境变量 SIGNIN_BASE_URL / SIGNIN_USERNAME / SIGNIN_PASSWORD / SIGNIN_LOG_LEVEL
可覆盖对应配置项；SIGNIN_CONFIG 指定默认配置文件路径。
"""

import json
import logging
import os
from dataclasses import dataclass, field

# 默认值
DEFAULTS = {
    "base_url": "https://alexusadays.com",
    "login_path": "/login",
    "username_selector": "#username",
    "password_selector": "#password",
    "submit_selector": "#login-btn",
    # 任意一个匹配即视为进入 secure 区域 (不同环境路由不一致: /secure 或 /secure.html)
    "secure_url_patterns": [r"secure$", r"secure\.html$"],
    "welcome_text": "Welcome! You are logged into secure area of the application.",
    "timeout_navigation": 30000,
    "timeout_expect": 5000,
    "browser_mode": "launch",
    "cdp_url": "http://localhost:9222",
    "headless": True,
    "slow_mo": 0,
    "log_level": "INFO",
    "username": "",
    "password": "",
}

# 环境变量 -> 配置键的映射
_ENV_OVERRIDES = {
    "SIGNIN_BASE_URL": "base_url",
    "SIGNIN_USERNAME": "username",
    "SIGNIN_PASSWORD": "password",
    "SIGNIN_LOG_LEVEL": "log_level",
}

CONFIG_ENV = "SIGNIN_CONFIG"


@dataclass(frozen=True)
class Credentials:
    """登录凭据 (只读，密码不出现在 repr 中)"""
    username: str
    password: str = field(repr=False)


def load_config(path: str | None = None) -> dict:
    """
    加载配置。
    path 为空时尝试 SIGNIN_CONFIG 环境变量，仍为空则只用 DEFAULTS。
    缺失的字段用 DEFAULTS 填充，环境变量可覆盖。
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV) or None

    data = {}
    if path is not None:
        if not os.path.isfile(path):
            raise FileNotFoundError(f"配置文件不存在: {path}")
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"配置文件顶层必须是 JSON 对象: {path}")

    # 用默认值填充缺失字段
    config = {**DEFAULTS, **data}

    # 环境变量覆盖
    for env_key, config_key in _ENV_OVERRIDES.items():
        env_val = os.environ.get(env_key)
        if env_val:
            config[config_key] = env_val

    patterns = config["secure_url_patterns"]
    config["secure_url_patterns"] = [patterns] if isinstance(patterns, str) else list(patterns)

    return config


def load_credentials(config: dict) -> Credentials:
    """从配置中取出凭据；任一为空时抛出 ValueError"""
    username = config.get("username", "")
    password = config.get("password", "")
    if not username or not password:
        raise ValueError("缺少登录凭据，请设置 SIGNIN_USERNAME / SIGNIN_PASSWORD 或在配置文件中填写")
    return Credentials(username=username, password=password)


def apply_log_level(config: dict):
    """根据配置设置日志级别"""
    level_name = str(config.get("log_level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.getLogger("signin").setLevel(level)
