"""
公共 fixture

- signin_config / credentials: 真实站点测试用 (凭据来自环境变量或 SIGNIN_CONFIG 指定的配置文件)
- fake_site / fake_config: 离线测试用，通过 context.route() 在内存中模拟登录站点
"""

import json
from urllib.parse import urlparse

import pytest

from signin.config import DEFAULTS, Credentials, load_config, load_credentials

FAKE_ORIGIN = "http://signin.test"
FAKE_CREDENTIALS = Credentials(username="standard_user", password="secret_sauce")

LOGIN_HTML = """<!DOCTYPE html>
<html>
<head><title>Login Page</title></head>
<body>
  <h2>Login Page</h2>
  <form id="login" onsubmit="return false;">
    <label for="username">Username</label>
    <input id="username" name="username" type="text">
    <label for="password">Password</label>
    <input id="password" name="password" type="password">
    __EXTRA_FORM_HTML__
    <button id="__SUBMIT_ID__" type="button">Login</button>
  </form>
  <p id="flash" hidden></p>
  <script>
    document.getElementById("__SUBMIT_ID__").addEventListener("click", function () {
      var username = document.getElementById("username").value;
      var password = document.getElementById("password").value;
      if (username === __USERNAME__ && password === __PASSWORD__) {
        window.location.href = __SECURE_PATH__;
      } else {
        var flash = document.getElementById("flash");
        flash.textContent = "Your username is invalid!";
        flash.hidden = false;
      }
    });
  </script>
</body>
</html>
"""

SECURE_HTML = """<!DOCTYPE html>
<html>
<head><title>Secure Area</title></head>
<body>
  <h2>Secure Area</h2>
  <p id="flash">__WELCOME__</p>
  <a href="/logout">Logout</a>
</body>
</html>
"""


class FakeSite:
    """内存中的登录站点: /login 表单校验凭据后跳转到 secure_path"""

    def __init__(self, credentials: Credentials = FAKE_CREDENTIALS):
        self.credentials = credentials
        self.secure_path = "/secure.html"
        self.welcome_text = DEFAULTS["welcome_text"]
        self.submit_id = "login-btn"
        self.extra_form_html = ""
        self.login_reachable = True
        self.requests: list[str] = []

    def install(self, context):
        context.route(f"{FAKE_ORIGIN}/**", self._handle)
        return self

    def login_html(self) -> str:
        return (
            LOGIN_HTML
            .replace("__EXTRA_FORM_HTML__", self.extra_form_html)
            .replace("__SUBMIT_ID__", self.submit_id)
            .replace("__USERNAME__", json.dumps(self.credentials.username))
            .replace("__PASSWORD__", json.dumps(self.credentials.password))
            .replace("__SECURE_PATH__", json.dumps(self.secure_path))
        )

    def _handle(self, route):
        path = urlparse(route.request.url).path
        self.requests.append(path)
        if path == "/login":
            if not self.login_reachable:
                route.abort()
                return
            route.fulfill(status=200, content_type="text/html", body=self.login_html())
        elif path == self.secure_path:
            route.fulfill(status=200, content_type="text/html",
                          body=SECURE_HTML.replace("__WELCOME__", self.welcome_text))
        else:
            route.fulfill(status=404, content_type="text/plain", body="Not Found")


@pytest.fixture(scope="session")
def signin_config():
    return load_config()


@pytest.fixture
def credentials(signin_config):
    try:
        return load_credentials(signin_config)
    except ValueError as e:
        pytest.skip(str(e))


@pytest.fixture
def fake_config():
    return {
        **DEFAULTS,
        "base_url": FAKE_ORIGIN,
        "timeout_navigation": 10000,
        "timeout_expect": 2000,
    }


@pytest.fixture
def fake_site(context):
    return FakeSite().install(context)
