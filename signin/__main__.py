"""允许通过 python -m signin 运行一次登录验证"""
import sys

from signin.cli import main

if __name__ == "__main__":
    sys.exit(main())
