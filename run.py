"""Development server entry point."""

from openid_login.core.runner import run

if __name__ == "__main__":
    run()
