"""Flask application class carrying the service container."""

from typing import TYPE_CHECKING

from flask import Flask

if TYPE_CHECKING:
    from openid_login.config import Settings
    from openid_login.container import AppContainer


class App(Flask):
    """Login service application.

    ``container`` is attached by ``create_app`` before any blueprint is
    registered; the properties below read through it.
    """

    container: "AppContainer"

    @property
    def settings(self) -> "Settings":
        """Settings the container was configured with."""
        return self.container.config()

    @property
    def provider_names(self) -> list[str]:
        """Route names of the enabled identity providers, sorted."""
        return sorted(self.settings.providers)
