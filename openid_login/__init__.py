"""OpenID Connect login for Google and Salesforce."""

from openid_login.core.app import create_app

__all__ = ["create_app"]
