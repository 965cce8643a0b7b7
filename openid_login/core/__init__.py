"""Application core: Flask app, factory and runner."""
