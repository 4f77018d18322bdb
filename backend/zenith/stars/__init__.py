from .routes import stars_bp

__all__ = ["stars_bp"]
