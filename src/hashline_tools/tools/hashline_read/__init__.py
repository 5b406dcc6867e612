from .hashline_read import register_tools

__all__ = ["register_tools"]
