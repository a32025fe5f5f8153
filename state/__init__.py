"""Session state utilities."""

from .wizard_session import close_wizard, get_wizard, open_wizard

__all__ = ["close_wizard", "get_wizard", "open_wizard"]
