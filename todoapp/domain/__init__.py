"""Domain models for the todo application."""

from .models import Attachment, Person, Todo

__all__ = ["Person", "Todo", "Attachment"]
