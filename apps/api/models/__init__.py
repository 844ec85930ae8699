"""Models package."""

from .user import User
from .generation_record import GenerationRecord
