"""Service modules"""
from .compensation import Compensation
from .position_manager import Collaborators, PositionManager

__all__ = ["Collaborators", "Compensation", "PositionManager"]
