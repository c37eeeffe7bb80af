"""
Models package - imports all models so SQLModel metadata knows every table.
"""
from francopath.models.enums import CardStatus, CEFRLevel, ReviewAction
from francopath.models.user import User
from francopath.models.word import Word
from francopath.models.user_card import UserCard
from francopath.models.card_review import CardReview
from francopath.models.deck_plan import DeckPlanRecord
from francopath.models.study_session import StudySession

__all__ = [
    'CardStatus',
    'CEFRLevel',
    'ReviewAction',
    'User',
    'Word',
    'UserCard',
    'CardReview',
    'DeckPlanRecord',
    'StudySession',
]
