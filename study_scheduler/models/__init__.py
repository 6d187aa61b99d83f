from study_scheduler.models.user import User, RefreshToken
from study_scheduler.models.technology import Technology, Subtopic
from study_scheduler.models.study_config import StudyConfiguration
from study_scheduler.models.study_session import StudySession
from study_scheduler.models.question import Question, SessionAnswer
from study_scheduler.models.subject import Subject, SubSubject
from study_scheduler.models.subscription import Subscription

__all__ = [
    "User",
    "RefreshToken",
    "Technology",
    "Subtopic",
    "StudyConfiguration",
    "StudySession",
    "Question",
    "SessionAnswer",
    "Subject",
    "SubSubject",
    "Subscription",
]
