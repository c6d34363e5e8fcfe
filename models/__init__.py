from .user import UserCreate, LoginCredentials, ProfileUpdate
from .course import CourseCreate
from .forum import PostCreate, ReplyCreate, VoteCreate, VoteType
from .study_group import StudyGroupCreate, StudyGroupUpdate, StudySessionCreate, RecurringPattern
from .message import ConversationCreate, ConversationUpdate, ConversationMemberAdd, MessageCreate
from .calendar import CalendarEventCreate, CalendarEventUpdate, EventCompletion, EventType, Priority

__all__ = [
    'UserCreate', 'LoginCredentials', 'ProfileUpdate',
    'CourseCreate',
    'PostCreate', 'ReplyCreate', 'VoteCreate', 'VoteType',
    'StudyGroupCreate', 'StudyGroupUpdate', 'StudySessionCreate', 'RecurringPattern',
    'ConversationCreate', 'ConversationUpdate', 'ConversationMemberAdd', 'MessageCreate',
    'CalendarEventCreate', 'CalendarEventUpdate', 'EventCompletion', 'EventType', 'Priority',
]
