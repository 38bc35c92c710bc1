from enum import Enum


class MessageType(str, Enum):
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    SYSTEM = "SYSTEM"


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


# 페이지네이션 기본값
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
DEFAULT_SORT_BY = "updatedAt"

# 대화방은 생성 시점에 항상 2명
CHAT_ROOM_PARTICIPANTS = 2
