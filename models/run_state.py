from enum import Enum


class RunState(Enum):
    UNAUTHENTICATED = "Unauthenticated"
    GROUP_CREATED = "GroupCreated"
    PROVISIONED = "Provisioned"
    CLEANED = "Cleaned"
