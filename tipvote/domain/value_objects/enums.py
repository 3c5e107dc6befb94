from enum import Enum


class Market(str, Enum):
    MATCH_RESULT = "MATCH_RESULT"
    OVER_UNDER = "OVER_UNDER"
    BOTH_TEAMS_SCORE = "BOTH_TEAMS_SCORE"
    ASIAN_HANDICAP = "ASIAN_HANDICAP"
    OTHER = "OTHER"


class PositionStatus(str, Enum):
    PENDING = "PENDING"
    WON = "WON"
    LOST = "LOST"
    VOID = "VOID"


class SettlementOutcome(str, Enum):
    WON = "WON"
    LOST = "LOST"
    VOID = "VOID"

    def as_status(self) -> PositionStatus:
        return PositionStatus(self.value)


class Side(str, Enum):
    HOME = "HOME"
    DRAW = "DRAW"
    AWAY = "AWAY"


class TotalSide(str, Enum):
    OVER = "OVER"
    UNDER = "UNDER"


class VoteDirection(int, Enum):
    UPVOTE = 1
    DOWNVOTE = 2

    @property
    def opposite(self) -> "VoteDirection":
        return VoteDirection.DOWNVOTE if self is VoteDirection.UPVOTE else VoteDirection.UPVOTE


class TargetType(int, Enum):
    POSITION = 1
    TICKET = 2
    EXPERT = 3


class CreatorRole(str, Enum):
    USER = "USER"
    EXPERT = "EXPERT"


class ExpertTier(str, Enum):
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"
    DIAMOND = "DIAMOND"
