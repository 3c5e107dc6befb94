from typing import NewType

PositionId = NewType("PositionId", int)
EventId = NewType("EventId", int)
VoterId = NewType("VoterId", int)
TargetId = NewType("TargetId", int)
UserId = NewType("UserId", int)
