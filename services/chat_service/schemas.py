from datetime import datetime
from typing import List

from pydantic import BaseModel

class ChatParticipantResponse(BaseModel):
    user_id: int
    role: str
    joined_at: datetime

    class Config:
        from_attributes = True

class ParticipantsResponse(BaseModel):
    order_id: int
    participants: List[ChatParticipantResponse] = []
