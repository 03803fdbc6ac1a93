from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class BettingSelection(BaseModel):
    selection_id: Optional[str] = None
    selection_name: str = ""
    odds: float = 0.0  # 0.0 when the payload carries no usable price


class BettingMarket(BaseModel):
    market_id: Optional[str] = None
    market_type: str = ""  # display name or category, e.g. "Winner"
    selections: List[BettingSelection] = Field(default_factory=list)


class BettingEvent(BaseModel):
    event_id: Optional[str] = None
    match_name: str = ""
    start_time: datetime
    markets: List[BettingMarket] = Field(default_factory=list)
