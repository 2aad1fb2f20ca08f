from datetime import datetime
from typing import List, Optional

from blazehub.core.schemas import APIModel


class MetricsOut(APIModel):
    total_posts: int
    new_posts: int
    total_users: int
    new_users: int
    total_likes: int
    new_likes: int
    total_follows: int
    new_follows: int

class ChartPointOut(APIModel):
    month: str          # ex: "September 2025"
    posts: int
    users: int
    likes: int
    follows: int

class SecurityEventOut(APIModel):
    id: int
    event: str
    user_id: Optional[int]
    details: Optional[str]
    ip_address: Optional[str]
    user_agent: Optional[str]
    timestamp: datetime

class SecurityStatsOut(APIModel):
    total_events: int
    suspicious_activities: int
    failed_logins: int
    rate_limit_exceeded: int
    unauthorized_access: int
    recent_events: List[SecurityEventOut]
