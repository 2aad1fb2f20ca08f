from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, Dict, List

from blazehub.db.models.base import utcnow
from blazehub.db.repositories.base import BaseRepository
from blazehub.db.repositories.follows import FollowRepository
from blazehub.db.repositories.likes import LikeRepository
from blazehub.db.repositories.posts import PostRepository
from blazehub.db.repositories.security_audit_logs import SecurityAuditLogRepository
from blazehub.db.repositories.users import UserRepository
from blazehub.security.audit import FAILED_LOGIN_EVENTS
from blazehub.features.admin.schemas import (
    MetricsOut,
    ChartPointOut,
    SecurityEventOut,
    SecurityStatsOut,
)

METRICS_WINDOW = timedelta(days=30)
SECURITY_WINDOW = timedelta(hours=24)
CHART_MONTHS = 6


def _months_back(now: datetime, months: int) -> datetime:
    """Premier jour du mois, `months` mois avant celui de `now`."""
    index = now.year * 12 + (now.month - 1) - months
    return datetime(index // 12, index % 12 + 1, 1, tzinfo=now.tzinfo)


class AdminService:
    """Tableaux de bord admin : métriques du contenu et statistiques de sécurité."""

    def __init__(
        self,
        *,
        post_repo: PostRepository,
        user_repo: UserRepository,
        like_repo: LikeRepository,
        follow_repo: FollowRepository,
        audit_repo: SecurityAuditLogRepository,
        now_fn: Callable[[], datetime] = utcnow,
    ):
        self.post_repo = post_repo
        self.user_repo = user_repo
        self.like_repo = like_repo
        self.follow_repo = follow_repo
        self.audit_repo = audit_repo
        self.now_fn = now_fn

    @staticmethod
    def _new_since(repo: BaseRepository, since: datetime) -> int:
        return repo.count(repo.model.created_at >= since)

    def metrics(self) -> MetricsOut:
        since = self.now_fn() - METRICS_WINDOW
        return MetricsOut(
            total_posts=self.post_repo.count(),
            new_posts=self._new_since(self.post_repo, since),
            total_users=self.user_repo.count(),
            new_users=self._new_since(self.user_repo, since),
            total_likes=self.like_repo.count(),
            new_likes=self._new_since(self.like_repo, since),
            total_follows=self.follow_repo.count(),
            new_follows=self._new_since(self.follow_repo, since),
        )

    def chart(self) -> List[ChartPointOut]:
        """Créations par mois sur les 6 derniers mois (mois sans activité omis)."""
        since = _months_back(self.now_fn(), CHART_MONTHS)
        series: Dict[str, Counter] = {}
        for key, repo in (
            ("posts", self.post_repo),
            ("users", self.user_repo),
            ("likes", self.like_repo),
            ("follows", self.follow_repo),
        ):
            series[key] = Counter((d.year, d.month) for d in repo.created_since(since))

        months = sorted(set().union(*series.values()))
        return [
            ChartPointOut(
                month=datetime(year, month, 1).strftime("%B %Y"),
                posts=series["posts"][(year, month)],
                users=series["users"][(year, month)],
                likes=series["likes"][(year, month)],
                follows=series["follows"][(year, month)],
            )
            for year, month in months
        ]

    def security_stats(self) -> SecurityStatsOut:
        since = self.now_fn() - SECURITY_WINDOW
        recent = self.audit_repo.recent_since(since, limit=50)
        return SecurityStatsOut(
            total_events=self.audit_repo.count_since(since),
            suspicious_activities=self.audit_repo.count_since(since, contains="SUSPICIOUS"),
            failed_logins=self.audit_repo.count_since(since, events=FAILED_LOGIN_EVENTS),
            rate_limit_exceeded=self.audit_repo.count_since(since, contains="RATE_LIMIT"),
            unauthorized_access=self.audit_repo.count_since(since, contains="UNAUTHORIZED"),
            recent_events=[SecurityEventOut.model_validate(e) for e in recent],
        )
