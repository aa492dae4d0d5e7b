# backend/src/services/__init__.py
"""
Сервисы с бизнес-логикой
"""

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from shared.config import Config
from ..models import utcnow
from .analytics import AnalyticsService
from .audit import AuditService
from .cache import InMemoryCache, RedisCache, build_cache
from .eligibility import EligibilityGate, EligibilityResult
from .feedback import FeedbackService
from .lookups import ExternalLookups
from .moderation import ModerationService
from .reviewer_profile import ReviewerProfileService
from .reviews import ReviewService, ReviewSubmission, SubmissionResult
from .rewards import RewardService
from .wallet import WalletService


@dataclass
class Services:
    """Все сервисы приложения, собранные с общими настройками, часами и ГСЧ"""
    settings: Config
    lookups: ExternalLookups
    audit: AuditService
    profiles: ReviewerProfileService
    wallets: WalletService
    rewards: RewardService
    eligibility: EligibilityGate
    reviews: ReviewService
    feedback: FeedbackService
    moderation: ModerationService
    analytics: AnalyticsService


def build_services(
    settings: Config,
    clock: Callable[[], datetime] = utcnow,
    rng: Optional[random.Random] = None,
    cache=None,
) -> Services:
    lookups = ExternalLookups()
    audit = AuditService()
    profiles = ReviewerProfileService(settings)
    wallets = WalletService()
    rewards = RewardService(settings, wallets, rng or random.Random(), clock)
    eligibility = EligibilityGate(settings, lookups, profiles, audit, rewards.reward_range, clock)
    return Services(
        settings=settings,
        lookups=lookups,
        audit=audit,
        profiles=profiles,
        wallets=wallets,
        rewards=rewards,
        eligibility=eligibility,
        reviews=ReviewService(settings, lookups, eligibility, profiles, rewards, audit, clock),
        feedback=FeedbackService(settings, lookups, profiles, audit, clock),
        moderation=ModerationService(settings, lookups, profiles, wallets, rewards, audit, clock),
        analytics=AnalyticsService(cache if cache is not None else build_cache(settings), clock),
    )


__all__ = [
    'Services', 'build_services',
    'AnalyticsService', 'AuditService', 'EligibilityGate', 'EligibilityResult',
    'FeedbackService', 'ExternalLookups', 'ModerationService', 'ReviewerProfileService',
    'ReviewService', 'ReviewSubmission', 'SubmissionResult', 'RewardService', 'WalletService',
    'InMemoryCache', 'RedisCache', 'build_cache',
]
