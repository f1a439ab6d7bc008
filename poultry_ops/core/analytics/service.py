"""
Analytics of the feeding and water logs, cached in Redis.
"""
import logging
from datetime import datetime
from typing import Optional, Union

from poultry_ops.infrastructure.database import records_from_snapshot
from poultry_ops.infrastructure.exceptions import ValidationError
from .aggregator import aggregate_events
from .models import AnalyticsResult, LogSource, Period

logger = logging.getLogger(__name__)


class AnalyticsService:
    """
    Fetches a log, aggregates it and caches the result.

    Results computed for the current time are cached for the
    analytics_refresh interval under analytics:{source}:{period}:{compare}.
    Results for an explicit reference instant are never cached.
    """

    def __init__(self, firebase_client=None, config=None, redis_client=None):
        if firebase_client is None or config is None:
            from poultry_ops.infrastructure import get_service_factory
            factory = get_service_factory()
            config = config if config is not None else factory.get_config_loader()
            firebase_client = firebase_client if firebase_client is not None else factory.create_firebase_client()

        self.config = config
        self.firebase_client = firebase_client
        self.redis_client = redis_client

        self.key_prefix = self.config.get('redis.key_prefixes.analytics', 'analytics:')
        self.cache_ttl = int(self.config.get_interval('analytics_refresh', 60))
        self.week_start = self.config.get_week_start()

    @staticmethod
    def _parse(source, period):
        try:
            source = LogSource(source)
        except ValueError:
            raise ValidationError(message=f"Invalid source: {source}. Valid sources: feeding, water", field="source")
        try:
            period = Period(period)
        except ValueError:
            raise ValidationError(message=f"Invalid period: {period}. Valid periods: day, week, month", field="period")
        return source, period

    def _cache_key(self, source: LogSource, period: Period, compare: bool) -> str:
        return f"{self.key_prefix}{source.value}:{period.value}:{int(compare)}"

    def get_analytics(
        self,
        source: Union[LogSource, str],
        period: Union[Period, str] = Period.DAY,
        compare: bool = False,
        now: Optional[datetime] = None,
        use_cache: bool = True
    ) -> AnalyticsResult:
        """
        Chart series for a log.

        Args:
            source: feeding or water
            period: day, week or month
            compare: Include the preceding period
            now: Reference instant (disables the cache)
            use_cache: Read and write the Redis cache

        Returns:
            AnalyticsResult

        Raises:
            ValidationError: unknown source or period
        """
        source, period = self._parse(source, period)
        cacheable = use_cache and now is None and self.redis_client is not None
        cache_key = self._cache_key(source, period, compare)

        if cacheable:
            cached = self.redis_client.get(cache_key)
            if cached:
                try:
                    return AnalyticsResult.model_validate(cached)
                except ValueError as e:
                    logger.warning(f"Discarding invalid cached analytics {cache_key}: {str(e)}")

        logs_path = self.config.path('logs', source.value)
        value_field = self.config.path('value_fields', source.value)

        records = records_from_snapshot(self.firebase_client.get(logs_path, {}))
        logger.info(f"Fetched {len(records)} {source.value} log records")

        result = aggregate_events(
            records,
            period,
            compare=compare,
            now=now,
            week_start=self.week_start,
            value_field=value_field
        )

        if cacheable:
            self.redis_client.set(cache_key, result.model_dump(mode="json"), expire=self.cache_ttl)

        return result

    def invalidate(self, source: Optional[Union[LogSource, str]] = None) -> int:
        """Drop cached results (of one source, or all). Returns the number of keys removed."""
        if self.redis_client is None:
            return 0

        pattern = f"{self.key_prefix}{LogSource(source).value}:*" if source else f"{self.key_prefix}*"
        keys = self.redis_client.keys(pattern)
        return self.redis_client.delete(*keys) if keys else 0
