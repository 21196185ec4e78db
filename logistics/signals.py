from __future__ import annotations

import logging
from typing import Any

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from logistics.models import ShippingRate, Zone, ZoneCountry

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Zone)
@receiver(post_delete, sender=Zone)
@receiver(post_save, sender=ZoneCountry)
@receiver(post_delete, sender=ZoneCountry)
@receiver(post_save, sender=ShippingRate)
@receiver(post_delete, sender=ShippingRate)
def invalidate_rate_quotes(sender: type, instance: Any, **kwargs: Any) -> None:
    """
    요율표 변경 시 견적 캐시 무효화

    커밋 후 버전 키를 올리며, 롤백되면 아무 것도 하지 않습니다.
    """
    from logistics.services.rate_service import RateService

    logger.debug("요율표 변경 감지 | model=%s, pk=%s", sender.__name__, instance.pk)
    transaction.on_commit(RateService.bump_rate_table_version)
