from typing import Optional

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from billing.models import SequenceCounter


def next_sequence_id(prefix: str, *, year: Optional[int] = None, width: int = 3) -> str:
    """Return the next ``PREFIX-YEAR-NNN`` identifier.

    The counter is scoped per prefix and year and incremented with a
    single UPDATE, so two writers never receive the same number.
    """
    year = year or timezone.localtime().year
    name = f"{prefix}-{year}"
    with transaction.atomic():
        counter, _ = SequenceCounter.objects.get_or_create(name=name)
        SequenceCounter.objects.filter(pk=counter.pk).update(value=F('value') + 1)
        counter.refresh_from_db(fields=['value'])
    return f"{name}-{counter.value:0{width}d}"
