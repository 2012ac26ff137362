import bleach
from rest_framework import serializers


def clean_text(v):
    return bleach.clean((v or '').strip(), tags=[], attributes={}, strip=True)


class CleanCharField(serializers.CharField):
    """CharField that strips markup from user supplied text."""

    def to_internal_value(self, data):
        return clean_text(super().to_internal_value(data))


def money_field(**kwargs):
    kwargs.setdefault('min_value', 0)
    return serializers.DecimalField(max_digits=12, decimal_places=2, **kwargs)
