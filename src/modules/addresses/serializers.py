"""Address DRF serializers (output only).

Input is validated by ``CreateAddressDTO`` so checkout and the address
book share one set of rules.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.addresses.models import Address


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = [
            "id",
            "kind",
            "street",
            "city",
            "region",
            "postal_code",
            "is_default",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
