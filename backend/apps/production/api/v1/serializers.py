from rest_framework import serializers

from apps.costing.exceptions import InvalidBatchError
from apps.costing.services.requirements import parse_batch_items
from apps.production.models import ProductionBatch
from apps.products.models import ProductVariant


class ProductionBatchSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductionBatch
        fields = ("id", "batch_number", "status", "planned_date", "items", "notes", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_items(self, value):
        try:
            lines = parse_batch_items(value)
        except InvalidBatchError as exc:
            raise serializers.ValidationError(str(exc)) from exc

        # Unknown variants are reported by the analyses; known ones must match their product.
        owners = dict(
            ProductVariant.objects.filter(id__in={line.variant_id for line in lines}).values_list("id", "product_id")
        )
        for line in lines:
            owner = owners.get(line.variant_id)
            if owner is not None and owner != line.product_id:
                raise serializers.ValidationError(
                    f"Variant {line.variant_id} belongs to product {owner}, not {line.product_id}."
                )
        return value
