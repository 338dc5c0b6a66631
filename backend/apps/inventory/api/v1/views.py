from django.db.models import F
from rest_framework import viewsets

from apps.inventory.api.v1.serializers import InventoryItemSerializer
from apps.inventory.models import InventoryItem


class InventoryItemViewSet(viewsets.ModelViewSet):
    serializer_class = InventoryItemSerializer

    def get_queryset(self):
        queryset = InventoryItem.objects.all()
        item_type = self.request.query_params.get("item_type")
        if item_type:
            queryset = queryset.filter(item_type=item_type)
        if self.request.query_params.get("below_minimum") in {"1", "true", "True"}:
            queryset = queryset.filter(current_stock__lt=F("min_stock_level"))
        return queryset
