from rest_framework import viewsets

from apps.production.api.v1.serializers import ProductionBatchSerializer
from apps.production.models import ProductionBatch


class ProductionBatchViewSet(viewsets.ModelViewSet):
    serializer_class = ProductionBatchSerializer

    def get_queryset(self):
        queryset = ProductionBatch.objects.all()
        status_filter = self.request.query_params.get("status")
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return queryset
