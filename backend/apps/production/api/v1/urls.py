from rest_framework.routers import DefaultRouter

from apps.production.api.v1.views import ProductionBatchViewSet


router = DefaultRouter()
router.register("production-batches", ProductionBatchViewSet, basename="production-batch")

urlpatterns = router.urls
