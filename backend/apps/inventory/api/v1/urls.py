from rest_framework.routers import DefaultRouter

from apps.inventory.api.v1.views import InventoryItemViewSet


router = DefaultRouter()
router.register("inventory-items", InventoryItemViewSet, basename="inventory-item")

urlpatterns = router.urls
