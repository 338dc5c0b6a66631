from rest_framework.routers import DefaultRouter

from apps.products.api.v1.views import ProductVariantViewSet, ProductViewSet


router = DefaultRouter()
router.register("products", ProductViewSet, basename="product")
router.register("product-variants", ProductVariantViewSet, basename="product-variant")

urlpatterns = router.urls
