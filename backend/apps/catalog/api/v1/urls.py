from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.catalog.api.v1.views import (
    LabelViewSet,
    MaterialViewSet,
    PackagingViewSet,
    SupplierCatalogViewSet,
    SupplierLabelViewSet,
    SupplierMaterialViewSet,
    SupplierPackagingViewSet,
    SupplierViewSet,
)


router = DefaultRouter()
router.register("suppliers", SupplierViewSet, basename="supplier")
router.register("materials", MaterialViewSet, basename="material")
router.register("packaging", PackagingViewSet, basename="packaging")
router.register("labels", LabelViewSet, basename="label")
router.register("supplier-materials", SupplierMaterialViewSet, basename="supplier-material")
router.register("supplier-packaging", SupplierPackagingViewSet, basename="supplier-packaging")
router.register("supplier-labels", SupplierLabelViewSet, basename="supplier-label")

urlpatterns = [
    path(
        "suppliers/<uuid:supplier_id>/catalog/",
        SupplierCatalogViewSet.as_view({"get": "list"}),
        name="supplier-catalog",
    ),
]

urlpatterns += router.urls
