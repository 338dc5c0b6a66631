from rest_framework import mixins, viewsets
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from apps.catalog.api.v1.serializers import (
    LabelSerializer,
    MaterialSerializer,
    PackagingSerializer,
    SupplierLabelSerializer,
    SupplierMaterialSerializer,
    SupplierPackagingSerializer,
    SupplierSerializer,
)
from apps.catalog.models import Label, Material, Packaging, Supplier, SupplierLabel, SupplierMaterial, SupplierPackaging

TRUTHY = {"1", "true", "True"}


class SupplierViewSet(viewsets.ModelViewSet):
    serializer_class = SupplierSerializer

    def get_queryset(self):
        queryset = Supplier.objects.all()
        if self.request.query_params.get("active") in TRUTHY:
            queryset = queryset.filter(is_active=True)
        return queryset


class MaterialViewSet(viewsets.ModelViewSet):
    serializer_class = MaterialSerializer

    def get_queryset(self):
        queryset = Material.objects.all()
        query = (self.request.query_params.get("q") or "").strip()
        if query:
            queryset = queryset.filter(name__icontains=query)
        return queryset


class PackagingViewSet(viewsets.ModelViewSet):
    queryset = Packaging.objects.all()
    serializer_class = PackagingSerializer


class LabelViewSet(viewsets.ModelViewSet):
    queryset = Label.objects.all()
    serializer_class = LabelSerializer


class SupplierMaterialViewSet(viewsets.ModelViewSet):
    serializer_class = SupplierMaterialSerializer

    def get_queryset(self):
        queryset = SupplierMaterial.objects.select_related("material", "supplier")
        material_id = self.request.query_params.get("material")
        if material_id:
            queryset = queryset.filter(material_id=material_id)
        supplier_id = self.request.query_params.get("supplier")
        if supplier_id:
            queryset = queryset.filter(supplier_id=supplier_id)
        return queryset


class SupplierPackagingViewSet(viewsets.ModelViewSet):
    queryset = SupplierPackaging.objects.select_related("packaging", "supplier")
    serializer_class = SupplierPackagingSerializer


class SupplierLabelViewSet(viewsets.ModelViewSet):
    queryset = SupplierLabel.objects.select_related("label", "supplier")
    serializer_class = SupplierLabelSerializer


class SupplierCatalogViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Everything one supplier sells, materials first."""

    serializer_class = SupplierMaterialSerializer

    def get_supplier(self) -> Supplier:
        supplier_id = self.kwargs.get("supplier_id")
        try:
            return Supplier.objects.get(pk=supplier_id)
        except Supplier.DoesNotExist as exc:
            raise NotFound("Supplier not found.") from exc

    def list(self, request, *args, **kwargs):
        supplier = self.get_supplier()
        return Response(
            {
                "supplier": SupplierSerializer(supplier).data,
                "materials": SupplierMaterialSerializer(
                    supplier.materials.select_related("material"), many=True
                ).data,
                "packaging": SupplierPackagingSerializer(
                    supplier.packaging.select_related("packaging"), many=True
                ).data,
                "labels": SupplierLabelSerializer(supplier.labels.select_related("label"), many=True).data,
            }
        )
