from django.contrib import admin

from apps.catalog.models import Label, Material, Packaging, Supplier, SupplierLabel, SupplierMaterial, SupplierPackaging


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "rating", "lead_time_days", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name",)


@admin.register(Material)
class MaterialAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "created_at")
    search_fields = ("name", "category")


@admin.register(SupplierMaterial)
class SupplierMaterialAdmin(admin.ModelAdmin):
    list_display = ("material", "supplier", "unit_price", "tax", "unit", "moq")
    list_filter = ("unit",)
    search_fields = ("material__name", "supplier__name")


@admin.register(Packaging)
class PackagingAdmin(admin.ModelAdmin):
    list_display = ("name", "packaging_type", "capacity", "capacity_unit")
    search_fields = ("name",)


@admin.register(SupplierPackaging)
class SupplierPackagingAdmin(admin.ModelAdmin):
    list_display = ("packaging", "supplier", "unit_price", "tax", "moq")
    search_fields = ("packaging__name", "supplier__name")


@admin.register(Label)
class LabelAdmin(admin.ModelAdmin):
    list_display = ("name", "label_type", "size")
    list_filter = ("label_type",)
    search_fields = ("name",)


@admin.register(SupplierLabel)
class SupplierLabelAdmin(admin.ModelAdmin):
    list_display = ("label", "supplier", "unit_price", "tax", "unit", "moq")
    search_fields = ("label__name", "supplier__name")
