from django.contrib import admin

from apps.products.models import Product, ProductVariant


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ("name", "sku", "fill_quantity", "fill_unit", "selling_price_per_unit", "is_active")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "status", "recipe", "recipe_variant", "created_at")
    list_filter = ("status",)
    search_fields = ("name",)
    inlines = [ProductVariantInline]


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "product", "fill_quantity", "fill_unit", "selling_price_per_unit", "is_active")
    list_filter = ("is_active", "fill_unit")
    search_fields = ("sku", "name", "product__name")
