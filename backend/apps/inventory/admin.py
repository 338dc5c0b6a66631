from django.contrib import admin

from apps.inventory.models import InventoryItem


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ("item_name", "item_type", "current_stock", "min_stock_level", "unit", "updated_at")
    search_fields = ("item_name",)
    list_filter = ("item_type",)
