from django.contrib import admin

from apps.production.models import ProductionBatch


@admin.register(ProductionBatch)
class ProductionBatchAdmin(admin.ModelAdmin):
    list_display = ("batch_number", "status", "planned_date", "updated_at")
    list_filter = ("status",)
    search_fields = ("batch_number",)
