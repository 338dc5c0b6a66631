from django.contrib import admin

from apps.recipes.models import Recipe, RecipeIngredient, RecipeVariant


class RecipeIngredientInline(admin.TabularInline):
    model = RecipeIngredient
    extra = 0
    fields = ("supplier_material", "quantity", "unit", "position", "locked_unit_price", "locked_tax", "lock_reason")
    readonly_fields = ("locked_unit_price", "locked_tax", "lock_reason")


@admin.register(Recipe)
class RecipeAdmin(admin.ModelAdmin):
    list_display = ("name", "status", "version", "target_cost_per_kg", "updated_at")
    list_filter = ("status",)
    search_fields = ("name",)
    inlines = [RecipeIngredientInline]


@admin.register(RecipeVariant)
class RecipeVariantAdmin(admin.ModelAdmin):
    list_display = ("name", "original_recipe", "optimization_goal", "is_active", "created_at")
    list_filter = ("is_active", "optimization_goal")
    search_fields = ("name", "original_recipe__name")
