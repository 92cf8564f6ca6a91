from django.contrib import admin

from .models import Operation


@admin.register(Operation)
class OperationAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'price_xof', 'price_eur', 'active']
    list_filter = ['active']
    search_fields = ['code', 'name']
    readonly_fields = ['created_at', 'updated_at', 'created_by', 'updated_by']
