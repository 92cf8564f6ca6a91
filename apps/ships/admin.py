from django.contrib import admin

from .models import Ship


@admin.register(Ship)
class ShipAdmin(admin.ModelAdmin):
    list_display = ['name', 'imo_number', 'mmsi_number', 'flag', 'ship_type', 'company', 'active']
    list_filter = ['active', 'flag', 'ship_type', 'classification']
    search_fields = ['name', 'imo_number', 'mmsi_number', 'call_sign']
    list_select_related = ['company']
    readonly_fields = ['created_at', 'updated_at', 'created_by', 'updated_by']
