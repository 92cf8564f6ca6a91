from django.contrib import admin

from .models import Company


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ['name', 'legal_name', 'country', 'email', 'rccm', 'ninea', 'active']
    list_filter = ['active', 'country']
    search_fields = ['name', 'legal_name', 'email', 'rccm', 'ninea']
    readonly_fields = ['created_at', 'updated_at', 'created_by', 'updated_by']
