from django.contrib import admin

from .models import Expense, ExpenseCategory, ExpenseSupplier, PaymentMethod


@admin.register(PaymentMethod)
class PaymentMethodAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'active']
    list_filter = ['active']
    search_fields = ['name', 'code']


@admin.register(ExpenseCategory)
class ExpenseCategoryAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'active']
    list_filter = ['active']
    search_fields = ['code', 'name']
    readonly_fields = ['code']


@admin.register(ExpenseSupplier)
class ExpenseSupplierAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'phone', 'active']
    list_filter = ['active']
    search_fields = ['name', 'email', 'rccm', 'ninea']


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ['number', 'title', 'category', 'expense_date', 'amount_xof', 'currency', 'status', 'active']
    list_filter = ['status', 'currency', 'category', 'active']
    search_fields = ['number', 'title']
    date_hierarchy = 'expense_date'
    list_select_related = ['category']
    readonly_fields = [
        'number', 'status', 'validated_at', 'validated_by', 'paid_at',
        'created_at', 'updated_at', 'created_by', 'updated_by',
    ]
