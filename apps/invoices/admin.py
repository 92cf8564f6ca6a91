from django.contrib import admin

from .models import Invoice, InvoiceLineItem, InvoicePayment


class InvoiceLineItemInline(admin.TabularInline):
    model = InvoiceLineItem
    extra = 0
    readonly_fields = ['amount_xof', 'amount_eur']


class InvoicePaymentInline(admin.TabularInline):
    model = InvoicePayment
    extra = 0
    readonly_fields = ['recorded_by', 'created_at']


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['number', 'company', 'ship', 'issue_date', 'due_date', 'total_xof', 'amount_paid_xof', 'status', 'active']
    list_filter = ['status', 'active', 'issue_date']
    search_fields = ['number', 'company__name', 'ship__name', 'notes']
    readonly_fields = ['total_xof', 'total_eur', 'amount_paid_xof', 'paid_at',
                       'created_at', 'updated_at', 'created_by', 'updated_by']
    inlines = [InvoiceLineItemInline, InvoicePaymentInline]
    date_hierarchy = 'issue_date'


@admin.register(InvoicePayment)
class InvoicePaymentAdmin(admin.ModelAdmin):
    list_display = ['invoice', 'amount_xof', 'paid_on', 'payment_method', 'reference', 'recorded_by']
    list_filter = ['paid_on', 'payment_method']
    search_fields = ['invoice__number', 'reference']
