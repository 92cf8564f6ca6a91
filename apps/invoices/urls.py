from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'invoices'

router = DefaultRouter()
router.register(r'', views.InvoiceViewSet, basename='invoice')

urlpatterns = [
    # GET/POST           /api/invoices/
    # GET/PUT/PATCH/DEL  /api/invoices/{id}/
    # POST               /api/invoices/{id}/lines/
    # PATCH/DELETE       /api/invoices/{id}/lines/{line_id}/
    # POST               /api/invoices/{id}/emit/
    # GET/POST           /api/invoices/{id}/payments/
    # POST               /api/invoices/{id}/mark_paid|cancel|mark_overdue/
    # POST               /api/invoices/update_overdue/
    # GET                /api/invoices/stats/
    # GET                /api/invoices/overdue/
    # GET                /api/invoices/number/{number}/
    path('', include(router.urls)),
]
