from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'expenses'

# Note: reference data must be registered BEFORE the empty prefix to avoid URL conflicts
router = DefaultRouter()
router.register(r'payment-methods', views.PaymentMethodViewSet, basename='payment-method')
router.register(r'categories', views.ExpenseCategoryViewSet, basename='category')
router.register(r'suppliers', views.ExpenseSupplierViewSet, basename='supplier')
router.register(r'', views.ExpenseViewSet, basename='expense')

urlpatterns = [
    # Expense routes
    # GET/POST           /api/expenses/
    # GET/PUT/PATCH/DEL  /api/expenses/{id}/
    # POST               /api/expenses/{id}/submit|approve|reject|mark_paid|cancel/
    # POST               /api/expenses/{id}/status/
    # GET                /api/expenses/stats/
    # GET                /api/expenses/pending/
    # GET                /api/expenses/number/{number}/

    # Reference data (each with activate/deactivate)
    # /api/expenses/payment-methods/
    # /api/expenses/categories/
    # /api/expenses/suppliers/
    path('', include(router.urls)),
]
