from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'operations'

router = DefaultRouter()
router.register(r'', views.OperationViewSet, basename='operation')

urlpatterns = [
    # GET/POST           /api/operations/
    # GET/PUT/PATCH/DEL  /api/operations/{id}/
    # POST               /api/operations/{id}/toggle_active/
    # DELETE             /api/operations/{id}/hard_delete/
    path('', include(router.urls)),
]
