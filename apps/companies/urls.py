from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'companies'

router = DefaultRouter()
router.register(r'', views.CompanyViewSet, basename='company')

urlpatterns = [
    # GET/POST           /api/companies/
    # GET/PUT/PATCH/DEL  /api/companies/{id}/
    # POST               /api/companies/{id}/activate/
    # POST               /api/companies/{id}/deactivate/
    # DELETE             /api/companies/{id}/hard_delete/
    path('', include(router.urls)),
]
