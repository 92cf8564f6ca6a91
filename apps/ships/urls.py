from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'ships'

router = DefaultRouter()
router.register(r'', views.ShipViewSet, basename='ship')

urlpatterns = [
    # GET/POST           /api/ships/
    # GET/PUT/PATCH/DEL  /api/ships/{id}/
    # POST               /api/ships/{id}/activate/
    # POST               /api/ships/{id}/deactivate/
    path('', include(router.urls)),
]
