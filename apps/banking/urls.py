from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'banking'

router = DefaultRouter()
router.register(r'connections', views.BankConnectionViewSet, basename='connection')

urlpatterns = [
    # GoCardless
    path('institutions/', views.institution_list, name='institution-list'),
    path('callback/', views.callback, name='callback'),

    # Accounts and sync
    path('accounts/', views.account_list, name='account-list'),
    path('accounts/<str:account_id>/', views.account_detail, name='account-detail'),
    path('sync/', views.sync, name='sync'),

    # Scheduler (admin)
    path('scheduler/', views.scheduler, name='scheduler'),

    path('', include(router.urls)),
]
