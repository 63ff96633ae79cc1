from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'budgeting'

router = DefaultRouter()
router.register(r'budgets', views.BudgetViewSet, basename='budget')
router.register(r'goals', views.GoalViewSet, basename='goal')

urlpatterns = [
    path('', include(router.urls)),
]
