from django.urls import path
from . import views

app_name = 'analytics'

urlpatterns = [
    # Dashboard
    path('dashboard/', views.dashboard, name='dashboard'),

    # Breakdowns
    path('categories/', views.category_breakdown, name='category-breakdown'),
    path('origins/', views.spending_by_origin, name='spending-by-origin'),
    path('major-categories/', views.major_category_breakdown, name='major-category-breakdown'),

    # Timeseries data
    path('trend/', views.monthly_trend, name='monthly-trend'),
    path('forecast/', views.forecast, name='forecast'),
]
