from django.urls import path
from . import views

app_name = 'dataexchange'

urlpatterns = [
    # Bulk upload
    path('templates/<str:data_type>/', views.template, name='template'),
    path('upload/validate/', views.validate, name='validate'),
    path('upload/report/', views.error_report, name='error-report'),
    path('upload/import/', views.import_data, name='import'),

    # Export
    path('export/', views.export, name='export'),
]
