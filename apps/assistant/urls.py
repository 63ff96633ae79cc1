from django.urls import path
from . import views

app_name = 'assistant'

urlpatterns = [
    # Categorization
    path('categorize/', views.categorize, name='categorize'),
    path('categorize/bulk/', views.categorize_bulk, name='categorize-bulk'),
    path('stats/', views.stats, name='stats'),
    path('feedback/', views.feedback, name='feedback'),
    path('feedback/reset/', views.feedback_reset, name='feedback-reset'),

    # Financial chat
    path('chat/', views.chat, name='chat'),
    path('insights/', views.insights, name='insights'),
]
